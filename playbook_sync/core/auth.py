"""Authentication dependency: who is acting on this request.

Public interface:
    ``require_user``: returns AuthContext or raises 401.

Sessions, passwords and token issuance belong to the authentication
subsystem; this module only verifies the bearer token it issued and checks
that the subject still exists.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import Settings
from .token_factory import decode_token
from ..database import get_db
from ..exceptions import AuthenticationError
from ..repositories import UserRepository

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Identity of the acting user, passed to service calls as ``user_id``."""

    user_id: str
    email: str = ""


def get_settings(request: Request) -> Settings:
    """Settings the application was built with."""
    return request.app.state.settings


def require_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Require a valid bearer token for an existing user."""
    if credentials is None:
        raise AuthenticationError("Missing authentication token")

    payload = decode_token(
        credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm
    )
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    user = UserRepository(db).get(payload.sub)
    if user is None:
        logger.warning("Token subject has no account", extra={"user_id": payload.sub})
        raise AuthenticationError("User not found")

    return AuthContext(user_id=user.id, email=user.email)

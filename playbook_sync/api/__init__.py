"""API routes."""

from .playbooks import router as playbooks_router
from .sharing import router as sharing_router
from .folders import router as folders_router

__all__ = [
    "playbooks_router",
    "sharing_router",
    "folders_router",
]

"""Exception handler translating PlaybookException into structured JSON."""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from ..exceptions import PlaybookException

logger = logging.getLogger(__name__)


async def playbook_exception_handler(request: Request, exc: PlaybookException) -> JSONResponse:
    """
    Log the error and return it in the standard ``{error, message, details}`` shape.

    Client errors (4xx) log at WARNING, server errors at ERROR.
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"PlaybookException: {exc.error_code.value}",
        extra={
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
            "status_code": exc.status_code
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )

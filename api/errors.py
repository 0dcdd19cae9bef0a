"""
Exception handlers mapping engine errors to HTTP responses.

Every body carries the error's code under "error" so a caller can tell a
validation refusal from a stale-state refusal.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from relocation.core.errors import (
    AuthorizationError,
    ConfigurationError,
    DuplicateAllocationError,
    InvalidTransitionError,
    NotFoundError,
    PartialTransitionError,
    StoreError,
    TransferEngineError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first
STATUS_CODES: list[tuple[type[TransferEngineError], int]] = [
    (ValidationError, 422),
    (DuplicateAllocationError, 409),
    (InvalidTransitionError, 409),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConfigurationError, 500),
    (PartialTransitionError, 503),
    (StoreError, 502),
]


def status_code_for(exc: TransferEngineError) -> int:
    for error_type, status_code in STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500


def register_exception_handlers(app: FastAPI) -> None:
    """Install the TransferEngineError handler on an app."""

    @app.exception_handler(TransferEngineError)
    async def engine_error_handler(request: Request, exc: TransferEngineError) -> JSONResponse:
        status_code = status_code_for(exc)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        else:
            logger.info(f"{request.method} {request.url.path} refused ({exc.code}): {exc}")

        content = exc.to_dict()
        if isinstance(exc, PartialTransitionError):
            content["retry"] = True
        return JSONResponse(status_code=status_code, content=content)

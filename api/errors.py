# api/errors.py
"""
Renders the backend's error taxonomy (`common.errors`) as JSON responses.
Routes let those errors propagate; `register_error_handlers` maps each one to
its status code.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from common.errors import TherapyChatError

logger = logging.getLogger(__name__)


def to_response(error: TherapyChatError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content={
            "error": error.message,
            "type": error.error_type.value,
            "details": error.details,
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(TherapyChatError)
    async def _handle(request: Request, exc: TherapyChatError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return to_response(exc)

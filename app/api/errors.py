"""Exception handlers that turn pipeline errors into JSON error bodies.

Every failure reaches the client as
``{"success": false, "message": {"err": "..."}}`` with the status code of
the error class. Internal details go to the log only.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import QuoteServiceError

logger = logging.getLogger(__name__)

# Client messages for body fields that arrive with the wrong type
FIELD_MESSAGES = {
    "naturalLanguageQuery": "Situation description must be text",
    "mood": "Mood must be one of: funny, cool, dramatic, sassy",
    "actorName": "Actor name must be text",
    "movieTitle": "Movie title must be text",
}


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": {"err": message}},
    )


def _record_error(request: Request) -> None:
    metrics = getattr(request.app.state, "metrics", None)
    if metrics is not None:
        metrics.record_error()


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the error handlers on the application."""

    @app.exception_handler(QuoteServiceError)
    async def quote_service_error_handler(
        request: Request,
        exc: QuoteServiceError,
    ) -> JSONResponse:
        _record_error(request)
        logger.error(
            f"{request.method} {request.url.path} failed "
            f"({exc.status_code}, {type(exc).__name__}): {exc.log}"
        )
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        _record_error(request)
        message = "Invalid request body"
        for error in exc.errors():
            field = next((part for part in error.get("loc", ()) if part in FIELD_MESSAGES), None)
            if field is not None:
                message = FIELD_MESSAGES[field]
                break
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.errors()}")
        return error_response(status.HTTP_400_BAD_REQUEST, message)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        _record_error(request)
        logger.exception(f"Unexpected error on {request.method} {request.url.path}: {exc}")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
        )

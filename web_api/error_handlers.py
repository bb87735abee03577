"""
Error handlers - map ContestError to the JSON bodies entrants see.

    ContestError -> its own status and body (400/404/409/500)
    anything else -> 500 {"error": "server_error"}, details never leaked
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from contest.errors import ContestError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""

    @app.exception_handler(ContestError)
    async def contest_error_handler(request: Request, exc: ContestError):
        if exc.http_status >= 500:
            logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
        else:
            logger.info(f"{exc.code} on {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.http_status, content=exc.to_response())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.url.path}")
        return JSONResponse(status_code=500, content={"error": "server_error"})

"""Exception handlers mapping search errors to the JSON error envelope."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from staysearch.services.search_errors import InvalidParamsError, SearchError

logger = logging.getLogger(__name__)


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(SearchError)
    async def search_error_handler(request: Request, exc: SearchError) -> JSONResponse:
        if exc.status >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.code}")
        else:
            logger.info(f"{request.method} {request.url.path} -> {exc.code}")
        return JSONResponse(exc.to_dict(), status_code=exc.status)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info(f"Invalid request to {request.url.path}: {exc.errors()}")
        return JSONResponse(InvalidParamsError().to_dict(), status_code=400)

# query_studio/logging/exception_handlers.py

import json
import logging
import traceback
from datetime import datetime

from fastapi import Request
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from query_studio.core.config import APPLICATION_ID
from query_studio.core.database import SessionLocal
from query_studio.datasources import SchemaLoadError, UnknownDataSourceError
from query_studio.logging.middleware import current_hostname, current_username
from query_studio.logging.models import Log
from query_studio.query_builder.state import InvalidQueryStateError

logger = logging.getLogger(__name__)

USERNAME = current_username()
HOSTNAME = current_hostname()


def safe_json_dumps(obj) -> str:
    return json.dumps(obj, indent=2, default=str)


def _persist_error(request: Request, status_code: int, payload) -> None:
    """Write a failed request to the log table; the middleware never sees these."""
    try:
        with SessionLocal() as session:
            session.add(
                Log(
                    timestamp=datetime.now(),
                    method=request.method,
                    path=str(request.url.path),
                    status_code=status_code,
                    client_ip=request.client.host if request.client else None,
                    request_headers=json.dumps(dict(request.headers)),
                    request_body=None,
                    response_body=safe_json_dumps(payload),
                    processing_time=None,
                    user_agent=request.headers.get("user-agent"),
                    username=USERNAME,
                    hostname=HOSTNAME,
                    application_id=APPLICATION_ID,
                )
            )
            session.commit()
    except SQLAlchemyError as log_error:
        logger.error("Error logging exception: %s", log_error)


async def general_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions and log them to database"""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    _persist_error(
        request,
        500,
        {"error": str(exc), "type": type(exc).__name__, "traceback": traceback.format_exc()},
    )
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


async def response_validation_exception_handler(request: Request, exc: ResponseValidationError):
    _persist_error(request, 500, exc.errors())
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error: Response validation failed."},
    )


async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors"""

    # Convert errors to a safe format for JSON response
    def convert_error(error):
        if isinstance(error, dict):
            return {k: convert_error(v) for k, v in error.items()}
        elif isinstance(error, list):
            return [convert_error(item) for item in error]
        return str(error)

    return JSONResponse(status_code=422, content={"detail": convert_error(exc.errors())})


# ===== DOMAIN ERRORS =====


async def invalid_query_state_handler(request: Request, exc: InvalidQueryStateError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


async def unknown_data_source_handler(request: Request, exc: UnknownDataSourceError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def schema_load_error_handler(request: Request, exc: SchemaLoadError):
    return JSONResponse(status_code=503, content={"detail": str(exc)})

"""FastAPI application factory for Query Studio."""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.middleware.cors import CORSMiddleware

from query_studio.core.database import init_db
from query_studio.core.router import register_routes
from query_studio.datasources import SchemaLoadError, UnknownDataSourceError
from query_studio.logging.exception_handlers import (
    general_exception_handler,
    invalid_query_state_handler,
    request_validation_exception_handler,
    response_validation_exception_handler,
    schema_load_error_handler,
    unknown_data_source_handler,
)
from query_studio.logging.middleware import LoggingMiddleware
from query_studio.query_builder.state import InvalidQueryStateError


def create_app() -> FastAPI:

    app = FastAPI(
        title="Query Studio",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )
    init_db()

    # Add request logger middleware
    app.add_middleware(LoggingMiddleware)

    # 500s and response validation errors are not seen by the middleware
    app.add_exception_handler(ResponseValidationError, response_validation_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(InvalidQueryStateError, invalid_query_state_handler)
    app.add_exception_handler(UnknownDataSourceError, unknown_data_source_handler)
    app.add_exception_handler(SchemaLoadError, schema_load_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, replace with specific origins
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)

    return app

"""
Module for registering routes in the FastAPI application.
"""

from fastapi import FastAPI

from query_studio.query_builder.router import router as query_builder_router
from query_studio.queries.router import router as saved_query_router
from query_studio.logging.router import router as log_router


def register_routes(app: FastAPI) -> None:
    """
    Registers all the routes for the FastAPI application.

    Args:
        app (FastAPI): The FastAPI application instance.
    """
    app.include_router(query_builder_router, prefix="/api")
    app.include_router(saved_query_router, prefix="/api")
    app.include_router(log_router, prefix="/api")

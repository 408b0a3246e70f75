"""
Search Server Application Entry Point

This module defines the FastAPI application serving ranked search over
built indexes, registers its routers and exception handlers, and provides
a test-friendly application factory.
"""

from __future__ import annotations

import logging
from fastapi import FastAPI

from .core.errors import (
    IndexNotFoundError,
    InvalidIndexNameError,
    InvalidQueryError,
    QueryError,
    index_not_found_handler,
    invalid_request_handler,
    query_error_handler,
    unhandled_exception_handler,
)

from .api import (
    health_routes,
    search_routes,
)


logger = logging.getLogger("mtg_search.app")


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    The index service is resolved through `api.dependencies`, so tests can
    swap it out with `app.dependency_overrides`.

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    app = FastAPI(
        title="mtg-search",
        version="0.1.0",
        docs_url="/docs",
        redoc_url=None,
        openapi_url="/openapi.json",
    )

    # --------------------------------------------------------------
    # Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(IndexNotFoundError, index_not_found_handler)
    app.add_exception_handler(QueryError, query_error_handler)
    app.add_exception_handler(InvalidIndexNameError, invalid_request_handler)
    app.add_exception_handler(InvalidQueryError, invalid_request_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(search_routes.router)

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn)
# ---------------------------------------------------------------------

app = create_app()

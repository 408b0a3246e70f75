"""
Error Taxonomy and Global Error Handling

This module defines every exception raised by the index pipeline, plus the
FastAPI exception handlers used by the serve surface.

Design Goals
------------
- One exception type per failure stage (download, decode, upload, query...)
- Always chain the underlying cause (`raise ... from exc`)
- Never retry internally; callers re-run the whole operation
- Never leak internal exception details to HTTP clients
"""

from __future__ import annotations

import logging
from typing import Dict, Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("mtg_search.errors")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class MtgSearchError(RuntimeError):
    """Base error for all index pipeline failures."""


class DownloadError(MtgSearchError):
    """Raised on transport failure or a non-success download status."""

    def __init__(
        self,
        url: str,
        message: str,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(f"downloading {url!r}: {message}")
        self.url = url
        self.status_code = status_code


class DecodeError(MtgSearchError):
    """Raised when the source document is malformed or has the wrong shape."""


class AlreadyExistsError(MtgSearchError):
    """Raised when a metadata record or namespace would be overwritten."""


class MetadataExistsError(AlreadyExistsError):
    """Raised when a metadata record already exists for an index name."""


class NamespaceExistsError(AlreadyExistsError):
    """Raised when a freshly allocated namespace already exists remotely."""


class NameMismatchError(MtgSearchError):
    """Raised when a metadata record's embedded name differs from its key."""


class MetadataCorruptError(MtgSearchError):
    """Raised when a metadata record cannot be read or decoded."""


class UploadError(MtgSearchError):
    """Raised when a batch upsert fails; the remaining upload is aborted."""

    def __init__(self, namespace: str, batch_size: int) -> None:
        super().__init__(
            f"writing batch of {batch_size} rows to namespace {namespace!r} failed"
        )
        self.namespace = namespace
        self.batch_size = batch_size


class QueryError(MtgSearchError):
    """Raised when a search query against a namespace fails."""


class IndexNotFoundError(MtgSearchError):
    """Raised when an operation requires an index that was never built."""


class InvalidIndexNameError(ValueError):
    """Raised when an index name is unusable as a file or namespace key."""


class InvalidQueryError(ValueError):
    """Raised when a search query is blank or asks for no results."""


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def index_not_found_handler(
    request: Request,
    exc: IndexNotFoundError,
) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"error": "index_not_found", "detail": str(exc)},
    )


async def invalid_request_handler(
    request: Request,
    exc: ValueError,
) -> JSONResponse:
    """
    Only registered for caller mistakes (bad index name, blank query).
    """
    return JSONResponse(
        status_code=400,
        content={"error": "invalid_request", "detail": str(exc)},
    )


async def query_error_handler(
    request: Request,
    exc: QueryError,
) -> JSONResponse:
    """
    The search service failed; report a bad gateway without the cause.
    """
    logger.error(
        "Search query failed during request: %s %s (%s)",
        request.method,
        request.url.path,
        exc.__cause__,
    )
    return JSONResponse(
        status_code=502,
        content={"error": "query_failed", "detail": "Search service query failed"},
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    Logs the full stack trace internally and returns a generic 500 with no
    internal details.
    """
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    payload: Dict[str, Any] = {
        "error": "internal_server_error",
        "detail": "Internal server error",
    }

    return JSONResponse(
        status_code=500,
        content=payload,
    )

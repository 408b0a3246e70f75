"""
Search Routes

Ranked full-text search over a built index. Errors are mapped by the
handlers registered in `main.create_app`:

- bad index name or blank query → 400
- unknown index → 404
- search service failure → 502
- anything else, including a corrupt index file → 500
"""

import time
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from .dependencies import get_index_service
from .models import SearchHit, SearchResponse
from ..index.search import search_namespace
from ..service import IndexService

router = APIRouter(prefix="/indexes", tags=["search"])


@router.get(
    "/{name}/search",
    response_model=SearchResponse,
    summary="Ranked full-text card search",
    status_code=status.HTTP_200_OK,
)
async def search(
    name: str,
    service: Annotated[IndexService, Depends(get_index_service)],
    q: Annotated[str, Query(min_length=1, max_length=512)],
    top_k: Annotated[int, Query(ge=1, le=1200)] = 10,
) -> SearchResponse:
    """
    Search index `name` for `q`, returning at most `top_k` cards, best first.
    """
    metadata = service.require(name)

    start = time.monotonic()
    rows = await search_namespace(service.client, metadata.namespace, q, top_k)
    took_ms = int((time.monotonic() - start) * 1000)

    return SearchResponse(
        index=metadata.name,
        namespace=metadata.namespace,
        took_ms=took_ms,
        results=[SearchHit.model_validate(row) for row in rows],
    )

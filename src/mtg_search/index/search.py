"""
Ranked Full-Text Search

Queries are ranked by a weighted sum of per-field BM25 scores. A hit in the
card name counts twice as much as a hit in the rules text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from .rows import DISPLAY_ATTRIBUTES
from ..core.errors import InvalidQueryError, QueryError
from ..turbopuffer.client import TurbopufferClient, TurbopufferError

logger = logging.getLogger("mtg_search.search")

FIELD_WEIGHTS: Tuple[Tuple[str, float], ...] = (
    ("name", 2.0),
    ("text", 1.0),
)


@dataclass(frozen=True)
class RankedQuery:
    text: str
    weights: Tuple[Tuple[str, float], ...] = FIELD_WEIGHTS
    top_k: int = 10
    include_attributes: List[str] = field(
        default_factory=lambda: list(DISPLAY_ATTRIBUTES)
    )

    def __post_init__(self) -> None:
        if not self.text or not self.text.strip():
            raise InvalidQueryError("Search query must be non-empty.")
        if self.top_k < 1:
            raise InvalidQueryError(f"top_k must be at least 1, got {self.top_k}")
        if not self.weights:
            raise ValueError("At least one weighted field is required.")

    def rank_by(self) -> List[Any]:
        terms = [
            ["Product", weight, [name, "BM25", self.text]]
            for name, weight in self.weights
        ]
        return ["Sum", terms]

    def to_payload(self) -> Dict[str, Any]:
        return {
            "rank_by": self.rank_by(),
            "top_k": self.top_k,
            "include_attributes": list(self.include_attributes),
        }


async def search_namespace(
    client: TurbopufferClient,
    namespace: str,
    text: str,
    top_k: int = 10,
) -> List[Dict[str, Any]]:
    """
    Run a ranked full-text query against `namespace`.

    Returns
    -------
    List[Dict[str, Any]]
        Up to `top_k` rows, best first. An empty list means no match.

    Raises
    ------
    QueryError
        If the query fails.
    """
    query = RankedQuery(text=text.strip(), top_k=top_k)

    try:
        rows = await client.query(namespace, query.to_payload())
    except TurbopufferError as exc:
        logger.error("Query against namespace %s failed: %s", namespace, exc)
        raise QueryError(f"querying namespace {namespace!r}: {exc}") from exc

    return rows[:top_k]

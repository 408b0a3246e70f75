"""
API Models

Response models for the search surface.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SearchHit(BaseModel):
    """
    One ranked card, projected to its display attributes.
    """
    name: str = Field(..., min_length=1)
    mana_cost: Optional[str] = None
    text: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class SearchResponse(BaseModel):
    index: str
    namespace: str
    took_ms: int = Field(..., ge=0)
    results: List[SearchHit]

    model_config = ConfigDict(extra="forbid")

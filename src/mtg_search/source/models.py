"""
MTGJSON Source Models

This module defines the subset of the MTGJSON "atomic" file format that the
indexer reads. The upstream schema is much wider; unknown keys are ignored
so that upstream additions never break a build.

Document shape::

    {
      "data": { "<card name>": [ <AtomicCard>, ... ], ... },
      "meta": { "date": "2025-08-30", "version": "5.2.2+20250830" }
    }
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Ruling(BaseModel):
    date: str
    text: str

    model_config = ConfigDict(extra="ignore")


class AtomicCard(BaseModel):
    """
    One face of one unique card.

    Multi-faced cards appear as several entries under the same `data` key.
    """

    name: str
    types: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    color_identity: List[str] = Field(default_factory=list, alias="colorIdentity")
    mana_value: float = Field(default=0.0, alias="manaValue")
    mana_cost: Optional[str] = Field(default=None, alias="manaCost")
    power: Optional[str] = None
    toughness: Optional[str] = None
    loyalty: Optional[str] = None
    text: Optional[str] = None
    edhrec_rank: Optional[int] = Field(default=None, alias="edhrecRank")
    edhrec_saltiness: Optional[float] = Field(default=None, alias="edhrecSaltiness")
    rulings: List[Ruling] = Field(default_factory=list)

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
    )

    def ruling_texts(self) -> List[str]:
        return [ruling.text for ruling in self.rulings]


class SetMeta(BaseModel):
    date: str
    version: str

    model_config = ConfigDict(extra="ignore")


class AtomicSet(BaseModel):
    data: Dict[str, List[AtomicCard]]
    meta: SetMeta

    model_config = ConfigDict(extra="ignore")

    def iter_cards(self):
        """Yield every card in source order."""
        for cards in self.data.values():
            yield from cards

    def card_count(self) -> int:
        return sum(len(cards) for cards in self.data.values())

"""
Card → Row Transform

Maps one source card onto the fixed attribute set stored in turbopuffer.
Each row gets a fresh random UUID; there is no stable link between a card
and its row id across builds.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict

from ..source.models import AtomicCard


# Attributes returned by search (not the full row).
DISPLAY_ATTRIBUTES = ["name", "mana_cost", "text"]


NAMESPACE_SCHEMA: Dict[str, Dict[str, Any]] = {
    "id": {"type": "uuid"},
    "types": {"type": "[]string"},
    "power": {"type": "string"},
    "toughness": {"type": "string"},
    "name": {
        "type": "string",
        "full_text_search": {"remove_stopwords": False},
        "filterable": True,
    },
    "edhrec_rank": {"type": "uint"},
    "edhrec_saltiness": {"type": "float"},
    "colors": {"type": "[]string"},
    "color_identity": {"type": "[]string"},
    "converted_mana_cost": {"type": "uint"},
    "mana_cost": {"type": "string"},
    "rulings": {
        "type": "[]string",
        "full_text_search": {"stemming": True},
    },
    "starting_loyalty": {"type": "string"},
    "text": {
        "type": "string",
        "full_text_search": {"stemming": True, "remove_stopwords": False},
    },
}


def build_row(card: AtomicCard) -> Dict[str, Any]:
    """
    Build the turbopuffer row for `card`.

    `converted_mana_cost` is stored as an unsigned int; fractional mana
    values (half-mana cards) are truncated.
    """
    return {
        "id": str(uuid.uuid4()),
        "types": card.types,
        "power": card.power,
        "toughness": card.toughness,
        "name": card.name,
        "edhrec_rank": card.edhrec_rank,
        "edhrec_saltiness": card.edhrec_saltiness,
        "colors": card.colors,
        "color_identity": card.color_identity,
        "converted_mana_cost": max(int(card.mana_value), 0),
        "mana_cost": card.mana_cost,
        "rulings": card.ruling_texts(),
        "starting_loyalty": card.loyalty,
        "text": card.text,
    }

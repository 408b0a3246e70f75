"""
Source Package

Download and decoding of MTGJSON atomic set files.
"""

from .fetcher import fetch_document, DigestingReader
from .models import AtomicCard, AtomicSet, Ruling, SetMeta

__all__ = [
    "fetch_document",
    "DigestingReader",
    "AtomicCard",
    "AtomicSet",
    "Ruling",
    "SetMeta",
]

"""
Supported MTGJSON datasets.

We index the *atomic* version of each set: unique cards only, ignoring
reprints and printing variations.
"""

from __future__ import annotations

from enum import Enum


class Dataset(str, Enum):
    VINTAGE = "vintage"
    STANDARD = "standard"
    PIONEER = "pioneer"
    PAUPER = "pauper"
    MODERN = "modern"

    @property
    def download_url(self) -> str:
        return _DOWNLOAD_URLS[self]

    @classmethod
    def parse(cls, value: str) -> "Dataset":
        """
        Parse a user-supplied dataset name, case-insensitively.

        Raises
        ------
        ValueError
            If the name is not one of the supported datasets.
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(d.value for d in cls)
            raise ValueError(
                f"invalid dataset {value!r}, must be one of {choices}"
            ) from None


_DOWNLOAD_URLS = {
    Dataset.VINTAGE: "https://mtgjson.com/api/v5/LegacyAtomic.json",
    Dataset.STANDARD: "https://mtgjson.com/api/v5/StandardAtomic.json",
    Dataset.PIONEER: "https://mtgjson.com/api/v5/PioneerAtomic.json",
    Dataset.PAUPER: "https://mtgjson.com/api/v5/PauperAtomic.json",
    Dataset.MODERN: "https://mtgjson.com/api/v5/ModernAtomic.json",
}

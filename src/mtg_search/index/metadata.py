"""
Index Metadata Store

Each built index is described by one small JSON file, `<index_dir>/<name>.json`,
holding the IndexMetadata fields. The file is the only local state of the
system.

Key Properties
--------------
- Create-if-absent: a record is published with a hard link from a fully
  written temp file, so an existing record is never overwritten and a
  crash never leaves a partial record behind.
- A record is immutable once created; delete is its only other mutator.
- Absence on load is a normal outcome (None), not an error.
- Records are checked against their key on load.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.errors import (
    InvalidIndexNameError,
    MetadataCorruptError,
    MetadataExistsError,
    NameMismatchError,
)
from ..datasets import Dataset

logger = logging.getLogger("mtg_search.metadata")


# ---------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------

INDEX_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")


# ---------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------

class IndexMetadata(BaseModel):
    """
    Durable descriptor of one built index.
    """

    name: str = Field(
        ...,
        min_length=1,
        description="Index name, as chosen by the user.",
    )

    namespace: str = Field(
        ...,
        min_length=1,
        description="turbopuffer namespace backing the index.",
    )

    created_at: datetime = Field(
        ...,
        description="UTC time the index build completed.",
    )

    checksum: str = Field(
        ...,
        min_length=8,
        description="Hex SHA-256 of the source document the index was built from.",
    )

    dataset: Dataset = Field(
        ...,
        description="MTGJSON dataset that was indexed.",
    )

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
    )


def validate_index_name(name: str) -> str:
    """
    Reject names that are unsafe as file names or namespace components.
    """
    if not isinstance(name, str) or not INDEX_NAME_PATTERN.match(name):
        raise InvalidIndexNameError(
            f"Invalid index name {name!r}: must be 1-64 alphanumeric chars, hyphens, or underscores"
        )
    return name


# ---------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------

class MetadataStore:
    """
    File-backed store of IndexMetadata records keyed by index name.
    """

    def __init__(self, index_dir: Union[str, Path] = ".") -> None:
        self._index_dir = Path(index_dir)

    def path_for(self, name: str) -> Path:
        return self._index_dir / f"{validate_index_name(name)}.json"

    def create(
        self,
        name: str,
        namespace: str,
        checksum: str,
        dataset: Dataset,
        created_at: Optional[datetime] = None,
    ) -> IndexMetadata:
        """
        Create the record for `name`.

        Raises
        ------
        MetadataExistsError
            If a record already exists; nothing is modified.
        """
        path = self.path_for(name)
        metadata = IndexMetadata(
            name=name,
            namespace=namespace,
            created_at=created_at or datetime.now(timezone.utc),
            checksum=checksum,
            dataset=dataset,
        )

        self._index_dir.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{name}.", suffix=".tmp", dir=self._index_dir
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(metadata.model_dump_json())
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())

            try:
                os.link(tmp_name, path)
            except FileExistsError:
                raise MetadataExistsError(
                    f"index file {str(path)!r} already exists"
                ) from None
        finally:
            os.unlink(tmp_name)

        logger.info("Wrote index file %s", path)
        return metadata

    def load(self, name: str) -> Optional[IndexMetadata]:
        """
        Load the record for `name`, or None if it does not exist.

        Raises
        ------
        MetadataCorruptError
            If the record cannot be read or decoded.

        NameMismatchError
            If the record describes a different index.
        """
        path = self.path_for(name)

        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise MetadataCorruptError(
                f"opening index file {str(path)!r}: {exc}"
            ) from exc

        # bytes, not text: invalid UTF-8 surfaces as a ValidationError
        try:
            metadata = IndexMetadata.model_validate_json(raw)
        except ValidationError as exc:
            raise MetadataCorruptError(
                f"decoding index file {str(path)!r}: {exc.error_count()} validation errors"
            ) from exc
        except UnicodeDecodeError as exc:
            raise MetadataCorruptError(
                f"decoding index file {str(path)!r}: {exc.reason}"
            ) from exc

        if metadata.name != name:
            raise NameMismatchError(
                f"index name mismatch: expected {name!r}, got {metadata.name!r}"
            )

        return metadata

    def delete(self, name: str) -> bool:
        """
        Remove the record for `name`.

        Only call this after the backing namespace has been torn down.

        Returns
        -------
        bool
            True if a record was removed, False if none existed.
        """
        path = self.path_for(name)
        try:
            path.unlink()
        except FileNotFoundError:
            return False

        logger.info("Deleted index file %s", path)
        return True

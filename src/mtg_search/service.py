"""
Index Service

Composes the fetcher, namespace lifecycle, uploader, metadata store and
search into the three top-level operations: build, delete and search.

Sequencing
----------
- build:  load → fetch → allocate → ensure absent → upload → create record
- delete: load → tear down namespace → delete record
- search: load → query

The metadata record is only written after a fully successful upload, and
only deleted after the namespace is gone. A crash between steps can leave
an orphaned namespace, never a record pointing at a missing namespace.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from .config import Settings
from .core.errors import IndexNotFoundError
from .datasets import Dataset
from .index.metadata import IndexMetadata, MetadataStore, validate_index_name
from .index.namespace import allocate_namespace, ensure_namespace_absent, teardown_namespace
from .index.search import search_namespace
from .index.uploader import upload_document
from .source.fetcher import fetch_document
from .turbopuffer.client import TurbopufferClient

logger = logging.getLogger("mtg_search.service")


class IndexService:
    """
    Build, delete and search named card indexes.
    """

    def __init__(
        self,
        client: TurbopufferClient,
        store: MetadataStore,
        namespace_prefix: str = "mtg",
        target_batch_bytes: int = 128 << 20,
        estimated_row_bytes: int = 1 << 10,
        download_timeout: float = 120.0,
        download_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.client = client
        self.store = store
        self.namespace_prefix = namespace_prefix
        self.target_batch_bytes = target_batch_bytes
        self.estimated_row_bytes = estimated_row_bytes
        self.download_timeout = download_timeout
        self._download_transport = download_transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "IndexService":
        client = TurbopufferClient(
            api_key=settings.turbopuffer_api_key.get_secret_value(),
            region=settings.turbopuffer_region,
            timeout=settings.http_timeout,
        )
        return cls(
            client=client,
            store=MetadataStore(settings.index_dir),
            namespace_prefix=settings.namespace_prefix,
            target_batch_bytes=settings.target_batch_bytes,
            estimated_row_bytes=settings.estimated_row_bytes,
            download_timeout=settings.http_timeout,
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def build(self, name: str, dataset: Dataset) -> IndexMetadata:
        """
        Build index `name` from `dataset`, unless it already exists.

        An existing index is returned untouched; nothing is downloaded or
        uploaded. Delete it first to rebuild.
        """
        validate_index_name(name)

        existing = self.store.load(name)
        if existing is not None:
            logger.info("Index %s already exists, not overwriting", name)
            return existing

        start = time.monotonic()
        logger.info("Downloading set %s from mtgjson...", dataset.value)
        document, checksum = await fetch_document(
            dataset.download_url,
            timeout=self.download_timeout,
            transport=self._download_transport,
        )
        logger.info(
            "Downloaded set %s (%s, %d cards) in %.1fs",
            dataset.value,
            document.meta.version,
            document.card_count(),
            time.monotonic() - start,
        )
        logger.info("Computed checksum: %s", checksum)

        namespace = allocate_namespace(name, checksum, prefix=self.namespace_prefix)
        await ensure_namespace_absent(self.client, namespace)
        logger.info("Using turbopuffer namespace %s", namespace)

        result = await upload_document(
            self.client,
            namespace,
            document,
            target_batch_bytes=self.target_batch_bytes,
            estimated_row_bytes=self.estimated_row_bytes,
        )
        logger.info(
            "Uploaded %d rows in %d batches to namespace %s",
            result.rows,
            result.batches,
            namespace,
        )

        metadata = self.store.create(
            name,
            namespace=namespace,
            checksum=checksum,
            dataset=dataset,
        )
        logger.info("Created index %s (backed by namespace %s)", name, namespace)
        return metadata

    async def delete(self, name: str) -> bool:
        """
        Delete index `name` remotely, then locally.

        Returns
        -------
        bool
            False if there was no such index.
        """
        metadata = self.store.load(name)
        if metadata is None:
            logger.info("Index %s does not exist, nothing to do", name)
            return False

        await teardown_namespace(self.client, metadata.namespace)
        self.store.delete(name)

        logger.info("Deleted index %s (from turbopuffer and local disk)", name)
        return True

    async def search(
        self,
        name: str,
        text: str,
        top_k: int = 10,
    ) -> List[Dict[str, Any]]:
        """
        Search index `name`.

        Raises
        ------
        IndexNotFoundError
            If the index has not been built.
        """
        metadata = self.require(name)
        return await search_namespace(self.client, metadata.namespace, text, top_k)

    def require(self, name: str) -> IndexMetadata:
        metadata = self.store.load(name)
        if metadata is None:
            raise IndexNotFoundError(
                f"index {name!r} does not exist; build it first"
            )
        return metadata

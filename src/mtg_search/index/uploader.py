"""
Batched Row Uploader

Streams every card of a decoded set into a namespace as upsert writes of
bounded size.

Batch size is tracked with a fixed per-row byte estimate rather than the
true serialized size. Batches are flushed strictly in source order, one
write in flight at a time. The first failed write aborts the upload: no
retry and no further batches.

Uploads are not idempotent. Re-running over the same namespace after a
partial failure duplicates rows under new random ids; callers guard against
this by never rebuilding a name that already has a metadata record.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from .rows import NAMESPACE_SCHEMA, build_row
from ..core.errors import UploadError
from ..source.models import AtomicSet
from ..turbopuffer.client import TurbopufferClient, TurbopufferError

logger = logging.getLogger("mtg_search.uploader")

DEFAULT_TARGET_BATCH_BYTES = 128 << 20  # 128 MiB
DEFAULT_ESTIMATED_ROW_BYTES = 1 << 10  # 1 KiB


@dataclass(frozen=True)
class UploadResult:
    rows: int
    batches: int


async def upload_document(
    client: TurbopufferClient,
    namespace: str,
    document: AtomicSet,
    target_batch_bytes: int = DEFAULT_TARGET_BATCH_BYTES,
    estimated_row_bytes: int = DEFAULT_ESTIMATED_ROW_BYTES,
) -> UploadResult:
    """
    Upload every card in `document` to `namespace`.

    Parameters
    ----------
    client : TurbopufferClient
        Client used for the writes.

    namespace : str
        Target namespace (normally freshly allocated and verified absent).

    document : AtomicSet
        Decoded source document.

    target_batch_bytes : int
        Estimated byte budget per write.

    estimated_row_bytes : int
        Fixed per-row size estimate.

    Returns
    -------
    UploadResult
        Number of rows uploaded and number of writes issued.

    Raises
    ------
    UploadError
        On the first failed write, chained to the underlying TurbopufferError.
    """
    if target_batch_bytes <= 0 or estimated_row_bytes <= 0:
        raise ValueError("Batch budget and row estimate must be positive.")

    batch: List[Dict[str, Any]] = []
    num_rows = 0
    num_flushes = 0

    async def flush() -> None:
        nonlocal batch, num_flushes
        if not batch:
            return

        try:
            await client.write(namespace, upsert_rows=batch, schema=NAMESPACE_SCHEMA)
        except TurbopufferError as exc:
            logger.error(
                "Write to namespace %s failed: batch size=%d, error=%s",
                namespace,
                len(batch),
                str(exc),
            )
            raise UploadError(namespace, len(batch)) from exc

        num_flushes += 1
        logger.info(
            "Flushed batch %d (%d rows) to namespace %s",
            num_flushes,
            len(batch),
            namespace,
        )
        batch = []

    for card in document.iter_cards():
        batch.append(build_row(card))
        num_rows += 1
        if len(batch) * estimated_row_bytes >= target_batch_bytes:
            await flush()

    await flush()

    logger.info("Uploaded %d cards (%d flushes)", num_rows, num_flushes)
    return UploadResult(rows=num_rows, batches=num_flushes)

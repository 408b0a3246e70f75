"""
Namespace Lifecycle

Every build writes into a brand new turbopuffer namespace whose name is
traceable to the build that produced it:

    <prefix>_<index name>_<YYYYMMDD-HHMMSS UTC>_<first 8 hex of checksum>

Namespaces are never reused. Before the first write we verify the freshly
allocated namespace does not already exist; on delete, a namespace that is
already gone counts as deleted.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from ..core.errors import NamespaceExistsError
from ..turbopuffer.client import TurbopufferClient, TurbopufferError

logger = logging.getLogger("mtg_search.namespace")

NAMESPACE_SEPARATOR = "_"
TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"
CHECKSUM_PREFIX_LENGTH = 8


def allocate_namespace(
    name: str,
    checksum: str,
    now: Optional[datetime] = None,
    prefix: str = "mtg",
) -> str:
    """
    Derive the namespace id for a new build of index `name`.

    Parameters
    ----------
    name : str
        User-chosen index name.

    checksum : str
        Hex checksum of the source document (at least 8 characters).

    now : Optional[datetime]
        Build time; defaults to the current time. Naive values are taken as UTC.

    prefix : str
        Fixed namespace prefix.
    """
    if len(checksum) < CHECKSUM_PREFIX_LENGTH:
        raise ValueError(
            f"checksum must have at least {CHECKSUM_PREFIX_LENGTH} characters, got {checksum!r}"
        )

    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    stamp = now.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)
    return NAMESPACE_SEPARATOR.join(
        [prefix, name, stamp, checksum[:CHECKSUM_PREFIX_LENGTH]]
    )


async def ensure_namespace_absent(client: TurbopufferClient, namespace: str) -> None:
    """
    Succeed only if `namespace` does not exist yet.

    Raises
    ------
    NamespaceExistsError
        If the namespace already exists.

    TurbopufferError
        Any failure other than "not found", unchanged.
    """
    try:
        meta = await client.metadata(namespace)
    except TurbopufferError as exc:
        if exc.is_not_found:
            return
        raise

    raise NamespaceExistsError(
        f"namespace {namespace!r} already exists (created at {meta.get('created_at', 'unknown')})"
    )


async def teardown_namespace(client: TurbopufferClient, namespace: str) -> bool:
    """
    Delete all rows in `namespace`.

    Returns
    -------
    bool
        True if the namespace was deleted, False if it was already absent.
    """
    try:
        await client.delete_all(namespace)
    except TurbopufferError as exc:
        if exc.is_not_found:
            logger.info("Namespace %s already absent, nothing to delete", namespace)
            return False
        raise

    logger.info("Deleted namespace %s", namespace)
    return True

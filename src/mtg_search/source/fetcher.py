"""
Source Document Fetcher

This module downloads an MTGJSON atomic file and decodes it while computing
its SHA-256 checksum in the same streaming pass.

The response byte stream is wrapped by a `DigestingReader`, which hashes
every chunk as it is handed to the incremental JSON decoder (ijson). The
checksum therefore covers exactly the bytes the decoder consumed and the
body is never buffered in full before decoding.
"""

from __future__ import annotations

import hashlib
import logging
from typing import AsyncIterator, Optional, Tuple

import httpx
import ijson
from pydantic import ValidationError

from .models import AtomicSet
from ..core.errors import DecodeError, DownloadError

logger = logging.getLogger("mtg_search.fetcher")


class DigestingReader:
    """
    Async file-like adapter over a byte-chunk iterator.

    Every byte returned from `read()` is fed to the hasher first.
    """

    def __init__(self, chunks: AsyncIterator[bytes]) -> None:
        self._chunks = chunks
        self._pending = b""
        self._exhausted = False
        self._hasher = hashlib.sha256()
        self.bytes_read = 0

    async def read(self, size: int = -1) -> bytes:
        while not self._exhausted and (size < 0 or len(self._pending) < size):
            try:
                chunk = await self._chunks.__anext__()
            except StopAsyncIteration:
                self._exhausted = True
                break
            self._pending += chunk

        if size < 0:
            data, self._pending = self._pending, b""
        else:
            data, self._pending = self._pending[:size], self._pending[size:]

        self._hasher.update(data)
        self.bytes_read += len(data)
        return data

    def hexdigest(self) -> str:
        return self._hasher.hexdigest()


async def decode_document(reader: DigestingReader, source: str) -> AtomicSet:
    """
    Incrementally decode and validate an atomic set from `reader`.

    Raises
    ------
    DecodeError
        If the body is not well-formed JSON or does not match AtomicSet.
    """
    document = None
    try:
        async for value in ijson.items(reader, "", use_float=True):
            document = value
    except (ijson.JSONError, UnicodeDecodeError) as exc:
        raise DecodeError(f"decoding set from {source!r}: {exc}") from exc

    if document is None:
        raise DecodeError(f"decoding set from {source!r}: empty document")

    try:
        return AtomicSet.model_validate(document)
    except ValidationError as exc:
        raise DecodeError(
            f"decoding set from {source!r}: unexpected document shape "
            f"({exc.error_count()} validation errors)"
        ) from exc


async def fetch_document(
    url: str,
    timeout: float = 120.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Tuple[AtomicSet, str]:
    """
    Download and decode the atomic set at `url`.

    Parameters
    ----------
    url : str
        Source document URL.

    timeout : float
        HTTP timeout in seconds (per network operation, not total).

    transport : Optional[httpx.AsyncBaseTransport]
        Optional transport override, used by tests.

    Returns
    -------
    Tuple[AtomicSet, str]
        The decoded document and the hex SHA-256 of its raw bytes.

    Raises
    ------
    DownloadError
        On transport failure or any status other than 200.

    DecodeError
        If the body is malformed or has an unexpected shape.
    """
    try:
        async with httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        ) as client:
            async with client.stream("GET", url) as response:
                if response.status_code != httpx.codes.OK:
                    raise DownloadError(
                        url,
                        f"unexpected status code {response.status_code} "
                        f"(status text: {response.reason_phrase})",
                        status_code=response.status_code,
                    )

                reader = DigestingReader(response.aiter_bytes())
                document = await decode_document(reader, url)
    except httpx.HTTPError as exc:
        logger.error(
            "Download failed (%s): url=%s, error=%s",
            type(exc).__name__,
            url,
            str(exc),
        )
        raise DownloadError(url, f"{type(exc).__name__}: {exc}") from exc

    logger.debug("Decoded %d bytes from %s", reader.bytes_read, url)
    return document, reader.hexdigest()

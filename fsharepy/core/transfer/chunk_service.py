"""
Chunk upload service.

Sends byte-range-tagged chunks to an upload location, strictly in order.
"""
import asyncio
import json
import time
from typing import Any, Dict, Optional, Tuple

import aiohttp

from ..exceptions import FShareTransferError
from ..logging import get_logger
from .chunking import Chunk
from .models import TransportLocation

# Sent with every chunk, besides Content-Length/Content-Range
TRANSFER_HEADERS = {
    'Accept': 'application/json',
    'Connection': 'keep-alive',
}


class ChunkUploader:
    """
    Handles uploading chunks to one FShare upload location.

    Reuses the client's HTTP session for all chunks. The service appends
    chunks in ``Content-Range`` order, so callers must await each send
    before producing the next chunk.
    """

    def __init__(
        self,
        location: TransportLocation,
        total_size: int,
        session: aiohttp.ClientSession,
        proxy: Optional[str] = None
    ):
        """
        Initialize chunk uploader.

        Args:
            location: One-time upload location
            total_size: Declared size of the whole payload
            session: Shared HTTP session
            proxy: Optional proxy URL
        """
        self._location = location
        self._total_size = total_size
        self._session = session
        self._proxy = proxy
        self._next_offset = 0
        self._logger = get_logger('fsharepy.transfer.chunk')

    @property
    def location(self) -> TransportLocation:
        return self._location

    @property
    def uploaded_bytes(self) -> int:
        return self._next_offset

    def build_headers(self, chunk: Chunk) -> Dict[str, str]:
        """Headers for one chunk request."""
        return {
            **TRANSFER_HEADERS,
            'Content-Length': str(chunk.length),
            'Content-Range': chunk.content_range(self._total_size),
        }

    async def upload_chunk(self, chunk: Chunk) -> Tuple[int, bytes]:
        """
        Upload a single chunk.

        Returns:
            Tuple of (HTTP status, response body)

        Raises:
            FShareTransferError: If the chunk is out of sequence, exceeds the
                declared size, or the request fails
        """
        if chunk.offset != self._next_offset:
            raise FShareTransferError(
                f"Chunk at offset {chunk.offset} out of sequence (expected {self._next_offset})",
                offset=chunk.offset
            )
        if chunk.end >= self._total_size:
            raise FShareTransferError(
                f"Chunk {chunk.offset}-{chunk.end} exceeds declared size {self._total_size}",
                offset=chunk.offset
            )

        chunk_size_kb = chunk.length / 1024
        upload_start = time.time()
        self._logger.debug(f"Uploading {chunk.content_range(self._total_size)} ({chunk_size_kb:.1f} KB)")

        try:
            async with self._session.post(
                self._location.url,
                data=chunk.data,
                headers=self.build_headers(chunk),
                proxy=self._proxy
            ) as response:
                response.raise_for_status()
                status = response.status
                body = await response.read()
        except aiohttp.ClientResponseError as e:
            self._logger.error(f"Chunk at offset {chunk.offset} rejected: HTTP {e.status}")
            raise FShareTransferError(
                f"Chunk at offset {chunk.offset} rejected: HTTP {e.status} {e.message}",
                offset=chunk.offset,
                error_code=e.status
            ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            upload_time = time.time() - upload_start
            self._logger.error(f"Chunk at offset {chunk.offset} failed after {upload_time:.2f}s: {e}")
            raise FShareTransferError(
                f"Chunk at offset {chunk.offset} failed: {e}",
                offset=chunk.offset
            ) from e

        self._next_offset = chunk.offset + chunk.length
        upload_time = time.time() - upload_start
        speed_kbps = (chunk_size_kb / upload_time) if upload_time > 0 else 0
        self._logger.debug(f"Chunk at offset {chunk.offset} uploaded in {upload_time:.2f}s ({speed_kbps:.1f} KB/s)")
        return status, body

    def finish(self, body: bytes) -> Dict[str, Any]:
        """
        Decode the final chunk response into file metadata.

        Raises:
            FShareTransferError: If fewer bytes than declared were sent
        """
        if self._next_offset != self._total_size:
            raise FShareTransferError(
                f"Source ended after {self._next_offset} of {self._total_size} bytes",
                offset=self._next_offset
            )

        text = body.decode('utf-8', errors='replace')
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            data = None
        if not isinstance(data, dict):
            self._logger.warning("Final chunk response is not a JSON object")
            return {'raw': text}
        return data

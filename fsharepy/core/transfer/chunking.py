"""
Chunk buffering for streamed payloads.

Re-cuts a byte stream whose unit size is decided by the transport
(socket reads, file reads, stdin) into the fixed-size chunks the upload
protocol addresses with ``Content-Range``.
"""
import asyncio
import inspect
from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, Iterable, Union


DEFAULT_CHUNK_SIZE = 16 * 1024 * 1024  # 16 MiB
_READ_SIZE = 64 * 1024

ByteSource = Union[bytes, bytearray, memoryview, Iterable[bytes], AsyncIterable[bytes]]


@dataclass(frozen=True)
class Chunk:
    """
    A contiguous byte range of a larger payload.

    Attributes:
        offset: Bytes emitted before this chunk
        data: Chunk bytes
    """
    offset: int
    data: bytes

    @property
    def length(self) -> int:
        return len(self.data)

    @property
    def end(self) -> int:
        """Inclusive position of the last byte."""
        return self.offset + self.length - 1

    def content_range(self, total: int) -> str:
        """Render the ``Content-Range`` header value for this chunk."""
        return f"bytes {self.offset}-{self.end}/{total}"


async def as_async_iterable(source: ByteSource) -> AsyncIterator[bytes]:
    """
    Adapt a byte source to an async iterator of bytes.

    Accepts raw bytes, aiohttp stream readers, aiofiles handles, other
    async iterables, sync iterables of bytes and binary file-like objects.
    Stream readers and file handles are read in bounded units, never line
    by line. Blocking ``read`` calls run in the default executor.
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        if len(source):
            yield bytes(source)
        return

    # aiohttp.StreamReader
    if hasattr(source, 'iter_any'):
        async for data in source.iter_any():
            yield data
        return

    read = getattr(source, 'read', None)
    if read is not None and inspect.iscoroutinefunction(read):
        while True:
            data = await read(_READ_SIZE)
            if not data:
                return
            yield data

    if hasattr(source, '__aiter__'):
        async for data in source:
            yield data
        return

    if read is not None:
        loop = asyncio.get_running_loop()
        while True:
            data = await loop.run_in_executor(None, read, _READ_SIZE)
            if not data:
                return
            yield data

    for data in source:
        yield data


class ChunkBuffer:
    """
    Accumulates incoming bytes and emits fixed-size chunks.

    Every chunk except the last is exactly ``chunk_size`` bytes; the last
    one holds whatever remains. The produced offsets partition
    ``[0, total)`` with no gaps or overlap.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """
        Initialize with chunk size.

        Args:
            chunk_size: Size of each chunk in bytes
        """
        if chunk_size <= 0:
            raise ValueError("Chunk size must be positive")
        self.chunk_size = chunk_size

    async def chunks(self, source: ByteSource) -> AsyncIterator[Chunk]:
        """
        Consume ``source`` and yield chunks lazily.

        The source is drained as the iterator advances; the sequence
        cannot be restarted. Errors raised by the source propagate.
        """
        buffer = bytearray()
        offset = 0

        async for data in as_async_iterable(source):
            if not data:
                continue
            buffer += data

            while len(buffer) >= self.chunk_size:
                chunk = Chunk(offset=offset, data=bytes(buffer[:self.chunk_size]))
                del buffer[:self.chunk_size]
                offset += chunk.length
                yield chunk

        if buffer:
            yield Chunk(offset=offset, data=bytes(buffer))


def iter_chunks(source: ByteSource, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[Chunk]:
    """Shortcut for ``ChunkBuffer(chunk_size).chunks(source)``."""
    return ChunkBuffer(chunk_size).chunks(source)

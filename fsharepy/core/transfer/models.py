"""
Data models for the transfer module.

Uses dataclasses for immutable, type-safe data structures.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Dict, Optional, TYPE_CHECKING
from urllib.parse import unquote, urlsplit

if TYPE_CHECKING:
    import aiohttp
    from .chunking import Chunk


class RedirectMode(str, Enum):
    """How to handle the transport location handed out by the service."""
    FOLLOW = 'follow'
    MANUAL = 'manual'
    ERROR = 'error'


class TransferMode(str, Enum):
    UPLOAD = 'upload'
    DOWNLOAD = 'download'


@dataclass(frozen=True)
class TransferRequest:
    """
    One download or upload request.

    Attributes:
        target: Full file URL (download) or destination path (upload)
        password: File password, empty when the file has none
        mode: Upload or download
        size: Declared byte length (uploads only)
    """
    target: str
    password: str = ''
    mode: TransferMode = TransferMode.DOWNLOAD
    size: Optional[int] = None


@dataclass(frozen=True)
class TransportLocation:
    """Single-use address returned by a session-open call."""
    url: str

    def __str__(self) -> str:
        return self.url


@dataclass(frozen=True)
class Redirect:
    """Redirect descriptor returned for ``RedirectMode.MANUAL``."""
    location: str
    status: int = 303

    @property
    def ok(self) -> bool:
        return True

    @property
    def headers(self) -> Dict[str, str]:
        return {'Location': self.location}


@dataclass
class TransferProgress:
    """
    Transfer progress information.

    Attributes:
        total_bytes: Declared size (0 when unknown)
        transferred_bytes: Bytes moved so far
    """
    total_bytes: int = 0
    transferred_bytes: int = 0

    @property
    def percentage(self) -> float:
        """Returns progress as percentage."""
        if self.total_bytes == 0:
            return 0.0
        return (self.transferred_bytes / self.total_bytes) * 100

    @property
    def is_complete(self) -> bool:
        return self.total_bytes > 0 and self.transferred_bytes >= self.total_bytes


@dataclass(frozen=True)
class UploadResult:
    """
    Result of a completed upload.

    Attributes:
        status: HTTP status of the final chunk response
        data: JSON metadata of the uploaded file
    """
    status: int
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def url(self) -> Optional[str]:
        """Public link of the uploaded file."""
        return self.data.get('url')


class DownloadStream:
    """
    Proxied download body.

    Wraps the response of the transport location so callers can consume
    the bytes without knowing a redirect happened. Must be released,
    either explicitly or by using it as an async context manager:

        >>> async with await client.download(url) as stream:
        ...     async for data in stream.iter_any():
        ...         sink.write(data)
    """

    def __init__(self, response: 'aiohttp.ClientResponse'):
        self._response = response

    @property
    def url(self) -> str:
        return str(self._response.url)

    @property
    def status(self) -> int:
        return self._response.status

    @property
    def ok(self) -> bool:
        return 200 <= self._response.status < 300

    @property
    def headers(self):
        return self._response.headers

    @property
    def content_length(self) -> Optional[int]:
        return self._response.content_length

    @property
    def filename(self) -> str:
        """Remote file name, taken from the last segment of the URL path."""
        path = urlsplit(self.url).path
        return unquote(path.rstrip('/').rsplit('/', 1)[-1])

    def iter_any(self) -> AsyncIterator[bytes]:
        """Yield body data as it arrives."""
        return self._response.content.iter_any()

    def iter_chunks(self, chunk_size: int) -> AsyncIterator['Chunk']:
        """Yield the body re-cut into ``chunk_size`` chunks."""
        from .chunking import ChunkBuffer
        return ChunkBuffer(chunk_size).chunks(self.iter_any())

    async def read(self) -> bytes:
        """Read the whole body into memory."""
        return await self._response.read()

    def release(self) -> None:
        self._response.release()

    async def __aenter__(self) -> 'DownloadStream':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.release()

    def __repr__(self) -> str:
        return f"DownloadStream(url={self.url!r}, status={self.status})"

"""
Transfer module for FShare uploads and downloads.

Resolves one-time transport locations and streams payloads through them
in fixed-size, byte-range-addressed chunks.
"""
from .chunking import Chunk, ChunkBuffer, iter_chunks, as_async_iterable, DEFAULT_CHUNK_SIZE
from .chunk_service import ChunkUploader
from .resolver import TransferResolver
from .models import (
    RedirectMode,
    TransferMode,
    TransferRequest,
    TransportLocation,
    Redirect,
    TransferProgress,
    UploadResult,
    DownloadStream,
)

__all__ = [
    # Chunking
    'Chunk',
    'ChunkBuffer',
    'iter_chunks',
    'as_async_iterable',
    'DEFAULT_CHUNK_SIZE',

    # Services
    'ChunkUploader',
    'TransferResolver',

    # Models
    'RedirectMode',
    'TransferMode',
    'TransferRequest',
    'TransportLocation',
    'Redirect',
    'TransferProgress',
    'UploadResult',
    'DownloadStream',
]

"""
fsharepy - Async Python client for the FShare file-hosting API.

Usage:
    >>> from fsharepy import FShareClient
    >>>
    >>> async with FShareClient.from_credentials(email, password) as fshare:
    ...     async with await fshare.download("ABCDEF123456") as stream:
    ...         async for data in stream.iter_any():
    ...             sink.write(data)
"""
import logging
from .client import FShareClient, split_destination

# Configuration
from .core.api import (
    APIConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    AsyncAPIClient,
    AsyncAuthService,
    LoginResult,
    Ok,
    Unauthenticated,
    Malformed,
)

# Sessions
from .core.session import Credential, Session

# Transfers
from .core.transfer import (
    Chunk,
    ChunkBuffer,
    iter_chunks,
    RedirectMode,
    Redirect,
    TransportLocation,
    TransferProgress,
    UploadResult,
    DownloadStream,
)

from .core.exceptions import (
    FShareException,
    FShareRequestError,
    FShareTransferError,
    RedirectModeError,
)

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for fsharepy modules.

    Args:
        level: Logging level (default: logging.INFO)
    """
    loggers = [
        'fsharepy',
        'fsharepy.client',
        'fsharepy.api',
        'fsharepy.auth',
        'fsharepy.transfer',
        'fsharepy.transfer.chunk',
        'fsharepy.server',
    ]

    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


__all__ = [
    'FShareClient',
    'split_destination',
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'AsyncAPIClient',
    'AsyncAuthService',
    'LoginResult',
    'Ok',
    'Unauthenticated',
    'Malformed',
    'Credential',
    'Session',
    'Chunk',
    'ChunkBuffer',
    'iter_chunks',
    'RedirectMode',
    'Redirect',
    'TransportLocation',
    'TransferProgress',
    'UploadResult',
    'DownloadStream',
    'FShareException',
    'FShareRequestError',
    'FShareTransferError',
    'RedirectModeError',
    'setup_logging',
]

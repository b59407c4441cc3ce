"""FShare API module."""
from .config import APIConfig, ProxyConfig, SSLConfig, TimeoutConfig
from .async_client import AsyncAPIClient
from .async_auth import AsyncAuthService, LoginResult
from .results import Ok, Unauthenticated, Malformed, ApiResult, as_unauthenticated

__all__ = [
    # Client
    'AsyncAPIClient',
    'AsyncAuthService',
    'LoginResult',

    # Configuration
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',

    # Results
    'Ok',
    'Unauthenticated',
    'Malformed',
    'ApiResult',
    'as_unauthenticated',
]

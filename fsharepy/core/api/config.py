"""
API configuration module.

Provides configuration for the FShare API client. Values that are
secret or deployment specific (the app key, the registered user agent)
are usually supplied through environment variables.
"""
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Mapping
import logging
import os
import ssl


DEFAULT_API_URL = 'https://api.fshare.vn/api'
DEFAULT_FILE_BASE_URL = 'https://www.fshare.vn/file/'
DEFAULT_CHUNK_SIZE = 16 * 1024 * 1024  # 16 MiB


@dataclass
class ProxyConfig:
    """
    Proxy configuration.

    Supports HTTP and HTTPS proxies.
    """
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    def to_aiohttp_proxy(self) -> Optional[str]:
        """Convert to aiohttp proxy format."""
        if not self.url:
            return None

        if self.username and self.password:
            if '://' in self.url:
                protocol, rest = self.url.split('://', 1)
                return f"{protocol}://{self.username}:{self.password}@{rest}"

        return self.url


@dataclass
class SSLConfig:
    """SSL/TLS configuration."""
    verify: bool = True
    ca_file: Optional[str] = None
    check_hostname: bool = True

    def create_ssl_context(self):
        """Create SSL context from configuration (False disables verification)."""
        if not self.verify:
            return False

        context = ssl.create_default_context()

        if self.ca_file:
            context.load_verify_locations(self.ca_file)

        context.check_hostname = self.check_hostname

        return context


@dataclass
class TimeoutConfig:
    """
    Timeout configuration.

    ``total`` is left unset by default: a 16 MiB chunk or a proxied
    download can legitimately take longer than any fixed total.
    """
    total: Optional[float] = None
    connect: float = 30.0  # Connection timeout
    sock_read: float = 120.0  # Socket read timeout
    sock_connect: float = 30.0  # Socket connect timeout

    def to_aiohttp_timeout(self):
        """Convert to aiohttp ClientTimeout."""
        import aiohttp
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_read=self.sock_read,
            sock_connect=self.sock_connect
        )


@dataclass
class APIConfig:
    """
    Complete API configuration.

    Centralizes all configuration options for the FShare client.
    """
    # Endpoints
    api_url: str = DEFAULT_API_URL
    file_base_url: str = DEFAULT_FILE_BASE_URL

    # Application credentials registered with FShare
    app_key: str = ''
    user_agent: str = 'fsharepy/1.0.0'

    # Transfer settings
    chunk_size: int = DEFAULT_CHUNK_SIZE
    secured: int = 1  # Visibility flag sent when opening an upload session

    # Sub-configurations
    proxy: Optional[ProxyConfig] = None
    ssl: SSLConfig = field(default_factory=SSLConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)

    # Additional headers
    extra_headers: Dict[str, str] = field(default_factory=dict)

    # Logging
    log_level: int = logging.INFO

    # Connection pool settings
    limit_per_host: int = 10
    limit: int = 100

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise ValueError("Chunk size must be positive")
        self.api_url = self.api_url.rstrip('/')

    @classmethod
    def default(cls) -> 'APIConfig':
        """Create default configuration."""
        return cls()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **kwargs) -> 'APIConfig':
        """
        Create configuration from environment variables.

        Reads FSHARE_APP_KEY, FSHARE_USER_AGENT, FSHARE_API_URL and
        FSHARE_CHUNK_SIZE. Explicit keyword arguments win over the
        environment.

        Args:
            environ: Mapping to read from (defaults to os.environ)
            **kwargs: Overrides passed to the constructor

        Returns:
            APIConfig instance
        """
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}

        if env.get('FSHARE_APP_KEY'):
            values['app_key'] = env['FSHARE_APP_KEY']
        if env.get('FSHARE_USER_AGENT'):
            values['user_agent'] = env['FSHARE_USER_AGENT']
        if env.get('FSHARE_API_URL'):
            values['api_url'] = env['FSHARE_API_URL']
        if env.get('FSHARE_CHUNK_SIZE'):
            values['chunk_size'] = int(env['FSHARE_CHUNK_SIZE'])

        values.update(kwargs)
        return cls(**values)

    @classmethod
    def with_proxy(cls, proxy_url: str, **kwargs) -> 'APIConfig':
        """Create configuration with proxy."""
        return cls(
            proxy=ProxyConfig(url=proxy_url),
            **kwargs
        )

    def endpoint(self, path: str) -> str:
        """Build the absolute URL of an API endpoint."""
        return f"{self.api_url}/{path.lstrip('/')}"

    def get_connector_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp TCPConnector."""
        return {
            'limit': self.limit,
            'limit_per_host': self.limit_per_host,
            'ssl': self.ssl.create_ssl_context(),
        }

    def get_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp ClientSession."""
        headers = {
            'User-Agent': self.user_agent,
            **self.extra_headers
        }

        return {
            'headers': headers,
            'timeout': self.timeout.to_aiohttp_timeout(),
        }

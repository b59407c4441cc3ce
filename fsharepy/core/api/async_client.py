"""
Async FShare API client.

Thin JSON-over-HTTPS transport for the FShare REST endpoints. It knows
nothing about tokens: callers hand in the ``Session`` whose cookie must
be attached to privileged calls.
"""
import json
import logging
from typing import Dict, Optional, Any, Mapping, Tuple

import aiohttp

from .config import APIConfig
from ..exceptions import FShareRequestError
from ..logging import get_logger
from ..session import Session

JSON_CONTENT_TYPE = 'application/json; charset=utf-8'

# Never echoed to the debug log
_SECRET_FIELDS = ('password', 'token', 'app_key', 'session_id')


def _redact(payload: Any) -> Any:
    if not isinstance(payload, dict):
        return payload
    return {
        key: ('***' if key in _SECRET_FIELDS and value else value)
        for key, value in payload.items()
    }


class AsyncAPIClient:
    """
    Asynchronous FShare API client.

    Features:
    - Full async/await support
    - Configurable proxy, SSL, timeouts
    - Connection pooling through one shared ``aiohttp.ClientSession``

    Example:
        >>> async with AsyncAPIClient(APIConfig.from_env()) as api:
        ...     status, body = await api.post_json('user/login', {...})
    """

    def __init__(
        self,
        config: Optional[APIConfig] = None,
        headers: Optional[Mapping[str, str]] = None
    ):
        """
        Initialize async API client.

        Args:
            config: API configuration (uses defaults if not provided)
            headers: Extra headers sent with every API call
        """
        self._config = config or APIConfig.default()
        self._headers: Dict[str, str] = dict(headers or {})
        self._session: Optional[aiohttp.ClientSession] = None
        self._closed = False

        self._logger = get_logger('fsharepy.api')
        root_logger = logging.getLogger()
        if not root_logger.handlers:
            self._logger.setLevel(self._config.log_level)

    @property
    def config(self) -> APIConfig:
        """Get current configuration."""
        return self._config

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> 'AsyncAPIClient':
        """Async context manager entry."""
        await self.get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def get_session(self) -> aiohttp.ClientSession:
        """Get or create the shared HTTP session."""
        if self._closed:
            raise FShareRequestError("Client is closed")

        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(**self._config.get_connector_kwargs())
            # Only the explicit session_id cookie may travel with requests
            self._session = aiohttp.ClientSession(
                connector=connector,
                cookie_jar=aiohttp.DummyCookieJar(),
                **self._config.get_session_kwargs()
            )
        return self._session

    async def close(self):
        """Close client and release resources."""
        self._closed = True

        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    @property
    def proxy(self) -> Optional[str]:
        return self._config.proxy.to_aiohttp_proxy() if self._config.proxy else None

    def _build_headers(self, session: Optional[Session] = None) -> Dict[str, str]:
        """Build headers for an API call."""
        headers = {**self._headers, 'Content-Type': JSON_CONTENT_TYPE}

        if session is not None and session.cookie_header:
            headers['Cookie'] = session.cookie_header

        return headers

    async def post_json(
        self,
        path: str,
        payload: Dict[str, Any],
        session: Optional[Session] = None
    ) -> Tuple[int, Any]:
        """
        POST a JSON body to an API endpoint.

        Args:
            path: Endpoint path relative to ``api_url`` (e.g. 'user/login')
            payload: JSON body
            session: Session whose cookie is attached (privileged calls)

        Returns:
            Tuple of (HTTP status, decoded JSON or None if the body is not JSON)

        Raises:
            FShareRequestError: If the request cannot be completed
        """
        return await self._request('POST', path, payload, session)

    async def get_json(
        self,
        path: str,
        session: Optional[Session] = None
    ) -> Tuple[int, Any]:
        """GET an API endpoint; same contract as ``post_json``."""
        return await self._request('GET', path, None, session)

    async def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]],
        session: Optional[Session]
    ) -> Tuple[int, Any]:
        http = await self.get_session()
        url = self._config.endpoint(path)
        body = json.dumps(payload) if payload is not None else None

        self._logger.debug(f"{method} {url}")
        if payload is not None:
            self._logger.debug(f"Request data: {_redact(payload)}")

        try:
            async with http.request(
                method,
                url,
                data=body,
                headers=self._build_headers(session),
                proxy=self.proxy
            ) as response:
                response_text = await response.text()
                self._logger.debug(
                    f"Response {response.status}: "
                    f"{response_text[:300] if len(response_text) > 300 else response_text}"
                )
                return response.status, self._parse_response(response_text)
        except aiohttp.ClientError as e:
            self._logger.error(f"Network error calling {path}: {e}")
            raise FShareRequestError(f"Network error: {e}") from e

    def _parse_response(self, response_text: str) -> Any:
        """Parse API response, None when it is not JSON."""
        try:
            return json.loads(response_text)
        except json.JSONDecodeError:
            return None

    async def open_stream(
        self,
        url: str,
        headers: Optional[Mapping[str, str]] = None
    ) -> aiohttp.ClientResponse:
        """
        Issue a GET whose body the caller consumes.

        No API headers or cookies are attached: transport locations carry
        their own authorization. The caller must release the response.

        Raises:
            FShareRequestError: If the request cannot be started
        """
        http = await self.get_session()
        self._logger.debug(f"GET {url} (stream)")
        try:
            return await http.get(url, headers=dict(headers or {}), proxy=self.proxy)
        except aiohttp.ClientError as e:
            self._logger.error(f"Network error opening {url}: {e}")
            raise FShareRequestError(f"Network error: {e}") from e

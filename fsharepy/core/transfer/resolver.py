"""
Transfer session resolver.

Asks the service for the one-time location through which file bytes
flow. The location embeds its own authorization and is valid for a
single transfer.
"""
from typing import Any, Optional

from ..api.async_client import AsyncAPIClient
from ..api.results import ApiResult, Malformed, Ok, Unauthenticated
from ..logging import get_logger
from ..session import Session
from .models import TransportLocation

DOWNLOAD_SESSION_PATH = 'session/download'
UPLOAD_SESSION_PATH = 'session/upload'


class TransferResolver:
    """
    Opens download and upload sessions.

    Responsibilities:
    - Post the session-open request with the current token
    - Classify the reply into Ok / Unauthenticated / Malformed

    Never retries; re-authentication is the caller's decision.
    """

    def __init__(self, client: AsyncAPIClient):
        self._client = client
        self._logger = get_logger('fsharepy.transfer')

    async def open_download(
        self,
        url: str,
        session: Session,
        password: Optional[str] = None
    ) -> ApiResult[TransportLocation]:
        """
        Open a download session.

        Args:
            url: Fully-qualified file URL (password query removed)
            session: Authenticated session
            password: File password, if the file is protected

        Returns:
            Ok(TransportLocation), Unauthenticated or Malformed
        """
        status, body = await self._client.post_json(DOWNLOAD_SESSION_PATH, {
            'url': url,
            'token': session.token,
            'password': password or '',
        }, session)
        return self._classify(status, body, 'download')

    async def open_upload(
        self,
        name: str,
        path: str,
        size: int,
        session: Session,
        secured: int = 1
    ) -> ApiResult[TransportLocation]:
        """
        Open an upload session.

        Args:
            name: File name
            path: Parent folder path on FShare
            size: Declared total size in bytes
            session: Authenticated session
            secured: Visibility flag

        Returns:
            Ok(TransportLocation), Unauthenticated or Malformed
        """
        status, body = await self._client.post_json(UPLOAD_SESSION_PATH, {
            'name': name,
            'size': size,
            'path': path,
            'secured': secured,
            'token': session.token,
        }, session)
        return self._classify(status, body, 'upload')

    def _classify(self, status: int, body: Any, kind: str) -> ApiResult[TransportLocation]:
        """Map a session-open reply onto a tagged result."""
        if not isinstance(body, dict):
            self._logger.warning(f"Unexpected {kind} session reply (HTTP {status})")
            return Malformed(reason=f"Unexpected {kind} session reply (HTTP {status})", payload=body)

        location = body.get('location')
        if location and isinstance(location, str):
            self._logger.debug(f"Opened {kind} session")
            return Ok(TransportLocation(url=location))

        # The service answers {"code": 201, "msg": "Not logged in yet!"}
        # for expired tokens and for most other refusals alike.
        code = body.get('code', status)
        message = body.get('msg') or 'Not logged in yet!'
        self._logger.info(f"{kind.capitalize()} session refused: {code} {message}")
        return Unauthenticated(message=message, code=code)

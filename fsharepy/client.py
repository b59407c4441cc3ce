"""
FShareClient - High-level async client for FShare.

Example:
    >>> async with FShareClient.from_credentials(email, password) as fshare:
    ...     result = await fshare.download("ABCDEF123456", redirect="manual")
    ...     print(result.location)
"""
from typing import Optional, Dict, Mapping, Union, Callable, Tuple
from urllib.parse import urljoin, urlsplit, urlunsplit, parse_qsl, urlencode

from .core.api import (
    APIConfig,
    AsyncAPIClient,
    AsyncAuthService,
    LoginResult,
    Ok,
    Unauthenticated,
    as_unauthenticated,
)
from .core.exceptions import FShareRequestError, RedirectModeError, FShareTransferError
from .core.logging import get_logger
from .core.session import Credential, Session
from .core.transfer import (
    ChunkBuffer,
    ChunkUploader,
    DownloadStream,
    Redirect,
    RedirectMode,
    TransferMode,
    TransferProgress,
    TransferRequest,
    TransferResolver,
    TransportLocation,
    UploadResult,
)
from .core.transfer.chunking import ByteSource

DownloadOutcome = Union[DownloadStream, Redirect, Unauthenticated]
UploadOutcome = Union[UploadResult, Redirect, Unauthenticated]
ProgressCallback = Callable[[TransferProgress], None]


def split_destination(destination: str) -> Tuple[str, str]:
    """
    Split an upload destination into (parent path, name).

    >>> split_destination('/movies/a.mkv')
    ('/movies', 'a.mkv')
    >>> split_destination('a.mkv')
    ('/', 'a.mkv')
    """
    path, _, name = destination.rpartition('/')
    return path or '/', name


class FShareClient:
    """
    High-level async client for FShare.

    Credentials come from a Basic ``Authorization`` header, the way an
    HTTP front end receives them, or from ``from_credentials``. The header
    is consumed at construction and never forwarded to the service.

    Every transfer runs:
    ensure authenticated -> open a one-time location -> redirect branch
    (return it, fail, or move the bytes through it).

    A "not logged in" reply clears the session and is returned as
    ``Unauthenticated``; the next call logs in again. Transfers are never
    resumed transparently.
    """

    def __init__(
        self,
        headers: Optional[Mapping[str, str]] = None,
        *,
        config: Optional[APIConfig] = None,
        credential: Optional[Credential] = None
    ):
        """
        Initialize FShare client.

        Args:
            headers: Request headers; ``Authorization`` is parsed as Basic
                credentials and removed, the rest go out with API calls
            config: Optional API configuration (defaults read the environment)
            credential: Explicit credential (takes precedence over the header)
        """
        self._config = config or APIConfig.from_env()
        self._logger = get_logger('fsharepy.client')

        api_headers: Dict[str, str] = {}
        authorization = None
        for key, value in (headers or {}).items():
            if key.lower() == 'authorization':
                authorization = value
            else:
                api_headers[key] = value

        if credential is None:
            credential = Credential.from_authorization(authorization)

        self._api = AsyncAPIClient(self._config, headers=api_headers)
        self._auth = AsyncAuthService(self._api, credential)
        self._resolver = TransferResolver(self._api)

    @classmethod
    def from_credentials(
        cls,
        email: str,
        password: str,
        config: Optional[APIConfig] = None,
        headers: Optional[Mapping[str, str]] = None
    ) -> 'FShareClient':
        """Create a client from a plain email/password pair."""
        return cls(headers, config=config, credential=Credential(email, password))

    # =========================================================================
    # Context manager
    # =========================================================================

    async def __aenter__(self) -> 'FShareClient':
        await self._api.get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the client and release resources."""
        await self._api.close()

    # =========================================================================
    # Authentication
    # =========================================================================

    @property
    def config(self) -> APIConfig:
        return self._config

    @property
    def session(self) -> Session:
        return self._auth.session

    @property
    def is_logged_in(self) -> bool:
        return self._auth.is_authenticated

    async def login(self) -> Union[LoginResult, Unauthenticated]:
        """Login to FShare with the credentials given at construction."""
        return await self._auth.login()

    async def logout(self) -> None:
        """Logout from FShare; the local session is always cleared."""
        try:
            await self._auth.logout()
        except FShareRequestError as e:
            self._logger.warning(f"Logout request failed: {e}")

    # =========================================================================
    # Download
    # =========================================================================

    def _build_download_request(self, locator: str, password: Optional[str]) -> TransferRequest:
        """Resolve the locator against the file base URL and pull out the password."""
        url = urljoin(self._config.file_base_url, locator)
        parts = urlsplit(url)

        kept = []
        query_password = None
        for key, value in parse_qsl(parts.query, keep_blank_values=True):
            if key == 'password':
                if query_password is None:
                    query_password = value
            else:
                kept.append((key, value))

        url = urlunsplit(parts._replace(query=urlencode(kept)))
        return TransferRequest(
            target=url,
            password=query_password or password or '',
            mode=TransferMode.DOWNLOAD
        )

    async def download(
        self,
        locator: str,
        *,
        redirect: Union[RedirectMode, str] = RedirectMode.FOLLOW,
        password: Optional[str] = None
    ) -> DownloadOutcome:
        """
        Download a file.

        Args:
            locator: Full file URL or bare file id; a ``password`` query
                parameter is used as the file password and stripped
            redirect: 'follow' returns the bytes, 'manual' returns the
                location, 'error' raises RedirectModeError
            password: File password when the locator carries none

        Returns:
            DownloadStream (follow), Redirect (manual) or Unauthenticated

        Raises:
            RedirectModeError: With ``redirect='error'``
            FShareRequestError: On network failure
            FShareTransferError: If the location answers with an HTTP error
        """
        mode = RedirectMode(redirect)

        session = await self._auth.ensure_authenticated()
        if isinstance(session, Unauthenticated):
            return session

        request = self._build_download_request(locator, password)
        self._logger.info(f"Opening download session for {request.target}")

        result = await self._resolver.open_download(request.target, session, request.password)
        if not isinstance(result, Ok):
            return await self._reject(result)

        location: TransportLocation = result.value
        branch = self._branch(mode, location)
        if branch is not None:
            return branch

        response = await self._api.open_stream(location.url)
        if not 200 <= response.status < 300:
            response.release()
            self._logger.error(f"Download location answered HTTP {response.status}")
            raise FShareTransferError(
                f"Download location answered HTTP {response.status}",
                error_code=response.status
            )
        self._logger.info(f"Streaming download ({response.status}, {response.content_length} bytes)")
        return DownloadStream(response)

    # =========================================================================
    # Upload
    # =========================================================================

    async def upload(
        self,
        destination: str,
        body: ByteSource,
        *,
        size: Optional[int],
        redirect: Union[RedirectMode, str] = RedirectMode.FOLLOW,
        chunk_size: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> UploadOutcome:
        """
        Upload a stream to FShare.

        Args:
            destination: Remote path including file name ('/folder/name.ext')
            body: Bytes, file object, or (async) iterable of bytes
            size: Exact total size in bytes (required up front)
            redirect: 'follow' sends the bytes, 'manual' returns the upload
                location, 'error' raises RedirectModeError
            chunk_size: Bytes per chunk request (defaults to config.chunk_size)
            progress_callback: Called after every chunk

        Returns:
            UploadResult (follow), Redirect (manual) or Unauthenticated

        Raises:
            ValueError: If size is missing or not positive (before any request)
            RedirectModeError: With ``redirect='error'``
            FShareTransferError: If a chunk fails or the body does not match size
        """
        if size is None:
            raise ValueError("Upload size must be provided up front")
        if size <= 0:
            raise ValueError("Cannot upload empty file")
        mode = RedirectMode(redirect)
        buffer = ChunkBuffer(chunk_size or self._config.chunk_size)

        session = await self._auth.ensure_authenticated()
        if isinstance(session, Unauthenticated):
            return session

        path, name = split_destination(destination)
        request = TransferRequest(target=destination, mode=TransferMode.UPLOAD, size=size)
        self._logger.info(f"Opening upload session for {request.target} ({size} bytes)")

        result = await self._resolver.open_upload(name, path, size, session, self._config.secured)
        if not isinstance(result, Ok):
            return await self._reject(result)

        location: TransportLocation = result.value
        branch = self._branch(mode, location)
        if branch is not None:
            return branch

        uploader = ChunkUploader(location, size, await self._api.get_session(), self._api.proxy)
        progress = TransferProgress(total_bytes=size)
        last_reply = None

        async for chunk in buffer.chunks(body):
            last_reply = await uploader.upload_chunk(chunk)
            progress.transferred_bytes = uploader.uploaded_bytes
            if progress_callback:
                progress_callback(progress)

        if last_reply is None:
            raise FShareTransferError("Upload source produced no data", offset=0)

        status, reply_body = last_reply
        data = uploader.finish(reply_body)
        self._logger.info(f"Uploaded {request.target} ({size} bytes)")
        return UploadResult(status=status, data=data)

    # =========================================================================
    # Private helpers
    # =========================================================================

    async def _reject(self, result) -> Unauthenticated:
        """Turn a failed session-open into the caller-facing 401 signal."""
        if isinstance(result, Unauthenticated):
            await self._auth.invalidate()
        return as_unauthenticated(result)

    def _branch(self, mode: RedirectMode, location: TransportLocation) -> Optional[Redirect]:
        """Apply the redirect mode; None means the caller should follow."""
        if mode is RedirectMode.MANUAL:
            return Redirect(location=location.url)
        if mode is RedirectMode.ERROR:
            raise RedirectModeError(location.url)
        return None

"""
Async authentication service.

Owns the credential -> token -> cookie transition for one client.
"""
import asyncio
from dataclasses import dataclass
from typing import Optional, Union

from .async_client import AsyncAPIClient
from .results import Unauthenticated
from ..logging import get_logger
from ..session import Credential, Session

LOGIN_PATH = 'user/login'
LOGOUT_PATH = 'user/logout'


@dataclass(frozen=True)
class LoginResult:
    """Successful login, with the status the service reported."""
    code: Optional[int] = None
    message: str = ''

    @property
    def ok(self) -> bool:
        return True


class AsyncAuthService:
    """
    Asynchronous authentication service.

    Handles login, logout and the "ensure authenticated" gate used
    before every privileged call. The ``Session`` it holds is the only
    mutable shared state of a client; every mutation happens here, under
    ``self._lock``.
    """

    def __init__(
        self,
        client: AsyncAPIClient,
        credential: Optional[Credential] = None,
        session: Optional[Session] = None
    ):
        """
        Initialize auth service.

        Args:
            client: Async API client
            credential: Email/password parsed from a Basic header (None
                when the caller sent no usable header)
            session: Session state to own (a fresh one when omitted)
        """
        self._client = client
        self._credential = credential
        self._session = session if session is not None else Session()
        self._lock = asyncio.Lock()
        self._logger = get_logger('fsharepy.auth')

    @property
    def session(self) -> Session:
        """Current session (read-only for callers)."""
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session.is_authenticated

    async def login(self) -> Union[LoginResult, Unauthenticated]:
        """
        Exchange the credential for a token and a session cookie.

        Returns:
            LoginResult on success, Unauthenticated when the header was
            missing/malformed (no request is sent) or the service returned
            no token

        Raises:
            FShareRequestError: On network failure
        """
        async with self._lock:
            return await self._login()

    async def _login(self) -> Union[LoginResult, Unauthenticated]:
        if self._credential is None:
            self._logger.debug("No Basic credentials available, skipping login")
            return Unauthenticated()

        config = self._client.config
        status, body = await self._client.post_json(LOGIN_PATH, {
            'app_key': config.app_key,
            'user_email': self._credential.email,
            'password': self._credential.password,
        })

        if not isinstance(body, dict):
            self._logger.warning(f"Login returned a non-JSON body (HTTP {status})")
            self._session.clear()
            return Unauthenticated()

        token = body.get('token')
        if not token:
            code = body.get('code', status)
            message = body.get('msg') or '401 Unauthorized'
            self._logger.warning(f"Login failed for {self._credential.email}: {code} {message}")
            self._session.clear()
            return Unauthenticated(message=message, code=code)

        self._session.token = token
        self._session.cookie_value = body.get('session_id') or ''
        self._logger.info(f"Logged in as {self._credential.email}")

        return LoginResult(code=body.get('code', status), message=body.get('msg', ''))

    async def ensure_authenticated(self) -> Union[Session, Unauthenticated]:
        """
        Return the live session, logging in first when there is none.

        Concurrent callers wait on the same lock and re-check the token,
        so an idle token triggers at most one login.
        """
        if self._session.is_authenticated:
            return self._session

        async with self._lock:
            if self._session.is_authenticated:
                return self._session

            result = await self._login()
            if isinstance(result, Unauthenticated):
                return result
            return self._session

    async def invalidate(self) -> None:
        """Forget the token after a privileged call reported "not logged in"."""
        async with self._lock:
            if self._session.is_authenticated:
                self._logger.info("Session rejected by the service, clearing token")
            self._session.clear()

    async def logout(self) -> None:
        """Logout from FShare. The local session is cleared even on failure."""
        async with self._lock:
            try:
                if self._session.is_authenticated:
                    await self._client.get_json(LOGOUT_PATH, self._session)
            finally:
                self._session.clear()

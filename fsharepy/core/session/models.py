"""
Session data models.

Contains data classes for credentials and session information.
Nothing here is ever written to disk.
"""
import base64
import binascii
import re
from dataclasses import dataclass
from typing import Optional


_BASIC_RE = re.compile(r'^Basic\s+(.*)$', re.IGNORECASE)


@dataclass(frozen=True)
class Credential:
    """
    User supplied email/password pair.

    Attributes:
        email: FShare account email
        password: FShare account password
    """
    email: str
    password: str

    def __repr__(self) -> str:
        return f"Credential(email={self.email!r}, password='***')"

    @classmethod
    def from_authorization(cls, header: Optional[str]) -> Optional['Credential']:
        """
        Parse a Basic ``Authorization`` header.

        The header value is ``Basic base64(email:password)``. Only the
        first colon separates the two parts, so passwords may contain
        colons.

        Args:
            header: Raw header value (may be None)

        Returns:
            Credential, or None when the header is absent or malformed
        """
        if not header:
            return None

        match = _BASIC_RE.match(header.strip())
        if not match:
            return None

        try:
            decoded = base64.b64decode(match.group(1).strip(), validate=True).decode('utf-8')
        except (binascii.Error, UnicodeDecodeError):
            return None

        if ':' not in decoded:
            return None

        email, password = decoded.split(':', 1)
        if not email:
            return None

        return cls(email=email, password=password)

    def to_authorization(self) -> str:
        """Encode as a Basic ``Authorization`` header value."""
        raw = f"{self.email}:{self.password}".encode('utf-8')
        return f"Basic {base64.b64encode(raw).decode('ascii')}"


@dataclass
class Session:
    """
    Authenticated session state.

    Owned and mutated only by ``AsyncAuthService``. An empty token means
    the client is not logged in.

    Attributes:
        token: Token issued by ``user/login``
        cookie_value: ``session_id`` issued alongside the token
    """
    token: str = ''
    cookie_value: str = ''

    def __repr__(self) -> str:
        state = 'authenticated' if self.is_authenticated else 'empty'
        return f"Session({state})"

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def cookie_header(self) -> Optional[str]:
        """Value of the ``Cookie`` header for privileged calls."""
        if not self.cookie_value:
            return None
        return f"session_id={self.cookie_value};"

    def clear(self) -> None:
        """Reset to the unauthenticated state."""
        self.token = ''
        self.cookie_value = ''

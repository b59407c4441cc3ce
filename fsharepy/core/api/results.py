"""
Tagged results for FShare API calls.

The service reports most failures inside a 2xx JSON body by omitting the
expected field. Callers branch on the variant type instead of on the
truthiness of that field:

    >>> result = await resolver.open_download(url, token)
    >>> if isinstance(result, Ok):
    ...     location = result.value
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar, Union

T = TypeVar('T')

UNAUTHORIZED_STATUS = 401
DEFAULT_REALM = 'Login'


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful call carrying its payload."""
    value: T


@dataclass(frozen=True)
class Unauthenticated:
    """
    Unauthenticated signal with HTTP 401 semantics.

    Returned when credentials are missing or rejected, or when a
    privileged call reports "not logged in".

    Attributes:
        message: Human readable reason
        code: Service-reported code (if the service gave one)
        realm: Basic authentication realm for the challenge header
    """
    message: str = '401 Unauthorized'
    code: Optional[int] = None
    realm: str = DEFAULT_REALM
    status: int = field(default=UNAUTHORIZED_STATUS, init=False)

    @property
    def headers(self) -> Dict[str, str]:
        """Challenge headers an HTTP adapter should send back."""
        return {
            'WWW-Authenticate': f'Basic realm="{self.realm}", charset="UTF-8"'
        }

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class Malformed:
    """The service answered, but not with the shape the contract promises."""
    reason: str
    payload: Any = None


ApiResult = Union[Ok[T], Unauthenticated, Malformed]


def as_unauthenticated(result: Union[Unauthenticated, Malformed]) -> Unauthenticated:
    """Collapse a failure variant into the caller-facing 401 signal."""
    if isinstance(result, Unauthenticated):
        return result
    return Unauthenticated(message=result.reason)

"""
Custom exceptions for FShare operations.

Authentication failures are not exceptions: they are returned as
``Unauthenticated`` results so adapters can render them as HTTP 401.
"""
from typing import Optional


class FShareException(Exception):
    """Base exception for all FShare-related errors."""
    
    def __init__(self, message: str, error_code: Optional[int] = None) -> None:
        """
        Initialize the exception.
        
        Args:
            message: Error message
            error_code: Numeric error code (if available)
        """
        self.error_code = error_code
        super().__init__(message)


class FShareRequestError(FShareException):
    """Exception raised when a request to the API cannot be completed."""
    pass


class FShareTransferError(FShareException):
    """Exception raised when moving file bytes to or from a location fails."""
    
    def __init__(
        self,
        message: str,
        offset: Optional[int] = None,
        error_code: Optional[int] = None
    ) -> None:
        """
        Initialize the exception.
        
        Args:
            message: Error message
            offset: Byte offset of the chunk that failed (uploads only)
            error_code: HTTP status of the failing response (if any)
        """
        self.offset = offset
        super().__init__(message, error_code)


class RedirectModeError(FShareException):
    """Raised when ``redirect='error'`` and the service hands out a location."""
    
    def __init__(self, location: str) -> None:
        self.location = location
        super().__init__(f"Redirected to {location}")

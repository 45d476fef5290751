"""
Exceptions raised by the Manta client.

Every error surfaced to callers derives from MantaException so a single
``except MantaException`` covers configuration, signing, path, transport
and remote failures.
"""
from typing import Optional


class MantaException(Exception):
    """Base exception for all Manta client errors."""

    def __init__(self, message: str, error_code: Optional[int] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            error_code: Numeric error code (HTTP status when available)
        """
        self.error_code = error_code
        super().__init__(message)


class ConfigurationError(MantaException):
    """Raised at construction time for missing or invalid settings."""
    pass


class SigningError(MantaException):
    """Raised when the private key or signature algorithm cannot be used."""
    pass


class InvalidPathError(MantaException):
    """Raised when a remote path is not valid UTF-8."""

    def __init__(self, message: str, path: object = None) -> None:
        self.path = path
        super().__init__(message)


class TransportError(MantaException):
    """Connection-level failure (DNS, connect, TLS, timeout)."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        url: Optional[str] = None
    ) -> None:
        self.method = method
        self.url = url
        super().__init__(message)


class RemoteError(MantaException):
    """
    HTTP error status returned by the service.

    Only the request executor builds these; ``server_code`` and
    ``server_message`` come from the JSON error body and stay ``None``
    when the body is missing or unparsable.
    """

    def __init__(
        self,
        status_code: int,
        path: str,
        reason: Optional[str] = None,
        server_code: Optional[str] = None,
        server_message: Optional[str] = None,
        request_id: Optional[str] = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            status_code: HTTP status of the final response
            path: Remote path that was requested
            reason: HTTP reason phrase
            server_code: ``code`` field of the error body
            server_message: ``message`` field of the error body
            request_id: Correlation id echoed by the service
        """
        self.status_code = status_code
        self.path = path
        self.reason = reason or ''
        self.server_code = server_code
        self.server_message = server_message
        self.request_id = request_id

        message = f"{status_code} {self.reason}".rstrip()
        if server_code or server_message:
            message = f"{message} - [{server_code}] {server_message}"

        super().__init__(message, status_code)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

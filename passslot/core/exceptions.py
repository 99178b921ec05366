from typing import Optional, Dict, Any, List


class PassSlotException(Exception):
    """Base exception for the PassSlot SDK."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigError(PassSlotException):
    """Raised when the client is created without an app key."""

    pass


class TransportError(PassSlotException):
    """Raised when the API could not be reached (network, TLS, timeout)."""

    pass


class ImageValidationError(PassSlotException):
    """Raised when an image cannot be attached to a pass."""

    pass


class PassSlotApiError(PassSlotException):
    """Raised when the API answers with a non-2xx status."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.status_code = status_code
        super().__init__(message, details)

    def __repr__(self) -> str:
        return f"[{self.status_code}]: {self.message}"


class UnauthorizedError(PassSlotApiError):
    """Raised when the app key is invalid or lacks access."""

    MESSAGE = (
        "Unauthorized. Please check your app key and make sure it has access "
        "to the template and pass type id"
    )

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__(self.MESSAGE, 401, details)


class ValidationFailedError(PassSlotApiError):
    """Raised when the pass values or other content failed validation."""

    def __init__(
        self,
        message: str,
        errors: Optional[List[Any]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.errors = errors or []
        super().__init__(message, 422, details)

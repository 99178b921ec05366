from passslot.core.exceptions import (
    PassSlotException,
    ConfigError,
    TransportError,
    ImageValidationError,
    PassSlotApiError,
    UnauthorizedError,
    ValidationFailedError,
)
from passslot.schemas.passes import Pass, FieldError
from passslot.services.client import PassSlot, start

__version__ = PassSlot.VERSION

__all__ = [
    "PassSlot",
    "start",
    "Pass",
    "FieldError",
    "PassSlotException",
    "ConfigError",
    "TransportError",
    "ImageValidationError",
    "PassSlotApiError",
    "UnauthorizedError",
    "ValidationFailedError",
]

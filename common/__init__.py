"""
Shared building blocks used by every other package:

- exceptions: the error taxonomy returned to dispatch callers
- settings: environment-driven deployment settings + logging setup

No business logic lives here.
"""

from .exceptions import (
    DispatchError,
    ValidationError,
    InvalidTransition,
    Conflict,
    NotFound,
    ExternalServiceError,
)

__all__ = [
    "DispatchError",
    "ValidationError",
    "InvalidTransition",
    "Conflict",
    "NotFound",
    "ExternalServiceError",
]

"""
Translation Exceptions

This module contains exception classes shared by the provider layer and the
translation pipeline. Separated to avoid circular imports between
dispatcher.py, translator.py and config.py.
"""

from enum import Enum
from typing import Optional


class TranslationError(Exception):
    """Translation error with optional code and details."""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class InputValidationError(TranslationError):
    """Input text rejected before any network call (empty or too long)."""


class ConfigError(TranslationError):
    """Provider configuration is missing or unusable."""


class DispatchErrorKind(Enum):
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    CLIENT_ERROR = "client_error"
    NETWORK_ERROR = "network_error"
    INVALID_RESPONSE = "invalid_response"


class DispatchError(TranslationError):
    """Provider request failed after the dispatcher's own retries."""

    def __init__(
        self,
        message: str,
        kind: DispatchErrorKind,
        status_code: Optional[int] = None,
        details: dict = None,
    ):
        super().__init__(message, code=kind.value, details=details)
        self.kind = kind
        self.status_code = status_code


class TranslationFailed(TranslationError):
    """A translate() call failed because the provider could not be reached or refused."""

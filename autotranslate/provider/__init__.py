"""
Provider module - DeepL wire format and rate-limited dispatch

This module provides:
- RateLimitedDispatcher: paced, retrying request sender
- DeepL payload / response helpers
- Translation exception hierarchy
"""

from autotranslate.provider.exceptions import (
    ConfigError,
    DispatchError,
    DispatchErrorKind,
    InputValidationError,
    TranslationError,
    TranslationFailed,
)
from autotranslate.provider.dispatcher import RateLimitedDispatcher, RateState

__all__ = [
    'ConfigError',
    'DispatchError',
    'DispatchErrorKind',
    'InputValidationError',
    'TranslationError',
    'TranslationFailed',
    'RateLimitedDispatcher',
    'RateState',
]

"""
Translation module - Core translation pipeline

This module provides:
- Translator, DeepLTranslator, EchoTranslator: the public translate() contract
- Placeholder masking and restoration
- Context embedding and the attempt escalation controller
- Response validation and repair
- CatalogManager: batch catalog workflow
"""

from autotranslate.provider.markers import MarkerSet
from autotranslate.translation.placeholders import (
    PlaceholderSpan,
    extract_placeholders,
    mask_placeholders,
    restore_placeholders,
)
from autotranslate.translation.context import sanitize_context, unwrap_context, wrap_with_context
from autotranslate.translation.validator import IssueKind, ResponseValidator, ValidationOutcome
from autotranslate.translation.escalation import ContextMode, DispatchAttempt, EscalationController
from autotranslate.translation.translator import (
    DeepLTranslator,
    EchoTranslator,
    TranslationOptions,
    TranslationRequest,
    TranslationResult,
    Translator,
)
from autotranslate.translation.progress import LanguageStats
from autotranslate.translation.manager import CatalogConfig, CatalogManager

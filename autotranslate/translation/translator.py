"""
Translator Module

Public translation contract and its implementations:
- Translator: abstract base, input validation
- EchoTranslator: pass-through translator for dry runs and tests
- DeepLTranslator: placeholder masking, context escalation and response
  repair on top of a rate-limited DeepL dispatcher

Usage:
    options = TranslationOptions(source_language="ko", target_language="en")
    async with DeepLTranslator(options, api_key) as translator:
        result = await translator.translate("{count}개", context="item_count")
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Dict, FrozenSet, List, Optional, Tuple

import httpx

from autotranslate import language_codes as lc
from autotranslate.config import DEEPL_FREE_API_URL, DEEPL_PRO_API_URL
from autotranslate.logger import get_logger
from autotranslate.provider.dispatcher import RateLimitedDispatcher
from autotranslate.provider.exceptions import DispatchError, InputValidationError, TranslationFailed
from autotranslate.translation.escalation import ContextMode, EscalationController
from autotranslate.translation.placeholders import extract_placeholders, mask_placeholders
from autotranslate.translation.validator import IssueKind, ResponseValidator

logger = get_logger(__name__)

CACHE_CAPACITY = 10000


@dataclass
class TranslationOptions:
    """Per-translator settings. Delays are in milliseconds, timeout in seconds."""
    source_language: str
    target_language: str
    auto_detect: bool = True
    max_length: int = 5000
    use_cache: bool = True
    delay_between_requests: float = 1000
    max_retries: int = 3
    retry_delay: float = 2000
    use_context: bool = True
    value_only: bool = False
    detect_language_mismatch: bool = True
    retry_issue_threshold: Optional[int] = 3
    strict_validation: bool = False
    timeout: Any = 30.0
    provider_options: Dict[str, Any] = field(default_factory=dict)

    def merged(self, **overrides: Any) -> "TranslationOptions":
        return replace(self, **overrides)


@dataclass(frozen=True)
class TranslationRequest:
    text: str
    context: Optional[str]
    source_language: Optional[str]
    target_language: str
    auto_detect: bool = True


@dataclass
class TranslationResult:
    """Result of one translate() call. Diagnostic fields are informative only."""
    original_text: str
    translated_text: str
    source_language: Optional[str]
    target_language: str
    attempts: int = 0
    mode: Optional[ContextMode] = None
    issues: FrozenSet[IssueKind] = frozenset()
    best_effort: bool = False


class Translator(ABC):
    """Base class: validates input, then delegates to _translate_text()."""

    def __init__(self, options: TranslationOptions):
        self.options = options

    @property
    def source_language(self) -> str:
        return self.options.source_language

    @property
    def target_language(self) -> str:
        return self.options.target_language

    def validate_input(self, text: str) -> None:
        """
        Reject input before any provider call.

        Raises:
            InputValidationError: Empty / whitespace-only text, or text longer than max_length
        """
        if text is None or not str(text).strip():
            raise InputValidationError("Text to translate is empty", code="empty_text")
        if len(text) > self.options.max_length:
            raise InputValidationError(
                f"Text exceeds maximum length of {self.options.max_length} characters",
                code="text_too_long",
                details={"length": len(text), "max_length": self.options.max_length},
            )

    async def translate(self, text: str, context: Optional[str] = None) -> TranslationResult:
        """
        Translate one string.

        Args:
            text: Source text, may contain {placeholders}
            context: Optional hint (typically the catalog key)

        Returns:
            TranslationResult

        Raises:
            InputValidationError: Invalid input, raised before any network call
            TranslationFailed: The provider could not be reached or refused the request
        """
        self.validate_input(text)
        request = TranslationRequest(
            text=text,
            context=context,
            source_language=self.options.source_language,
            target_language=self.options.target_language,
            auto_detect=self.options.auto_detect,
        )
        return await self._translate_text(request)

    @abstractmethod
    async def _translate_text(self, request: TranslationRequest) -> TranslationResult:
        ...

    @abstractmethod
    def get_supported_languages(self) -> List[str]:
        ...

    async def close(self):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()


class EchoTranslator(Translator):
    """Returns the input unchanged (optionally prefixed). Never touches the network."""

    def __init__(self, options: TranslationOptions, prefix: str = ""):
        super().__init__(options)
        self.prefix = prefix

    async def _translate_text(self, request: TranslationRequest) -> TranslationResult:
        return TranslationResult(
            original_text=request.text,
            translated_text=f"{self.prefix}{request.text}",
            source_language=request.source_language,
            target_language=request.target_language,
        )

    def get_supported_languages(self) -> List[str]:
        return lc.get_supported_languages()


class DeepLTranslator(Translator):
    """
    DeepL-backed translator.

    One instance owns one dispatcher, and with it one MarkerSet and one
    rate-limit state. Instances for different target languages are
    independent and may run concurrently.
    """

    def __init__(
        self,
        options: TranslationOptions,
        api_key: str,
        api_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        logger: Optional[logging.Logger] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Args:
            options: Translation options
            api_key: DeepL API key
            api_url: Endpoint override (default picked from the key type)
            client: Shared httpx.AsyncClient (not closed by close())
            logger: Diagnostics logger shared by the pipeline components
            sleep: Awaitable sleep in seconds, injectable for tests
            clock: Monotonic clock in seconds, injectable for tests
        """
        super().__init__(options)
        self.logger = logger or get_logger(__name__)

        if api_url is None:
            api_url = DEEPL_FREE_API_URL if api_key.endswith(":fx") else DEEPL_PRO_API_URL

        self.dispatcher = RateLimitedDispatcher(
            api_key=api_key,
            api_url=api_url,
            target_language=options.target_language,
            source_language=None if options.auto_detect else options.source_language,
            delay_between_requests=options.delay_between_requests,
            max_retries=options.max_retries,
            retry_delay=options.retry_delay,
            provider_options=options.provider_options,
            timeout=options.timeout,
            client=client,
            sleep=sleep,
            clock=clock,
            logger=logger,
        )
        self.validator = ResponseValidator(
            markers=self.dispatcher.markers,
            target_language=options.target_language,
            detect_language_mismatch=options.detect_language_mismatch,
            retry_issue_threshold=options.retry_issue_threshold,
            strict=options.strict_validation,
            logger=logger,
        )
        self.controller = EscalationController(
            self.dispatcher,
            self.validator,
            max_retries=options.max_retries,
            logger=logger,
        )

        self._cache: "OrderedDict[Tuple[str, Optional[str]], TranslationResult]" = OrderedDict()
        self._cache_lock = asyncio.Lock()
        self.cache_hits = 0
        self.cache_misses = 0

    @property
    def markers(self):
        return self.dispatcher.markers

    async def _cache_get(self, key: Tuple[str, Optional[str]]) -> Optional[TranslationResult]:
        async with self._cache_lock:
            value = self._cache.get(key)
            if value is not None:
                self._cache.move_to_end(key)
                self.cache_hits += 1
            else:
                self.cache_misses += 1
            return value

    async def _cache_put(self, key: Tuple[str, Optional[str]], value: TranslationResult) -> None:
        async with self._cache_lock:
            self._cache[key] = value
            self._cache.move_to_end(key)
            if len(self._cache) > CACHE_CAPACITY:
                self._cache.popitem(last=False)

    async def _translate_text(self, request: TranslationRequest) -> TranslationResult:
        cache_key = (request.text, request.context)
        if self.options.use_cache:
            cached = await self._cache_get(cache_key)
            if cached is not None:
                return cached

        if self.markers.contains_marker(request.text):
            self.logger.warning(f"Input already contains internal markers: \"{request.text[:80]}\"")

        spans = extract_placeholders(request.text)
        masked_text = mask_placeholders(request.text, spans, self.markers)

        try:
            escalation = await self.controller.run(
                original_text=request.text,
                masked_text=masked_text,
                spans=spans,
                context=request.context,
                use_context=self.options.use_context,
                value_only=self.options.value_only,
            )
        except DispatchError as e:
            raise TranslationFailed(
                f"Translation failed: {e.message}",
                code=e.code,
                details={"text": request.text[:80], "status_code": e.status_code, **e.details},
            ) from e

        result = TranslationResult(
            original_text=request.text,
            translated_text=escalation.text,
            source_language=request.source_language,
            target_language=request.target_language,
            attempts=len(escalation.attempts),
            mode=escalation.mode,
            issues=frozenset(escalation.outcome.issues) if escalation.outcome else frozenset(),
            best_effort=not escalation.succeeded,
        )

        if self.options.use_cache and escalation.succeeded:
            await self._cache_put(cache_key, result)
        return result

    def get_supported_languages(self) -> List[str]:
        return lc.get_supported_languages()

    def get_supported_language_name_map(self) -> Dict[str, str]:
        return lc.get_all_language_names()

    async def close(self):
        await self.dispatcher.close()

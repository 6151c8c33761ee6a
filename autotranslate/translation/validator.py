"""
Translation Validation Module

Inspects a raw provider response and repairs what it can:
- Context delimiter removal (unwrap)
- Placeholder token restoration
- Partial / leftover internal marker cleanup
- Placeholder count checks (missing ones are appended, extra ones force a retry)
- Language-family mismatch detection (advisory)
- Leaked catalog key detection

Validation philosophy: structural checks only. Text-quality problems are
repaired or reported, never raised.
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Pattern, Set, Tuple

from autotranslate.language_codes import extract_base_language
from autotranslate.logger import get_logger
from autotranslate.provider.markers import MarkerSet
from autotranslate.translation.context import unwrap_context
from autotranslate.translation.placeholders import (
    VARIABLE_PATTERN,
    PlaceholderSpan,
    count_placeholders,
    restore_placeholders,
)

logger = get_logger(__name__)

# English letters, digits and common punctuation are shared by all languages
COMMON_CHARS_PATTERN = re.compile(r"[a-zA-Z0-9\s.,!?():;\-'\"%/&+*#@…·]")

# Unicode blocks per language family
LANGUAGE_CHAR_PATTERNS: Dict[str, Pattern] = {
    # Hangul syllables, jamo, compatibility jamo
    'ko': re.compile(r"[\uAC00-\uD7AF\u1100-\u11FF\u3130-\u318F]"),
    # CJK unified ideographs (+ extension A)
    'zh': re.compile(r"[\u4E00-\u9FFF\u3400-\u4DBF]"),
    # Hiragana, katakana, kanji
    'ja': re.compile(r"[\u3040-\u309F\u30A0-\u30FF\u4E00-\u9FFF]"),
    'ar': re.compile(r"[\u0600-\u06FF]"),
    # Cyrillic
    'ru': re.compile(r"[\u0400-\u04FF]"),
    'he': re.compile(r"[\u0590-\u05FF]"),
    'th': re.compile(r"[\u0E00-\u0E7F]"),
}

# Catalog keys look like snake_case or dotted identifiers
KEY_LIKE_PATTERN = re.compile(r"^[A-Za-z][\w-]*[._][\w.-]*[A-Za-z0-9]$")

# Gaps left behind by removed markers
MULTI_SPACE_PATTERN = re.compile(r"[ \t]{2,}")

DEFAULT_RETRY_ISSUE_THRESHOLD = 3


class IssueKind(Enum):
    EMPTY_RESULT = "empty_result"
    DELIMITER_LOST = "delimiter_lost"
    PARTIAL_MARKER = "partial_marker"
    LEFTOVER_MARKER = "leftover_marker"
    MISSING_VARIABLES = "missing_variables"
    EXTRA_VARIABLES = "extra_variables"
    LANGUAGE_MISMATCH = "language_mismatch"
    LEAKED_KEY = "leaked_key"


# Issues that always force another attempt
BLOCKING_ISSUES = frozenset({
    IssueKind.EMPTY_RESULT,
    IssueKind.EXTRA_VARIABLES,
    IssueKind.LEAKED_KEY,
})

ADVISORY_ISSUES = frozenset({IssueKind.LANGUAGE_MISMATCH})


@dataclass
class ValidationOutcome:
    """Result of validating one attempt. Computed fresh per attempt."""
    repaired_text: str
    issues: Set[IssueKind] = field(default_factory=set)
    must_retry: bool = False
    detected_languages: List[str] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.issues


def detect_languages(text: str, target_language: str) -> Tuple[bool, List[str]]:
    """
    Check whether the non-common characters of text belong to the target language family.

    Returns:
        Tuple of (valid, detected_families). Text made only of common
        characters is valid.
    """
    without_vars = VARIABLE_PATTERN.sub("", text)
    remainder = COMMON_CHARS_PATTERN.sub("", without_vars)
    if not remainder:
        return True, ["common"]

    detected = [lang for lang, pattern in LANGUAGE_CHAR_PATTERNS.items() if pattern.search(remainder)]
    target_base = extract_base_language(target_language)

    has_target = target_base in detected
    has_other = any(lang != target_base for lang in detected)

    # Flag only when another family shows up and the target family does not
    valid = has_target or not has_other
    return valid, detected


def _close_gaps(text: str) -> str:
    """Tidy the whitespace left where markers were cut out."""
    return MULTI_SPACE_PATTERN.sub(" ", text).strip()


class ResponseValidator:
    """Validates and repairs provider responses for one dispatcher's markers."""

    def __init__(
        self,
        markers: MarkerSet,
        target_language: str,
        detect_language_mismatch: bool = True,
        retry_issue_threshold: Optional[int] = DEFAULT_RETRY_ISSUE_THRESHOLD,
        strict: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Args:
            markers: Token format of the owning dispatcher
            target_language: Target language code
            detect_language_mismatch: Run the language-family check
            retry_issue_threshold: Retry when this many issues accumulate (None disables)
            strict: Retry on any structural issue
            logger: Diagnostics logger
        """
        self.markers = markers
        self.target_language = target_language
        self.detect_language_mismatch = detect_language_mismatch
        self.retry_issue_threshold = retry_issue_threshold
        self.strict = strict
        self.logger = logger or get_logger(__name__)

    def _repair_partial_markers(
        self, text: str, spans: List[PlaceholderSpan], issues: Set[IssueKind]
    ) -> str:
        """Resolve or delete fragments of our markers the provider mangled."""

        def replace_variable(match: re.Match) -> str:
            index = match.group(1)
            if match.group(0) == self.markers.variable_token(int(index) if index else -1):
                issues.add(IssueKind.LEFTOVER_MARKER)
            else:
                issues.add(IssueKind.PARTIAL_MARKER)
            if index is not None and int(index) < len(spans):
                return spans[int(index)].placeholder
            return ""

        def remove_delimiter(match: re.Match) -> str:
            if match.group(0) == self.markers.context_delimiter:
                issues.add(IssueKind.LEFTOVER_MARKER)
            else:
                issues.add(IssueKind.PARTIAL_MARKER)
            return " "

        repaired = self.markers.partial_delimiter_pattern.sub(remove_delimiter, text)
        repaired = self.markers.partial_variable_pattern.sub(replace_variable, repaired)

        if self.markers.stray_id_pattern.search(repaired):
            issues.add(IssueKind.PARTIAL_MARKER)
            repaired = self.markers.stray_id_pattern.sub("", repaired)
        return _close_gaps(repaired) if repaired != text else text

    def _strip_leftover_markers(self, text: str, issues: Set[IssueKind]) -> str:
        """Remove full tokens verbatim, even if earlier steps missed them."""
        stripped = text.replace(self.markers.context_delimiter, " ")
        stripped = self.markers.full_variable_pattern.sub("", stripped)
        if stripped == text:
            return text
        issues.add(IssueKind.LEFTOVER_MARKER)
        return _close_gaps(stripped)

    def _reconcile_placeholders(
        self, text: str, original_text: str, spans: List[PlaceholderSpan], issues: Set[IssueKind]
    ) -> str:
        """Append missing placeholders; flag extra ones."""
        expected = count_placeholders(original_text)
        found = count_placeholders(text)

        extra = found - expected
        if extra:
            issues.add(IssueKind.EXTRA_VARIABLES)
            self.logger.warning(
                f"Extra placeholders in translation: {sorted(extra.elements())}, text=\"{original_text}\""
            )

        missing = expected - found
        if missing:
            issues.add(IssueKind.MISSING_VARIABLES)
            self.logger.warning(
                f"Placeholders lost in translation: {sorted(missing.elements())}, text=\"{original_text}\""
            )
            remaining = Counter(missing)
            appended = []
            for span in spans:
                if remaining[span.name] > 0:
                    appended.append(span.placeholder)
                    remaining[span.name] -= 1
            text = f"{text.rstrip()} {' '.join(appended)}"
        return text

    def _has_leaked_key(self, text: str, original_text: str, context: Optional[str]) -> bool:
        """True if a key-like word of the context shows up in the output but not in the source."""
        if not context:
            return False
        for word in context.split():
            word = word.strip(".,:;!?")
            if KEY_LIKE_PATTERN.match(word) and word in text and word not in original_text:
                return True
        return False

    def _decide_retry(self, issues: Set[IssueKind]) -> bool:
        if issues & BLOCKING_ISSUES:
            return True
        if self.strict and issues - ADVISORY_ISSUES:
            return True
        if self.retry_issue_threshold and len(issues) >= self.retry_issue_threshold:
            return True
        return False

    def validate(
        self,
        raw_response: str,
        original_text: str,
        spans: List[PlaceholderSpan],
        context: Optional[str] = None,
    ) -> ValidationOutcome:
        """
        Validate one raw response.

        Args:
            raw_response: Text returned by the provider
            original_text: Source text before masking
            spans: Placeholders of original_text, in order
            context: The context actually sent with this attempt, or None

        Returns:
            ValidationOutcome with the repaired text
        """
        issues: Set[IssueKind] = set()
        text = raw_response or ""

        if context:
            text, delimiter_found = unwrap_context(text, context, self.markers)
            if not delimiter_found:
                issues.add(IssueKind.DELIMITER_LOST)
                self.logger.warning(f"Context delimiter lost by provider: \"{(raw_response or '')[:80]}\"")

        if not text.strip():
            issues.add(IssueKind.EMPTY_RESULT)
            return ValidationOutcome(repaired_text="", issues=issues, must_retry=True)

        text = restore_placeholders(text, spans, self.markers)

        if self.markers.contains_marker(text):
            self.logger.warning(f"Internal markers left in translation: \"{text}\"")
            text = self._repair_partial_markers(text, spans, issues)

        text = self._strip_leftover_markers(text, issues)

        if not text.strip():
            issues.add(IssueKind.EMPTY_RESULT)
            return ValidationOutcome(repaired_text="", issues=issues, must_retry=True)

        text = self._reconcile_placeholders(text, original_text, spans, issues)

        detected: List[str] = []
        if self.detect_language_mismatch:
            valid, detected = detect_languages(text, self.target_language)
            if not valid:
                issues.add(IssueKind.LANGUAGE_MISMATCH)
                self.logger.warning(
                    f"Language mix detected: target={self.target_language}, "
                    f"detected=[{', '.join(detected)}], text=\"{text}\""
                )

        if self._has_leaked_key(text, original_text, context):
            issues.add(IssueKind.LEAKED_KEY)
            self.logger.warning(f"Context key leaked into translation: \"{text}\"")

        return ValidationOutcome(
            repaired_text=text,
            issues=issues,
            must_retry=self._decide_retry(issues),
            detected_languages=detected,
        )

"""
Attempt Escalation Controller

Drives dispatch + validation attempts for one translate() call, dropping
context richness each time a response fails validation:

    FULL_CONTEXT -> SHORT_CONTEXT -> VALUE_ONLY -> VALUE_ONLY ...

An empty response jumps straight to VALUE_ONLY. When attempts run out the
last repaired text is returned instead of raising; only dispatcher errors
propagate.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from autotranslate.logger import get_logger
from autotranslate.provider.markers import ANY_MARKER_PATTERN, MarkerSet
from autotranslate.translation.context import sanitize_context, shorten_context, wrap_with_context
from autotranslate.translation.placeholders import PlaceholderSpan
from autotranslate.translation.validator import (
    MULTI_SPACE_PATTERN,
    IssueKind,
    ResponseValidator,
    ValidationOutcome,
)

logger = get_logger(__name__)

# Hard cap on attempts per call, whatever max_retries says
MAX_ATTEMPTS_CAP = 3


class ContextMode(Enum):
    FULL_CONTEXT = "full_context"
    SHORT_CONTEXT = "short_context"
    VALUE_ONLY = "value_only"


NEXT_MODE = {
    ContextMode.FULL_CONTEXT: ContextMode.SHORT_CONTEXT,
    ContextMode.SHORT_CONTEXT: ContextMode.VALUE_ONLY,
    ContextMode.VALUE_ONLY: ContextMode.VALUE_ONLY,
}


@dataclass(frozen=True)
class DispatchAttempt:
    """One dispatched wire text."""
    attempt_number: int
    mode: ContextMode
    context: Optional[str]
    wire_text: str


@dataclass
class EscalationResult:
    text: str
    mode: ContextMode
    attempts: List[DispatchAttempt] = field(default_factory=list)
    outcome: Optional[ValidationOutcome] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is not None and not self.outcome.must_retry


def max_attempts(max_retries: int) -> int:
    return max(1, min(int(max_retries), MAX_ATTEMPTS_CAP))


def initial_mode(context: Optional[str], use_context: bool = True, value_only: bool = False) -> ContextMode:
    """FULL_CONTEXT only when there is a context and nothing forbids sending it."""
    if context and use_context and not value_only:
        return ContextMode.FULL_CONTEXT
    return ContextMode.VALUE_ONLY


def context_for_mode(mode: ContextMode, context: str) -> Optional[str]:
    if mode is ContextMode.FULL_CONTEXT:
        return context
    if mode is ContextMode.SHORT_CONTEXT:
        return shorten_context(context)
    return None


def strip_internal_markers(text: str, markers: MarkerSet) -> str:
    """Remove whatever marker text survived validation."""
    if not markers.contains_marker(text) and not ANY_MARKER_PATTERN.search(text):
        return text

    cleaned = text.replace(markers.context_delimiter, " ")
    cleaned = markers.full_variable_pattern.sub("", cleaned)
    cleaned = markers.partial_delimiter_pattern.sub(" ", cleaned)
    cleaned = markers.partial_variable_pattern.sub("", cleaned)
    cleaned = markers.stray_id_pattern.sub("", cleaned)
    cleaned = ANY_MARKER_PATTERN.sub("", cleaned)
    return MULTI_SPACE_PATTERN.sub(" ", cleaned).strip()


class EscalationController:
    """Runs the attempt state machine for one dispatcher/validator pair."""

    def __init__(
        self,
        dispatcher,
        validator: ResponseValidator,
        max_retries: int = MAX_ATTEMPTS_CAP,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Args:
            dispatcher: Object with `markers` and `async send(wire_text) -> str`
            validator: Validator bound to the dispatcher's markers
            max_retries: Configured retries; attempts are capped at MAX_ATTEMPTS_CAP
            logger: Diagnostics logger
        """
        self.dispatcher = dispatcher
        self.validator = validator
        self.max_attempts = max_attempts(max_retries)
        self.logger = logger or get_logger(__name__)

    @property
    def markers(self) -> MarkerSet:
        return self.dispatcher.markers

    async def run(
        self,
        original_text: str,
        masked_text: str,
        spans: List[PlaceholderSpan],
        context: Optional[str] = None,
        use_context: bool = True,
        value_only: bool = False,
    ) -> EscalationResult:
        """
        Translate masked_text, escalating until a response validates or attempts run out.

        Args:
            original_text: Source text before masking
            masked_text: Source text with placeholders replaced by tokens
            spans: Placeholders of original_text, in order
            context: Raw context hint (sanitized here)
            use_context: Whether context may be sent at all
            value_only: Force VALUE_ONLY from the first attempt

        Returns:
            EscalationResult; the text never contains internal markers

        Raises:
            DispatchError: Propagated from the dispatcher
        """
        context = sanitize_context(context)
        mode = initial_mode(context, use_context, value_only)
        attempts: List[DispatchAttempt] = []
        outcome: Optional[ValidationOutcome] = None

        while len(attempts) < self.max_attempts:
            attempt_context = context_for_mode(mode, context)
            attempt = DispatchAttempt(
                attempt_number=len(attempts) + 1,
                mode=mode,
                context=attempt_context,
                wire_text=wrap_with_context(masked_text, attempt_context, self.markers),
            )
            attempts.append(attempt)
            self.logger.debug(
                f"Attempt {attempt.attempt_number}/{self.max_attempts} ({mode.value}): {attempt.wire_text[:80]}"
            )

            raw = await self.dispatcher.send(attempt.wire_text)
            outcome = self.validator.validate(raw, original_text, spans, attempt_context)

            if not outcome.must_retry:
                break

            issues = ", ".join(sorted(issue.value for issue in outcome.issues))
            if IssueKind.EMPTY_RESULT in outcome.issues and mode is not ContextMode.VALUE_ONLY:
                self.logger.warning(
                    f"Empty translation in {mode.value} mode, retrying without context: \"{original_text}\""
                )
                mode = ContextMode.VALUE_ONLY
            else:
                next_mode = NEXT_MODE[mode]
                self.logger.warning(
                    f"Translation rejected ({issues}) in {mode.value} mode, next: {next_mode.value}"
                )
                mode = next_mode

        result = EscalationResult(text="", mode=attempts[-1].mode, attempts=attempts, outcome=outcome)
        text = outcome.repaired_text if outcome is not None else ""

        if not result.succeeded:
            self.logger.warning(
                f"No clean translation after {len(attempts)} attempts, using best effort: \"{original_text}\""
            )
        if not text:
            self.logger.warning(f"Translation empty, keeping original text: \"{original_text}\"")
            text = original_text

        result.text = strip_internal_markers(text, self.markers)
        return result

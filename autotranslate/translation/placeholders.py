"""
Placeholder Processing Module

Contains functions for protecting interpolation placeholders during translation:
- Placeholder extraction ({name} markers, left to right)
- Masking with opaque per-instance tokens
- Restoration of the original {name} form
"""

import re
from collections import Counter
from dataclasses import dataclass
from typing import List

from autotranslate.logger import get_logger
from autotranslate.provider.markers import MarkerSet

logger = get_logger(__name__)

# `{identifier}` with no nested braces; an unterminated `{` stays literal text
VARIABLE_PATTERN = re.compile(r"\{([^{}]+)\}")


@dataclass(frozen=True)
class PlaceholderSpan:
    """One interpolation marker found in the original text."""
    start: int
    end: int
    name: str

    @property
    def placeholder(self) -> str:
        return f"{{{self.name}}}"


def extract_placeholders(text: str) -> List[PlaceholderSpan]:
    """
    Find all placeholders in text, in order of appearance.

    Repeated names produce one span per occurrence.

    Example:
        >>> extract_placeholders("{count} of {total}")
        [PlaceholderSpan(start=0, end=7, name='count'), PlaceholderSpan(start=11, end=18, name='total')]
    """
    return [
        PlaceholderSpan(start=match.start(), end=match.end(), name=match.group(1))
        for match in VARIABLE_PATTERN.finditer(text)
    ]


def placeholder_names(text: str) -> List[str]:
    """Names of all placeholders in text, in order, duplicates kept."""
    return VARIABLE_PATTERN.findall(text)


def count_placeholders(text: str) -> Counter:
    return Counter(placeholder_names(text))


def mask_placeholders(text: str, spans: List[PlaceholderSpan], markers: MarkerSet) -> str:
    """
    Replace placeholders with opaque tokens keyed by their position in `spans`.

    Args:
        text: The text the spans were extracted from
        spans: Ordered spans from extract_placeholders()
        markers: Token format of the owning dispatcher

    Returns:
        Masked text
    """
    if not spans:
        return text

    masked = text
    # Replace from end to start to preserve positions
    for index in range(len(spans) - 1, -1, -1):
        span = spans[index]
        masked = masked[:span.start] + markers.variable_token(index) + masked[span.end:]

    logger.debug(f"Masked {len(spans)} placeholders: {text[:50]} -> {masked[:50]}")
    return masked


def restore_placeholders(text: str, spans: List[PlaceholderSpan], markers: MarkerSet) -> str:
    """
    Replace every occurrence of each span's token with its `{name}` form.

    Tokens are consumed by the replacement, so restoring twice is the same as
    restoring once.
    """
    if not spans:
        return text

    restored = text
    for index, span in enumerate(spans):
        restored = restored.replace(markers.variable_token(index), span.placeholder)
    return restored

"""
Context embedding

Joins a context hint to the masked text with the instance's delimiter and
strips the translated hint back out of the provider response.
"""

import re
from typing import Optional, Tuple

from autotranslate.logger import get_logger
from autotranslate.provider.markers import ANY_MARKER_PATTERN, MarkerSet

logger = get_logger(__name__)

# Dotted catalog key paths such as "settings.profile.title"; every segment is a
# word of two or more characters starting with a letter, so "1.5" and "e.g." are not paths
KEY_PATH_PATTERN = re.compile(r"\b[A-Za-z_][\w-]+(?:\.[A-Za-z_][\w-]+)+\b")

SHORT_CONTEXT_WORDS = 3

# Translated context is assumed to be at most this many times the original length
CONTEXT_LENGTH_FACTOR = 2


def sanitize_context(context: Optional[str]) -> str:
    """
    Clean a caller-supplied context hint before it is embedded.

    Dotted key paths are reduced to their last segment and any marker-like
    substring is removed so it cannot be mistaken for a delimiter later.

    Example:
        >>> sanitize_context("settings.profile.title")
        'title'
    """
    if not context:
        return ""

    cleaned = ANY_MARKER_PATTERN.sub(" ", context)
    cleaned = KEY_PATH_PATTERN.sub(lambda m: m.group(0).rsplit(".", 1)[-1], cleaned)
    return " ".join(cleaned.split())


def shorten_context(context: str, max_words: int = SHORT_CONTEXT_WORDS) -> str:
    """Keep the first `max_words` words of a context hint."""
    return " ".join(context.split()[:max_words])


def wrap_with_context(masked_text: str, context: Optional[str], markers: MarkerSet) -> str:
    """Produce the wire text: `<context> <delimiter> <masked text>`, or the masked text alone."""
    if not context:
        return masked_text
    return f"{context} {markers.context_delimiter} {masked_text}"


def unwrap_context(response_text: str, context: str, markers: MarkerSet) -> Tuple[str, bool]:
    """
    Strip the translated context from a response.

    Returns:
        Tuple of (translated_text, delimiter_found). When the delimiter is
        missing, a length heuristic drops up to twice the context length from
        the front; the result must still go through validation.
    """
    delimiter_index = response_text.find(markers.context_delimiter)
    if delimiter_index != -1:
        return response_text[delimiter_index + len(markers.context_delimiter):].strip(), True

    # A mangled delimiter is still a better cut point than the heuristic
    partial = markers.partial_delimiter_pattern.search(response_text)
    if partial:
        return response_text[partial.end():].strip(), False

    cut = len(context) * CONTEXT_LENGTH_FACTOR
    logger.debug(
        f"Context delimiter missing, dropping {cut} leading characters: {response_text[:80]}"
    )
    return response_text[cut:].strip(), False

"""Unit tests for placeholder masking.

Tests:
  - Extraction order, repeated names, unterminated braces
  - mask -> restore round trip for 0, 1 and 5 placeholders
  - Restore is idempotent
  - Masked text carries no {name} syntax
"""

from __future__ import annotations

import pytest

from autotranslate.provider.markers import ANY_MARKER_PATTERN, MarkerSet
from autotranslate.translation.placeholders import (
    count_placeholders,
    extract_placeholders,
    mask_placeholders,
    placeholder_names,
    restore_placeholders,
)

MARKERS = MarkerSet("1a2b3c4d")


class TestExtraction:
    """Placeholders are found left to right, one span per occurrence."""

    def test_spans_in_order(self) -> None:
        """Spans carry positions and names in order of appearance."""
        spans = extract_placeholders("{count} of {total}")
        assert [(s.start, s.end, s.name) for s in spans] == [(0, 7, "count"), (11, 18, "total")]

    def test_repeated_names_kept(self) -> None:
        """The same name twice yields two spans."""
        assert placeholder_names("{a} + {a} = {b}") == ["a", "a", "b"]
        assert count_placeholders("{a} + {a} = {b}")["a"] == 2

    def test_unterminated_brace_is_text(self) -> None:
        """A lone `{` is not a placeholder."""
        assert extract_placeholders("50% {off") == []
        assert placeholder_names("{ok} and {broken") == ["ok"]

    def test_nested_braces_take_inner(self) -> None:
        """`{{x}}` contains one placeholder, the inner one."""
        assert placeholder_names("{{x}}") == ["x"]


class TestMaskRestore:
    """mask/restore are inverse operations."""

    @pytest.mark.parametrize(
        "text",
        [
            "No placeholders here",
            "{count}개",
            "{a} sent {b} to {c} at {d} ({e})",
        ],
    )
    def test_round_trip(self, text: str) -> None:
        """restore(mask(S)) == S for 0, 1 and 5 placeholders."""
        spans = extract_placeholders(text)
        masked = mask_placeholders(text, spans, MARKERS)
        assert restore_placeholders(masked, spans, MARKERS) == text

    def test_masked_text_has_no_braces(self) -> None:
        """Every placeholder is replaced by an instance token."""
        text = "{name} has {count} new {kind}"
        spans = extract_placeholders(text)
        masked = mask_placeholders(text, spans, MARKERS)
        assert "{" not in masked
        assert masked.count(MARKERS.variable_prefix) == 3
        assert len(ANY_MARKER_PATTERN.findall(masked)) == 3

    def test_tokens_keyed_by_position(self) -> None:
        """Repeated names get distinct tokens."""
        text = "{a} {a}"
        masked = mask_placeholders(text, extract_placeholders(text), MARKERS)
        assert masked == f"{MARKERS.variable_token(0)} {MARKERS.variable_token(1)}"

    def test_restore_is_idempotent(self) -> None:
        """Restoring twice equals restoring once."""
        text = "{count} items in {place}"
        spans = extract_placeholders(text)
        translated = f"{MARKERS.variable_token(1)}: {MARKERS.variable_token(0)} Stück"
        once = restore_placeholders(translated, spans, MARKERS)
        assert once == "{place}: {count} Stück"
        assert restore_placeholders(once, spans, MARKERS) == once

    def test_restore_duplicated_token(self) -> None:
        """A token the provider duplicated is restored at every occurrence."""
        spans = extract_placeholders("{n}")
        token = MARKERS.variable_token(0)
        assert restore_placeholders(f"{token} {token}", spans, MARKERS) == "{n} {n}"

    def test_other_instance_tokens_untouched(self) -> None:
        """Tokens of another MarkerSet are not restored."""
        other = MarkerSet("deadbeef")
        spans = extract_placeholders("{n}")
        text = f"{other.variable_token(0)} items"
        assert restore_placeholders(text, spans, MARKERS) == text

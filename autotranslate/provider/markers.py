"""
Internal marker tokens

Each dispatcher owns one MarkerSet generated at construction time. The random
instance id makes our placeholder tokens and context delimiter distinguishable
from user text, provider markup and markers of other translator instances.
"""

import re
import uuid
from dataclasses import dataclass, field
from typing import Pattern

# Any marker of this library, whatever instance produced it
ANY_MARKER_PATTERN = re.compile(r"_{1,2}(?:CTX|VAR)_[0-9a-f]{8}(?:_\d+)?_{1,2}", re.IGNORECASE)


@dataclass(frozen=True)
class MarkerSet:
    """Placeholder token and context delimiter format for one instance."""

    instance_id: str
    variable_prefix: str = field(init=False)
    variable_suffix: str = field(init=False)
    context_delimiter: str = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "variable_prefix", f"__VAR_{self.instance_id}_")
        object.__setattr__(self, "variable_suffix", "__")
        object.__setattr__(self, "context_delimiter", f"__CTX_{self.instance_id}__")

    @classmethod
    def generate(cls) -> "MarkerSet":
        return cls(uuid.uuid4().hex[:8])

    def variable_token(self, index: int) -> str:
        return f"{self.variable_prefix}{index}{self.variable_suffix}"

    @property
    def full_variable_pattern(self) -> Pattern:
        return re.compile(rf"{re.escape(self.variable_prefix)}(\d+){re.escape(self.variable_suffix)}")

    @property
    def partial_variable_pattern(self) -> Pattern:
        # Tolerates dropped underscores, a lost index and single inserted spaces
        return re.compile(
            rf"(?:_{{1,2}}[ \t]?)?VAR[ \t]?_?[ \t]?{self.instance_id}"
            rf"(?:[ \t]?_[ \t]?(\d+))?(?:[ \t]?_{{1,2}})?",
            re.IGNORECASE,
        )

    @property
    def partial_delimiter_pattern(self) -> Pattern:
        return re.compile(
            rf"(?:_{{1,2}}[ \t]?)?CTX[ \t]?_?[ \t]?{self.instance_id}(?:[ \t]?_{{1,2}})?",
            re.IGNORECASE,
        )

    @property
    def stray_id_pattern(self) -> Pattern:
        return re.compile(rf"_*{self.instance_id}_*\d*_*", re.IGNORECASE)

    def contains_marker(self, text: str) -> bool:
        """True if text holds any full or partial marker of this instance."""
        return self.instance_id.lower() in text.lower()

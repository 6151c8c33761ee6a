"""
Translation Statistics Data Class

Contains the LanguageStats dataclass reported per target language.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class LanguageStats:
    """Outcome of translating one catalog into one target language."""
    language: str
    total: int = 0
    translated: int = 0
    skipped: int = 0           # Keys already present in the existing catalog
    degraded: int = 0          # Best-effort results (no clean validation)
    failed: int = 0
    output_path: Optional[str] = None
    elapsed_seconds: float = 0.0
    degraded_keys: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'language': self.language,
            'total': self.total,
            'translated': self.translated,
            'skipped': self.skipped,
            'degraded': self.degraded,
            'failed': self.failed,
            'output_path': self.output_path,
            'elapsed_seconds': round(self.elapsed_seconds, 2),
        }

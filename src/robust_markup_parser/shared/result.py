"""Result objects and diagnostic types for robust markup parsing.

This module defines the diagnostic entries reported for recoverable input
problems and the performance metrics attached to every parse.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()      # Debug-level information
    INFO = auto()       # Informational messages
    WARNING = auto()    # Recoverable input problems
    ERROR = auto()      # Error conditions that were recovered
    CRITICAL = auto()   # Operation could not produce a tree from the input


class DiagnosticKind(Enum):
    """Recoverable problems detected in markup input."""

    UNTERMINATED_TAG = auto()   # Input ends before the closing '>'
    UNBALANCED_CLOSE = auto()   # End tag with no corresponding open element
    EMPTY_TAG_NAME = auto()     # '<>' or '</>'
    MISMATCHED_CLOSE = auto()   # Element closed by an end tag of another name
    UNCLOSED_ELEMENT = auto()   # Element still open at end of input


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    kind: Optional[DiagnosticKind] = None
    position: Optional[Dict[str, int]] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        """Convert diagnostic to a JSON-compatible dictionary."""
        result: Dict[str, Any] = {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
        }
        if self.kind is not None:
            result["kind"] = self.kind.name
        if self.position is not None:
            result["position"] = dict(self.position)
        if self.details:
            result["details"] = dict(self.details)
        return result


@dataclass
class PerformanceMetrics:
    """Performance metrics for parsing operations."""

    processing_time_ms: float = 0.0
    characters_processed: int = 0
    tokens_generated: int = 0
    elements_created: int = 0

    @property
    def characters_per_second(self) -> float:
        """Calculate characters processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.characters_processed * 1000.0) / self.processing_time_ms

    @property
    def tokens_per_second(self) -> float:
        """Calculate tokens generated per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.tokens_generated * 1000.0) / self.processing_time_ms

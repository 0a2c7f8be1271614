"""Shared utilities for robust markup parsing.

This module provides shared data structures, configuration objects, result types,
and logging helpers used by the tokenizer, tree builder, API and CLI.
"""

from .result import (
    DiagnosticEntry,
    DiagnosticKind,
    DiagnosticSeverity,
    PerformanceMetrics,
)
from .config import (
    CloseTagPolicy,
    ConfigError,
    ConfigValidationError,
    EmptyTagPolicy,
    GlobalConfig,
    ParserConfig,
    TokenizerConfig,
    TreeConfig,
    UnterminatedTagPolicy,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)

__all__ = [
    "DiagnosticEntry",
    "DiagnosticKind",
    "DiagnosticSeverity",
    "PerformanceMetrics",
    "CloseTagPolicy",
    "ConfigError",
    "ConfigValidationError",
    "EmptyTagPolicy",
    "GlobalConfig",
    "ParserConfig",
    "TokenizerConfig",
    "TreeConfig",
    "UnterminatedTagPolicy",
    "CorrelationLogger",
    "get_logger",
]

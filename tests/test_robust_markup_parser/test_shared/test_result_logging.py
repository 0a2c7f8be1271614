"""Tests for diagnostic entries, performance metrics and correlation logging."""

import logging

import pytest

from robust_markup_parser.shared import (
    CorrelationLogger,
    DiagnosticEntry,
    DiagnosticKind,
    DiagnosticSeverity,
    PerformanceMetrics,
    get_logger,
)


class TestDiagnosticEntry:
    """Test DiagnosticEntry validation and conversion."""

    def test_empty_message_raises_error(self) -> None:
        """Test that a message is required."""
        with pytest.raises(ValueError, match="Diagnostic message cannot be empty"):
            DiagnosticEntry(DiagnosticSeverity.WARNING, "", "tokenizer")

    def test_empty_component_raises_error(self) -> None:
        """Test that a component is required."""
        with pytest.raises(ValueError, match="Diagnostic component cannot be empty"):
            DiagnosticEntry(DiagnosticSeverity.WARNING, "message", "")

    def test_to_dict_minimal(self) -> None:
        """Test that optional fields are omitted when unset."""
        entry = DiagnosticEntry(DiagnosticSeverity.INFO, "note", "tree_builder")
        assert entry.to_dict() == {
            "severity": "INFO",
            "message": "note",
            "component": "tree_builder",
        }

    def test_to_dict_full(self) -> None:
        """Test conversion with kind, position and details."""
        entry = DiagnosticEntry(
            DiagnosticSeverity.WARNING,
            "Empty tag name in '<>'",
            "tokenizer",
            kind=DiagnosticKind.EMPTY_TAG_NAME,
            position={"line": 1, "column": 2, "offset": 1},
            details={"policy": "DROP"},
        )
        data = entry.to_dict()
        assert data["kind"] == "EMPTY_TAG_NAME"
        assert data["position"] == {"line": 1, "column": 2, "offset": 1}
        assert data["details"] == {"policy": "DROP"}


class TestPerformanceMetrics:
    """Test throughput calculations."""

    def test_rates(self) -> None:
        """Test per-second rates."""
        metrics = PerformanceMetrics(
            processing_time_ms=500.0, characters_processed=1000, tokens_generated=50
        )
        assert metrics.characters_per_second == 2000.0
        assert metrics.tokens_per_second == 100.0

    def test_zero_time(self) -> None:
        """Test that zero processing time gives zero rates."""
        metrics = PerformanceMetrics(characters_processed=10)
        assert metrics.characters_per_second == 0.0
        assert metrics.tokens_per_second == 0.0


class TestCorrelationLogger:
    """Test correlation-aware logging."""

    def test_get_logger(self) -> None:
        """Test logger construction."""
        logger = get_logger("robust_markup_parser.test", "req-9", "unit")
        assert isinstance(logger, CorrelationLogger)
        assert logger.component == "unit"
        assert logger.correlation_id == "req-9"

    def test_component_defaults_to_module_name(self) -> None:
        """Test the default component name."""
        assert get_logger("robust_markup_parser.tree.builder").component == "builder"

    def test_extra_carries_correlation(self, caplog) -> None:
        """Test that records carry component and correlation id."""
        logger = get_logger("robust_markup_parser.test", "req-1", "unit")
        with caplog.at_level(logging.INFO, logger="robust_markup_parser.test"):
            logger.info("hello", extra={"count": 3})

        record = caplog.records[-1]
        assert record.getMessage() == "hello"
        assert record.component == "unit"
        assert record.correlation_id == "req-1"
        assert record.count == 3

    def test_critical_carries_correlation(self, caplog) -> None:
        """Test critical records with and without exception info."""
        logger = get_logger("robust_markup_parser.test", "req-2", "unit")
        with caplog.at_level(logging.CRITICAL, logger="robust_markup_parser.test"):
            logger.critical("cannot continue", extra={"file_path": "x.html"}, exc_info=False)
            try:
                raise OSError("disk gone")
            except OSError:
                logger.critical("read failed")

        plain, with_traceback = caplog.records[-2:]
        assert plain.levelno == logging.CRITICAL
        assert plain.getMessage() == "cannot continue"
        assert plain.correlation_id == "req-2"
        assert plain.file_path == "x.html"
        assert plain.exc_info is None
        assert with_traceback.exc_info[0] is OSError

    def test_diagnostic_logged_at_severity(self, caplog) -> None:
        """Test that diagnostics map onto logging levels."""
        logger = get_logger("robust_markup_parser.test", None, "unit")
        entry = DiagnosticEntry(
            DiagnosticSeverity.WARNING,
            "End tag </b> ignored",
            "tree_builder",
            kind=DiagnosticKind.UNBALANCED_CLOSE,
            position={"line": 1, "column": 4, "offset": 3},
        )
        with caplog.at_level(logging.DEBUG, logger="robust_markup_parser.test"):
            logger.diagnostic(entry)

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.diagnostic_kind == "UNBALANCED_CLOSE"
        assert record.diagnostic_component == "tree_builder"
        assert record.position == {"line": 1, "column": 4, "offset": 3}

"""Core parser API with progressive disclosure for robust markup parsing.

This module chains the tokenizer and the tree builder behind simple module-level
functions and a reusable, configurable parser class. Recoverable markup problems
are reported as diagnostics; problems reading a file produce an unsuccessful
ParseResult with an empty document instead of an exception.
"""

import time
from pathlib import Path
from typing import Any, Dict, Optional, TextIO, Union

from robust_markup_parser.shared import (
    DiagnosticSeverity,
    ParserConfig,
    get_logger,
)
from robust_markup_parser.tokenization import MarkupTokenizer, TokenizationResult
from robust_markup_parser.tree import ParseResult, TreeBuilder

InputType = Union[str, bytes, Path, TextIO]

PREVIEW_LENGTH = 100  # Max length for content preview in logs
MS_PER_SECOND = 1000
DEFAULT_ENCODING = "utf-8"


def parse(
    input_data: InputType,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse markup from a string, bytes, Path or text stream.

    Args:
        input_data: Markup content, a path to a markup file, or a readable stream
        config: Optional parser configuration (defaults to the lenient preset)
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ParseResult containing the document tree and diagnostics

    Raises:
        TypeError: If ``input_data`` is none of the supported input types

    Examples:
        >>> result = parse('<a><b>hi</b></a>')
        >>> result.tree.children[0].tag
        'a'
    """
    if isinstance(input_data, Path):
        return parse_file(input_data, config=config, correlation_id=correlation_id)
    if isinstance(input_data, bytes):
        text = input_data.decode(DEFAULT_ENCODING, errors="replace")
        return parse_string(text, config=config, correlation_id=correlation_id)
    if isinstance(input_data, str):
        return parse_string(input_data, config=config, correlation_id=correlation_id)
    if hasattr(input_data, "read"):
        content = input_data.read()
        if isinstance(content, bytes):
            content = content.decode(DEFAULT_ENCODING, errors="replace")
        return parse_string(content, config=config, correlation_id=correlation_id)
    raise TypeError(f"Unsupported input type: {type(input_data).__name__}")


def parse_string(
    markup: str,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse markup from a string.

    Args:
        markup: Markup content
        config: Optional parser configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ParseResult containing the document tree, tokens and diagnostics

    Examples:
        Well-formed input:
        >>> result = parse_string('<a>hi</a>')
        >>> result.success, result.open_elements
        (True, [])

        Mismatched end tag:
        >>> result = parse_string('<a></b>')
        >>> result.open_elements
        ['a']
    """
    logger = get_logger(__name__, correlation_id, "parse_string")
    logger.debug(
        "Starting string parse operation",
        extra={
            "content_length": len(markup),
            "preview": (
                markup[:PREVIEW_LENGTH] + "..."
                if len(markup) > PREVIEW_LENGTH else markup
            )
        }
    )
    return MarkupParser(config=config, correlation_id=correlation_id).parse(markup)


def parse_file(
    file_path: Union[str, Path],
    encoding: str = DEFAULT_ENCODING,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse markup from a file.

    Undecodable bytes are replaced rather than aborting the parse.

    Args:
        file_path: Path to the markup file
        encoding: Text encoding of the file
        config: Optional parser configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ParseResult; ``success`` is False when the file cannot be read

    Examples:
        >>> result = parse_file('missing.html')
        >>> result.success
        False
    """
    start_time = time.time()
    logger = get_logger(__name__, correlation_id, "parse_file")
    path_obj = Path(file_path)

    logger.debug(
        "Starting file parse operation",
        extra={"file_path": str(path_obj), "encoding": encoding}
    )

    error_message = None
    if not path_obj.exists():
        error_message = f"File not found: {path_obj}"
    elif not path_obj.is_file():
        error_message = f"Path is not a file: {path_obj}"

    if error_message is None:
        try:
            content = path_obj.read_text(encoding=encoding, errors="replace")
        except LookupError:
            error_message = f"Unknown encoding: {encoding}"
        except OSError as e:
            error_message = f"Could not read file {path_obj}: {e}"

    if error_message is not None:
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        logger.critical(
            error_message, extra={"file_path": str(path_obj)}, exc_info=False
        )
        return _create_error_result(error_message, correlation_id, processing_time)

    return parse_string(content, config=config, correlation_id=correlation_id)


def _create_error_result(
    error_message: str,
    correlation_id: Optional[str],
    processing_time: float
) -> ParseResult:
    """Create an unsuccessful result with an empty document.

    Args:
        error_message: Error description
        correlation_id: Optional correlation ID
        processing_time: Processing time in milliseconds

    Returns:
        ParseResult with error information
    """
    result = ParseResult(correlation_id=correlation_id)
    result.success = False
    result.performance.processing_time_ms = processing_time

    result.add_diagnostic(
        DiagnosticSeverity.CRITICAL,
        error_message,
        "api_parser"
    )

    return result


class MarkupParser:
    """Configurable markup parser for repeated use.

    Holds one tokenizer and one tree builder configured from a ParserConfig and
    keeps usage statistics across calls. Each parse resets the component state,
    but an instance must not run two parses at once; use one parser per thread.

    Examples:
        >>> parser = MarkupParser(ParserConfig.strict())
        >>> result = parser.parse('<a><b></a>')
        >>> result.open_elements
        ['a', 'b']
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the parser.

        Args:
            config: Parser configuration (defaults to the lenient preset)
            correlation_id: Optional correlation ID for request tracking
        """
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "markup_parser")
        self._configure(config or ParserConfig.lenient())

        self._parse_count = 0
        self._total_processing_time = 0.0
        self._diagnostic_count = 0

    def _configure(self, config: ParserConfig) -> None:
        self.config = config
        enable_diagnostics = config.global_.enable_diagnostics
        self._tokenizer = MarkupTokenizer(
            config=config.tokenizer,
            correlation_id=self.correlation_id,
            enable_diagnostics=enable_diagnostics,
        )
        self._tree_builder = TreeBuilder(
            config=config.tree,
            correlation_id=self.correlation_id,
            enable_diagnostics=enable_diagnostics,
        )

    def tokenize(self, markup: str) -> TokenizationResult:
        """Tokenize markup without building a tree."""
        return self._tokenizer.tokenize(markup)

    def parse(self, markup: str) -> ParseResult:
        """Tokenize and build a tree from markup.

        Args:
            markup: Markup content

        Returns:
            ParseResult containing the document tree, tokens and diagnostics
        """
        start_time = time.time()

        tokenization_result = self._tokenizer.tokenize(markup)
        result = self._tree_builder.build(tokenization_result)

        processing_time = (time.time() - start_time) * MS_PER_SECOND
        result.performance.processing_time_ms = processing_time

        self._parse_count += 1
        self._total_processing_time += processing_time
        self._diagnostic_count += len(result.all_diagnostics)

        self.logger.debug(
            "Parse completed",
            extra={
                "element_count": result.element_count,
                "diagnostic_count": len(result.all_diagnostics),
                "processing_time_ms": processing_time,
                "total_parses": self._parse_count
            }
        )

        return result

    def reconfigure(self, config: ParserConfig) -> None:
        """Replace the configuration used by subsequent parses."""
        self._configure(config)
        self.logger.info(
            "Parser reconfigured",
            extra={"config_name": config.name}
        )

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get parser usage statistics."""
        return {
            "total_parses": self._parse_count,
            "total_diagnostics": self._diagnostic_count,
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset parser usage statistics."""
        self._parse_count = 0
        self._total_processing_time = 0.0
        self._diagnostic_count = 0

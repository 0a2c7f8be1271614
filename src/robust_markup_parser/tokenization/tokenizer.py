"""Core markup tokenization implementation.

This module implements a never-fail tokenizer that converts a markup string into
start-tag, end-tag and text tokens in a single left-to-right pass. Malformed
input is normalized according to the configured policies and reported as
diagnostics instead of raising.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional

from robust_markup_parser.shared import (
    DiagnosticEntry,
    DiagnosticKind,
    DiagnosticSeverity,
    EmptyTagPolicy,
    TokenizerConfig,
    UnterminatedTagPolicy,
    get_logger,
)

TAG_OPEN = "<"
TAG_CLOSE = ">"
END_TAG_MARKER = "/"


class TokenType(Enum):
    """Markup token types produced by the tokenizer."""

    START_TAG = auto()   # <name>
    END_TAG = auto()     # </name>
    TEXT = auto()        # Character content between tags


class TokenizerState(Enum):
    """State machine states for markup tokenization."""

    TEXT_CONTENT = auto()   # Accumulating text
    TAG_OPENING = auto()    # Just consumed '<'
    TAG_NAME = auto()       # Reading the tag name up to '>'


@dataclass
class TokenPosition:
    """Position of a token's first character in the input."""

    line: int
    column: int
    offset: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")

    def to_dict(self) -> Dict[str, int]:
        """Convert position to dictionary representation."""
        return {"line": self.line, "column": self.column, "offset": self.offset}


@dataclass
class Token:
    """A single markup token.

    ``value`` holds the tag name for START_TAG and END_TAG tokens and the text
    content for TEXT tokens, verbatim from the input.
    """

    type: TokenType
    value: str
    position: Optional[TokenPosition] = None

    def __post_init__(self) -> None:
        """Validate token values."""
        if not isinstance(self.type, TokenType):
            raise TypeError("Token type must be a TokenType")
        if not self.value:
            raise ValueError("Token value cannot be empty")

    @classmethod
    def start_tag(
        cls, name: str, position: Optional[TokenPosition] = None
    ) -> "Token":
        """Create a START_TAG token."""
        return cls(TokenType.START_TAG, name, position)

    @classmethod
    def end_tag(cls, name: str, position: Optional[TokenPosition] = None) -> "Token":
        """Create an END_TAG token."""
        return cls(TokenType.END_TAG, name, position)

    @classmethod
    def text(cls, content: str, position: Optional[TokenPosition] = None) -> "Token":
        """Create a TEXT token."""
        return cls(TokenType.TEXT, content, position)

    @property
    def is_tag(self) -> bool:
        """Check if this token is a start or end tag."""
        return self.type is not TokenType.TEXT

    def to_markup(self) -> str:
        """Reconstruct the markup this token was read from."""
        if self.type is TokenType.START_TAG:
            return f"{TAG_OPEN}{self.value}{TAG_CLOSE}"
        if self.type is TokenType.END_TAG:
            return f"{TAG_OPEN}{END_TAG_MARKER}{self.value}{TAG_CLOSE}"
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        """Convert token to dictionary representation."""
        result: Dict[str, Any] = {"type": self.type.name, "value": self.value}
        if self.position is not None:
            result["position"] = self.position.to_dict()
        return result

    def __str__(self) -> str:
        labels = {
            TokenType.START_TAG: "StartTag",
            TokenType.END_TAG: "EndTag",
            TokenType.TEXT: "Text",
        }
        return f"{labels[self.type]}: {self.value}"


@dataclass
class TokenizationResult:
    """Result of tokenization with diagnostics and timing."""

    tokens: List[Token]
    success: bool = True
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    processing_time_ms: float = 0.0
    character_count: int = 0

    @property
    def token_count(self) -> int:
        """Get the total number of tokens."""
        return len(self.tokens)

    @property
    def has_warnings(self) -> bool:
        """Check if any recoverable input problems were reported."""
        return any(
            diag.severity is not DiagnosticSeverity.DEBUG
            and diag.severity is not DiagnosticSeverity.INFO
            for diag in self.diagnostics
        )

    def get_diagnostics_by_kind(self, kind: DiagnosticKind) -> List[DiagnosticEntry]:
        """Get diagnostics of a specific kind."""
        return [diag for diag in self.diagnostics if diag.kind is kind]

    def to_markup(self) -> str:
        """Reconstruct markup from the token sequence."""
        return tokens_to_markup(self.tokens)


class MarkupTokenizer:
    """Markup tokenizer driven by a small character state machine.

    Text and tag-name buffers are plain Python lists, so neither a text run
    nor a tag name has a length limit. Each call to :meth:`tokenize` starts
    from a fresh state; an instance must not be shared between threads while
    a call is in progress.
    """

    def __init__(
        self,
        config: Optional[TokenizerConfig] = None,
        correlation_id: Optional[str] = None,
        enable_diagnostics: bool = True
    ) -> None:
        """Initialize the markup tokenizer.

        Args:
            config: Policies for unterminated and empty tags
            correlation_id: Optional correlation ID for tracking requests
            enable_diagnostics: Collect and log diagnostics for malformed input
        """
        self.config = config or TokenizerConfig()
        self.correlation_id = correlation_id
        self.enable_diagnostics = enable_diagnostics
        self.logger = get_logger(__name__, correlation_id, "markup_tokenizer")
        self._reset_state()

    def _reset_state(self) -> None:
        """Reset tokenizer state for new processing."""
        self.state = TokenizerState.TEXT_CONTENT
        self.tokens: List[Token] = []
        self.diagnostics: List[DiagnosticEntry] = []

        self._line = 1
        self._column = 1
        self._offset = 0

        self._text_parts: List[str] = []
        self._text_start: Optional[TokenPosition] = None
        self._tag_parts: List[str] = []
        self._tag_start: Optional[TokenPosition] = None
        self._is_end_tag = False

    def tokenize(self, text: str) -> TokenizationResult:
        """Tokenize a complete markup string.

        Args:
            text: Markup to tokenize

        Returns:
            TokenizationResult with tokens in input order and any diagnostics

        Examples:
            >>> result = MarkupTokenizer().tokenize("<a>hi</a>")
            >>> [str(token) for token in result.tokens]
            ['StartTag: a', 'Text: hi', 'EndTag: a']
        """
        start_time = time.time()
        self._reset_state()

        self.logger.debug(
            "Starting tokenization",
            extra={"content_length": len(text)}
        )

        for char in text:
            self._process_character(char)
        self._finalize_input()

        processing_time = (time.time() - start_time) * 1000
        result = TokenizationResult(
            tokens=self.tokens,
            diagnostics=self.diagnostics,
            processing_time_ms=processing_time,
            character_count=len(text),
        )

        self.logger.debug(
            "Tokenization completed",
            extra={
                "token_count": result.token_count,
                "diagnostic_count": len(result.diagnostics),
                "processing_time_ms": processing_time
            }
        )

        return result

    def _process_character(self, char: str) -> None:
        """Process a single character through the state machine."""
        if self.state is TokenizerState.TEXT_CONTENT:
            self._process_text_content(char)
        elif self.state is TokenizerState.TAG_OPENING:
            self._process_tag_opening(char)
        else:
            self._process_tag_name(char)

        self._update_position(char)

    def _update_position(self, char: str) -> None:
        """Advance line, column and offset past ``char``."""
        self._offset += 1
        if char == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1

    def _current_position(self) -> TokenPosition:
        return TokenPosition(self._line, self._column, self._offset)

    def _process_text_content(self, char: str) -> None:
        """Process character in text content state."""
        if char == TAG_OPEN:
            self._tag_start = self._current_position()
            self._tag_parts = []
            self._is_end_tag = False
            self.state = TokenizerState.TAG_OPENING
        else:
            self._append_text(char, self._current_position)

    def _process_tag_opening(self, char: str) -> None:
        """Process the first character after '<'."""
        if char == END_TAG_MARKER:
            self._is_end_tag = True
            self.state = TokenizerState.TAG_NAME
        elif char == TAG_CLOSE:
            self._finish_tag()
        else:
            self._tag_parts.append(char)
            self.state = TokenizerState.TAG_NAME

    def _process_tag_name(self, char: str) -> None:
        """Process character inside a tag name."""
        if char == TAG_CLOSE:
            self._finish_tag()
        else:
            self._tag_parts.append(char)

    def _finish_tag(self) -> None:
        """Emit the tag whose closing '>' was just read."""
        self.state = TokenizerState.TEXT_CONTENT
        name = "".join(self._tag_parts)
        if not name:
            self._handle_empty_tag(self._raw_tag(name) + TAG_CLOSE)
            return
        self._emit_tag(name)

    def _finalize_input(self) -> None:
        """Handle end of input: pending tag first, then pending text."""
        if self.state is not TokenizerState.TEXT_CONTENT:
            self._handle_unterminated_tag()
        self.state = TokenizerState.TEXT_CONTENT
        self._flush_text()

    def _handle_unterminated_tag(self) -> None:
        """Apply the unterminated tag policy to the tag still being read."""
        name = "".join(self._tag_parts)
        raw = self._raw_tag(name)
        policy = self.config.unterminated_tag_policy

        self._report(
            DiagnosticKind.UNTERMINATED_TAG,
            DiagnosticSeverity.WARNING,
            f"Input ended inside tag {raw!r}",
            self._tag_start,
            {"tag_name": name, "policy": policy.name},
        )

        if policy is UnterminatedTagPolicy.EMIT_TEXT:
            self._append_text(raw, lambda: self._tag_start)
        elif not name:
            self._handle_empty_tag(raw)
        else:
            self._emit_tag(name)

    def _handle_empty_tag(self, raw: str) -> None:
        """Apply the empty tag policy to ``<>``, ``</>`` or a bare ``<``."""
        policy = self.config.empty_tag_policy
        self._report(
            DiagnosticKind.EMPTY_TAG_NAME,
            DiagnosticSeverity.WARNING,
            f"Empty tag name in {raw!r}",
            self._tag_start,
            {"policy": policy.name},
        )
        if policy is EmptyTagPolicy.AS_TEXT:
            self._append_text(raw, lambda: self._tag_start)
        else:
            # The dropped tag still separates the text on either side
            self._flush_text()

    def _raw_tag(self, name: str) -> str:
        marker = END_TAG_MARKER if self._is_end_tag else ""
        return f"{TAG_OPEN}{marker}{name}"

    def _append_text(
        self, text: str, position_factory: Callable[[], Optional[TokenPosition]]
    ) -> None:
        if not self._text_parts:
            self._text_start = position_factory()
        self._text_parts.append(text)

    def _flush_text(self) -> None:
        """Emit accumulated text as a single TEXT token."""
        if self._text_parts:
            self.tokens.append(
                Token(TokenType.TEXT, "".join(self._text_parts), self._text_start)
            )
            self._text_parts = []
            self._text_start = None

    def _emit_tag(self, name: str) -> None:
        self._flush_text()
        token_type = TokenType.END_TAG if self._is_end_tag else TokenType.START_TAG
        self.tokens.append(Token(token_type, name, self._tag_start))

    def _report(
        self,
        kind: DiagnosticKind,
        severity: DiagnosticSeverity,
        message: str,
        position: Optional[TokenPosition],
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        if not self.enable_diagnostics:
            return
        entry = DiagnosticEntry(
            severity=severity,
            message=message,
            component="tokenizer",
            kind=kind,
            position=position.to_dict() if position else None,
            details=details,
            correlation_id=self.correlation_id,
        )
        self.diagnostics.append(entry)
        self.logger.diagnostic(entry)


def tokens_to_markup(tokens: List[Token]) -> str:
    """Concatenate the markup form of each token."""
    return "".join(token.to_markup() for token in tokens)


def tokenize(text: str) -> List[Token]:
    """Tokenize markup with the default policies.

    Args:
        text: Markup to tokenize

    Returns:
        Tokens in input order; never raises for malformed markup

    Examples:
        >>> [str(token) for token in tokenize("<a><b>hi</b></a>")]
        ['StartTag: a', 'StartTag: b', 'Text: hi', 'EndTag: b', 'EndTag: a']
        >>> tokenize("")
        []
    """
    return MarkupTokenizer().tokenize(text).tokens

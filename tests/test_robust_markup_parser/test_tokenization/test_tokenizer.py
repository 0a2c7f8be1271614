"""Tests for the markup tokenizer.

Tests token production, text coalescing, position tracking and the
unterminated and empty tag policies.
"""

import pytest

from robust_markup_parser.shared import (
    DiagnosticKind,
    DiagnosticSeverity,
    EmptyTagPolicy,
    TokenizerConfig,
    UnterminatedTagPolicy,
)
from robust_markup_parser.tokenization import (
    MarkupTokenizer,
    Token,
    TokenizationResult,
    TokenPosition,
    TokenType,
    tokenize,
    tokens_to_markup,
)


def _pairs(tokens):
    return [(token.type, token.value) for token in tokens]


class TestTokenPosition:
    """Test TokenPosition validation."""

    def test_valid_position(self) -> None:
        """Test creating a valid position."""
        position = TokenPosition(line=2, column=3, offset=10)
        assert position.to_dict() == {"line": 2, "column": 3, "offset": 10}

    @pytest.mark.parametrize(
        "line,column,offset,message",
        [
            (0, 1, 0, "Line number must be >= 1"),
            (1, 0, 0, "Column number must be >= 1"),
            (1, 1, -1, "Offset must be >= 0"),
        ],
    )
    def test_invalid_position_raises_error(self, line, column, offset, message) -> None:
        """Test that out-of-range values raise ValueError."""
        with pytest.raises(ValueError, match=message):
            TokenPosition(line, column, offset)


class TestToken:
    """Test Token construction and rendering."""

    def test_empty_value_raises_error(self) -> None:
        """Test that a token value can never be empty."""
        with pytest.raises(ValueError, match="Token value cannot be empty"):
            Token(TokenType.TEXT, "")

    def test_invalid_type_raises_error(self) -> None:
        """Test that the token type must be a TokenType."""
        with pytest.raises(TypeError):
            Token("START_TAG", "a")  # type: ignore

    def test_factory_methods(self) -> None:
        """Test the per-kind constructors."""
        assert Token.start_tag("a").type is TokenType.START_TAG
        assert Token.end_tag("a").type is TokenType.END_TAG
        assert Token.text("hi").type is TokenType.TEXT

    def test_str_uses_listing_format(self) -> None:
        """Test the one-line token listing format."""
        assert str(Token.start_tag("a")) == "StartTag: a"
        assert str(Token.end_tag("a")) == "EndTag: a"
        assert str(Token.text("hi there")) == "Text: hi there"

    def test_to_markup(self) -> None:
        """Test reconstruction of the markup form."""
        assert Token.start_tag("a").to_markup() == "<a>"
        assert Token.end_tag("a").to_markup() == "</a>"
        assert Token.text("x > y").to_markup() == "x > y"

    def test_is_tag(self) -> None:
        """Test tag detection."""
        assert Token.start_tag("a").is_tag
        assert Token.end_tag("a").is_tag
        assert not Token.text("a").is_tag

    def test_to_dict_includes_position(self) -> None:
        """Test dictionary conversion with and without a position."""
        assert Token.text("hi").to_dict() == {"type": "TEXT", "value": "hi"}
        token = Token.start_tag("a", TokenPosition(1, 1, 0))
        assert token.to_dict()["position"] == {"line": 1, "column": 1, "offset": 0}


class TestBasicTokenization:
    """Test tokenization of well-formed input."""

    def test_nested_elements(self) -> None:
        """Test the canonical nested example."""
        tokens = tokenize("<a><b>hi</b></a>")
        assert _pairs(tokens) == [
            (TokenType.START_TAG, "a"),
            (TokenType.START_TAG, "b"),
            (TokenType.TEXT, "hi"),
            (TokenType.END_TAG, "b"),
            (TokenType.END_TAG, "a"),
        ]

    def test_empty_input(self) -> None:
        """Test that empty input yields no tokens."""
        assert tokenize("") == []

    def test_plain_text_is_one_token(self) -> None:
        """Test that text without tags becomes a single TEXT token."""
        assert _pairs(tokenize("plain text")) == [(TokenType.TEXT, "plain text")]

    def test_consecutive_tags_produce_no_empty_text(self) -> None:
        """Test that adjacent tags have no TEXT token between them."""
        assert _pairs(tokenize("<a></a>")) == [
            (TokenType.START_TAG, "a"),
            (TokenType.END_TAG, "a"),
        ]

    def test_text_around_tags(self) -> None:
        """Test text runs before, between and after tags."""
        assert _pairs(tokenize("x<a>y</a>z")) == [
            (TokenType.TEXT, "x"),
            (TokenType.START_TAG, "a"),
            (TokenType.TEXT, "y"),
            (TokenType.END_TAG, "a"),
            (TokenType.TEXT, "z"),
        ]

    def test_tag_name_is_verbatim(self) -> None:
        """Test that everything up to '>' is the tag name, untrimmed."""
        assert _pairs(tokenize('<a href=x>< b >')) == [
            (TokenType.START_TAG, "a href=x"),
            (TokenType.START_TAG, " b "),
        ]

    def test_close_bracket_in_text_is_text(self) -> None:
        """Test that a stray '>' outside a tag is plain text."""
        assert _pairs(tokenize("a > b")) == [(TokenType.TEXT, "a > b")]

    def test_whitespace_text_is_kept(self) -> None:
        """Test that whitespace-only runs are real text."""
        assert _pairs(tokenize("<a>\n  </a>")) == [
            (TokenType.START_TAG, "a"),
            (TokenType.TEXT, "\n  "),
            (TokenType.END_TAG, "a"),
        ]

    def test_open_bracket_inside_tag_is_part_of_name(self) -> None:
        """Test that '<' while reading a tag name is kept in the name."""
        assert _pairs(tokenize("<<a>")) == [(TokenType.START_TAG, "<a")]

    def test_long_text_and_tag_names(self) -> None:
        """Test that text runs and tag names have no length limit."""
        text = "x" * 5000
        name = "n" * 1000
        tokens = tokenize(f"<{name}>{text}</{name}>")
        assert _pairs(tokens) == [
            (TokenType.START_TAG, name),
            (TokenType.TEXT, text),
            (TokenType.END_TAG, name),
        ]

    def test_well_formed_input_round_trips(self) -> None:
        """Test that token markup reproduces well-formed input exactly."""
        markup = "<html><body>\n<p>one</p><p>two &amp; three</p>\n</body></html>"
        tokens = tokenize(markup)
        assert tokens_to_markup(tokens) == markup

    def test_no_diagnostics_for_well_formed_input(self) -> None:
        """Test that clean input produces no diagnostics."""
        result = MarkupTokenizer().tokenize("<a>hi</a>")
        assert result.success is True
        assert result.diagnostics == []
        assert not result.has_warnings


class TestPositions:
    """Test source positions attached to tokens."""

    def test_positions_track_lines_and_columns(self) -> None:
        """Test line, column and offset of each token's first character."""
        tokens = tokenize("ab\n<c>d")
        assert tokens[0].position == TokenPosition(1, 1, 0)
        assert tokens[1].position == TokenPosition(2, 1, 3)
        assert tokens[2].position == TokenPosition(2, 4, 6)

    def test_end_tag_position_is_at_open_bracket(self) -> None:
        """Test that an end tag is positioned at its '<'."""
        tokens = tokenize("<a></a>")
        assert tokens[1].position == TokenPosition(1, 4, 3)


class TestUnterminatedTags:
    """Test input that ends inside a tag."""

    def test_default_emits_tag(self) -> None:
        """Test that the rest of the input becomes the tag name."""
        result = MarkupTokenizer().tokenize("text<abc")
        assert _pairs(result.tokens) == [
            (TokenType.TEXT, "text"),
            (TokenType.START_TAG, "abc"),
        ]
        diagnostics = result.get_diagnostics_by_kind(DiagnosticKind.UNTERMINATED_TAG)
        assert len(diagnostics) == 1
        assert diagnostics[0].severity is DiagnosticSeverity.WARNING
        assert diagnostics[0].component == "tokenizer"
        assert diagnostics[0].position == {"line": 1, "column": 5, "offset": 4}

    def test_default_emits_end_tag(self) -> None:
        """Test an unterminated end tag."""
        tokens = tokenize("<a></a")
        assert _pairs(tokens) == [
            (TokenType.START_TAG, "a"),
            (TokenType.END_TAG, "a"),
        ]

    def test_emit_text_policy_keeps_raw_characters(self) -> None:
        """Test that the raw remainder joins the preceding text."""
        config = TokenizerConfig(unterminated_tag_policy=UnterminatedTagPolicy.EMIT_TEXT)
        tokenizer = MarkupTokenizer(config)

        assert _pairs(tokenizer.tokenize("x<ab").tokens) == [(TokenType.TEXT, "x<ab")]
        assert _pairs(tokenizer.tokenize("x</ab").tokens) == [(TokenType.TEXT, "x</ab")]

    def test_emit_text_policy_position_of_lone_fragment(self) -> None:
        """Test that a text fragment made from a tag starts at its '<'."""
        config = TokenizerConfig(unterminated_tag_policy=UnterminatedTagPolicy.EMIT_TEXT)
        tokens = MarkupTokenizer(config).tokenize("<a><b").tokens
        assert tokens[1].value == "<b"
        assert tokens[1].position == TokenPosition(1, 4, 3)

    def test_lone_open_bracket(self) -> None:
        """Test a bare '<' at end of input with the default policies."""
        result = MarkupTokenizer().tokenize("<")
        assert result.tokens == []
        kinds = [diag.kind for diag in result.diagnostics]
        assert kinds == [DiagnosticKind.UNTERMINATED_TAG, DiagnosticKind.EMPTY_TAG_NAME]

    def test_lone_open_bracket_as_text(self) -> None:
        """Test a bare '<' when unterminated tags become text."""
        config = TokenizerConfig(unterminated_tag_policy=UnterminatedTagPolicy.EMIT_TEXT)
        result = MarkupTokenizer(config).tokenize("a<")
        assert _pairs(result.tokens) == [(TokenType.TEXT, "a<")]
        assert [diag.kind for diag in result.diagnostics] == [
            DiagnosticKind.UNTERMINATED_TAG
        ]


class TestEmptyTags:
    """Test '<>' and '</>'."""

    def test_default_drops_empty_tags(self) -> None:
        """Test that empty tags emit nothing but still end the text run."""
        result = MarkupTokenizer().tokenize("a<>b</>c")
        assert _pairs(result.tokens) == [
            (TokenType.TEXT, "a"),
            (TokenType.TEXT, "b"),
            (TokenType.TEXT, "c"),
        ]
        assert len(result.get_diagnostics_by_kind(DiagnosticKind.EMPTY_TAG_NAME)) == 2
        assert result.has_warnings

    def test_dropped_tag_keeps_text_positions(self) -> None:
        """Test that text after a dropped tag starts at its own position."""
        tokens = tokenize("a<>b")
        assert [str(token) for token in tokens] == ["Text: a", "Text: b"]
        assert tokens[1].position == TokenPosition(1, 4, 3)

    def test_unterminated_empty_tag_ends_text_run(self) -> None:
        """Test a bare '<' at end of input after text."""
        assert _pairs(tokenize("a<")) == [(TokenType.TEXT, "a")]

    def test_only_empty_tags(self) -> None:
        """Test input made of nothing but empty tags."""
        assert tokenize("<></>") == []

    def test_as_text_policy(self) -> None:
        """Test that raw empty tags join the surrounding text run."""
        config = TokenizerConfig(empty_tag_policy=EmptyTagPolicy.AS_TEXT)
        tokens = MarkupTokenizer(config).tokenize("a<>b</>c<d>").tokens
        assert _pairs(tokens) == [
            (TokenType.TEXT, "a<>b</>c"),
            (TokenType.START_TAG, "d"),
        ]


class TestTokenizerBehaviour:
    """Test tokenizer instance behaviour."""

    def test_instance_is_reusable(self) -> None:
        """Test that each call starts from a fresh state."""
        tokenizer = MarkupTokenizer()
        first = tokenizer.tokenize("<a")
        second = tokenizer.tokenize("b")

        assert _pairs(first.tokens) == [(TokenType.START_TAG, "a")]
        assert _pairs(second.tokens) == [(TokenType.TEXT, "b")]
        assert second.diagnostics == []
        assert second.tokens[0].position == TokenPosition(1, 1, 0)

    def test_diagnostics_can_be_disabled(self) -> None:
        """Test that disabling diagnostics keeps the same tokens."""
        result = MarkupTokenizer(enable_diagnostics=False).tokenize("<>x<y")
        assert _pairs(result.tokens) == [
            (TokenType.TEXT, "x"),
            (TokenType.START_TAG, "y"),
        ]
        assert result.diagnostics == []

    def test_correlation_id_on_diagnostics(self) -> None:
        """Test that diagnostics carry the tokenizer's correlation id."""
        result = MarkupTokenizer(correlation_id="req-1").tokenize("<>")
        assert result.diagnostics[0].correlation_id == "req-1"

    def test_result_metadata(self) -> None:
        """Test counts recorded on the result."""
        result = MarkupTokenizer().tokenize("<a>hi</a>")
        assert isinstance(result, TokenizationResult)
        assert result.token_count == 3
        assert result.character_count == 9
        assert result.processing_time_ms >= 0
        assert result.to_markup() == "<a>hi</a>"

    def test_diagnostics_are_logged(self, caplog) -> None:
        """Test that diagnostics are mirrored to the log."""
        with caplog.at_level("WARNING", logger="robust_markup_parser"):
            MarkupTokenizer().tokenize("<abc")
        assert any("Input ended inside tag" in r.getMessage() for r in caplog.records)

"""Core tree building implementation for robust markup parsing.

This module implements the tree building engine that converts token streams into
a nested document of element and text nodes using an explicit open-element
stack. Malformed structure never raises: unmatched end tags are resolved by the
configured close-tag policy and reported as diagnostics, and elements left open
at end of input remain in the tree as they are.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from robust_markup_parser.shared import (
    CloseTagPolicy,
    DiagnosticEntry,
    DiagnosticKind,
    DiagnosticSeverity,
    PerformanceMetrics,
    TreeConfig,
    get_logger,
)
from robust_markup_parser.tokenization import (
    Token,
    TokenizationResult,
    TokenType,
)

ROOT_TAG = "document"


@dataclass
class TextNode:
    """A run of character content. Text nodes never have children."""

    content: str

    def __post_init__(self) -> None:
        """Validate text content."""
        if not self.content:
            raise ValueError("Text content cannot be empty")

    @property
    def is_text(self) -> bool:
        return True

    @property
    def text_content(self) -> str:
        return self.content

    def iter(self) -> Iterator["Node"]:
        """Iterate over this node (text nodes have no descendants)."""
        yield self

    def to_dict(self) -> Dict[str, Any]:
        """Convert text node to dictionary representation."""
        return {"text": self.content}


@dataclass
class Element:
    """A markup element owning an ordered list of child nodes.

    Children are owned exclusively by their element; there are no parent
    references, so the tree is released as a unit when the root is dropped.
    """

    tag: str
    children: List["Node"] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate element values."""
        if not self.tag:
            raise ValueError("Element tag cannot be empty")

    @property
    def is_text(self) -> bool:
        return False

    @property
    def text_content(self) -> str:
        """Get all descendant text concatenated in document order."""
        return "".join(
            node.content for node in self.iter() if isinstance(node, TextNode)
        )

    @property
    def element_children(self) -> List["Element"]:
        """Get direct children that are elements."""
        return [child for child in self.children if isinstance(child, Element)]

    def append_child(self, child: "Node") -> None:
        """Append a child node as the last child of this element."""
        if not isinstance(child, (Element, TextNode)):
            raise TypeError("Child must be an Element or TextNode instance")
        self.children.append(child)

    def iter(self) -> Iterator["Node"]:
        """Iterate depth-first over this element and all descendants."""
        stack: List[Node] = [self]
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node, Element):
                stack.extend(reversed(node.children))

    def iter_elements(self) -> Iterator["Element"]:
        """Iterate depth-first over this element and descendant elements."""
        for node in self.iter():
            if isinstance(node, Element):
                yield node

    def find(self, tag: str) -> Optional["Element"]:
        """Find first descendant element with matching tag name."""
        return next(
            (
                elem for elem in self.iter_elements()
                if elem is not self and elem.tag == tag
            ),
            None,
        )

    def find_all(self, tag: str) -> List["Element"]:
        """Find all descendant elements with matching tag name."""
        return [
            elem for elem in self.iter_elements()
            if elem is not self and elem.tag == tag
        ]

    def max_depth(self) -> int:
        """Get the depth of the deepest descendant (a childless element is 0)."""
        depth = 0
        stack = [(self, 0)]
        while stack:
            node, level = stack.pop()
            depth = max(depth, level)
            if isinstance(node, Element):
                stack.extend((child, level + 1) for child in node.children)
        return depth

    def to_dict(self) -> Dict[str, Any]:
        """Convert element to dictionary representation."""
        result: Dict[str, Any] = {"tag": self.tag}
        # (element, dict) pairs whose children are still to be converted
        pending = [(self, result)]
        while pending:
            element, data = pending.pop()
            if not element.children:
                continue
            children: List[Dict[str, Any]] = []
            for child in element.children:
                if isinstance(child, TextNode):
                    children.append(child.to_dict())
                else:
                    child_data: Dict[str, Any] = {"tag": child.tag}
                    children.append(child_data)
                    pending.append((child, child_data))
            data["children"] = children
        return result


Node = Union[Element, TextNode]


@dataclass
class ParseResult:
    """Result object for tree building operations.

    Contains the document tree, the tokens it was built from, diagnostics and
    performance information following the never-fail philosophy.
    """

    root: Element = field(default_factory=lambda: Element(ROOT_TAG))
    success: bool = True
    tokens: List[Token] = field(default_factory=list)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    open_elements: List[str] = field(default_factory=list)

    tokenization_result: Optional[TokenizationResult] = None
    correlation_id: Optional[str] = None

    @property
    def tree(self) -> Element:
        """Direct access to the document root.

        Examples:
            >>> from robust_markup_parser import parse_string
            >>> result = parse_string('<a><b>hi</b></a>')
            >>> result.tree.find('b').text_content
            'hi'
        """
        return self.root

    @property
    def element_count(self) -> int:
        """Get number of elements in the document, excluding the root."""
        return sum(1 for _ in self.root.iter_elements()) - 1

    @property
    def processing_time_ms(self) -> float:
        """Get processing time in milliseconds."""
        return self.performance.processing_time_ms

    @property
    def all_diagnostics(self) -> List[DiagnosticEntry]:
        """Tokenizer diagnostics followed by tree builder diagnostics."""
        if self.tokenization_result is None:
            return list(self.diagnostics)
        return list(self.tokenization_result.diagnostics) + list(self.diagnostics)

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        kind: Optional[DiagnosticKind] = None,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> DiagnosticEntry:
        """Add diagnostic entry to result."""
        entry = DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            kind=kind,
            position=position,
            details=details,
            correlation_id=self.correlation_id
        )
        self.diagnostics.append(entry)
        return entry

    def get_diagnostics_by_severity(
        self,
        severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        """Get diagnostics of specific severity level."""
        return [diag for diag in self.all_diagnostics if diag.severity == severity]

    def get_diagnostics_by_kind(self, kind: DiagnosticKind) -> List[DiagnosticEntry]:
        """Get diagnostics of a specific kind."""
        return [diag for diag in self.all_diagnostics if diag.kind is kind]

    def has_errors(self) -> bool:
        """Check if result contains any error diagnostics."""
        return any(
            diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
            for diag in self.all_diagnostics
        )

    def get_diagnostics_summary(self) -> Dict[str, Any]:
        """Count diagnostics by severity and by kind."""
        by_severity: Dict[str, int] = {}
        by_kind: Dict[str, int] = {}
        for diagnostic in self.all_diagnostics:
            by_severity[diagnostic.severity.name] = (
                by_severity.get(diagnostic.severity.name, 0) + 1
            )
            if diagnostic.kind is not None:
                by_kind[diagnostic.kind.name] = by_kind.get(diagnostic.kind.name, 0) + 1

        return {
            "total_diagnostics": len(self.all_diagnostics),
            "has_errors": self.has_errors(),
            "diagnostics_by_severity": by_severity,
            "diagnostics_by_kind": by_kind,
        }

    def summary(self) -> Dict[str, Any]:
        """Get summary statistics for the parse result."""
        return {
            "success": self.success,
            "element_count": self.element_count,
            "token_count": len(self.tokens),
            "max_depth": self.root.max_depth(),
            "open_elements": list(self.open_elements),
            "processing_time_ms": self.performance.processing_time_ms,
            "characters_processed": self.performance.characters_processed,
            "diagnostics_summary": self.get_diagnostics_summary(),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert the result, including the tree, to a JSON-compatible dict."""
        return {
            "success": self.success,
            "correlation_id": self.correlation_id,
            "summary": self.summary(),
            "tree": self.root.to_dict(),
            "diagnostics": [diag.to_dict() for diag in self.all_diagnostics],
        }


class TreeBuilder:
    """Tree builder turning a token stream into a document tree.

    The open-element stack always holds the synthetic root at index 0, and no
    end tag can remove it.
    """

    def __init__(
        self,
        config: Optional[TreeConfig] = None,
        correlation_id: Optional[str] = None,
        enable_diagnostics: bool = True
    ) -> None:
        """Initialize tree builder.

        Args:
            config: End-tag resolution policy and reporting options
            correlation_id: Optional correlation ID for request tracking
            enable_diagnostics: Collect and log diagnostics for malformed structure
        """
        self.config = config or TreeConfig()
        self.correlation_id = correlation_id
        self.enable_diagnostics = enable_diagnostics
        self.logger = get_logger(__name__, correlation_id, "tree_builder")

        self._element_stack: List[Element] = []
        self._elements_created = 0

    def build(self, tokens: Union[TokenizationResult, Sequence[Token]]) -> ParseResult:
        """Build a document tree from a token stream.

        Args:
            tokens: Either TokenizationResult or a sequence of tokens

        Returns:
            ParseResult whose root is the synthetic document element
        """
        start_time = time.time()

        if isinstance(tokens, TokenizationResult):
            token_list = list(tokens.tokens)
            tokenization_result: Optional[TokenizationResult] = tokens
        else:
            token_list = list(tokens)
            tokenization_result = None

        self.logger.debug(
            "Starting tree building",
            extra={"token_count": len(token_list)}
        )

        self._reset_state()
        result = ParseResult(
            root=self._element_stack[0],
            tokens=token_list,
            tokenization_result=tokenization_result,
            correlation_id=self.correlation_id,
        )

        for token in token_list:
            self._process_token(token, result)

        self._finalize_open_elements(result)

        processing_time = (time.time() - start_time) * 1000
        result.performance.processing_time_ms = processing_time
        result.performance.tokens_generated = len(token_list)
        result.performance.elements_created = self._elements_created
        if tokenization_result is not None:
            result.performance.characters_processed = (
                tokenization_result.character_count
            )

        self.logger.debug(
            "Tree building completed",
            extra={
                "element_count": result.element_count,
                "open_elements": len(result.open_elements),
                "processing_time_ms": processing_time
            }
        )

        return result

    def _reset_state(self) -> None:
        """Reset internal state for new tree building operation."""
        self._element_stack = [Element(ROOT_TAG)]
        self._elements_created = 0

    @property
    def _current_element(self) -> Element:
        return self._element_stack[-1]

    def _process_token(self, token: Token, result: ParseResult) -> None:
        """Dispatch a single token."""
        if token.type is TokenType.START_TAG:
            self._handle_start_tag(token)
        elif token.type is TokenType.END_TAG:
            self._handle_end_tag(token, result)
        else:
            self._current_element.append_child(TextNode(token.value))

    def _handle_start_tag(self, token: Token) -> None:
        element = Element(token.value)
        self._current_element.append_child(element)
        self._element_stack.append(element)
        self._elements_created += 1

    def _handle_end_tag(self, token: Token, result: ParseResult) -> None:
        """Resolve an end tag against the open-element stack."""
        tag_name = token.value

        if len(self._element_stack) == 1:
            self._report(
                result, token, DiagnosticKind.UNBALANCED_CLOSE,
                DiagnosticSeverity.WARNING,
                f"End tag </{tag_name}> ignored: no open element",
            )
            return

        policy = self.config.close_tag_policy
        if policy is CloseTagPolicy.POP_INNERMOST:
            self._pop_innermost(token, result)
        elif policy is CloseTagPolicy.STRICT_MATCH:
            self._close_strict(token, result)
        else:
            self._close_implicit(token, result)

    def _find_open_element(self, tag_name: str) -> int:
        """Index of the innermost open element named ``tag_name``, or -1.

        Index 0 (the root) is never returned.
        """
        for i in range(len(self._element_stack) - 1, 0, -1):
            if self._element_stack[i].tag == tag_name:
                return i
        return -1

    def _close_implicit(self, token: Token, result: ParseResult) -> None:
        """Close down to and including the innermost element named by the tag."""
        tag_name = token.value
        index = self._find_open_element(tag_name)

        if index < 0:
            self._report(
                result, token, DiagnosticKind.UNBALANCED_CLOSE,
                DiagnosticSeverity.WARNING,
                f"End tag </{tag_name}> ignored: no open <{tag_name}> element",
                {"open_elements": [elem.tag for elem in self._element_stack[1:]]},
            )
            return

        for element in reversed(self._element_stack[index + 1:]):
            self._report(
                result, token, DiagnosticKind.MISMATCHED_CLOSE,
                DiagnosticSeverity.INFO,
                f"Element <{element.tag}> implicitly closed by </{tag_name}>",
                {"closed_element": element.tag},
            )
        del self._element_stack[index:]

    def _close_strict(self, token: Token, result: ParseResult) -> None:
        """Close the innermost element only if its name matches."""
        tag_name = token.value
        if self._current_element.tag == tag_name:
            self._element_stack.pop()
            return

        if self._find_open_element(tag_name) < 0:
            self._report(
                result, token, DiagnosticKind.UNBALANCED_CLOSE,
                DiagnosticSeverity.WARNING,
                f"End tag </{tag_name}> ignored: no open <{tag_name}> element",
            )
        else:
            self._report(
                result, token, DiagnosticKind.MISMATCHED_CLOSE,
                DiagnosticSeverity.INFO,
                f"End tag </{tag_name}> ignored: innermost open element is "
                f"<{self._current_element.tag}>",
                {"innermost_element": self._current_element.tag},
            )

    def _pop_innermost(self, token: Token, result: ParseResult) -> None:
        """Close the innermost element regardless of its name."""
        element = self._element_stack.pop()
        if element.tag != token.value:
            self._report(
                result, token, DiagnosticKind.MISMATCHED_CLOSE,
                DiagnosticSeverity.INFO,
                f"Element <{element.tag}> closed by </{token.value}>",
                {"closed_element": element.tag},
            )

    def _finalize_open_elements(self, result: ParseResult) -> None:
        """Record elements still open at end of input; they stay in the tree."""
        still_open = self._element_stack[1:]
        result.open_elements = [element.tag for element in still_open]

        if not self.config.report_unclosed_elements:
            return
        for element in still_open:
            self._report(
                result, None, DiagnosticKind.UNCLOSED_ELEMENT,
                DiagnosticSeverity.INFO,
                f"Element <{element.tag}> left open at end of input",
                {"element": element.tag},
            )

    def _report(
        self,
        result: ParseResult,
        token: Optional[Token],
        kind: DiagnosticKind,
        severity: DiagnosticSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        if not self.enable_diagnostics:
            return
        position = None
        if token is not None and token.position is not None:
            position = token.position.to_dict()
        entry = result.add_diagnostic(
            severity, message, "tree_builder",
            kind=kind, position=position, details=details,
        )
        self.logger.diagnostic(entry)


def build(tokens: Union[TokenizationResult, Sequence[Token]]) -> Element:
    """Build a document tree with the default close-tag policy.

    Args:
        tokens: Token sequence, typically from :func:`tokenize`

    Returns:
        The synthetic ``document`` root element

    Examples:
        >>> from robust_markup_parser.tokenization import tokenize
        >>> root = build(tokenize("<a><b>hi</b></a>"))
        >>> root.tag, root.children[0].tag
        ('document', 'a')
    """
    return TreeBuilder().build(tokens).root

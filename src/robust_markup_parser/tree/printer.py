"""Text renderings of token sequences and document trees.

``render_tree`` produces the indented debug listing (two spaces per level,
``Text: "..."`` for text nodes, closing tags for every element except the
root); ``serialize`` turns a tree back into markup.
"""

from typing import Iterable, List, Union

from robust_markup_parser.tokenization import Token

from .builder import ROOT_TAG, Element, Node, TextNode

INDENT = "  "


def render_tokens(tokens: Iterable[Token]) -> str:
    """Render one ``Kind: value`` line per token."""
    return "\n".join(str(token) for token in tokens)


def render_tree(node: Node, indent: str = INDENT) -> str:
    """Render a tree as an indented listing.

    Examples:
        >>> from robust_markup_parser.tokenization import tokenize
        >>> from robust_markup_parser.tree import build
        >>> print(render_tree(build(tokenize("<a>hi</a>"))))
        <document>
          <a>
            Text: "hi"
          </a>
    """
    lines: List[str] = []
    # (node, depth, closing) entries; closing entries emit the end line
    stack = [(node, 0, False)]
    while stack:
        current, depth, closing = stack.pop()
        prefix = indent * depth
        if isinstance(current, TextNode):
            lines.append(f'{prefix}Text: "{current.content}"')
        elif closing:
            lines.append(f"{prefix}</{current.tag}>")
        else:
            lines.append(f"{prefix}<{current.tag}>")
            if depth > 0:
                stack.append((current, depth, True))
            stack.extend(
                (child, depth + 1, False) for child in reversed(current.children)
            )
    return "\n".join(lines)


def serialize(node: Union[Element, TextNode], include_root: bool = False) -> str:
    """Serialize a tree back into markup.

    The synthetic root is omitted unless ``include_root`` is set, so a tree
    built from well-formed input serializes to that input. Elements left open
    by the input are serialized with their end tag.
    """
    if isinstance(node, TextNode):
        return node.content

    parts: List[str] = []
    skip_root = node.tag == ROOT_TAG and not include_root
    # (node, closing) pairs; closing entries emit the end tag
    stack = [(node, False)]
    while stack:
        current, closing = stack.pop()
        if isinstance(current, TextNode):
            parts.append(current.content)
            continue
        is_skipped_root = skip_root and current is node
        if closing:
            if not is_skipped_root:
                parts.append(f"</{current.tag}>")
            continue
        if not is_skipped_root:
            parts.append(f"<{current.tag}>")
        stack.append((current, True))
        stack.extend((child, False) for child in reversed(current.children))
    return "".join(parts)

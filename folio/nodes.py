"""Document tree nodes for Folio.

Rendered posts are immutable trees of four node variants:

- Text: a run of literal text (escaped on serialization).
- Raw: inline or block HTML written directly in the body (kept verbatim).
- Element: an HTML element with sorted attributes and child nodes.
- Component: a named, attributed component found in the body markup.
  Component nodes only exist between parsing and rendering; the renderer
  resolves each one through the component registry into an Element.

All nodes are frozen dataclasses, so two trees built from the same input
compare equal with ``==``.

Functions:
    element: Convenience constructor that sorts attributes.
    to_html: Serialize a tree to an HTML string.
    text_content: Flatten a tree to plain text.
    to_dict: Convert a tree to JSON-ready dictionaries.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from markupsafe import escape

VOID_TAGS = frozenset({"br", "hr", "img", "input", "source", "wbr"})


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Raw:
    """Literal HTML passed through from the body markup unchanged."""

    value: str


@dataclass(frozen=True)
class Element:
    """An HTML element.

    Attributes:
        tag: Element name, e.g. "p" or "aside".
        attrs: Attribute pairs sorted by name.
        children: Child nodes in document order.
    """

    tag: str
    attrs: tuple[tuple[str, str], ...] = ()
    children: tuple[Node, ...] = ()

    def get(self, name: str, default: str | None = None) -> str | None:
        for key, value in self.attrs:
            if key == name:
                return value
        return default


@dataclass(frozen=True)
class Component:
    """A component reference as written in the body markup.

    Attributes:
        name: Registered component name, e.g. "Notice".
        props: Attribute pairs in source order.
        children: Parsed child nodes (empty for self-closing components).
        line: 1-based source line of the opening tag.
    """

    name: str
    props: tuple[tuple[str, str], ...] = ()
    children: tuple[Node, ...] = ()
    line: int = 0

    @property
    def prop_map(self) -> dict[str, str]:
        return dict(self.props)


Node = Union[Text, Raw, Element, Component]


def element(
    tag: str,
    attrs: Mapping[str, str | None] | None = None,
    children: Iterable[Node] = (),
) -> Element:
    """Build an Element, dropping None attributes and sorting the rest."""
    pairs = tuple(
        sorted((k, str(v)) for k, v in (attrs or {}).items() if v is not None)
    )
    return Element(tag, pairs, tuple(children))


def text_content(node: Node | Iterable[Node]) -> str:
    """Return the concatenated text of a node or sequence of nodes."""
    if isinstance(node, Text):
        return node.value
    if isinstance(node, Raw):
        return ""
    if isinstance(node, (Element, Component)):
        return "".join(text_content(child) for child in node.children)
    return "".join(text_content(child) for child in node)


def to_html(node: Node | Iterable[Node], highlight: bool = False) -> str:
    """Serialize a node tree to HTML.

    Args:
        node: Root node or a sequence of sibling nodes.
        highlight: Run Pygments over ``pre > code.language-*`` blocks.

    Returns:
        HTML string.

    Raises:
        TypeError: If an unresolved Component node is encountered.
    """
    if isinstance(node, Text):
        return str(escape(node.value))
    if isinstance(node, Raw):
        return node.value
    if isinstance(node, Component):
        raise TypeError(f"unresolved component '{node.name}' cannot be serialized")
    if isinstance(node, Element):
        if highlight and node.tag == "pre":
            highlighted = _highlight_pre(node)
            if highlighted is not None:
                return highlighted
        attrs = "".join(
            f' {key}="{escape(value)}"' for key, value in node.attrs
        )
        if node.tag in VOID_TAGS:
            return f"<{node.tag}{attrs}>"
        inner = "".join(to_html(child, highlight) for child in node.children)
        return f"<{node.tag}{attrs}>{inner}</{node.tag}>"
    return "".join(to_html(child, highlight) for child in node)


def _highlight_pre(node: Element) -> str | None:
    """Highlight a code block with Pygments.

    Returns:
        Highlighted HTML, or None when the block has no known language.
    """
    if len(node.children) != 1 or not isinstance(node.children[0], Element):
        return None
    code = node.children[0]
    classes = (code.get("class") or "").split()
    language = next(
        (c[len("language-") :] for c in classes if c.startswith("language-")), None
    )
    if not language:
        return None
    from pygments import highlight
    from pygments.formatters import HtmlFormatter
    from pygments.lexers import get_lexer_by_name
    from pygments.util import ClassNotFound

    try:
        lexer = get_lexer_by_name(language, stripall=False)
    except ClassNotFound:
        return None
    formatter = HtmlFormatter(nowrap=False, cssclass="highlight")
    return highlight(text_content(code), lexer, formatter)


def to_dict(node: Node) -> dict[str, Any]:
    """Convert a node to a JSON-ready dictionary."""
    if isinstance(node, Text):
        return {"type": "text", "value": node.value}
    if isinstance(node, Raw):
        return {"type": "raw", "value": node.value}
    if isinstance(node, Component):
        return {
            "type": "component",
            "name": node.name,
            "props": dict(node.props),
            "children": [to_dict(child) for child in node.children],
        }
    return {
        "type": "element",
        "tag": node.tag,
        "attrs": dict(node.attrs),
        "children": [to_dict(child) for child in node.children],
    }

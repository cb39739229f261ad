"""Document rendering for Folio.

The Renderer turns a ContentUnit into a RenderedDocument: it parses the body
markup, resolves every component through the component registry, assigns
heading anchors, and collects a table of contents.

Rendering is deterministic. The output depends only on the unit and the
registry, so rendering the same unit twice gives equal documents.

Key classes:
- Heading: Table-of-contents entry.
- RenderedDocument: Immutable rendered post.
- Renderer: ContentUnit -> RenderedDocument.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime

from .components import ComponentRegistry, default_component_registry
from .content import ContentUnit
from .markup import parse_body
from .nodes import Component, Element, Node, Raw, Text, element, text_content, to_html

HEADING_TAGS = {f"h{level}": level for level in range(1, 7)}


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text."""
    slug = text.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-") or "section"


@dataclass(frozen=True)
class Heading:
    """A heading collected for the table of contents.

    Attributes:
        id: Anchor ID for the heading.
        text: Plain text of the heading.
        level: Heading level (1-6).
    """

    id: str
    text: str
    level: int


@dataclass(frozen=True)
class RenderedDocument:
    """A rendered post.

    Attributes:
        source: The ContentUnit this document was rendered from. Lookup
            only; the document does not own the unit.
        tree: Root ``article`` element of the document tree.
        toc: Headings in document order.
    """

    source: ContentUnit
    tree: Element
    toc: tuple[Heading, ...] = ()

    @property
    def slug(self) -> str:
        return self.source.slug

    @property
    def title(self) -> str:
        return self.source.title

    @property
    def date(self) -> datetime:
        return self.source.date

    @property
    def draft(self) -> bool:
        return self.source.draft

    @property
    def categories(self) -> tuple[str, ...]:
        return self.source.categories

    @property
    def image(self) -> str | None:
        return self.source.metadata.image

    @property
    def excerpt(self) -> str:
        return self.source.metadata.description

    def to_html(self, highlight: bool = True) -> str:
        """Serialize the document body (without the article wrapper)."""
        return to_html(self.tree.children, highlight=highlight)

    @property
    def html(self) -> str:
        return self.to_html()


class _TreeBuilder:
    """Resolves components and heading anchors for one document."""

    def __init__(self, registry: ComponentRegistry, source: str):
        self.registry = registry
        self.source = source
        self.headings: list[Heading] = []
        self._id_counts: dict[str, int] = {}
        self._issued_ids: set[str] = set()

    def build(self, nodes: tuple[Node, ...]) -> tuple[Node, ...]:
        return tuple(self.resolve(node) for node in nodes)

    def resolve(self, node: Node) -> Node:
        if isinstance(node, (Text, Raw)):
            return node
        if isinstance(node, Component):
            component = self.registry.get(node.name, self.source, node.line)
            children = self.build(node.children)
            return component.render(node.prop_map, children, self.source)
        children = self.build(node.children)
        if node.tag in HEADING_TAGS:
            return self._anchor(node, children)
        return Element(node.tag, node.attrs, children)

    def _anchor(self, node: Element, children: tuple[Node, ...]) -> Element:
        text = text_content(children).strip()
        base_id = _generate_heading_id(text)
        heading_id = base_id
        # A suffixed id can collide with a later heading's own text ("Foo 1").
        while heading_id in self._issued_ids:
            self._id_counts[base_id] = self._id_counts.get(base_id, 0) + 1
            heading_id = f"{base_id}-{self._id_counts[base_id]}"
        self._issued_ids.add(heading_id)
        self.headings.append(Heading(heading_id, text, HEADING_TAGS[node.tag]))
        attrs = dict(node.attrs)
        attrs["id"] = heading_id
        return element(node.tag, attrs, children)


class Renderer:
    """Renders ContentUnits into RenderedDocuments.

    A Renderer holds no per-document state, so one instance can be shared
    by worker threads.

    Attributes:
        registry: Components available to post bodies.
    """

    def __init__(self, registry: ComponentRegistry | None = None):
        self.registry = registry or default_component_registry()

    def render(self, unit: ContentUnit) -> RenderedDocument:
        """Render a content unit.

        Args:
            unit: Unit to render.

        Returns:
            RenderedDocument for the unit.

        Raises:
            ParseError: If the body markup is malformed.
            UnknownComponentError: If the body uses an unregistered component.
            ComponentPropsError: If a component is missing required props.
        """
        nodes = parse_body(unit.body, unit.source, unit.body_line)
        builder = _TreeBuilder(self.registry, unit.source)
        children = builder.build(nodes)
        tree = element("article", {"data-slug": unit.slug}, children)
        return RenderedDocument(source=unit, tree=tree, toc=tuple(builder.headings))

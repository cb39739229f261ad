"""Embedded components for Folio.

Components are the named, attributed tags that post bodies embed between
Markdown blocks, such as ``<Notice type="warning">``. Each component turns
its props and already-rendered children into an Element. Components are
looked up by name in a ComponentRegistry, so new ones can be added without
touching the renderer.

Key classes:
- Notice: Callout box with a type (info, note, tip, warning, danger, caution).
- Details: Collapsible section with a summary line.
- Figure: Image with optional caption.
- Badge: Small inline label.
- ComponentRegistry: Name -> component lookup table.
"""

from __future__ import annotations

from collections.abc import Mapping

from .errors import ComponentPropsError, UnknownComponentError
from .nodes import Element, Node, Text, element
from .protocols import ComponentRenderer

NOTICE_TYPES = ("info", "note", "tip", "warning", "danger", "caution")


def _require(props: Mapping[str, str], name: str, prop: str, source: str) -> str:
    value = props.get(prop, "").strip()
    if not value:
        raise ComponentPropsError(source, name, prop, "is required")
    return value


class Notice:
    """Callout box.

    Props:
        type: One of NOTICE_TYPES; anything else falls back to "info".
        title: Optional heading shown above the content.
    """

    name = "Notice"

    def render(
        self, props: Mapping[str, str], children: tuple[Node, ...], source: str = ""
    ) -> Element:
        kind = props.get("type", "info").strip().lower()
        if kind not in NOTICE_TYPES:
            kind = "info"
        body: list[Node] = []
        title = props.get("title")
        if title:
            body.append(element("p", {"class": "notice-title"}, [Text(title)]))
        body.extend(children)
        return element(
            "aside",
            {"class": f"notice notice-{kind}", "data-type": kind, "role": "note"},
            body,
        )


class Details:
    name = "Details"

    def render(
        self, props: Mapping[str, str], children: tuple[Node, ...], source: str = ""
    ) -> Element:
        summary = props.get("summary") or "Details"
        return element(
            "details",
            {"open": "open" if props.get("open") == "true" else None},
            [element("summary", None, [Text(summary)]), *children],
        )


class Figure:
    """Image with an optional caption; ``src`` is required."""

    name = "Figure"

    def render(
        self, props: Mapping[str, str], children: tuple[Node, ...], source: str = ""
    ) -> Element:
        src = _require(props, self.name, "src", source)
        body: list[Node] = [element("img", {"src": src, "alt": props.get("alt", "")})]
        caption = props.get("caption")
        if caption or children:
            caption_nodes = [Text(caption)] if caption else list(children)
            body.append(element("figcaption", None, caption_nodes))
        return element("figure", None, body)


class Badge:
    name = "Badge"

    def render(
        self, props: Mapping[str, str], children: tuple[Node, ...], source: str = ""
    ) -> Element:
        label: tuple[Node, ...] = (Text(props["text"]),) if props.get("text") else children
        if not label:
            raise ComponentPropsError(source, self.name, "text", "is required")
        variant = props.get("variant")
        classes = f"badge badge-{variant}" if variant else "badge"
        return element("span", {"class": classes}, label)


class ComponentRegistry:
    """Registry of components by name.

    Lookups are case-sensitive, matching how components are written in
    the body markup.
    """

    def __init__(self, components: Mapping[str, ComponentRenderer] | None = None):
        self._components: dict[str, ComponentRenderer] = dict(components or {})

    def register(self, name: str, component: ComponentRenderer) -> None:
        """Register (or replace) the component used for ``name``."""
        self._components[name] = component

    def get(self, name: str, source: str = "", line: int | None = None) -> ComponentRenderer:
        """Return the component registered for ``name``.

        Raises:
            UnknownComponentError: If nothing is registered under ``name``.
        """
        try:
            return self._components[name]
        except KeyError:
            raise UnknownComponentError(source, name, line) from None

    def names(self) -> list[str]:
        return sorted(self._components)

    def __contains__(self, name: object) -> bool:
        return name in self._components

    def __len__(self) -> int:
        return len(self._components)


def default_component_registry() -> ComponentRegistry:
    """Create a registry holding the built-in components."""
    registry = ComponentRegistry()
    for component in (Notice(), Details(), Figure(), Badge()):
        registry.register(component.name, component)
    return registry

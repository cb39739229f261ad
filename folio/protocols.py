"""Protocol definitions for Folio.

These protocols describe the extension points of the pipeline. Anything
implementing them can be registered without modifying existing code:

- ComponentRenderer: a named body component (see components.py).
- FieldExtractor: one frontmatter field (see extractors.py).
- TemplateRenderer: turns rendered documents into HTML pages.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .nodes import Element, Node
    from .renderers import RenderedDocument
    from .site import Site


@runtime_checkable
class ComponentRenderer(Protocol):
    """Protocol for components embedded in post bodies."""

    @abstractmethod
    def render(
        self, props: Mapping[str, str], children: tuple[Node, ...], source: str = ""
    ) -> Element:
        """Render a component.

        Args:
            props: Attribute values as written on the tag.
            children: Already-rendered child nodes.
            source: Unit identifier for error messages.

        Returns:
            The element that replaces the component in the document tree.

        Raises:
            ComponentPropsError: If required props are missing or invalid.
        """
        ...


@runtime_checkable
class FieldExtractor(Protocol):
    """Protocol for validating one or more frontmatter fields."""

    @abstractmethod
    def extract(self, frontmatter: Mapping[str, Any], source: str) -> dict[str, Any]:
        """Validate fields and return their normalized values.

        Raises:
            MalformedMetadataError: If a field is missing or invalid.
        """
        ...


@runtime_checkable
class TemplateRenderer(Protocol):
    """Protocol for turning documents and listings into HTML pages."""

    @abstractmethod
    def render_document(self, document: RenderedDocument, site: Site) -> str:
        ...

    @abstractmethod
    def render_listing(self, layout: str, site: Site, **context: Any) -> str:
        ...

"""Error taxonomy for Folio.

Per-unit errors derive from ContentError and carry the identifier of the
content unit that caused them, so one bad post can be reported and skipped
while the rest of the site builds. Collection-level errors (duplicate slugs)
and output errors are fatal for the whole run.

Classes:
    FolioError: Base class for every error raised by the pipeline.
    ContentError: Base class for errors isolated to one content unit.
    MalformedMetadataError: Frontmatter missing or invalid.
    UnknownComponentError: Body references an unregistered component.
    ComponentPropsError: Component used with missing or invalid props.
    ParseError: Body markup could not be parsed.
    UnreadableUnitError: Content file could not be read.
    DuplicateSlugError: Two units resolve to the same slug.
    BuildError: Writing output failed for a document.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


class FolioError(Exception):
    """Base class for all Folio errors."""


class ContentError(FolioError):
    """Error confined to a single content unit.

    Attributes:
        source: Identifier of the offending unit (usually its file path).
        message: Human-readable error message without the source prefix.
    """

    def __init__(self, source: str | Path, message: str):
        self.source = str(source)
        self.message = message
        super().__init__(f"{self.source}: {message}")


class MalformedMetadataError(ContentError):
    """Frontmatter header is missing a required field or holds a bad value.

    Attributes:
        field: Name of the missing or invalid field.
        reason: What was wrong with it.
    """

    def __init__(self, source: str | Path, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(source, f"invalid metadata field '{field}': {reason}")


class UnknownComponentError(ContentError):
    """Body references a component name with no registered renderer."""

    def __init__(self, source: str | Path, name: str, line: int | None = None):
        self.name = name
        self.line = line
        where = f" (line {line})" if line else ""
        super().__init__(source, f"unknown component '{name}'{where}")


class ComponentPropsError(ContentError):
    """A registered component was given missing or invalid props."""

    def __init__(self, source: str | Path, name: str, prop: str, reason: str):
        self.name = name
        self.prop = prop
        self.reason = reason
        super().__init__(source, f"component '{name}' prop '{prop}': {reason}")


class ParseError(ContentError):
    """Body markup is malformed.

    Attributes:
        line: 1-based line in the source file.
        column: 1-based column in that line.
        reason: Description of the problem.
    """

    def __init__(self, source: str | Path, line: int, column: int, reason: str):
        self.line = line
        self.column = column
        self.reason = reason
        super().__init__(source, f"parse error at line {line}, column {column}: {reason}")


class UnreadableUnitError(ContentError):
    """Content file exists in the listing but cannot be read."""

    def __init__(self, source: str | Path, reason: str):
        self.reason = reason
        super().__init__(source, f"cannot read file: {reason}")


class DuplicateSlugError(FolioError):
    """Two or more units share a slug, so routing is ambiguous."""

    def __init__(self, slug: str, sources: Iterable[str | Path]):
        self.slug = slug
        self.sources = [str(s) for s in sources]
        joined = ", ".join(self.sources)
        super().__init__(f"duplicate slug '{slug}' used by: {joined}")


class BuildError(FolioError):
    """Error while writing site output, with file context.

    Attributes:
        source_path: Path to the source (or template) that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")

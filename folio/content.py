"""Content loading for Folio.

This module discovers content units (Markdown/MDX posts) on disk, splits
each into its YAML frontmatter header and body, validates the metadata, and
produces immutable ContentUnit records. Loading only reads the filesystem.

Drafts are loaded exactly like published posts; filtering happens in the
Site Assembler.

Key classes:
- ContentUnit: One post: slug, metadata and raw body.
- UnitFailure: A unit that could not be loaded or rendered.
- LoadResult: Units plus failures from a batch load.
- FileContentLoader: Discovers content files in a directory.
- ContentLoader: Builds ContentUnit records from files.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path

from .errors import ContentError, MalformedMetadataError, ParseError, UnreadableUnitError
from .extractors import Metadata, MetadataParser, default_metadata_parser, extract_frontmatter
from .utils import first_paragraph, is_content_file, is_hidden_path, slugify

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContentUnit:
    """A single post.

    Attributes:
        slug: Unique identifier derived from the filename.
        metadata: Validated frontmatter.
        body: Raw body markup, frontmatter removed.
        path: Source file.
        body_line: 1-based line in the file where the body starts.
    """

    slug: str
    metadata: Metadata
    body: str
    path: Path = field(default=Path("."), compare=False)
    body_line: int = 1

    @property
    def title(self) -> str:
        return self.metadata.title

    @property
    def date(self) -> datetime:
        return self.metadata.date

    @property
    def draft(self) -> bool:
        return self.metadata.draft

    @property
    def categories(self) -> tuple[str, ...]:
        return self.metadata.categories

    @property
    def source(self) -> str:
        """Identifier used in error messages."""
        return str(self.path) if self.path != Path(".") else self.slug


@dataclass(frozen=True)
class UnitFailure:
    """A content unit skipped because of a per-unit error.

    Attributes:
        path: Source file of the unit.
        error: The error that caused it to be skipped.
    """

    path: Path
    error: ContentError

    def __str__(self) -> str:
        return str(self.error)


@dataclass
class LoadResult:
    units: list[ContentUnit] = field(default_factory=list)
    failures: list[UnitFailure] = field(default_factory=list)


def derive_slug(path: Path, content_dir: Path | None = None) -> str:
    """Derive a unit's slug from its filename.

    Drops any YYYY-MM-DD- prefix. Files named ``index`` take the name of
    their parent directory, so ``posts/vault-plugin/index.mdx`` becomes
    ``vault-plugin``.

    Args:
        path: Content file path.
        content_dir: Content root; an index file directly inside it has
            no usable directory name.

    Returns:
        Slug, possibly empty when nothing usable is left.
    """
    stem = path.stem
    if stem.lower() == "index":
        parent = path.parent
        if content_dir is not None and parent.resolve() == content_dir.resolve():
            return ""
        stem = parent.name
    return slugify(stem)


class FileContentLoader:
    """Discovers content files in a directory.

    Attributes:
        content_dir: Directory containing content units.
    """

    def __init__(self, content_dir: Path):
        self.content_dir = content_dir

    def iter_files(self) -> list[Path]:
        """List content files in deterministic order.

        Files and directories whose name starts with ``_`` or ``.`` are
        skipped.

        Returns:
            Sorted list of paths to ``.md`` and ``.mdx`` files.
        """
        files: list[Path] = []
        for path in self.content_dir.rglob("*"):
            if path.is_dir():
                continue
            rel = path.relative_to(self.content_dir)
            if is_hidden_path(rel):
                continue
            if is_content_file(path):
                files.append(path)
        return sorted(files)


class ContentLoader:
    """Builds ContentUnit records from content files.

    Attributes:
        content_dir: Directory containing content units.
        file_loader: File discovery helper.
        metadata_parser: Frontmatter validator.
    """

    def __init__(
        self,
        content_dir: Path,
        file_loader: FileContentLoader | None = None,
        metadata_parser: MetadataParser | None = None,
    ):
        self.content_dir = content_dir
        self.file_loader = file_loader or FileContentLoader(content_dir)
        self.metadata_parser = metadata_parser or default_metadata_parser

    def iter_files(self) -> list[Path]:
        return self.file_loader.iter_files()

    def load_unit(self, path: Path) -> ContentUnit:
        """Load one content unit.

        Args:
            path: Content file.

        Returns:
            ContentUnit with a non-empty slug and title.

        Raises:
            MalformedMetadataError: If the header or any field is invalid,
                or no slug can be derived from the filename.
            UnreadableUnitError: If the file cannot be read.
            ParseError: If the file is not valid UTF-8.
        """
        source = str(path)
        try:
            text = path.read_text(encoding="utf-8").replace("\r\n", "\n")
        except UnicodeDecodeError as exc:
            raise ParseError(source, 1, 1, f"file is not valid UTF-8 ({exc.reason})") from exc
        except OSError as exc:
            raise UnreadableUnitError(source, exc.strerror or str(exc)) from exc
        frontmatter, body, body_line = extract_frontmatter(text, source)
        metadata = self.metadata_parser.parse(frontmatter, source)
        slug = derive_slug(path, self.content_dir)
        if not slug:
            raise MalformedMetadataError(
                source, "slug", f"cannot derive a slug from filename '{path.name}'"
            )
        if not metadata.description:
            metadata = replace(metadata, description=first_paragraph(body))
        logger.debug("Loaded %s as '%s'", path, slug)
        return ContentUnit(
            slug=slug, metadata=metadata, body=body, path=path, body_line=body_line
        )

    def load(self) -> LoadResult:
        """Load every content unit in the directory.

        Units with malformed metadata are recorded as failures and
        skipped; the rest still load.

        Returns:
            LoadResult with units in file order and any failures.
        """
        result = LoadResult()
        for path in self.iter_files():
            try:
                result.units.append(self.load_unit(path))
            except ContentError as exc:
                logger.warning("Skipping %s: %s", path, exc.message)
                result.failures.append(UnitFailure(path, exc))
        return result

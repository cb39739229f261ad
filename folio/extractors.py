"""Metadata extractors for Folio.

This module parses the YAML frontmatter header of a content unit and
validates each known field. Each field is handled by its own extractor,
and CompositeMetadataExtractor runs them all and merges their results.

Key functions and classes:
- extract_frontmatter: Split raw text into (frontmatter, body, body_line).
- TitleExtractor, DateExtractor, CategoriesExtractor, ImageExtractor,
  DraftExtractor, DescriptionExtractor: One field each.
- CompositeMetadataExtractor: Runs the field extractors in order.
- MetadataParser: Builds a validated Metadata record.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

import yaml

from .errors import MalformedMetadataError

FRONTMATTER_DELIMITER = "---"

KNOWN_FIELDS = ("title", "date", "categories", "image", "draft", "description")


@dataclass(frozen=True)
class Metadata:
    """Validated frontmatter of a content unit.

    Attributes:
        title: Human-readable title.
        date: Publication timestamp, timezone-aware (UTC).
        categories: Ordered, de-duplicated category names.
        image: Optional cover image path.
        draft: Whether the unit is excluded from the published index.
        description: Short summary; empty until filled from the body.
        extra: Any other frontmatter keys, passed through to templates.
    """

    title: str
    date: datetime
    categories: tuple[str, ...] = ()
    image: str | None = None
    draft: bool = False
    description: str = ""
    extra: Mapping[str, Any] = field(default_factory=dict, compare=False)


def extract_frontmatter(text: str, source: str) -> tuple[dict[str, Any], str, int]:
    """Split a content file into its YAML header and body.

    Args:
        text: Raw file content.
        source: Unit identifier used in error messages.

    Returns:
        Tuple of (frontmatter dict, body text, 1-based line where the body starts).

    Raises:
        MalformedMetadataError: If the header is missing, unterminated,
            not valid YAML, or not a mapping.
    """
    lines = text.lstrip("\ufeff").split("\n")
    if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
        raise MalformedMetadataError(
            source, "frontmatter", "file must start with a '---' metadata header"
        )
    closing = None
    for index in range(1, len(lines)):
        if lines[index].strip() == FRONTMATTER_DELIMITER:
            closing = index
            break
    if closing is None:
        raise MalformedMetadataError(
            source, "frontmatter", "metadata header is not closed with '---'"
        )
    header = "\n".join(lines[1:closing])
    try:
        data = yaml.safe_load(header)
    except yaml.YAMLError as exc:
        raise MalformedMetadataError(
            source, "frontmatter", f"invalid YAML: {exc}"
        ) from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MalformedMetadataError(
            source, "frontmatter", "metadata header must be a mapping of fields"
        )
    body = "\n".join(lines[closing + 1 :])
    return data, body, closing + 2


def parse_timestamp(value: Any) -> datetime | None:
    """Convert a frontmatter date value to an aware UTC datetime.

    Accepts ISO-8601 strings, YAML dates and YAML datetimes. Date-only
    values become midnight and naive values are taken as UTC.

    Returns:
        The parsed datetime, or None if the value cannot be interpreted.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class TitleExtractor:
    """Requires a non-empty string title."""

    def extract(self, frontmatter: Mapping[str, Any], source: str) -> dict[str, Any]:
        if "title" not in frontmatter:
            raise MalformedMetadataError(source, "title", "required field is missing")
        title = frontmatter["title"]
        if not isinstance(title, str) or not title.strip():
            raise MalformedMetadataError(source, "title", "must be a non-empty string")
        return {"title": title.strip()}


class DateExtractor:
    """Requires an ISO-8601 publication date."""

    def extract(self, frontmatter: Mapping[str, Any], source: str) -> dict[str, Any]:
        if "date" not in frontmatter:
            raise MalformedMetadataError(source, "date", "required field is missing")
        raw = frontmatter["date"]
        parsed = parse_timestamp(raw)
        if parsed is None:
            raise MalformedMetadataError(
                source, "date", f"expected an ISO-8601 date, got {raw!r}"
            )
        return {"date": parsed}


class CategoriesExtractor:
    """Reads an ordered list of category names.

    A single string is accepted as a one-element list. Duplicates are
    dropped, keeping the first occurrence.
    """

    def extract(self, frontmatter: Mapping[str, Any], source: str) -> dict[str, Any]:
        raw = frontmatter.get("categories")
        if raw is None:
            return {"categories": ()}
        if isinstance(raw, str):
            raw = [raw]
        if not isinstance(raw, (list, tuple)):
            raise MalformedMetadataError(
                source, "categories", "must be a list of strings"
            )
        seen: list[str] = []
        for item in raw:
            if not isinstance(item, str) or not item.strip():
                raise MalformedMetadataError(
                    source, "categories", f"invalid category {item!r}"
                )
            name = item.strip()
            if name not in seen:
                seen.append(name)
        return {"categories": tuple(seen)}


class ImageExtractor:
    def extract(self, frontmatter: Mapping[str, Any], source: str) -> dict[str, Any]:
        image = frontmatter.get("image")
        if image is None:
            return {"image": None}
        if not isinstance(image, str) or not image.strip():
            raise MalformedMetadataError(source, "image", "must be a path string")
        return {"image": image.strip()}


class DraftExtractor:
    """Reads the draft flag; only real YAML booleans are accepted."""

    def extract(self, frontmatter: Mapping[str, Any], source: str) -> dict[str, Any]:
        draft = frontmatter.get("draft", False)
        if draft is None:
            draft = False
        if not isinstance(draft, bool):
            raise MalformedMetadataError(
                source, "draft", f"must be true or false, got {draft!r}"
            )
        return {"draft": draft}


class DescriptionExtractor:
    def extract(self, frontmatter: Mapping[str, Any], source: str) -> dict[str, Any]:
        description = frontmatter.get("description")
        if description is None:
            return {"description": ""}
        if not isinstance(description, str):
            raise MalformedMetadataError(source, "description", "must be a string")
        return {"description": " ".join(description.split())}


class CompositeMetadataExtractor:
    """Combines multiple field extractors.

    Runs every registered extractor over the frontmatter and merges their
    results. Later extractors can override earlier ones.
    """

    def __init__(self, extractors: list | None = None):
        """Initialize with a list of extractors.

        Args:
            extractors: Field extractor implementations. If None, uses the
                default set for the known fields.
        """
        if extractors is None:
            self._extractors = [
                TitleExtractor(),
                DateExtractor(),
                CategoriesExtractor(),
                ImageExtractor(),
                DraftExtractor(),
                DescriptionExtractor(),
            ]
        else:
            self._extractors = list(extractors)

    def add_extractor(self, extractor) -> None:
        self._extractors.append(extractor)

    def extract(self, frontmatter: Mapping[str, Any], source: str) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for extractor in self._extractors:
            result.update(extractor.extract(frontmatter, source))
        return result


class MetadataParser:
    """Builds validated Metadata records from raw frontmatter."""

    def __init__(self, extractor: CompositeMetadataExtractor | None = None):
        self.extractor = extractor or CompositeMetadataExtractor()

    def parse(self, frontmatter: Mapping[str, Any], source: str) -> Metadata:
        """Validate frontmatter and build a Metadata record.

        Args:
            frontmatter: Parsed YAML header.
            source: Unit identifier used in error messages.

        Returns:
            Metadata record.

        Raises:
            MalformedMetadataError: On the first missing or invalid field.
        """
        values = self.extractor.extract(frontmatter, source)
        extra = {k: v for k, v in frontmatter.items() if k not in KNOWN_FIELDS}
        return Metadata(
            title=values["title"],
            date=values["date"],
            categories=values.get("categories", ()),
            image=values.get("image"),
            draft=values.get("draft", False),
            description=values.get("description", ""),
            extra=extra,
        )


default_metadata_parser = MetadataParser()

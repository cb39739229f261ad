"""Body markup parsing for Folio.

A post body is Markdown interleaved with named components written as
JSX-style tags::

    import Notice from "../components/Notice.astro"

    Some **Markdown** text.

    <Notice type="warning" title="Heads up">
      Components can wrap more Markdown, including `code` and
      [links](https://example.com).
    </Notice>

Parsing happens in two layers. BodyParser scans lines, tracking fenced code
blocks so nothing inside a fence is ever read as a component, drops
top-level import/export statements, and cuts out block components. The
Markdown between components is handed to mistune's AST renderer and the
tokens are converted into immutable nodes by _TokenConverter, which also
picks up inline self-closing components such as ``<Badge text="new" />``.

Errors carry file-relative line and column numbers.
"""

from __future__ import annotations

import bisect
import html
import re
import textwrap
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import mistune

from .errors import ParseError
from .nodes import Component, Node, Raw, Text, element, text_content

MARKDOWN_PLUGINS = ["strikethrough", "footnotes", "table", "url"]

FENCE_RE = re.compile(r"^( {0,3})(`{3,}|~{3,})(.*)$")
ESM_RE = re.compile(r"^(?:import|export)\s")
TAG_NAME_RE = re.compile(r"[A-Z][A-Za-z0-9_.]*")
ATTR_NAME_RE = re.compile(r"[A-Za-z_:][A-Za-z0-9_:.\-]*")
CLOSE_TAIL_RE = re.compile(r"\s*>")
INLINE_COMPONENT_RE = re.compile(r"</?[A-Z]")

# Opening tags indented this far are Markdown code, not components.
MAX_COMPONENT_INDENT = 3


@dataclass(frozen=True)
class Tag:
    """A parsed component opening tag.

    Attributes:
        name: Component name.
        props: Attribute pairs in source order.
        start: Offset of the "<".
        end: Offset just past the closing ">" or "/>".
        self_closing: True for ``<Name ... />``.
    """

    name: str
    props: tuple[tuple[str, str], ...]
    start: int
    end: int
    self_closing: bool


def create_markdown() -> mistune.Markdown:
    """Create a mistune parser that returns AST tokens."""
    return mistune.create_markdown(renderer="ast", plugins=MARKDOWN_PLUGINS)


def parse_body(body: str, source: str, first_line: int = 1) -> tuple[Node, ...]:
    """Parse a post body into a tuple of nodes.

    Args:
        body: Body markup (frontmatter already removed).
        source: Unit identifier for error messages.
        first_line: File line number of the first body line.

    Returns:
        Top-level nodes. Components are left unresolved.

    Raises:
        ParseError: If the markup is malformed.
    """
    return BodyParser(body, source, first_line).parse()


def _is_fence(match: re.Match | None) -> bool:
    if match is None:
        return False
    # A backtick fence's info string cannot itself contain backticks.
    return not (match.group(2).startswith("`") and "`" in match.group(3))


def _expression_value(expression: str) -> str:
    value = expression.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'`":
        return value[1:-1]
    return value


def _merge_text(nodes: list[Node]) -> list[Node]:
    merged: list[Node] = []
    for node in nodes:
        if isinstance(node, Text) and merged and isinstance(merged[-1], Text):
            merged[-1] = Text(merged[-1].value + node.value)
        else:
            merged.append(node)
    return merged


class BodyParser:
    """Line scanner that separates Markdown from block components.

    Attributes:
        text: Markup being parsed.
        source: Unit identifier for error messages.
        first_line: File line number of the first line of ``text``.
        column_offset: Columns removed from each line before parsing
            (non-zero for dedented component children).
        depth: Component nesting depth; import/export lines are only
            recognised at depth 0.
    """

    def __init__(
        self,
        text: str,
        source: str,
        first_line: int = 1,
        column_offset: int = 0,
        depth: int = 0,
        markdown: mistune.Markdown | None = None,
    ):
        self.text = text
        self.source = source
        self.first_line = first_line
        self.column_offset = column_offset
        self.depth = depth
        self.markdown = markdown or create_markdown()
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", text)]

    def position(self, offset: int) -> tuple[int, int]:
        """Map an offset in ``text`` to a 1-based (line, column) in the file."""
        index = bisect.bisect_right(self._line_starts, offset) - 1
        column = offset - self._line_starts[index] + 1 + self.column_offset
        return self.first_line + index, column

    def error(self, offset: int, reason: str) -> ParseError:
        line, column = self.position(offset)
        return ParseError(self.source, line, column, reason)

    def _line_end(self, pos: int) -> int:
        end = self.text.find("\n", pos)
        return len(self.text) if end == -1 else end

    def _after_line(self, offset: int) -> int:
        """Skip to the next line if only whitespace follows ``offset``."""
        line_end = self._line_end(offset)
        if self.text[offset:line_end].strip():
            return offset
        return line_end + 1

    def parse(self) -> tuple[Node, ...]:
        nodes: list[Node] = []
        chunk_start: int | None = None
        blank_before = True
        pos = 0
        size = len(self.text)
        while pos < size:
            line_end = self._line_end(pos)
            line = self.text[pos:line_end]
            stripped = line.lstrip()
            indent = len(line) - len(stripped)

            fence = FENCE_RE.match(line)
            if _is_fence(fence):
                if chunk_start is None:
                    chunk_start = pos
                pos = self._skip_fence(pos, fence)
                blank_before = False
                continue

            if self.depth == 0 and blank_before and ESM_RE.match(line):
                nodes.extend(self._flush(chunk_start, pos))
                chunk_start = None
                pos = self._skip_statement(pos)
                blank_before = True
                continue

            if indent <= MAX_COMPONENT_INDENT and stripped.startswith("</"):
                stray = TAG_NAME_RE.match(stripped, 2)
                if stray:
                    raise self.error(
                        pos + indent, f"unexpected closing tag </{stray.group(0)}>"
                    )

            if (
                indent <= MAX_COMPONENT_INDENT
                and stripped.startswith("<")
                and TAG_NAME_RE.match(stripped, 1)
            ):
                tag = self._parse_tag(pos + indent)
                trailing = self.text[tag.end : self._line_end(tag.end)].strip()
                if not (tag.self_closing and trailing):
                    nodes.extend(self._flush(chunk_start, pos))
                    chunk_start = None
                    component, pos = self._block_component(tag)
                    nodes.append(component)
                    blank_before = True
                    continue

            if chunk_start is None:
                chunk_start = pos
            blank_before = not line.strip()
            pos = line_end + 1

        nodes.extend(self._flush(chunk_start, size))
        return tuple(nodes)

    def _skip_fence(self, pos: int, fence: re.Match) -> int:
        marker = fence.group(2)
        closing = re.compile(
            r"^ {0,3}" + re.escape(marker[0]) + "{" + str(len(marker)) + r",}\s*$"
        )
        cursor = self._line_end(pos) + 1
        while cursor < len(self.text):
            line_end = self._line_end(cursor)
            if closing.match(self.text[cursor:line_end]):
                return line_end + 1
            cursor = line_end + 1
        raise self.error(pos + len(fence.group(1)), f"unterminated code fence {marker}")

    def _skip_statement(self, pos: int) -> int:
        """Skip an import/export statement, which runs to the next blank line."""
        while pos < len(self.text):
            line_end = self._line_end(pos)
            line = self.text[pos:line_end]
            pos = line_end + 1
            if not line.strip():
                break
        return pos

    def _parse_tag(self, start: int) -> Tag:
        text = self.text
        size = len(text)
        name_match = TAG_NAME_RE.match(text, start + 1)
        if name_match is None:
            raise self.error(start, "expected a component name after '<'")
        name = name_match.group(0)
        pos = name_match.end()
        props: list[tuple[str, str]] = []
        seen: set[str] = set()
        while True:
            while pos < size and text[pos].isspace():
                pos += 1
            if pos >= size:
                raise self.error(start, f"unterminated tag <{name}>")
            if text.startswith("/>", pos):
                return Tag(name, tuple(props), start, pos + 2, True)
            if text[pos] == ">":
                return Tag(name, tuple(props), start, pos + 1, False)
            if text.startswith("{...", pos):
                raise self.error(pos, f"spread attributes are not supported on <{name}>")
            attr = ATTR_NAME_RE.match(text, pos)
            if attr is None:
                raise self.error(
                    pos, f"unexpected character {text[pos]!r} in <{name}> tag"
                )
            key = attr.group(0)
            if key in seen:
                raise self.error(pos, f"duplicate attribute '{key}' on <{name}>")
            seen.add(key)
            pos = attr.end()
            ahead = pos
            while ahead < size and text[ahead].isspace():
                ahead += 1
            if ahead < size and text[ahead] == "=":
                pos = ahead + 1
                while pos < size and text[pos].isspace():
                    pos += 1
                value, pos = self._parse_value(pos, name)
            else:
                value = "true"
            props.append((key, value))

    def _parse_value(self, pos: int, name: str) -> tuple[str, int]:
        text = self.text
        if pos >= len(text):
            raise self.error(pos, f"missing attribute value in <{name}> tag")
        opener = text[pos]
        if opener in "\"'":
            end = text.find(opener, pos + 1)
            if end == -1:
                raise self.error(pos, f"unterminated attribute value in <{name}> tag")
            return text[pos + 1 : end], end + 1
        if opener == "{":
            depth = 0
            for index in range(pos, len(text)):
                char = text[index]
                if char == "{":
                    depth += 1
                elif char == "}":
                    depth -= 1
                    if depth == 0:
                        return _expression_value(text[pos + 1 : index]), index + 1
            raise self.error(pos, f"unterminated attribute expression in <{name}> tag")
        raise self.error(pos, f"expected a quoted attribute value in <{name}> tag")

    def _block_component(self, tag: Tag) -> tuple[Component, int]:
        line, _ = self.position(tag.start)
        if tag.self_closing:
            return Component(tag.name, tag.props, (), line), self._after_line(tag.end)
        close_start, close_end = self._find_close(tag)
        children = self._parse_children(tag.end, close_start)
        component = Component(tag.name, tag.props, children, line)
        return component, self._after_line(close_end)

    def _find_close(self, tag: Tag) -> tuple[int, int]:
        """Find the closing tag matching ``tag``, counting nested same-name tags.

        Returns:
            Offsets of the closing tag's "<" and just past its ">".
        """
        pattern = re.compile(r"<(/?)" + re.escape(tag.name) + r"(?=[\s/>])")
        size = len(self.text)
        depth = 1
        cursor = tag.end
        at_line_start = False
        while cursor < size:
            line_end = self._line_end(cursor)
            if at_line_start:
                fence = FENCE_RE.match(self.text[cursor:line_end])
                if _is_fence(fence):
                    cursor = self._skip_fence(cursor, fence)
                    continue
            match = pattern.search(self.text, cursor, min(size, line_end + 1))
            if match is None:
                cursor = line_end + 1
                at_line_start = True
                continue
            if match.group(1):
                tail = CLOSE_TAIL_RE.match(self.text, match.end())
                if tail is None:
                    raise self.error(match.start(), f"malformed closing tag </{tag.name}")
                depth -= 1
                if depth == 0:
                    return match.start(), tail.end()
                cursor = tail.end()
            else:
                nested = self._parse_tag(match.start())
                if not nested.self_closing:
                    depth += 1
                cursor = nested.end
            at_line_start = False
        raise self.error(tag.start, f"component <{tag.name}> is never closed")

    def _parse_children(self, start: int, end: int) -> tuple[Node, ...]:
        content = self.text[start:end]
        if not content.strip():
            return ()
        newline = content.find("\n")
        if newline != -1 and not content[:newline].strip():
            start += newline + 1
            content = content[newline + 1 :]
        dedented = textwrap.dedent(content)
        shift = 0
        for original, trimmed in zip(content.splitlines(), dedented.splitlines()):
            if original.strip():
                shift = len(original) - len(trimmed)
                break
        line, column = self.position(start)
        child = BodyParser(
            dedented,
            self.source,
            first_line=line,
            column_offset=column - 1 + shift,
            depth=self.depth + 1,
            markdown=self.markdown,
        )
        return child.parse()

    def _flush(self, start: int | None, end: int) -> list[Node]:
        if start is None:
            return []
        chunk = self.text[start:end]
        if not chunk.strip():
            return []
        tokens = self.markdown(chunk)
        return _TokenConverter(self, start).blocks(tokens)


class _TokenConverter:
    """Converts mistune AST tokens into document nodes.

    Attributes:
        parser: Owning BodyParser, used to locate inline components.
        cursor: Offset in the parser text where the next inline tag
            search starts.
    """

    def __init__(self, parser: BodyParser, offset: int):
        self.parser = parser
        self.cursor = offset

    def blocks(self, tokens: Sequence[dict[str, Any]]) -> list[Node]:
        nodes: list[Node] = []
        for token in tokens:
            nodes.extend(self.block(token))
        return nodes

    def block(self, token: dict[str, Any]) -> list[Node]:
        kind = token["type"]
        attrs = token.get("attrs") or {}
        children = token.get("children") or []

        if kind == "blank_line":
            return []
        if kind == "paragraph":
            return [element("p", None, self.inlines(children))]
        if kind == "heading":
            return [element(f"h{attrs.get('level', 1)}", None, self.inlines(children))]
        if kind == "block_text":
            return self.inlines(children)
        if kind == "block_code":
            info = (attrs.get("info") or "").strip()
            language = info.split()[0] if info else None
            code = element(
                "code",
                {"class": f"language-{language}" if language else None},
                [Text(token.get("raw", ""))],
            )
            return [element("pre", None, [code])]
        if kind == "block_html":
            return [Raw(token.get("raw", ""))]
        if kind == "block_quote":
            return [element("blockquote", None, self.blocks(children))]
        if kind == "thematic_break":
            return [element("hr")]
        if kind == "list":
            ordered = bool(attrs.get("ordered"))
            start = attrs.get("start")
            list_attrs = {"start": str(start)} if ordered and start not in (None, 1) else None
            return [element("ol" if ordered else "ul", list_attrs, self.blocks(children))]
        if kind == "list_item":
            return [element("li", None, self.blocks(children))]
        if kind == "table":
            return [element("table", None, self.blocks(children))]
        if kind == "table_head":
            return [element("thead", None, [element("tr", None, self.blocks(children))])]
        if kind == "table_body":
            return [element("tbody", None, self.blocks(children))]
        if kind == "table_row":
            return [element("tr", None, self.blocks(children))]
        if kind == "table_cell":
            align = attrs.get("align")
            return [
                element(
                    "th" if attrs.get("head") else "td",
                    {"style": f"text-align:{align}" if align else None},
                    self.inlines(children),
                )
            ]
        if kind == "footnotes":
            return [
                element(
                    "section",
                    {"class": "footnotes"},
                    [element("ol", None, self.blocks(children))],
                )
            ]
        if kind == "footnote_item":
            key = attrs.get("key", "")
            return [element("li", {"id": f"fn-{key}"}, self.blocks(children))]
        if children:
            return self.blocks(children)
        if "raw" in token:
            return [Text(token["raw"])]
        return []

    def inlines(self, tokens: Sequence[dict[str, Any]]) -> list[Node]:
        nodes: list[Node] = []
        index = 0
        while index < len(tokens):
            token = tokens[index]
            if token["type"] == "inline_html" and INLINE_COMPONENT_RE.match(token["raw"]):
                component, index = self.inline_component(tokens, index)
                nodes.append(component)
                continue
            nodes.extend(self.inline(token))
            index += 1
        return _merge_text(nodes)

    def inline(self, token: dict[str, Any]) -> list[Node]:
        kind = token["type"]
        attrs = token.get("attrs") or {}
        children = token.get("children") or []

        if kind == "text":
            return [Text(html.unescape(token.get("raw", "")))]
        if kind == "codespan":
            return [element("code", None, [Text(token.get("raw", ""))])]
        if kind == "emphasis":
            return [element("em", None, self.inlines(children))]
        if kind == "strong":
            return [element("strong", None, self.inlines(children))]
        if kind == "strikethrough":
            return [element("del", None, self.inlines(children))]
        if kind == "link":
            return [
                element(
                    "a",
                    {"href": attrs.get("url", ""), "title": attrs.get("title")},
                    self.inlines(children),
                )
            ]
        if kind == "image":
            return [
                element(
                    "img",
                    {
                        "src": attrs.get("url", ""),
                        "alt": text_content(self.inlines(children)),
                        "title": attrs.get("title"),
                    },
                )
            ]
        if kind == "linebreak":
            return [element("br")]
        if kind == "softbreak":
            return [Text("\n")]
        if kind == "inline_html":
            return [Raw(token.get("raw", ""))]
        if kind == "footnote_ref":
            key = token.get("raw", "")
            number = attrs.get("index", key)
            link = element("a", {"href": f"#fn-{key}"}, [Text(str(number))])
            return [element("sup", {"class": "footnote-ref", "id": f"fnref-{key}"}, [link])]
        if children:
            return self.inlines(children)
        if "raw" in token:
            return [Text(token["raw"])]
        return []

    def _locate(self, raw: str) -> int | None:
        offset = self.parser.text.find(raw, self.cursor)
        if offset == -1:
            return None
        self.cursor = offset + len(raw)
        return offset

    def inline_component(
        self, tokens: Sequence[dict[str, Any]], index: int
    ) -> tuple[Component, int]:
        """Build a Component from an inline tag and, if open, its siblings.

        Returns:
            The component and the index of the first token after it.
        """
        raw = tokens[index]["raw"]
        offset = self._locate(raw)
        if offset is None:
            line, column = self.parser.position(self.cursor)
            owner = BodyParser(
                raw, self.parser.source, line, column - 1, markdown=self.parser.markdown
            )
            offset = 0
        else:
            owner = self.parser
        if raw.startswith("</"):
            raise owner.error(offset, f"unexpected closing tag {raw.strip()}")
        tag = owner._parse_tag(offset)
        line, _ = owner.position(offset)
        if tag.self_closing:
            return Component(tag.name, tag.props, (), line), index + 1

        closing = re.compile(r"</" + re.escape(tag.name) + r"\s*>$")
        opening = re.compile(r"<" + re.escape(tag.name) + r"(?=[\s/>])")
        depth = 1
        for position in range(index + 1, len(tokens)):
            token = tokens[position]
            if token["type"] != "inline_html":
                continue
            candidate = token["raw"].strip()
            if closing.match(candidate):
                depth -= 1
                if depth == 0:
                    children = self.inlines(tokens[index + 1 : position])
                    return Component(tag.name, tag.props, tuple(children), line), position + 1
            elif opening.match(candidate) and not candidate.endswith("/>"):
                depth += 1
        raise owner.error(offset, f"component <{tag.name}> is never closed")

"""A report handler that draws diagnostics with boxes, gutters and arrows."""

from __future__ import annotations

import dataclasses
import enum
import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from itertools import cycle
from typing import Optional, Union

from wcwidth import wcwidth

from diagnostica.layout import FancySpan, SourceLine, char_widths, split_lines, visual_offset
from diagnostica.protocol import (
    Diagnostic,
    LabeledSpan,
    Severity,
    SourceCode,
    SourceReadError,
    SourceSpan,
    SpanContents,
    as_diagnostic,
    iter_causes,
)
from diagnostica.theme import GraphicalTheme, Style

_ESCAPE = r"\x1b\[[0-?]*[ -/]*[@-~]|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"
_ATOM_RE = re.compile(_ESCAPE + "|.", re.DOTALL)
_WORD_RE = re.compile(r"([^ ]*)( *)")

_RELATED_PREFIXES = {
    Severity.ERROR: "Error: ",
    Severity.WARNING: "Warning: ",
    Severity.ADVICE: "Advice: ",
}


def _atom_width(atom: str) -> int:
    if atom.startswith("\x1b"):
        return 0
    return max(wcwidth(atom), 0)


def _display_width(text: str) -> int:
    """Width of ``text`` on screen, ignoring terminal escape sequences."""
    return sum(_atom_width(atom) for atom in _ATOM_RE.findall(text))


def _break_word(content: str, limit: int) -> list[str]:
    if _display_width(content) <= limit:
        return [content]
    pieces: list[str] = []
    current: list[str] = []
    width = 0
    for atom in _ATOM_RE.findall(content):
        atom_width = _atom_width(atom)
        if width and width + atom_width > limit:
            pieces.append("".join(current))
            current = []
            width = 0
        current.append(atom)
        width += atom_width
    pieces.append("".join(current))
    return pieces


def _wrap_line(line: str, width: int, indent: str, subsequent_indent: str) -> list[str]:
    first_width = max(width - _display_width(indent), 0)
    rest_width = max(width - _display_width(subsequent_indent), 0)

    words: list[tuple[str, str]] = []
    for match in _WORD_RE.finditer(line):
        if not match.group(0):
            continue
        content, space = match.groups()
        pieces = _break_word(content, max(rest_width, 1))
        words.extend((piece, "") for piece in pieces[:-1])
        words.append((pieces[-1], space))

    rows: list[list[tuple[str, str]]] = [[]]
    used = 0
    for content, space in words:
        limit = first_width if len(rows) == 1 else rest_width
        content_width = _display_width(content)
        if rows[-1] and used + content_width > limit:
            rows.append([])
            used = 0
        rows[-1].append((content, space))
        used += content_width + len(space)

    result = []
    for number, row in enumerate(rows):
        prefix = indent if number == 0 else subsequent_indent
        body = "".join(content + space for content, space in row[:-1])
        if row:
            body += row[-1][0]
        result.append(prefix + body)
    return result


def _fill(text: str, width: int, initial_indent: str, subsequent_indent: str) -> str:
    """Wrap ``text`` to ``width`` columns, keeping its own line breaks."""
    lines: list[str] = []
    for raw in text.split("\n"):
        indent = initial_indent if not lines else subsequent_indent
        lines.extend(_wrap_line(raw, width, indent, subsequent_indent))
    return "\n".join(lines)


def _severity(diagnostic: Diagnostic) -> Severity:
    return Severity.ERROR if diagnostic.severity is None else Severity(diagnostic.severity)


class LinkStyle(enum.Enum):
    """How a diagnostic's URL is shown in the header."""

    NONE = "none"
    LINK = "link"
    TEXT = "text"


@dataclass(frozen=True)
class GraphicalReportHandler:
    """Renders diagnostics graphically, with colours and drawing characters.

    The ``with_*`` methods return a new handler.
    """

    theme: GraphicalTheme = field(default_factory=GraphicalTheme.default)
    links: LinkStyle = LinkStyle.LINK
    width: int = 200
    footer: Optional[str] = None
    context_lines: int = 1
    tab_width: int = 4
    cause_chain: bool = True

    def with_tab_width(self, width: int) -> "GraphicalReportHandler":
        if width <= 0:
            raise ValueError("tab width must be positive")
        return dataclasses.replace(self, tab_width=width)

    def with_links(self, links: bool) -> "GraphicalReportHandler":
        """Show the URL as a terminal hyperlink, or else as plain text."""
        return dataclasses.replace(self, links=LinkStyle.LINK if links else LinkStyle.TEXT)

    def with_cause_chain(self) -> "GraphicalReportHandler":
        return dataclasses.replace(self, cause_chain=True)

    def without_cause_chain(self) -> "GraphicalReportHandler":
        return dataclasses.replace(self, cause_chain=False)

    def with_urls(self, urls: bool) -> "GraphicalReportHandler":
        """Whether to show diagnostic URLs at all."""
        if not urls:
            links = LinkStyle.NONE
        elif self.links is LinkStyle.NONE:
            links = LinkStyle.LINK
        else:
            links = self.links
        return dataclasses.replace(self, links=links)

    def with_theme(self, theme: GraphicalTheme) -> "GraphicalReportHandler":
        return dataclasses.replace(self, theme=theme)

    def with_width(self, width: int) -> "GraphicalReportHandler":
        if width < 0:
            raise ValueError("width must not be negative")
        return dataclasses.replace(self, width=width)

    def with_footer(self, footer: str) -> "GraphicalReportHandler":
        return dataclasses.replace(self, footer=str(footer))

    def with_context_lines(self, lines: int) -> "GraphicalReportHandler":
        if lines < 0:
            raise ValueError("context lines must not be negative")
        return dataclasses.replace(self, context_lines=lines)

    def render_report(self, diagnostic: Union[Diagnostic, BaseException, str]) -> str:
        """Render ``diagnostic`` as text.

        Raises SourceReadError if a labelled span cannot be read.
        """
        return "".join(self._report(as_diagnostic(diagnostic)))

    def _report(self, diagnostic: Diagnostic) -> Iterator[str]:
        yield from self._header(diagnostic)
        yield from self._causes(diagnostic)
        source = diagnostic.source_code
        yield from self._snippets(diagnostic, source)
        yield from self._help(diagnostic)
        yield from self._related(diagnostic, source)
        if self.footer is not None:
            yield "\n"
            yield _fill(self.footer, max(self.width - 4, 0), "  ", "  ") + "\n"

    def _severity_style(self, diagnostic: Diagnostic) -> tuple[Style, str]:
        styles = self.theme.styles
        chars = self.theme.characters
        severity = _severity(diagnostic)
        if severity is Severity.WARNING:
            return styles.warning, chars.warning
        if severity is Severity.ADVICE:
            return styles.advice, chars.advice
        return styles.error, chars.error

    def _header(self, diagnostic: Diagnostic) -> Iterator[str]:
        style, _ = self._severity_style(diagnostic)
        link_style = self.theme.styles.link
        url = diagnostic.url
        code = diagnostic.code
        if self.links is LinkStyle.LINK and url is not None:
            code_text = f"{code} " if code is not None else ""
            yield (
                f"\x1b]8;;{url}\x1b\\{style.paint(code_text)}"
                f"{link_style.paint('(link)')}\x1b]8;;\x1b\\\n\n"
            )
        elif code is not None:
            header = style.paint(code)
            if self.links is LinkStyle.TEXT and url is not None:
                header += f" ({link_style.paint(url)})"
            yield header + "\n\n"

    def _causes(self, diagnostic: Diagnostic) -> Iterator[str]:
        style, icon = self._severity_style(diagnostic)
        chars = self.theme.characters
        width = max(self.width - 2, 0)
        initial = f"  {style.paint(icon)} "
        rest = f"  {style.paint(chars.vbar)} "
        yield _fill(str(diagnostic), width, initial, rest) + "\n"

        if not self.cause_chain:
            return

        causes = list(iter_causes(diagnostic))
        for number, error in enumerate(causes):
            is_last = number == len(causes) - 1
            corner = chars.lbot if is_last else chars.lcross
            initial = style.paint(f"  {corner}{chars.hbar}{chars.rarrow} ")
            rest = style.paint(f"  {' ' if is_last else chars.vbar}   ")
            if isinstance(error, Diagnostic):
                inner_handler = dataclasses.replace(self, footer=None, cause_chain=False)
                text = inner_handler.render_report(error)
            else:
                text = str(error)
            yield _fill(text, width, initial, rest) + "\n"

    def _help(self, diagnostic: Diagnostic) -> Iterator[str]:
        if diagnostic.help is None:
            return
        width = max(self.width - 4, 0)
        initial = self.theme.styles.help.paint("  help: ")
        yield _fill(str(diagnostic.help), width, initial, "        ") + "\n"

    def _related(
        self, diagnostic: Diagnostic, parent_source: Optional[SourceCode]
    ) -> Iterator[str]:
        if diagnostic.related is None:
            return
        yield "\n"
        for item in diagnostic.related:
            related = as_diagnostic(item)
            yield _RELATED_PREFIXES[_severity(related)]
            yield from self._header(related)
            yield from self._causes(related)
            source = related.source_code if related.source_code is not None else parent_source
            yield from self._snippets(related, source)
            yield from self._help(related)
            yield from self._related(related, source)

    def _snippets(self, diagnostic: Diagnostic, source: Optional[SourceCode]) -> Iterator[str]:
        if source is None or diagnostic.labels is None:
            return
        labels = sorted(diagnostic.labels, key=lambda label: label.offset)
        if not labels:
            return
        context = self.context_lines
        contents = [source.read_span(label.span, context, context) for label in labels]

        contexts: list[tuple[LabeledSpan, SpanContents]] = []
        for right, right_contents in zip(labels, contents):
            if not contexts:
                contexts.append((right, right_contents))
                continue
            left, left_contents = contexts[-1]
            if left_contents.line + left_contents.line_count >= right_contents.line:
                if right.span.end >= left.span.end:
                    length = right.span.end - left.offset
                else:
                    length = left.length
                merged = LabeledSpan(left.label, SourceSpan(left.offset, length))
                try:
                    source.read_span(merged.span, context, context)
                except SourceReadError:
                    contexts.append((right, right_contents))
                else:
                    contexts[-1] = (merged, left_contents)
            else:
                contexts.append((right, right_contents))

        for span, _ in contexts:
            yield from self._context(source, span, labels)

    def _context(
        self, source: SourceCode, context: LabeledSpan, labels: Sequence[LabeledSpan]
    ) -> Iterator[str]:
        chars = self.theme.characters
        styles = self.theme.styles
        contents = source.read_span(context.span, self.context_lines, self.context_lines)
        lines = split_lines(contents)

        primary = next(
            (label for label in labels if label.primary), labels[0] if labels else None
        )

        highlights = [
            FancySpan(label.label, label.span, style)
            for label, style in zip(labels, cycle(styles.highlights))
        ]

        max_gutter = max(
            (
                sum(
                    1
                    for hl in highlights
                    if not line.span_line_only(hl) and line.span_applies(hl)
                )
                for line in lines
            ),
            default=0,
        )
        linum_width = len(str(lines[-1].line_number if lines else 0))

        yield f"{' ' * (linum_width + 2)}{chars.ltop}{chars.hbar}"

        primary_contents = (
            source.read_span(primary.span, 0, 0) if primary is not None else contents
        )
        if primary_contents.name is not None:
            yield (
                f"[{styles.link.paint(primary_contents.name)}:"
                f"{primary_contents.line + 1}:{primary_contents.column + 1}]\n"
            )
        elif len(lines) <= 1:
            yield chars.hbar * 3 + "\n"
        else:
            yield f"[{primary_contents.line + 1}:{primary_contents.column + 1}]\n"

        for line in lines:
            yield self._linum(linum_width, line.line_number)
            yield self._line_gutter(max_gutter, line, highlights)
            yield self._line_text(line.text)

            applicable = [hl for hl in highlights if line.span_applies(hl)]
            single_line = [hl for hl in applicable if line.span_line_only(hl)]
            multi_line = [hl for hl in applicable if not line.span_line_only(hl)]
            if single_line:
                yield self._no_linum(linum_width)
                yield self._highlight_gutter(max_gutter, line, highlights)
                yield from self._single_line_highlights(
                    line, linum_width, max_gutter, single_line, highlights
                )
            for hl in multi_line:
                if hl.label is not None and line.span_ends(hl) and not line.span_starts(hl):
                    yield self._no_linum(linum_width)
                    yield self._highlight_gutter(max_gutter, line, highlights)
                    yield f"{hl.style.paint(chars.hbar)} {hl.painted_label or ''}\n"

        yield f"{' ' * (linum_width + 2)}{chars.lbot}{chars.hbar * 4}\n"

    def _line_gutter(
        self, max_gutter: int, line: SourceLine, highlights: Sequence[FancySpan]
    ) -> str:
        if max_gutter == 0:
            return ""
        chars = self.theme.characters
        gutter = ""
        arrow = False
        applicable = [hl for hl in highlights if line.span_applies(hl)]
        for number, hl in enumerate(applicable):
            paint = hl.style.paint
            if line.span_starts(hl):
                gutter += paint(chars.ltop)
                gutter += paint(chars.hbar * max(max_gutter - number, 0))
                gutter += paint(chars.rarrow)
                arrow = True
                break
            if line.span_ends(hl):
                gutter += paint(chars.lcross if hl.label is not None else chars.lbot)
                gutter += paint(chars.hbar * max(max_gutter - number, 0))
                gutter += paint(chars.rarrow)
                arrow = True
                break
            if line.span_flyby(hl):
                gutter += paint(chars.vbar)
            else:
                gutter += " "
        padding = (1 if arrow else 3) + max(max_gutter - len(gutter), 0)
        return gutter + " " * padding

    def _highlight_gutter(
        self, max_gutter: int, line: SourceLine, highlights: Sequence[FancySpan]
    ) -> str:
        if max_gutter == 0:
            return ""
        chars = self.theme.characters
        gutter = ""
        applicable = [hl for hl in highlights if line.span_applies(hl)]
        for number, hl in enumerate(applicable):
            if not line.span_line_only(hl) and line.span_ends(hl):
                gutter += hl.style.paint(chars.lbot)
                gutter += hl.style.paint(chars.hbar * (max(max_gutter - number, 0) + 2))
                break
            gutter += hl.style.paint(chars.vbar)
        return gutter.ljust(max_gutter + 1)

    def _linum(self, width: int, linum: int) -> str:
        number = self.theme.styles.linum.paint(str(linum).rjust(width))
        return f" {number} {self.theme.characters.vbar} "

    def _no_linum(self, width: int) -> str:
        return f" {' ' * width} {self.theme.characters.vbar_break} "

    def _line_text(self, text: str) -> str:
        rendered = [
            " " * width if char == "\t" else char
            for char, width in zip(text, char_widths(text, self.tab_width))
        ]
        return "".join(rendered) + "\n"

    def _single_line_highlights(
        self,
        line: SourceLine,
        linum_width: int,
        max_gutter: int,
        single_liners: Sequence[FancySpan],
        all_highlights: Sequence[FancySpan],
    ) -> Iterator[str]:
        chars = self.theme.characters
        underlines = ""
        highest = 0
        vbar_offsets: list[tuple[FancySpan, int]] = []
        for hl in single_liners:
            start = max(visual_offset(line, hl.offset, self.tab_width), highest)
            end = max(visual_offset(line, hl.offset + hl.length, self.tab_width), start + 1)
            vbar_offset = (start + end) // 2
            num_left = vbar_offset - start
            num_right = end - vbar_offset - 1
            if start < end:
                if hl.length == 0:
                    mark = chars.uarrow
                elif hl.label is not None:
                    mark = chars.underbar
                else:
                    mark = chars.underline
                underlines += hl.style.paint(
                    " " * max(start - highest, 0)
                    + chars.underline * num_left
                    + mark
                    + chars.underline * num_right
                )
            highest = max(highest, end)
            vbar_offsets.append((hl, vbar_offset))
        yield underlines + "\n"

        for hl in reversed(single_liners):
            if hl.label is None:
                continue
            yield self._no_linum(linum_width)
            yield self._highlight_gutter(max_gutter, line, all_highlights)
            current = 1
            for offset_hl, vbar_offset in vbar_offsets:
                if current < vbar_offset + 1:
                    yield " " * (vbar_offset + 1 - current)
                    current = vbar_offset + 1
                if offset_hl != hl:
                    yield offset_hl.style.paint(chars.vbar)
                    current += 1
                else:
                    text = f"{chars.lbot}{chars.hbar * 2} {hl.painted_label}"
                    yield hl.style.paint(text) + "\n"
                    break
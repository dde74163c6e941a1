"""Line splitting and span geometry used to lay out graphical snippets."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Optional, Protocol

from wcwidth import wcwidth

from diagnostica.protocol import SourceSpan, SpanContents
from diagnostica.theme import Style


class _Span(Protocol):
    @property
    def offset(self) -> int: ...

    @property
    def length(self) -> int: ...


@dataclass(frozen=True)
class FancySpan:
    """A label span together with the style it is drawn in.

    Two fancy spans are equal when their label and span are equal; the
    style does not take part in the comparison.
    """

    label: Optional[str]
    span: SourceSpan
    style: Style = field(default_factory=Style, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "span", SourceSpan.from_value(self.span))

    @property
    def offset(self) -> int:
        return self.span.offset

    @property
    def length(self) -> int:
        return self.span.length

    @property
    def painted_label(self) -> Optional[str]:
        """The label text painted in this span's style, or None."""
        if self.label is None:
            return None
        return self.style.paint(self.label)


@dataclass(frozen=True)
class SourceLine:
    """One line of a snippet.

    ``offset`` and ``length`` are in bytes; ``length`` includes the line
    ending, ``text`` does not.
    """

    line_number: int
    offset: int
    length: int
    text: str

    @property
    def end(self) -> int:
        return self.offset + self.length

    def span_line_only(self, span: _Span) -> bool:
        """True if ``span`` lies entirely within this line."""
        return span.offset >= self.offset and span.offset + span.length <= self.end

    def span_applies(self, span: _Span) -> bool:
        """True if ``span`` starts, ends or passes through this line."""
        span_len = span.length or 1
        span_end = span.offset + span_len
        starts_here = self.offset <= span.offset < self.end
        passes_through = span.offset < self.offset and span_end > self.end
        ends_here = self.offset < span_end <= self.end
        return starts_here or passes_through or ends_here

    def span_flyby(self, span: _Span) -> bool:
        """True if a span starts before this line and stops after it."""
        return span.offset < self.offset and span.offset + span.length > self.end

    def span_starts(self, span: _Span) -> bool:
        """True if this line holds the start of an applicable span."""
        return span.offset >= self.offset

    def span_ends(self, span: _Span) -> bool:
        """True if this line holds the end of an applicable span."""
        span_end = span.offset + span.length
        return self.offset <= span_end <= self.end


def split_lines(contents: SpanContents) -> list[SourceLine]:
    """Split the data read for a snippet into its lines.

    A ``\\r\\n`` pair ends a line; a lone ``\\r`` stays in the text.
    """
    text = contents.data.decode("utf-8")
    line = contents.line
    column = contents.column
    offset = contents.span.offset
    line_offset = offset
    current: list[str] = []
    lines: list[SourceLine] = []

    chars = iter(text)
    pending = next(chars, None)
    while pending is not None:
        char = pending
        pending = next(chars, None)
        offset += len(char.encode("utf-8"))
        at_end_of_file = False
        if char == "\r":
            if pending == "\n":
                pending = next(chars, None)
                offset += 1
                line += 1
                column = 0
            else:
                current.append(char)
                column += 1
            at_end_of_file = pending is None
        elif char == "\n":
            at_end_of_file = pending is None
            line += 1
            column = 0
        else:
            current.append(char)
            column += 1

        if pending is None and not at_end_of_file:
            line += 1

        if column == 0 or pending is None:
            lines.append(SourceLine(line, line_offset, offset - line_offset, "".join(current)))
            current = []
            line_offset = offset
    return lines


def char_widths(text: str, tab_width: int) -> Iterator[int]:
    """Yield the display width of each character of ``text``.

    A tab advances to the next multiple of ``tab_width``; characters with
    no printable width count as zero.
    """
    if tab_width <= 0:
        raise ValueError("tab width must be positive")
    column = 0
    for char in text:
        if char == "\t":
            width = tab_width - column % tab_width
        else:
            width = max(wcwidth(char), 0)
        column += width
        yield width


def visual_offset(line: SourceLine, offset: int, tab_width: int) -> int:
    """Display column of byte ``offset`` within ``line``.

    An offset past the visible text, inside the line ending, maps to one
    column past the end of the text.
    """
    if not line.offset <= offset <= line.end:
        raise ValueError(
            f"offset {offset} is outside the line [{line.offset}, {line.end}]"
        )
    text_index = offset - line.offset
    text_bytes = len(line.text.encode("utf-8"))

    prefix: list[str] = []
    position = 0
    limit = min(text_index, text_bytes)
    for char in line.text:
        if position >= limit:
            break
        prefix.append(char)
        position += len(char.encode("utf-8"))
    if position != limit:
        raise ValueError(f"offset {offset} falls inside a character")

    width = sum(char_widths("".join(prefix), tab_width))
    if text_index > text_bytes:
        return width + 1
    return width
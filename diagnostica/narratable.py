"""A plain-text report handler suited to screen readers and non-TTY output."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Optional, Union

from wcwidth import wcwidth

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

_SEVERITY_NAMES = {
    Severity.ERROR: "error",
    Severity.WARNING: "warning",
    Severity.ADVICE: "advice",
}

_RELATED_PREFIXES = {
    Severity.ERROR: "Error: ",
    Severity.WARNING: "Warning: ",
    Severity.ADVICE: "Advice: ",
}


def _severity(diagnostic: Diagnostic) -> Severity:
    return Severity.ERROR if diagnostic.severity is None else Severity(diagnostic.severity)


def _column(text: str, offset: int, start: bool) -> int:
    """Display column of byte ``offset`` in ``text``; 1-based for a start."""
    width = 0
    index = 0
    for char in text:
        if index >= offset:
            break
        width += max(wcwidth(char), 0)
        index += len(char.encode("utf-8"))
    return width + 1 if start else width


@dataclass(frozen=True)
class _Line:
    line_number: int
    offset: int
    text: str
    at_end_of_file: bool

    def describe(self, span: SourceSpan) -> Optional[str]:
        """Say how ``span`` attaches to this line, or None if it does not."""
        span_end = span.end
        line_end = self.offset + len(self.text.encode("utf-8"))
        start_after = span.offset >= self.offset
        end_before = self.at_end_of_file or span_end <= line_end
        number = self.line_number

        if start_after and end_before:
            col_start = _column(self.text, span.offset - self.offset, True)
            col_end = (
                col_start if span.is_empty() else _column(self.text, span_end - self.offset, False)
            )
            if col_start == col_end:
                return f"label at line {number}, column {col_start}"
            return f"label at line {number}, columns {col_start} to {col_end}"
        if start_after and span.offset <= line_end:
            col_start = _column(self.text, span.offset - self.offset, True)
            return f"label starting at line {number}, column {col_start}"
        if end_before and span_end >= self.offset:
            col_end = _column(self.text, span_end - self.offset, False)
            return f"label ending at line {number}, column {col_end}"
        return None


def _split_lines(contents: SpanContents) -> list[_Line]:
    text = contents.data.decode("utf-8")
    line = contents.line
    column = contents.column
    offset = contents.span.offset
    line_offset = offset
    current: list[str] = []
    lines: list[_Line] = []

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
            lines.append(_Line(line, line_offset, "".join(current), at_end_of_file))
            current = []
            line_offset = offset
    return lines


@dataclass(frozen=True)
class NarratableReportHandler:
    """Renders diagnostics as plain narrated text, without graphics.

    The ``with_*`` methods return a new handler.
    """

    context_lines: int = 1
    cause_chain: bool = True
    footer: Optional[str] = None

    def with_cause_chain(self) -> "NarratableReportHandler":
        return dataclasses.replace(self, cause_chain=True)

    def without_cause_chain(self) -> "NarratableReportHandler":
        return dataclasses.replace(self, cause_chain=False)

    def with_footer(self, footer: str) -> "NarratableReportHandler":
        return dataclasses.replace(self, footer=str(footer))

    def with_context_lines(self, lines: int) -> "NarratableReportHandler":
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
        if self.cause_chain:
            yield from self._causes(diagnostic)
        source = diagnostic.source_code
        yield from self._snippets(diagnostic, source)
        yield from self._footer(diagnostic)
        yield from self._related(diagnostic, source)
        if self.footer is not None:
            yield f"{self.footer}\n"

    @staticmethod
    def _header(diagnostic: Diagnostic) -> Iterator[str]:
        yield f"{diagnostic}\n"
        yield f"    Diagnostic severity: {_SEVERITY_NAMES[_severity(diagnostic)]}\n"

    @staticmethod
    def _causes(diagnostic: Diagnostic) -> Iterator[str]:
        for cause in iter_causes(diagnostic):
            yield f"    Caused by: {cause}\n"

    @staticmethod
    def _footer(diagnostic: Diagnostic) -> Iterator[str]:
        if diagnostic.help is not None:
            yield f"diagnostic help: {diagnostic.help}\n"
        if diagnostic.code is not None:
            yield f"diagnostic code: {diagnostic.code}\n"
        if diagnostic.url is not None:
            yield f"For more details, see:\n{diagnostic.url}\n"

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
            yield "\n"
            yield from self._causes(related)
            source = related.source_code if related.source_code is not None else parent_source
            yield from self._snippets(related, source)
            yield from self._footer(related)
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
        contents = source.read_span(context.span, self.context_lines, self.context_lines)
        lines = _split_lines(contents)
        name = f" for {contents.name}" if contents.name is not None else ""
        yield (
            f"Begin snippet{name} starting at line {contents.line + 1}, "
            f"column {contents.column + 1}\n"
        )
        yield "\n"
        for line in lines:
            yield f"snippet line {line.line_number}: {line.text}\n"
            for label in labels:
                description = line.describe(label.span)
                if description is None:
                    continue
                suffix = f": {label.label}" if label.label is not None else ""
                yield f"    {description}{suffix}\n"
"""A source that carries a name, such as a file name."""

from __future__ import annotations

import dataclasses

from diagnostica.protocol import SourceCode, SourceSpan, SpanContents


class NamedSource(SourceCode):
    """Wraps a SourceCode and gives the contents it reads a name."""

    def __init__(self, name: str, source: SourceCode) -> None:
        self._name = str(name)
        self._source = source

    @property
    def name(self) -> str:
        return self._name

    @property
    def inner(self) -> SourceCode:
        return self._source

    def read_span(
        self, span: SourceSpan, context_lines_before: int, context_lines_after: int
    ) -> SpanContents:
        contents = self._source.read_span(span, context_lines_before, context_lines_after)
        return dataclasses.replace(contents, name=self._name)

    def __repr__(self) -> str:
        return f"NamedSource(name={self._name!r}, source=<redacted>)"
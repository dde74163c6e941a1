"""A report handler that renders diagnostics as machine-readable JSON."""

from __future__ import annotations

from typing import Optional, Union

from diagnostica.protocol import (
    Diagnostic,
    LabeledSpan,
    Severity,
    SourceCode,
    SourceReadError,
    as_diagnostic,
    iter_causes,
)

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\r": "\\r",
    "\n": "\\n",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
}

_SEVERITY_NAMES = {
    Severity.ERROR: "error",
    Severity.WARNING: "warning",
    Severity.ADVICE: "advice",
}


def escape(text: str) -> str:
    """Escape ``text`` for use inside a JSON string literal."""
    return "".join(_ESCAPES.get(char, char) for char in text)


def _join(items) -> str:
    return ",".join(items)


class JSONReportHandler:
    """Renders a diagnostic, its causes, labels and related diagnostics as JSON."""

    def render_report(self, diagnostic: Union[Diagnostic, BaseException, str]) -> str:
        return self._render(as_diagnostic(diagnostic), None)

    def _render(self, diagnostic: Diagnostic, parent_src: Optional[SourceCode]) -> str:
        out = [f'{{"message": "{escape(str(diagnostic))}",']
        if diagnostic.code is not None:
            out.append(f'"code": "{escape(str(diagnostic.code))}",')
        severity = Severity.ERROR if diagnostic.severity is None else Severity(diagnostic.severity)
        out.append(f'"severity": "{_SEVERITY_NAMES[severity]}",')
        causes = _join(f'"{escape(str(cause))}"' for cause in iter_causes(diagnostic))
        out.append(f'"causes": [{causes}],')
        if diagnostic.url is not None:
            out.append(f'"url": "{diagnostic.url}",')
        if diagnostic.help is not None:
            out.append(f'"help": "{escape(str(diagnostic.help))}",')

        labels = None if diagnostic.labels is None else list(diagnostic.labels)
        src = diagnostic.source_code if diagnostic.source_code is not None else parent_src
        if src is not None:
            out.append(self._render_filename(labels, src))

        if labels is not None:
            out.append(f'"labels": [{_join(self._render_label(label) for label in labels)}],')
        else:
            out.append('"labels": [],')

        if diagnostic.related is not None:
            related = _join(self._render(as_diagnostic(rel), src) for rel in diagnostic.related)
            out.append(f'"related": [{related}]')
        else:
            out.append('"related": []')
        out.append("}")
        return "".join(out)

    @staticmethod
    def _render_label(label: LabeledSpan) -> str:
        name = "" if label.label is None else f'"label": "{escape(label.label)}",'
        return (
            f'{{{name}"span": {{"offset": {label.offset},'
            f'"length": {label.length}}}}}'
        )

    @staticmethod
    def _render_filename(labels: Optional[list[LabeledSpan]], source: SourceCode) -> str:
        if labels:
            try:
                contents = source.read_span(labels[0].span, 0, 0)
            except SourceReadError:
                pass
            else:
                return f'"filename": "{escape(contents.name or "")}",'
        return '"filename": "",'

    def __repr__(self) -> str:
        return "JSONReportHandler()"
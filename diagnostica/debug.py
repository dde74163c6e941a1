"""A plain report handler that prints a diagnostic's fields."""

from __future__ import annotations

from typing import Union

from diagnostica.protocol import Diagnostic, as_diagnostic

_NOTE = (
    "NOTE: If you're looking for the fancy error reports, use the graphical "
    "report handler, or write your own report handler."
)

_ESCAPES = {'"': '\\"', "\\": "\\\\", "\n": "\\n", "\r": "\\r", "\t": "\\t", "\0": "\\0"}


def _quote(text: str) -> str:
    """Quote ``text`` as a double-quoted, escaped string literal."""
    pieces = []
    for char in text:
        if char in _ESCAPES:
            pieces.append(_ESCAPES[char])
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            pieces.append(f"\\u{{{ord(char):x}}}")
        else:
            pieces.append(char)
    return '"' + "".join(pieces) + '"'


class DebugReportHandler:
    """Renders a diagnostic as a flat list of its fields. Has no options."""

    def render_report(self, diagnostic: Union[Diagnostic, BaseException, str]) -> str:
        diag = as_diagnostic(diagnostic)
        fields = [("message", str(diag))]
        if diag.code is not None:
            fields.append(("code", str(diag.code)))
        if diag.severity is not None:
            fields.append(("severity", str(diag.severity)))
        if diag.url is not None:
            fields.append(("url", str(diag.url)))
        if diag.help is not None:
            fields.append(("help", str(diag.help)))
        if diag.labels is not None:
            fields.append(("labels", repr(list(diag.labels))))
        if diag.diagnostic_source is not None:
            fields.append(("caused by", repr(diag.diagnostic_source)))
        body = ", ".join(f"{name}: {_quote(value)}" for name, value in fields)
        return f"Diagnostic {{ {body} }}\n{_NOTE}\n"

    def __repr__(self) -> str:
        return "DebugReportHandler()"
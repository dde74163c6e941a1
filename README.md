# diagnostica

Human-friendly diagnostic reports for Python programs. A diagnostic is an
exception that may carry an error code, a severity, help text, a URL,
labelled spans pointing into source code, related diagnostics and a chain of
causes. The package renders it in several forms:

- **graphical**: boxed source snippets with underlines, gutters and arrows,
  in Unicode or ASCII, with optional ANSI or RGB colours
  (`diagnostica.graphical.GraphicalReportHandler`)
- **narrated**: plain text suited to screen readers and non-TTY output
  (`diagnostica.narratable.NarratableReportHandler`)
- **JSON**: machine-readable output (`diagnostica.json_handler.JSONReportHandler`)
- **debug**: a compact dump of the diagnostic's fields
  (`diagnostica.debug.DebugReportHandler`)

Every handler has a `render_report(diagnostic)` method that returns the report
as a string. It accepts a `Diagnostic`, any other exception, or a plain
message string.

## Installing

```sh
pip install diagnostica
```

## Source code

Labels point into a `diagnostica.protocol.SourceCode`. Its one method,
`read_span(span, context_lines_before, context_lines_after)`, returns a
`SpanContents` (the bytes read, the span they cover, the 0-based line and
column where they begin, the number of lines, and an optional name), or
raises `SourceReadError`. The package ships no ready-made `SourceCode` for
strings or files; a minimal one that hands back the whole text as context
looks like this:

```python
from diagnostica.protocol import SourceCode, SourceReadError, SourceSpan, SpanContents


class WholeText(SourceCode):
    def __init__(self, text):
        self.data = text.encode("utf-8")

    def read_span(self, span, context_lines_before, context_lines_after):
        if span.end > len(self.data):
            raise SourceReadError("span is out of range")
        return SpanContents(
            self.data,
            SourceSpan(0, len(self.data)),
            0,
            0,
            self.data.count(b"\n") + 1,
        )
```

`diagnostica.named_source.NamedSource(name, source)` wraps any `SourceCode`
and gives the contents it reads a name, which the handlers show as a file name.

## Building a diagnostic

`diagnostica.dynamic.DynamicDiagnostic` is a diagnostic built from plain values.
Its `with_*` and `and_*` methods return a new diagnostic:

```python
from diagnostica.dynamic import DynamicDiagnostic
from diagnostica.protocol import LabeledSpan, Severity

diag = (
    DynamicDiagnostic("Wrong answer")
    .with_code("calc::wrong_answer")
    .with_severity(Severity.WARNING)
    .with_help("'*' has greater precedence than '+'")
    .with_label(LabeledSpan.at((12, 1), "this should be 6"))
)
diag.source_code = NamedSource("calc.txt", WholeText("2 + 2 * 2 = 8"))
```

Spans are byte offsets: `SourceSpan.from_value` accepts a `SourceSpan`, a
`SourceOffset`, a plain offset, a `range` or an `(offset, length)` tuple.
`LabeledSpan` offers `at`, `at_offset`, `underline`, `new_with_span` and
`new_primary_with_span`. `SourceOffset.from_location(source, line, column)`
turns a 1-based line and column into a byte offset; locations past the end
give the length of the source.

## Your own diagnostics

Subclass `diagnostica.protocol.Diagnostic` (it is an `Exception`; its message
is `str(diagnostic)`) and set, as attributes or properties, whichever of
`code`, `severity`, `help`, `url`, `source_code`, `labels`, `related` and
`diagnostic_source` you need. A missing severity is treated as
`Severity.ERROR`. Causes come from `diagnostic_source` if set, else from the
exception's `__cause__` or `__context__`; `iter_causes(diagnostic)` yields
them, nearest first. `as_diagnostic(value)` turns a string or any exception
into a `Diagnostic`.

## Rendering

`diagnostica.handler.HandlerOptions` builds a `ReportHandler` that chooses the
graphical or narrated handler and fills in unset options from the terminal:

```python
from diagnostica.handler import HandlerOptions

handler = (
    HandlerOptions()
    .unicode(False)
    .context_lines(2)
    .tab_width(4)
    .build()
)
print(handler.render_report(diag))
```

Options: `terminal_links`, `graphical_theme`, `width`, `color`,
`rgb_colors` (an `RgbColors` value: `ALWAYS`, `PREFERRED` or `NEVER`, the
default), `unicode`, `force_graphical`, `force_narrated`, `footer`,
`context_lines`, `tab_width`, `with_cause_chain` and `without_cause_chain`.
Without `force_narrated` or `force_graphical`, setting the environment
variable `NO_GRAPHICS` to anything other than `0` selects the narrated
handler. The width defaults to the terminal's width, or 80.
`ReportHandler()` with no argument uses the default options.

Each handler can also be used directly; their `with_*` methods return a new
handler:

```python
from diagnostica.graphical import GraphicalReportHandler
from diagnostica.json_handler import JSONReportHandler
from diagnostica.narratable import NarratableReportHandler
from diagnostica.theme import GraphicalTheme

print(GraphicalReportHandler().with_theme(GraphicalTheme.none()).render_report(diag))
print(NarratableReportHandler().with_context_lines(2).render_report(diag))
print(JSONReportHandler().render_report(diag))
```

Themes live in `diagnostica.theme`: `GraphicalTheme.ascii`, `unicode`,
`unicode_nocolor`, `none` and `default` (which looks at whether output is a
terminal and at `NO_COLOR`), built from `ThemeCharacters` (`unicode`, `emoji`,
`ascii`) and `ThemeStyles` (`rgb`, `ansi`, `none`).

## Serialisation

`DynamicDiagnostic`, `LabeledSpan` and `SourceSpan` offer `to_dict` and
`from_dict` for round-tripping through JSON; `SourceOffset.to_dict` gives the
bare offset.

## What is not included

The package is a library only: it has no command-line tool. It provides no
ready-made `SourceCode` for strings, bytes or files, no process-wide hook that
installs a handler for uncaught exceptions, and no wrapper type for adding
context messages to errors.
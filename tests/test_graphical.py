import re
from bisect import bisect_right

import pytest

from diagnostica.dynamic import DynamicDiagnostic
from diagnostica.graphical import GraphicalReportHandler, LinkStyle
from diagnostica.named_source import NamedSource
from diagnostica.protocol import (
    Diagnostic,
    LabeledSpan,
    Severity,
    SourceCode,
    SourceReadError,
    SourceSpan,
    SpanContents,
)
from diagnostica.theme import GraphicalTheme, ThemeCharacters, ThemeStyles


class TextSource(SourceCode):
    def __init__(self, text):
        self._data = text.encode("utf-8")

    def read_span(self, span, context_lines_before, context_lines_after):
        data = self._data
        if span.end > len(data):
            raise SourceReadError("span out of range")
        starts = [0, *(m.end() for m in re.finditer(rb"\n", data) if m.end() < len(data))]
        start_line = bisect_right(starts, span.offset) - 1
        end_line = bisect_right(starts, max(span.end - 1, span.offset)) - 1
        first = max(start_line - context_lines_before, 0)
        last = min(end_line + context_lines_after, len(starts) - 1)
        begin = starts[first]
        finish = starts[last + 1] if last + 1 < len(starts) else len(data)
        return SpanContents(
            data[begin:finish],
            SourceSpan(begin, finish - begin),
            first,
            span.offset - starts[start_line],
            last - first + 1,
        )


class SourcedDiagnostic(Diagnostic):
    def __init__(self, message, source, labels, help=None):
        super().__init__(message)
        self.source_code = source
        self.labels = labels
        self.help = help


class Parent(Diagnostic):
    def __init__(self, related):
        super().__init__("parent")
        self.related = related


class WithSource(Diagnostic):
    def __init__(self, message, cause):
        super().__init__(message)
        self.diagnostic_source = cause


def plain():
    return GraphicalReportHandler(GraphicalTheme.none())


def test_single_label_snippet():
    source = NamedSource("bad_file.rs", TextSource("source\n  text\n    here"))
    diag = SourcedDiagnostic("oops!", source, [LabeledSpan.at((9, 4), "This bit here")])
    out = plain().render_report(diag)
    expected = (
        "  x oops!\n"
        "   ,-[bad_file.rs:2:3]\n"
        " 1 | source\n"
        " 2 |   text\n"
        "   :   ^^|^\n"
        "   :     `-- This bit here\n"
        " 3 |     here\n"
        "   `----\n"
    )
    assert out == expected


def test_message_only():
    out = plain().render_report(DynamicDiagnostic("oops!"))
    assert out == "  x oops!\n"


def test_warning_icon():
    out = plain().render_report(DynamicDiagnostic("careful").with_severity(Severity.WARNING))
    assert out.startswith("  ! careful")


def test_link_header():
    diag = DynamicDiagnostic("oops").with_code("my::code").with_url("https://example.com/docs")
    out = plain().with_links(True).render_report(diag)
    assert out.startswith(
        "\x1b]8;;https://example.com/docs\x1b\\my::code (link)\x1b]8;;\x1b\\\n\n"
    )


def test_text_link_header():
    diag = DynamicDiagnostic("oops").with_code("my::code").with_url("https://example.com/docs")
    out = plain().with_links(False).render_report(diag)
    first = out.splitlines()[0]
    assert first.startswith("my::code")
    assert "(https://example.com/docs)" in first


def test_without_urls_hides_url():
    diag = DynamicDiagnostic("oops").with_code("my::code").with_url("https://example.com/docs")
    out = plain().with_urls(False).render_report(diag)
    assert "example.com" not in out
    assert out.splitlines()[0] == "my::code"


def test_with_urls_transitions():
    handler = plain()
    assert handler.with_urls(False).links is LinkStyle.NONE
    assert handler.with_urls(False).with_urls(True).links is LinkStyle.LINK
    assert handler.with_links(False).with_urls(True).links is LinkStyle.TEXT


def test_help_and_footer():
    diag = DynamicDiagnostic("oops").with_help("try again")
    out = plain().with_footer("my footer").render_report(diag)
    assert "  help: try again\n" in out
    assert out.endswith("\n  my footer\n")


def test_plain_exception_cause():
    diag = DynamicDiagnostic("outer")
    diag.__cause__ = ValueError("inner")
    out = plain().render_report(diag)
    lines = out.splitlines()
    assert any(line.startswith("  `-> ") and line.endswith("inner") for line in lines)
    assert "inner" not in plain().without_cause_chain().render_report(diag)


def test_diagnostic_cause_rendered_inline():
    diag = WithSource("outer", DynamicDiagnostic("deeper"))
    out = plain().render_report(diag)
    cause_lines = [line for line in out.splitlines() if "`->" in line]
    assert len(cause_lines) == 1
    assert "deeper" in cause_lines[0]


def test_related_prefix():
    out = plain().render_report(
        Parent([DynamicDiagnostic("careful").with_severity(Severity.WARNING)])
    )
    assert "Warning: " in out
    assert "! careful" in out
    assert out.index("parent") < out.index("careful")


def test_multiline_label():
    diag = SourcedDiagnostic("oops", TextSource("ab\ncd\nef"), [LabeledSpan.at((0, 5), "multi")])
    out = plain().render_report(diag)
    assert ",->" in out
    assert "- multi\n" in out


def test_primary_label_sets_location():
    source = NamedSource("f.txt", TextSource("aaa\nbbb"))
    labels = [LabeledSpan.at((0, 1), "a"), LabeledSpan.new_primary_with_span("b", (4, 1))]
    out = plain().render_report(SourcedDiagnostic("oops", source, labels))
    assert "[f.txt:2:1]" in out
    assert "-- a" in out and "-- b" in out


@pytest.mark.parametrize("tab_width, rendered", [(4, " 1 |     foo"), (2, " 1 |   foo")])
def test_tab_width(tab_width, rendered):
    diag = SourcedDiagnostic("oops", TextSource("\tfoo"), [LabeledSpan.at((1, 3), "here")])
    out = plain().with_tab_width(tab_width).render_report(diag)
    assert rendered + "\n" in out


def test_bad_tab_width():
    with pytest.raises(ValueError):
        plain().with_tab_width(0)


def test_unreadable_span():
    diag = SourcedDiagnostic("oops", TextSource("short"), [LabeledSpan.at((100, 2), "x")])
    with pytest.raises(SourceReadError):
        plain().render_report(diag)


def test_message_wraps_to_width():
    out = plain().with_width(30).render_report(DynamicDiagnostic("word " * 30))
    lines = out.splitlines()
    assert len(lines) > 1
    assert all(len(line) <= 28 for line in lines)
    assert all(line.startswith("  | ") for line in lines[1:])


def test_colored_theme_paints_icon():
    theme = GraphicalTheme(ThemeCharacters.ascii(), ThemeStyles.ansi())
    out = GraphicalReportHandler(theme).render_report(DynamicDiagnostic("oops"))
    assert ThemeStyles.ansi().error.paint("x") in out


def test_builders_return_new_handlers():
    handler = plain()
    wider = handler.with_width(50).with_context_lines(3)
    assert handler.width == 200
    assert handler.context_lines == 1
    assert wider.width == 50
    assert wider.context_lines == 3
    assert handler.without_cause_chain().cause_chain is False
    assert handler.without_cause_chain().with_cause_chain().cause_chain is True


def test_accepts_plain_strings():
    assert plain().render_report("boom") == plain().render_report(DynamicDiagnostic("boom"))
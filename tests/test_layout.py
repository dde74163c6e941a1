import pytest

from diagnostica.layout import (
    FancySpan,
    SourceLine,
    char_widths,
    split_lines,
    visual_offset,
)
from diagnostica.protocol import SourceSpan, SpanContents
from diagnostica.theme import Style


def _contents(data: bytes, line: int = 0, column: int = 0, offset: int = 0) -> SpanContents:
    return SpanContents(
        data=data,
        span=SourceSpan(offset, len(data)),
        line=line,
        column=column,
        line_count=data.count(b"\n") + 1,
    )


def _assert_contiguous(lines, data: bytes, start: int = 0):
    position = start
    for line in lines:
        assert line.offset == position
        position += line.length
    assert position == start + len(data)


def test_split_lines_texts_and_offsets():
    data = b"ab\ncd"
    lines = split_lines(_contents(data))
    assert [line.text for line in lines] == ["ab", "cd"]
    _assert_contiguous(lines, data)


def test_split_lines_numbers_are_consecutive():
    lines = split_lines(_contents(b"one\ntwo\nthree\nfour"))
    numbers = [line.line_number for line in lines]
    assert numbers == list(range(numbers[0], numbers[0] + len(lines)))


def test_split_lines_starting_line_shifts_numbers():
    first = split_lines(_contents(b"x\ny"))
    shifted = split_lines(_contents(b"x\ny", line=5))
    assert [l.line_number - 5 for l in shifted] == [l.line_number for l in first]


def test_split_lines_crlf():
    data = b"a\r\nb"
    lines = split_lines(_contents(data))
    assert [line.text for line in lines] == ["a", "b"]
    _assert_contiguous(lines, data)


def test_split_lines_lone_carriage_return_stays_in_text():
    lines = split_lines(_contents(b"a\rb"))
    assert [line.text for line in lines] == ["a\rb"]


def test_split_lines_trailing_newline_single_line():
    data = b"ab\n"
    lines = split_lines(_contents(data))
    assert [line.text for line in lines] == ["ab"]
    _assert_contiguous(lines, data)


def test_split_lines_honours_span_offset():
    data = "héllo\nwörld".encode("utf-8")
    lines = split_lines(_contents(data, offset=7))
    assert [line.text for line in lines] == ["héllo", "wörld"]
    _assert_contiguous(lines, data, start=7)


def test_split_lines_empty():
    assert split_lines(_contents(b"")) == []


def test_char_widths_plain_text():
    assert list(char_widths("abc", 4)) == [1, 1, 1]


def test_char_widths_tab_reaches_tab_stop():
    for text in ["\t", "a\t", "abc\t", "abcd\t", "ab\tc\t"]:
        widths = list(char_widths(text, 4))
        assert sum(widths) % 4 == 0
        assert all(w >= 1 for w in widths)


def test_char_widths_wide_character():
    assert list(char_widths("日", 4)) == [2]


def test_char_widths_control_is_zero():
    assert list(char_widths("\x01", 4)) == [0]


def test_char_widths_rejects_zero_tab_width():
    with pytest.raises(ValueError):
        list(char_widths("a", 0))


def test_visual_offset_within_text():
    line = SourceLine(1, 10, 4, "abc")
    assert visual_offset(line, 10, 4) == 0
    assert visual_offset(line, 13, 4) == len("abc")


def test_visual_offset_past_text_is_one_more():
    line = SourceLine(1, 10, 4, "abc")
    assert visual_offset(line, 14, 4) == visual_offset(line, 13, 4) + 1


def test_visual_offset_expands_tabs():
    line = SourceLine(1, 0, 3, "\tx")
    assert visual_offset(line, 1, 4) == sum(char_widths("\t", 4))


def test_visual_offset_out_of_range():
    line = SourceLine(1, 10, 4, "abc")
    with pytest.raises(ValueError):
        visual_offset(line, 9, 4)
    with pytest.raises(ValueError):
        visual_offset(line, 15, 4)


def test_visual_offset_inside_character():
    line = SourceLine(1, 0, 3, "é")
    with pytest.raises(ValueError):
        visual_offset(line, 1, 4)


def test_span_inside_line():
    line = SourceLine(1, 10, 5, "abcd")
    span = SourceSpan(11, 2)
    assert line.span_line_only(span)
    assert line.span_applies(span)
    assert line.span_starts(span)
    assert line.span_ends(span)
    assert not line.span_flyby(span)


def test_span_passing_through_line():
    line = SourceLine(2, 10, 5, "abcd")
    span = SourceSpan(5, 15)
    assert line.span_flyby(span)
    assert line.span_applies(span)
    assert not line.span_starts(span)
    assert not line.span_ends(span)
    assert not line.span_line_only(span)


def test_span_starting_in_line_ending_later():
    line = SourceLine(1, 10, 5, "abcd")
    span = SourceSpan(12, 10)
    assert line.span_applies(span)
    assert line.span_starts(span)
    assert not line.span_ends(span)
    assert not line.span_flyby(span)


def test_empty_span_applies_within_line():
    line = SourceLine(1, 10, 5, "abcd")
    assert line.span_applies(SourceSpan(14, 0))
    assert not line.span_applies(SourceSpan(15, 0))


def test_span_outside_line():
    line = SourceLine(1, 10, 5, "abcd")
    assert not line.span_applies(SourceSpan(0, 3))
    assert not line.span_applies(SourceSpan(20, 2))


def test_fancy_span_equality_ignores_style():
    plain = FancySpan("x", SourceSpan(1, 2), Style())
    bold = FancySpan("x", SourceSpan(1, 2), Style(bold=True))
    assert plain == bold
    assert plain != FancySpan("y", SourceSpan(1, 2))


def test_fancy_span_accepts_span_like_values():
    span = FancySpan(None, range(3, 7))
    assert span.span == SourceSpan(3, 4)
    assert (span.offset, span.length) == (3, 4)


def test_fancy_span_painted_label():
    assert FancySpan("here", SourceSpan(0, 1)).painted_label == "here"
    style = Style(bold=True)
    assert FancySpan("here", SourceSpan(0, 1), style).painted_label == style.paint("here")
    assert FancySpan(None, SourceSpan(0, 1), style).painted_label is None


def test_fancy_span_works_with_line_predicates():
    line = SourceLine(1, 0, 5, "abcd")
    assert line.span_line_only(FancySpan("x", SourceSpan(1, 2)))
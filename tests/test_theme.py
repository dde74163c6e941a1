import dataclasses
import sys

import pytest

from diagnostica.theme import GraphicalTheme, Style, ThemeCharacters, ThemeStyles


class _Tty:
    def isatty(self):
        return True

    def write(self, text):
        return len(text)

    def flush(self):
        pass


class _NotTty(_Tty):
    def isatty(self):
        return False


def test_ascii_characters():
    chars = ThemeCharacters.ascii()
    assert chars.hbar == "-"
    assert chars.vbar == "|"
    assert chars.underline == "^"
    assert chars.error == "x"


def test_unicode_characters():
    chars = ThemeCharacters.unicode()
    assert chars.ltop == "╭"
    assert chars.error == "×"
    assert chars.warning == "⚠"


def test_emoji_only_changes_icons():
    emoji = ThemeCharacters.emoji()
    unicode = ThemeCharacters.unicode()
    assert emoji.error == "💥"
    same = dataclasses.replace(
        emoji, error=unicode.error, warning=unicode.warning, advice=unicode.advice
    )
    assert same == unicode


def test_plain_style_leaves_text_alone():
    assert Style().paint("hello") == "hello"


def test_none_styles_paint_nothing():
    styles = ThemeStyles.none()
    for style in (styles.error, styles.warning, styles.advice, styles.help, styles.link):
        assert style.paint("abc") == "abc"
    assert len(styles.highlights) == 1


def test_ansi_style_wraps_text():
    painted = ThemeStyles.ansi().error.paint("boom")
    assert painted.startswith("\x1b[")
    assert "boom" in painted
    assert painted.endswith("\x1b[0m")
    assert painted != "boom"


def test_rgb_style_uses_rgb_colour():
    painted = ThemeStyles.rgb().error.paint("boom")
    assert "255;30;30" in painted
    assert "boom" in painted


def test_ansi_and_rgb_have_three_highlights():
    assert len(ThemeStyles.ansi().highlights) == 3
    assert len(ThemeStyles.rgb().highlights) == 3


def test_empty_highlights_rejected():
    with pytest.raises(ValueError):
        ThemeStyles(highlights=())


def test_theme_factories():
    assert GraphicalTheme.ascii() == GraphicalTheme(ThemeCharacters.ascii(), ThemeStyles.ansi())
    assert GraphicalTheme.unicode() == GraphicalTheme(ThemeCharacters.unicode(), ThemeStyles.ansi())
    assert GraphicalTheme.unicode_nocolor() == GraphicalTheme(
        ThemeCharacters.unicode(), ThemeStyles.none()
    )
    assert GraphicalTheme.none() == GraphicalTheme(ThemeCharacters.ascii(), ThemeStyles.none())


def test_default_without_terminal_is_ascii(monkeypatch):
    monkeypatch.setattr(sys, "stdout", _NotTty())
    monkeypatch.setattr(sys, "stderr", _Tty())
    assert GraphicalTheme.default() == GraphicalTheme.ascii()


def test_default_on_terminal_is_unicode(monkeypatch):
    monkeypatch.setattr(sys, "stdout", _Tty())
    monkeypatch.setattr(sys, "stderr", _Tty())
    monkeypatch.delenv("NO_COLOR", raising=False)
    assert GraphicalTheme.default() == GraphicalTheme.unicode()


@pytest.mark.parametrize("value, expected", [("1", "nocolor"), ("", "nocolor"), ("0", "color")])
def test_default_honours_no_color(monkeypatch, value, expected):
    monkeypatch.setattr(sys, "stdout", _Tty())
    monkeypatch.setattr(sys, "stderr", _Tty())
    monkeypatch.setenv("NO_COLOR", value)
    want = GraphicalTheme.unicode_nocolor() if expected == "nocolor" else GraphicalTheme.unicode()
    assert GraphicalTheme.default() == want
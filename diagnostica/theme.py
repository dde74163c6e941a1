"""Characters and colours used to draw graphical reports."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import Optional, TextIO

_RESET = "\x1b[0m"


@dataclass(frozen=True)
class Style:
    """A terminal text style: an optional foreground colour plus effects.

    ``foreground`` holds the SGR parameters of the colour, such as ``"31"``
    for red or ``"38;2;255;30;30"`` for an RGB colour.
    """

    foreground: Optional[str] = None
    bold: bool = False
    dimmed: bool = False
    underline: bool = False

    def paint(self, text: object) -> str:
        """Return ``text`` wrapped in the escape codes of this style."""
        codes = []
        if self.bold:
            codes.append("1")
        if self.dimmed:
            codes.append("2")
        if self.underline:
            codes.append("4")
        if self.foreground is not None:
            codes.append(self.foreground)
        if not codes:
            return str(text)
        return f"\x1b[{';'.join(codes)}m{text}{_RESET}"


def _ansi(code: int, *, bold: bool = False, underline: bool = False) -> Style:
    return Style(foreground=str(code), bold=bold, underline=underline)


def _rgb(red: int, green: int, blue: int, *, bold: bool = False, underline: bool = False) -> Style:
    return Style(foreground=f"38;2;{red};{green};{blue}", bold=bold, underline=underline)


_RED, _GREEN, _YELLOW, _MAGENTA, _CYAN = 31, 32, 33, 35, 36


@dataclass(frozen=True)
class ThemeStyles:
    """Styles for the parts of a graphical report."""

    error: Style = field(default_factory=Style)
    warning: Style = field(default_factory=Style)
    advice: Style = field(default_factory=Style)
    help: Style = field(default_factory=Style)
    link: Style = field(default_factory=Style)
    linum: Style = field(default_factory=Style)
    highlights: tuple[Style, ...] = (Style(),)

    def __post_init__(self) -> None:
        object.__setattr__(self, "highlights", tuple(self.highlights))
        if not self.highlights:
            raise ValueError("a theme needs at least one highlight style")

    @classmethod
    def rgb(cls) -> "ThemeStyles":
        """Full RGB colours."""
        return cls(
            error=_rgb(255, 30, 30),
            warning=_rgb(244, 191, 117),
            advice=_rgb(106, 159, 181),
            help=_rgb(106, 159, 181),
            link=_rgb(92, 157, 255, bold=True, underline=True),
            linum=Style(dimmed=True),
            highlights=(_rgb(246, 87, 248), _rgb(30, 201, 212), _rgb(145, 246, 111)),
        )

    @classmethod
    def ansi(cls) -> "ThemeStyles":
        """Styles built from the basic ANSI colours."""
        return cls(
            error=_ansi(_RED),
            warning=_ansi(_YELLOW),
            advice=_ansi(_CYAN),
            help=_ansi(_CYAN),
            link=_ansi(_CYAN, bold=True, underline=True),
            linum=Style(dimmed=True),
            highlights=(
                _ansi(_MAGENTA, bold=True),
                _ansi(_YELLOW, bold=True),
                _ansi(_GREEN, bold=True),
            ),
        )

    @classmethod
    def none(cls) -> "ThemeStyles":
        """No styling at all."""
        return cls()


@dataclass(frozen=True)
class ThemeCharacters:
    """Characters used for drawing boxes, gutters, arrows and icons."""

    hbar: str
    vbar: str
    xbar: str
    vbar_break: str
    uarrow: str
    rarrow: str
    ltop: str
    mtop: str
    rtop: str
    lbot: str
    rbot: str
    mbot: str
    lbox: str
    rbox: str
    lcross: str
    rcross: str
    underbar: str
    underline: str
    error: str
    warning: str
    advice: str

    @classmethod
    def unicode(cls) -> "ThemeCharacters":
        """Unicode box-drawing characters."""
        return cls(
            hbar="─", vbar="│", xbar="┼", vbar_break="·",
            uarrow="▲", rarrow="▶",
            ltop="╭", mtop="┬", rtop="╮", lbot="╰", rbot="╯", mbot="┴",
            lbox="[", rbox="]", lcross="├", rcross="┤",
            underbar="┬", underline="─",
            error="×", warning="⚠", advice="☞",
        )

    @classmethod
    def emoji(cls) -> "ThemeCharacters":
        """Unicode box-drawing characters with emoji icons."""
        return cls(
            hbar="─", vbar="│", xbar="┼", vbar_break="·",
            uarrow="▲", rarrow="▶",
            ltop="╭", mtop="┬", rtop="╮", lbot="╰", rbot="╯", mbot="┴",
            lbox="[", rbox="]", lcross="├", rcross="┤",
            underbar="┬", underline="─",
            error="💥", warning="⚠\ufe0f", advice="💡",
        )

    @classmethod
    def ascii(cls) -> "ThemeCharacters":
        """Plain ASCII art, for older terminals."""
        return cls(
            hbar="-", vbar="|", xbar="+", vbar_break=":",
            uarrow="^", rarrow=">",
            ltop=",", mtop="v", rtop=".", lbot="`", rbot="'", mbot="^",
            lbox="[", rbox="]", lcross="|", rcross="|",
            underbar="|", underline="^",
            error="x", warning="!", advice=">",
        )


def _is_terminal(stream: Optional[TextIO]) -> bool:
    try:
        return bool(stream.isatty())  # type: ignore[union-attr]
    except (AttributeError, ValueError):
        return False


@dataclass(frozen=True)
class GraphicalTheme:
    """Drawing characters together with the styles used to paint them."""

    characters: ThemeCharacters
    styles: ThemeStyles

    @classmethod
    def ascii(cls) -> "GraphicalTheme":
        """ASCII art with ANSI colours."""
        return cls(ThemeCharacters.ascii(), ThemeStyles.ansi())

    @classmethod
    def unicode(cls) -> "GraphicalTheme":
        """Unicode characters with ANSI colours."""
        return cls(ThemeCharacters.unicode(), ThemeStyles.ansi())

    @classmethod
    def unicode_nocolor(cls) -> "GraphicalTheme":
        """Unicode characters, monochrome."""
        return cls(ThemeCharacters.unicode(), ThemeStyles.none())

    @classmethod
    def none(cls) -> "GraphicalTheme":
        """Monochrome ASCII art."""
        return cls(ThemeCharacters.ascii(), ThemeStyles.none())

    @classmethod
    def default(cls) -> "GraphicalTheme":
        """Pick a theme from the terminal and the NO_COLOR variable."""
        if not _is_terminal(sys.stdout) or not _is_terminal(sys.stderr):
            return cls.ascii()
        no_color = os.environ.get("NO_COLOR")
        if no_color is not None and no_color != "0":
            return cls.unicode_nocolor()
        return cls.unicode()
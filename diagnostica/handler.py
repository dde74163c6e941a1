"""The default report handler, configured from a set of options."""

from __future__ import annotations

import dataclasses
import enum
import os
import sys
from dataclasses import dataclass
from typing import Optional, TextIO, Union

from diagnostica.graphical import GraphicalReportHandler
from diagnostica.narratable import NarratableReportHandler
from diagnostica.protocol import Diagnostic
from diagnostica.theme import GraphicalTheme, ThemeCharacters, ThemeStyles

_DEFAULT_WIDTH = 80
_HYPERLINK_PROGRAMS = {"Hyper", "iTerm.app", "terminology", "WezTerm", "vscode"}
_HYPERLINK_TERMS = {"xterm-kitty", "alacritty"}


class RgbColors(enum.Enum):
    """Which colour format to use when colours are used."""

    ALWAYS = "always"
    """Use RGB colours even if the terminal does not support them."""
    PREFERRED = "preferred"
    """Use RGB colours if the terminal supports them, else ANSI."""
    NEVER = "never"
    """Always use ANSI colours."""


@dataclass(frozen=True)
class _ColorSupport:
    has_256: bool = False
    has_16m: bool = False


def _is_terminal(stream: Optional[TextIO]) -> bool:
    try:
        return bool(stream.isatty())  # type: ignore[union-attr]
    except (AttributeError, ValueError):
        return False


def _env(name: str) -> Optional[str]:
    return os.environ.get(name)


def _supports_unicode() -> bool:
    """Guess whether standard error can display unicode."""
    if sys.platform == "win32":
        return (
            _env("WT_SESSION") is not None
            or _env("ConEmuTask") == "{cmd::Cmder}"
            or _env("TERM_PROGRAM") == "vscode"
            or _env("TERM") in {"xterm-256color", "alacritty"}
        )
    if _env("TERM") == "linux":
        return False
    for name in ("LC_ALL", "LC_CTYPE", "LANG"):
        value = _env(name)
        if value:
            value = value.upper()
            return value.endswith("UTF-8") or value.endswith("UTF8")
    return False


def _supports_color(stream: Optional[TextIO]) -> Optional[_ColorSupport]:
    """Detect the colour level of ``stream``, or None if it has no colours."""
    forced = _env("FORCE_COLOR")
    if forced is not None:
        if forced.lower() in {"0", "false"}:
            return None
        if forced == "3":
            return _ColorSupport(has_256=True, has_16m=True)
        if forced == "2":
            return _ColorSupport(has_256=True)
        return _ColorSupport()
    if _env("NO_COLOR"):
        return None
    if not _is_terminal(stream):
        return None
    term = _env("TERM") or ""
    if term == "dumb":
        return None
    colorterm = (_env("COLORTERM") or "").lower()
    if colorterm in {"truecolor", "24bit"}:
        return _ColorSupport(has_256=True, has_16m=True)
    if "256" in term:
        return _ColorSupport(has_256=True)
    return _ColorSupport()


def _supports_hyperlinks(stream: Optional[TextIO]) -> bool:
    """Guess whether the terminal behind ``stream`` renders hyperlinks."""
    forced = _env("FORCE_HYPERLINK")
    if forced:
        return forced != "0"
    if not _is_terminal(stream):
        return False
    if _env("DOMTERM") is not None:
        return True
    vte = _env("VTE_VERSION")
    if vte is not None:
        try:
            if int(vte) >= 5000:
                return True
        except ValueError:
            pass
    return (
        _env("TERM_PROGRAM") in _HYPERLINK_PROGRAMS
        or _env("TERM") in _HYPERLINK_TERMS
        or _env("COLORTERM") == "xfce4-terminal"
        or _env("WT_SESSION") is not None
        or _env("KONSOLE_VERSION") is not None
    )


def _terminal_width() -> Optional[int]:
    for stream in (sys.__stdout__, sys.__stderr__, sys.__stdin__):
        try:
            return os.get_terminal_size(stream.fileno()).columns  # type: ignore[union-attr]
        except (AttributeError, OSError, ValueError):
            continue
    return None


@dataclass(frozen=True)
class HandlerOptions:
    """Options from which a ReportHandler is built.

    Every option left unset is detected from the environment. The builder
    methods return new options and leave the original unchanged.
    """

    _linkify: Optional[bool] = None
    _width: Optional[int] = None
    _theme: Optional[GraphicalTheme] = None
    _force_graphical: Optional[bool] = None
    _force_narrated: Optional[bool] = None
    _rgb_colors: RgbColors = RgbColors.NEVER
    _color: Optional[bool] = None
    _unicode: Optional[bool] = None
    _footer: Optional[str] = None
    _context_lines: Optional[int] = None
    _tab_width: Optional[int] = None
    _with_cause_chain: Optional[bool] = None

    def terminal_links(self, linkify: bool) -> "HandlerOptions":
        """Whether codes become clickable links; detected from the terminal by default."""
        return dataclasses.replace(self, _linkify=bool(linkify))

    def graphical_theme(self, theme: GraphicalTheme) -> "HandlerOptions":
        """Theme for graphical mode; overrides the colour and unicode options."""
        return dataclasses.replace(self, _theme=theme)

    def width(self, width: int) -> "HandlerOptions":
        """Width to wrap the report at; defaults to the terminal width, or 80."""
        if width < 0:
            raise ValueError("width must not be negative")
        return dataclasses.replace(self, _width=width)

    def with_cause_chain(self) -> "HandlerOptions":
        return dataclasses.replace(self, _with_cause_chain=True)

    def without_cause_chain(self) -> "HandlerOptions":
        return dataclasses.replace(self, _with_cause_chain=False)

    def color(self, color: bool) -> "HandlerOptions":
        """Force colours on or off; detected from the terminal by default."""
        return dataclasses.replace(self, _color=bool(color))

    def rgb_colors(self, color: RgbColors) -> "HandlerOptions":
        """Which colour format to use when colours are used."""
        return dataclasses.replace(self, _rgb_colors=RgbColors(color))

    def unicode(self, unicode: bool) -> "HandlerOptions":
        """Force unicode drawing, or ASCII art when false."""
        return dataclasses.replace(self, _unicode=bool(unicode))

    def force_graphical(self, force: bool) -> "HandlerOptions":
        return dataclasses.replace(self, _force_graphical=bool(force))

    def force_narrated(self, force: bool) -> "HandlerOptions":
        return dataclasses.replace(self, _force_narrated=bool(force))

    def footer(self, footer: str) -> "HandlerOptions":
        return dataclasses.replace(self, _footer=str(footer))

    def context_lines(self, context_lines: int) -> "HandlerOptions":
        if context_lines < 0:
            raise ValueError("context lines must not be negative")
        return dataclasses.replace(self, _context_lines=context_lines)

    def tab_width(self, width: int) -> "HandlerOptions":
        if width <= 0:
            raise ValueError("tab width must be positive")
        return dataclasses.replace(self, _tab_width=width)

    def build(self) -> "ReportHandler":
        """Build a ReportHandler from these options."""
        if not self.is_graphical():
            narrated = NarratableReportHandler()
            if self._footer is not None:
                narrated = narrated.with_footer(self._footer)
            if self._context_lines is not None:
                narrated = narrated.with_context_lines(self._context_lines)
            if self._with_cause_chain is not None:
                narrated = (
                    narrated.with_cause_chain()
                    if self._with_cause_chain
                    else narrated.without_cause_chain()
                )
            return ReportHandler(narrated)

        theme = self._theme
        if theme is None:
            theme = GraphicalTheme(self._characters(), self._styles())
        graphical = (
            GraphicalReportHandler(theme=theme)
            .with_width(self.get_width())
            .with_links(self.use_links())
        )
        if self._with_cause_chain is not None:
            graphical = (
                graphical.with_cause_chain()
                if self._with_cause_chain
                else graphical.without_cause_chain()
            )
        if self._footer is not None:
            graphical = graphical.with_footer(self._footer)
        if self._context_lines is not None:
            graphical = graphical.with_context_lines(self._context_lines)
        if self._tab_width is not None:
            graphical = graphical.with_tab_width(self._tab_width)
        return ReportHandler(graphical)

    def _characters(self) -> ThemeCharacters:
        if self._unicode is True:
            return ThemeCharacters.unicode()
        if self._unicode is False:
            return ThemeCharacters.ascii()
        return ThemeCharacters.unicode() if _supports_unicode() else ThemeCharacters.ascii()

    def _styles(self) -> ThemeStyles:
        if self._color is False:
            return ThemeStyles.none()
        support = _supports_color(sys.stderr)
        if support is not None:
            if self._rgb_colors is RgbColors.ALWAYS:
                return ThemeStyles.rgb()
            if self._rgb_colors is RgbColors.PREFERRED and support.has_16m:
                return ThemeStyles.rgb()
            return ThemeStyles.ansi()
        if self._color is True:
            if self._rgb_colors is RgbColors.ALWAYS:
                return ThemeStyles.rgb()
            return ThemeStyles.ansi()
        return ThemeStyles.none()

    def is_graphical(self) -> bool:
        """Whether the graphical handler will be used."""
        if self._force_narrated is not None:
            return not self._force_narrated
        if self._force_graphical is not None:
            return self._force_graphical
        no_graphics = os.environ.get("NO_GRAPHICS")
        if no_graphics is not None:
            return no_graphics == "0"
        return True

    def use_links(self) -> bool:
        """Whether codes are rendered as terminal hyperlinks."""
        if self._linkify is not None:
            return self._linkify
        return _supports_hyperlinks(sys.stderr)

    def get_width(self) -> int:
        """The configured width, else the terminal's width, else 80."""
        if self._width is not None:
            return self._width
        detected = _terminal_width()
        return _DEFAULT_WIDTH if detected is None else detected


Inner = Union[GraphicalReportHandler, NarratableReportHandler]


class ReportHandler:
    """The default report handler: a graphical or narrated handler chosen by options."""

    def __init__(self, inner: Optional[Inner] = None) -> None:
        self._inner = HandlerOptions().build().inner if inner is None else inner

    @property
    def inner(self) -> Inner:
        """The handler that does the rendering."""
        return self._inner

    def render_report(self, diagnostic: Union[Diagnostic, BaseException, str]) -> str:
        """Render ``diagnostic`` with the inner handler."""
        return self._inner.render_report(diagnostic)

    def __repr__(self) -> str:
        return f"ReportHandler({self._inner!r})"
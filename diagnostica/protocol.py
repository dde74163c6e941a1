"""Core types: severities, spans, labels, source code and diagnostics."""

from __future__ import annotations

import abc
import enum
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Optional, Union


class Severity(enum.IntEnum):
    """How serious a diagnostic is. Reporters treat a missing severity as ERROR."""

    ADVICE = 0
    WARNING = 1
    ERROR = 2

    def __str__(self) -> str:
        return self.name.capitalize()


class SourceReadError(Exception):
    """Raised when a span cannot be read from a source."""


@dataclass(frozen=True)
class SourceOffset:
    """A byte offset from the beginning of a source."""

    offset: int

    def __post_init__(self) -> None:
        if self.offset < 0:
            raise ValueError(f"offset must not be negative: {self.offset}")

    @classmethod
    def from_location(cls, source: str, loc_line: int, loc_col: int) -> "SourceOffset":
        """Convert a 1-based line/column location into a byte offset.

        Out-of-range locations give the offset of the end of the source.
        """
        line = 0
        col = 0
        offset = 0
        for char in source:
            if line + 1 >= loc_line and col + 1 >= loc_col:
                break
            if char == "\n":
                col = 0
                line += 1
            else:
                col += 1
            offset += len(char.encode("utf-8"))
        return cls(offset)

    def to_dict(self) -> int:
        """Serialised form: the bare offset."""
        return self.offset

    def __int__(self) -> int:
        return self.offset


SpanLike = Union["SourceSpan", SourceOffset, int, range, tuple]


@dataclass(frozen=True)
class SourceSpan:
    """A span of bytes within a source: a start offset and a length."""

    offset: int
    length: int = 0

    def __post_init__(self) -> None:
        if self.offset < 0 or self.length < 0:
            raise ValueError(
                f"span offset and length must not be negative: ({self.offset}, {self.length})"
            )

    @classmethod
    def from_value(cls, value: SpanLike) -> "SourceSpan":
        """Build a span from a span, an offset, a range or an (offset, length) pair."""
        if isinstance(value, SourceSpan):
            return value
        if isinstance(value, SourceOffset):
            return cls(value.offset, 0)
        if isinstance(value, bool):
            raise TypeError("a bool is not a span")
        if isinstance(value, int):
            return cls(value, 0)
        if isinstance(value, range):
            if value.step != 1:
                raise ValueError("a span range must have a step of 1")
            return cls(value.start, len(value))
        if isinstance(value, tuple) and len(value) == 2:
            start, length = value
            return cls(int(start), int(length))
        raise TypeError(f"cannot make a span from {value!r}")

    @property
    def end(self) -> int:
        """Offset one past the last byte of the span."""
        return self.offset + self.length

    def is_empty(self) -> bool:
        """True if the span has zero length (it may still point at a place)."""
        return self.length == 0

    def to_dict(self) -> dict[str, int]:
        return {"offset": self.offset, "length": self.length}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SourceSpan":
        try:
            return cls(int(data["offset"]), int(data["length"]))
        except KeyError as exc:
            raise ValueError(f"span is missing field {exc.args[0]!r}") from None


@dataclass(frozen=True)
class LabeledSpan:
    """A span with an optional label text."""

    label: Optional[str]
    span: SourceSpan
    primary: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "span", SourceSpan.from_value(self.span))

    @classmethod
    def new_with_span(cls, label: Optional[str], span: SpanLike) -> "LabeledSpan":
        return cls(label, SourceSpan.from_value(span))

    @classmethod
    def new_primary_with_span(cls, label: Optional[str], span: SpanLike) -> "LabeledSpan":
        return cls(label, SourceSpan.from_value(span), primary=True)

    @classmethod
    def at(cls, span: SpanLike, label: str) -> "LabeledSpan":
        """A labelled span covering ``span``."""
        return cls.new_with_span(label, span)

    @classmethod
    def at_offset(cls, offset: int, label: str) -> "LabeledSpan":
        """A labelled, zero-length span pointing at ``offset``."""
        return cls(label, SourceSpan(offset, 0))

    @classmethod
    def underline(cls, span: SpanLike) -> "LabeledSpan":
        """An unlabelled span that just underlines ``span``."""
        return cls.new_with_span(None, span)

    @property
    def offset(self) -> int:
        return self.span.offset

    @property
    def length(self) -> int:
        return self.span.length

    def is_empty(self) -> bool:
        return self.span.is_empty()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.label is not None:
            data["label"] = self.label
        data["span"] = self.span.to_dict()
        data["primary"] = self.primary
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LabeledSpan":
        if "span" not in data:
            raise ValueError("labeled span is missing field 'span'")
        return cls(
            data.get("label"),
            SourceSpan.from_dict(data["span"]),
            bool(data.get("primary", False)),
        )


@dataclass(frozen=True)
class SpanContents:
    """Bytes read from a source for a span, with their position information.

    ``line`` and ``column`` are 0-based and mark where ``data`` begins.
    """

    data: bytes
    span: SourceSpan
    line: int
    column: int
    line_count: int
    name: Optional[str] = None


class SourceCode(abc.ABC):
    """Readable source code that diagnostics can point into."""

    @abc.abstractmethod
    def read_span(
        self, span: SourceSpan, context_lines_before: int, context_lines_after: int
    ) -> SpanContents:
        """Read ``span`` plus surrounding context lines.

        Raises SourceReadError if the span cannot be read.
        """


class Diagnostic(Exception):
    """An error carrying rich metadata for reporters.

    Subclasses override any of the attributes below, as plain attributes or
    properties. The message is ``str(diagnostic)``.
    """

    code: Optional[str] = None
    severity: Optional[Severity] = None
    help: Optional[str] = None
    url: Optional[str] = None
    source_code: Optional[SourceCode] = None
    labels: Optional[Iterable[LabeledSpan]] = None
    related: Optional[Iterable["Diagnostic"]] = None
    diagnostic_source: Optional["Diagnostic"] = None


class _WrappedError(Diagnostic):
    """A plain exception presented as a diagnostic, transparently."""

    def __init__(self, error: BaseException) -> None:
        super().__init__(error)
        self.error = error
        self.__cause__ = _error_source(error)
        self.__suppress_context__ = True

    def __str__(self) -> str:
        return str(self.error)

    def __repr__(self) -> str:
        return repr(self.error)


def _error_source(error: BaseException) -> Optional[BaseException]:
    if error.__cause__ is not None:
        return error.__cause__
    if error.__suppress_context__:
        return None
    return error.__context__


def as_diagnostic(value: Union[str, BaseException]) -> Diagnostic:
    """Turn a message or any exception into a Diagnostic."""
    if isinstance(value, Diagnostic):
        return value
    if isinstance(value, str):
        return Diagnostic(value)
    if isinstance(value, BaseException):
        return _WrappedError(value)
    raise TypeError(f"cannot make a diagnostic from {type(value).__name__}")


def iter_causes(diagnostic: BaseException) -> Iterator[BaseException]:
    """Yield the chain of causes of ``diagnostic``, nearest first.

    A diagnostic's ``diagnostic_source`` is preferred over its exception cause.
    """

    def next_cause(error: BaseException) -> Optional[BaseException]:
        if isinstance(error, Diagnostic) and error.diagnostic_source is not None:
            return error.diagnostic_source
        return _error_source(error)

    seen: set[int] = {id(diagnostic)}
    current = next_cause(diagnostic)
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = next_cause(current)
"""Diagnostics built at runtime from plain values."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Optional

from diagnostica.protocol import Diagnostic, LabeledSpan, Severity

_SEVERITY_BY_NAME = {str(severity): severity for severity in Severity}


class DynamicDiagnostic(Diagnostic):
    """A diagnostic whose message and metadata are given at runtime.

    The ``with_*`` and ``and_*`` methods return a new diagnostic and leave
    the original unchanged.
    """

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        severity: Optional[Severity] = None,
        help: Optional[str] = None,
        url: Optional[str] = None,
        labels: Optional[Iterable[LabeledSpan]] = None,
    ) -> None:
        message = str(message)
        super().__init__(message)
        self.message = message
        self.code = code
        self.severity = None if severity is None else Severity(severity)
        self.help = help
        self.url = url
        self.labels = None if labels is None else list(labels)

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        fields = [f"{self.message!r}"]
        for name in ("code", "severity", "help", "url", "labels"):
            value = getattr(self, name)
            if value is not None:
                fields.append(f"{name}={value!r}")
        return f"DynamicDiagnostic({', '.join(fields)})"

    def _key(self) -> tuple:
        labels = None if self.labels is None else tuple(self.labels)
        return (self.message, self.code, self.severity, self.help, self.url, labels)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DynamicDiagnostic):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def _replace(self, **changes: Any) -> "DynamicDiagnostic":
        fields: dict[str, Any] = {
            "code": self.code,
            "severity": self.severity,
            "help": self.help,
            "url": self.url,
            "labels": self.labels,
        }
        fields.update(changes)
        return DynamicDiagnostic(self.message, **fields)

    def with_code(self, code: str) -> "DynamicDiagnostic":
        return self._replace(code=str(code))

    def with_severity(self, severity: Severity) -> "DynamicDiagnostic":
        return self._replace(severity=Severity(severity))

    def with_help(self, help: str) -> "DynamicDiagnostic":
        return self._replace(help=str(help))

    def with_url(self, url: str) -> "DynamicDiagnostic":
        return self._replace(url=str(url))

    def with_label(self, label: LabeledSpan) -> "DynamicDiagnostic":
        """Replace any existing labels with ``label``."""
        return self._replace(labels=[label])

    def with_labels(self, labels: Iterable[LabeledSpan]) -> "DynamicDiagnostic":
        """Replace any existing labels with ``labels``."""
        return self._replace(labels=list(labels))

    def and_label(self, label: LabeledSpan) -> "DynamicDiagnostic":
        """Add ``label`` after the existing labels."""
        return self._replace(labels=[*(self.labels or []), label])

    def and_labels(self, labels: Iterable[LabeledSpan]) -> "DynamicDiagnostic":
        """Add ``labels`` after the existing labels."""
        return self._replace(labels=[*(self.labels or []), *labels])

    def to_dict(self) -> dict[str, Any]:
        """Serialised form; fields that are not set are left out."""
        data: dict[str, Any] = {"message": self.message}
        if self.code is not None:
            data["code"] = self.code
        if self.severity is not None:
            data["severity"] = str(self.severity)
        if self.help is not None:
            data["help"] = self.help
        if self.url is not None:
            data["url"] = self.url
        if self.labels is not None:
            data["labels"] = [label.to_dict() for label in self.labels]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DynamicDiagnostic":
        """Build a diagnostic from its serialised form; null fields count as unset."""
        if "message" not in data:
            raise ValueError("diagnostic is missing field 'message'")
        severity_name = data.get("severity")
        severity = None
        if severity_name is not None:
            try:
                severity = _SEVERITY_BY_NAME[severity_name]
            except (KeyError, TypeError):
                raise ValueError(f"unknown severity: {severity_name!r}") from None
        raw_labels = data.get("labels")
        labels = None if raw_labels is None else [LabeledSpan.from_dict(item) for item in raw_labels]
        return cls(
            data["message"],
            code=data.get("code"),
            severity=severity,
            help=data.get("help"),
            url=data.get("url"),
            labels=labels,
        )
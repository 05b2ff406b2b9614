"""Error types raised by the assertion engine."""

from __future__ import annotations

import traceback
from dataclasses import dataclass
from typing import Any, Literal

from assertive.report import DiagnosticContext, DiagnosticReport, format_report

FailureKind = Literal["error", "throw", "exit"]


class AssertionFailure(AssertionError):
    """AssertionError with an attached DiagnosticReport."""

    def __init__(self, report: DiagnosticReport) -> None:
        self.report = report
        super().__init__(report.message)

    @classmethod
    def build(cls, message: str, **fields: Any) -> AssertionFailure:
        return cls(DiagnosticReport(message=message, **fields))

    @property
    def message(self) -> str:
        return self.report.message

    @property
    def left(self) -> Any:
        return self.report.left

    @property
    def right(self) -> Any:
        return self.report.right

    @property
    def expr(self) -> str:
        return self.report.expr

    @property
    def context(self) -> DiagnosticContext:
        return self.report.context

    def __str__(self) -> str:
        return format_report(self.report)


class ConfigurationError(ValueError):
    """Caller misuse detected before any matching attempt."""


@dataclass(frozen=True, slots=True)
class FailureRecord:
    """One failure collected while running a test unit.

    Attributes
    ----------
    kind
        ``"error"`` for exceptions, ``"throw"`` for thrown values, ``"exit"`` for exits.
    error
        The raised object.
    origin
        Traceback frames extracted where the failure was caught.
    """

    kind: FailureKind
    error: BaseException
    origin: traceback.StackSummary

    def banner(self) -> str:
        location = ""
        if self.origin:
            frame = self.origin[-1]
            location = f" at {frame.filename}:{frame.lineno}"
        return f"** ({self.kind}) {type(self.error).__name__}{location}\n{self.error}"


class AggregateFailure(AssertionError):
    """Raised when a test unit produced more than one failure."""

    def __init__(self, errors: list[FailureRecord]) -> None:
        self.errors = list(errors)
        super().__init__(self._render())

    def _render(self) -> str:
        banners = "\n\n".join(record.banner() for record in self.errors)
        return "got the following errors:\n\n" + banners

"""Diagnostic report models produced by failing assertions."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict


class _NoValue:
    """Marker for a report field that carries no meaningful value."""

    _instance: ClassVar[_NoValue | None] = None

    def __new__(cls) -> _NoValue:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<no value>"

    def __bool__(self) -> bool:
        return False


NO_VALUE: Any = _NoValue()

_INDENT = "\n  "


class DiagnosticContext(str, Enum):
    """Tells a formatter which rendering strategy applies to a report."""

    EQUAL = "=="
    STRICT = "==="
    MATCH = "match"
    MAILBOX = "mailbox"


class MailboxSnapshot(BaseModel):
    """Bounded copy of a mailbox taken when a receive assertion fails.

    Attributes
    ----------
    total_count : int
        Number of messages queued at the moment of the snapshot.
    shown : tuple
        Up to ``MAX_SHOWN`` of the most recent messages, most recent first.
    truncated : bool
        Whether messages were left out of ``shown``.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    MAX_SHOWN: ClassVar[int] = 10

    total_count: int
    shown: tuple[Any, ...] = ()
    truncated: bool = False

    @classmethod
    def capture(cls, messages: Sequence[Any]) -> MailboxSnapshot:
        total = len(messages)
        recent = list(messages[-cls.MAX_SHOWN :]) if total else []
        recent.reverse()
        return cls(total_count=total, shown=tuple(recent), truncated=total > cls.MAX_SHOWN)

    @property
    def summary(self) -> str:
        if self.total_count == 0:
            return "The process mailbox is empty."
        if self.total_count == 1:
            return "Showing 1 of 1 message in the mailbox"
        return f"Showing {len(self.shown)} of {self.total_count} messages in the mailbox"


class DiagnosticReport(BaseModel):
    """Structured payload of one failed assertion.

    Fields are populated according to ``context``: ``EQUAL``/``STRICT`` carry both
    operands, ``MATCH`` carries the pattern (``left``), the value (``right``) and the
    pins, ``MAILBOX`` carries the pattern, the pins and a ``MailboxSnapshot``.
    A report is built once and never mutated.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    message: str
    left: Any = NO_VALUE
    right: Any = NO_VALUE
    expr: str = ""
    context: DiagnosticContext = DiagnosticContext.EQUAL
    pinned_bindings: tuple[tuple[str, Any], ...] = ()
    args: tuple[Any, ...] | None = None
    keywords: tuple[tuple[str, Any], ...] = ()
    mailbox: MailboxSnapshot | None = None

    @property
    def has_left(self) -> bool:
        return self.left is not NO_VALUE

    @property
    def has_right(self) -> bool:
        return self.right is not NO_VALUE


def pins_message(pins: Sequence[tuple[str, Any]]) -> str:
    """Render the pinned-variable listing appended to match failure messages."""
    if not pins:
        return ""
    pinned = _INDENT.join(f"{name} = {value!r}" for name, value in pins)
    return "\nThe following variables were pinned:" + _INDENT + pinned


def format_report(report: DiagnosticReport) -> str:
    """Plain text rendering of a report, without diffs."""
    # Local import: patterns.model imports NO_VALUE from this module.
    from assertive.patterns.model import is_pattern, render  # noqa: PLC0415

    def show(value: Any) -> str:
        return render(value) if is_pattern(value) else repr(value)

    lines = [report.message]
    if report.expr:
        lines.append(f"code:  {report.expr}")
    if report.args is not None:
        for index, arg in enumerate(report.args, start=1):
            lines.append(f"arg{index}:  {arg!r}")
        for name, value in report.keywords:
            lines.append(f"{name}:  {value!r}")
    if report.has_left:
        label = "pattern:" if report.context is DiagnosticContext.MAILBOX else "left: "
        lines.append(f"{label} {show(report.left)}")
    if report.has_right:
        lines.append(f"right: {show(report.right)}")
    if report.mailbox is not None:
        for message in report.mailbox.shown:
            lines.append(f"value: {message!r}")
    return "\n".join(lines)

"""Console reporter for unit results using Rich."""

from __future__ import annotations

import sys

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from assertive.errors import AggregateFailure, AssertionFailure
from assertive.report import format_report
from assertive.testing.unit import UnitResult, UnitStatus


_STATUS_CONFIG: dict[UnitStatus, tuple[str, str, str]] = {
    UnitStatus.PASSED: ("✓", "green", "PASSED"),
    UnitStatus.FAILED: ("✗", "red", "FAILED"),
    UnitStatus.ERROR: ("!", "yellow", "ERROR"),
}


class ConsoleReporter:
    """Reporter that prints unit results and their diagnostics to the console."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(file=sys.__stdout__)
        self._failures: list[UnitResult] = []

    def on_result(self, result: UnitResult) -> None:
        symbol, color, label = _STATUS_CONFIG[result.status]
        duration = f"[dim]({result.duration_ms:.1f}ms)[/dim]"
        self.console.print(f"  {symbol} {escape(result.name)} {duration} [{color}]{label}[/{color}]")
        if result.status.is_failure:
            self._failures.append(result)

    def on_run_complete(self) -> None:
        for result in self._failures:
            self.console.print(self._failure_panel(result))
        passed_color = "red" if self._failures else "green"
        self.console.print(f"[{passed_color}]{len(self._failures)} failed[/{passed_color}]")

    def _failure_panel(self, result: UnitResult) -> Panel:
        return Panel(
            Group(*self._render_error(result.error)),
            title=escape(result.name),
            border_style=_STATUS_CONFIG[result.status][1],
        )

    def _render_error(self, error: BaseException | None) -> list[Text]:
        match error:
            case AggregateFailure(errors=records):
                parts: list[Text] = []
                for record in records:
                    parts.append(Text(f"({record.kind})", style="bold"))
                    parts.extend(self._render_error(record.error))
                return parts
            case AssertionFailure(report=report):
                return [Text(format_report(report))]
            case None:
                return []
            case _:
                return [Text(f"{type(error).__name__}: {error}")]

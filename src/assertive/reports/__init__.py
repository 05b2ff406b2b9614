from assertive.reports.console import ConsoleReporter

__all__ = ["ConsoleReporter"]

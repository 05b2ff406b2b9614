"""Assertive - assertion engine with structured failure reports."""

from .assertions import (
    AssertionKind,
    Comparison,
    Opaque,
    Operand,
    PatternMatch,
    Predicate,
    assert_,
    assert_in_delta,
    assert_raises,
    assert_value,
    catch_error,
    catch_exit,
    catch_throw,
    classify,
    flunk,
    refute,
    refute_in_delta,
    refute_value,
    throw,
)
from .config import configure, get_settings
from .context import current_mailbox
from .core import binds, load_module, matches, pin
from .errors import AggregateFailure, AssertionFailure, ConfigurationError
from .mailbox import Mailbox
from .mailbox.receive import assert_receive, assert_received, refute_receive, refute_received
from .report import DiagnosticContext, DiagnosticReport, MailboxSnapshot
from .testing import TestUnit, on_exit
from .version import __version__


__all__ = [
    # Expressions and classification
    "AssertionKind",
    "Comparison",
    "Opaque",
    "Operand",
    "PatternMatch",
    "Predicate",
    "assert_",
    "classify",
    "refute",
    # Helpers
    "assert_in_delta",
    "assert_raises",
    "assert_value",
    "catch_error",
    "catch_exit",
    "catch_throw",
    "flunk",
    "refute_in_delta",
    "refute_value",
    "throw",
    # Pattern markers
    "binds",
    "matches",
    "pin",
    # Mailbox
    "Mailbox",
    "assert_receive",
    "assert_received",
    "current_mailbox",
    "refute_receive",
    "refute_received",
    # Errors and reports
    "AggregateFailure",
    "AssertionFailure",
    "ConfigurationError",
    "DiagnosticContext",
    "DiagnosticReport",
    "MailboxSnapshot",
    # Configuration and units
    "TestUnit",
    "configure",
    "get_settings",
    "load_module",
    "on_exit",
    "__version__",
]

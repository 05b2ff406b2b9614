"""Value assertions that need no expression introspection."""

from __future__ import annotations

from typing import Any, NoReturn

from assertive.errors import AssertionFailure, ConfigurationError


def assert_value(value: Any, message: str | None = None, **fields: Any) -> bool:
    """Fail with ``message`` unless ``value`` is truthy.

    Extra keyword arguments are stored on the DiagnosticReport.
    """
    if not value:
        raise AssertionFailure.build(message or f"Expected truthy, got {value!r}", **fields)
    return True


def refute_value(value: Any, message: str | None = None, **fields: Any) -> bool:
    if value:
        raise AssertionFailure.build(message or f"Expected false or None, got {value!r}", **fields)
    return False


def flunk(message: str = "Flunked!", **fields: Any) -> NoReturn:
    """Fail unconditionally."""
    raise AssertionFailure.build(message, **fields)


def assert_in_delta(value1: float, value2: float, delta: float, message: str | None = None) -> bool:
    """Assert that ``value1`` and ``value2`` differ by no more than ``delta`` (inclusive)."""
    if delta < 0:
        msg = f"delta must always be a positive number, got: {delta!r}"
        raise ConfigurationError(msg)

    diff = abs(value1 - value2)
    if message is None:
        message = (
            f"Expected the difference between {value1!r} and {value2!r} ({diff!r}) "
            f"to be less than or equal to {delta!r}"
        )
    return assert_value(diff <= delta, message)


def refute_in_delta(value1: float, value2: float, delta: float, message: str | None = None) -> bool:
    """Assert that ``value1`` and ``value2`` differ by at least ``delta``.

    A custom ``message`` gets the compared values appended.
    """
    diff = abs(value1 - value2)
    if message is None:
        message = (
            f"Expected the difference between {value1!r} and {value2!r} ({diff!r}) "
            f"to be more than {delta!r}"
        )
    else:
        message += f" (difference between {value1!r} and {value2!r} is less than {delta!r})"
    return refute_value(diff < delta, message)

"""Helpers asserting that an operation raises, throws or exits."""

from __future__ import annotations

import re
import traceback
from collections.abc import Callable
from enum import Enum
from typing import Any

from assertive.errors import AssertionFailure


class Thrown(BaseException):
    """Non-local return of a value, caught with :func:`catch_throw`."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(value)


def throw(value: Any) -> None:
    raise Thrown(value)


class SignalKind(str, Enum):
    THROW = "throw"
    EXIT = "exit"
    ERROR = "error"


ExpectedException = type[BaseException] | tuple[type[BaseException], ...]


def _describe(expected: ExpectedException) -> str:
    if isinstance(expected, tuple):
        return " | ".join(cls.__name__ for cls in expected)
    return expected.__name__


def assert_raises(
    expected: ExpectedException,
    operation: Callable[[], Any],
    message: str | re.Pattern[str] | None = None,
) -> BaseException:
    """Assert that calling ``operation`` raises ``expected``.

    Parameters
    ----------
    expected
        Exception class, or tuple of classes, that ``operation`` must raise.
    operation
        Zero-argument callable.
    message
        Optional exact message, or compiled pattern searched in the message.

    Returns
    -------
    BaseException
        The raised exception.

    Raises
    ------
    AssertionFailure
        If nothing, or something else, was raised, or the message does not match.
        A nested AssertionFailure propagates unchanged unless ``expected`` names
        AssertionFailure or a subclass of it; broad classes such as ``Exception``
        never catch it.
    """
    name = _describe(expected)
    try:
        operation()
    except AssertionFailure as failure:
        # Only caught when the caller asked for AssertionFailure itself.
        if not _expects_failure(expected, failure):
            raise
        return _checked(name, failure, message)
    except BaseException as error:
        if isinstance(error, expected):
            return _checked(name, error, message)
        if not isinstance(error, Exception):
            raise
        raise AssertionFailure.build(
            f"Expected exception {name} but got {type(error).__name__} ({error})"
        ) from error

    raise AssertionFailure.build(f"Expected exception {name} but nothing was raised")


def _expects_failure(expected: ExpectedException, failure: AssertionFailure) -> bool:
    classes = expected if isinstance(expected, tuple) else (expected,)
    return any(issubclass(cls, AssertionFailure) and isinstance(failure, cls) for cls in classes)


def _checked(name: str, error: BaseException, message: str | re.Pattern[str] | None) -> BaseException:
    actual = _error_message(name, error)
    if message is not None:
        _check_message(name, message, actual)
    return error


def _error_message(name: str, error: BaseException) -> str:
    try:
        return str(error)
    except Exception as render_error:
        formatted = "".join(traceback.format_exception(render_error))
        raise AssertionFailure.build(
            f"Got exception {name} but it failed to produce a message with:\n\n{formatted}"
        ) from render_error


def _check_message(name: str, expected: str | re.Pattern[str], actual: str) -> None:
    if isinstance(expected, re.Pattern):
        ok = expected.search(actual) is not None
        shown = expected.pattern
    else:
        ok = actual == expected
        shown = expected
    if not ok:
        raise AssertionFailure.build(
            f"Wrong message for {name}\nexpected:\n  {shown!r}\nactual:\n  {actual!r}"
        )


def catch_signal(kind: SignalKind | str, operation: Callable[[], Any]) -> Any:
    """Run ``operation`` and return what it signalled as ``kind``.

    ``throw`` returns the thrown value, ``exit`` the ``SystemExit`` code and
    ``error`` the raised exception. Other signals propagate.
    """
    kind = SignalKind(kind)
    try:
        operation()
    except AssertionFailure:
        raise
    except Thrown as thrown:
        if kind is not SignalKind.THROW:
            raise
        return thrown.value
    except SystemExit as exit_:
        if kind is not SignalKind.EXIT:
            raise
        return exit_.code
    except Exception as error:
        if kind is not SignalKind.ERROR:
            raise
        return error

    raise AssertionFailure.build(f"Expected to catch {kind.value}, got nothing")


def catch_throw(operation: Callable[[], Any]) -> Any:
    return catch_signal(SignalKind.THROW, operation)


def catch_exit(operation: Callable[[], Any]) -> Any:
    return catch_signal(SignalKind.EXIT, operation)


def catch_error(operation: Callable[[], Any]) -> Any:
    return catch_signal(SignalKind.ERROR, operation)

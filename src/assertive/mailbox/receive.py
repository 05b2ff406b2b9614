"""Timed assertions over the calling unit's mailbox.

``assert_receive`` waits for a message matching a pattern and consumes it;
``refute_receive`` waits and fails if one arrives. The ``*_received`` variants
use a zero timeout: the mailbox is scanned once and nothing is awaited.

Delivery and timeout race: a message may land right after the wait gave up.
Before reporting "no matching message", the mailbox is checked again; if the
message is there by then, the failure says so instead, since the fix is a larger
timeout rather than a code change.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from assertive.assertions.basic import flunk
from assertive.assertions.classifier import Outcome
from assertive.config import resolve_timeout
from assertive.context import current_mailbox
from assertive.errors import AssertionFailure, ConfigurationError
from assertive.mailbox.queue import Mailbox
from assertive.patterns.collector import collect
from assertive.patterns.matcher import BindingSet, match, matcher_for
from assertive.patterns.model import Pattern, Var, as_pattern, render, resolve_pins, unresolved_pins
from assertive.report import NO_VALUE, DiagnosticContext, MailboxSnapshot, pins_message

logger = logging.getLogger(__name__)


def assert_receive(
    pattern: Any,
    timeout: int | None = None,
    failure_message: str | None = None,
    *,
    mailbox: Mailbox | None = None,
    scope: Mapping[Var, Any] | None = None,
) -> Outcome:
    """Assert that a message matching ``pattern`` arrives within ``timeout`` ms.

    Parameters
    ----------
    pattern
        Pattern node, or plain value lifted with ``as_pattern``. Guards are allowed.
    timeout
        Milliseconds to wait; ``None`` uses the ``assert_receive_timeout`` setting.
    failure_message
        Replaces the generated message when nothing matching arrives.
    mailbox
        Mailbox to read; defaults to the calling unit's mailbox.
    scope
        Enclosing variables used to resolve pins.

    Returns
    -------
    Outcome
        The consumed message and the variables the pattern bound.
    """
    timeout = resolve_timeout(timeout, "assert_receive_timeout")
    return _assert_receive(pattern, timeout, failure_message, mailbox, scope, "assert_receive")


def assert_received(
    pattern: Any,
    failure_message: str | None = None,
    *,
    mailbox: Mailbox | None = None,
    scope: Mapping[Var, Any] | None = None,
) -> Outcome:
    """Assert that a matching message is already in the mailbox."""
    return _assert_receive(pattern, 0, failure_message, mailbox, scope, "assert_received")


def refute_receive(
    pattern: Any,
    timeout: int | None = None,
    failure_message: str | None = None,
    *,
    mailbox: Mailbox | None = None,
    scope: Mapping[Var, Any] | None = None,
) -> bool:
    """Assert that no message matching ``pattern`` arrives within ``timeout`` ms."""
    timeout = resolve_timeout(timeout, "refute_receive_timeout")
    return _refute_receive(pattern, timeout, failure_message, mailbox, scope)


def refute_received(
    pattern: Any,
    failure_message: str | None = None,
    *,
    mailbox: Mailbox | None = None,
    scope: Mapping[Var, Any] | None = None,
) -> bool:
    """Assert that no matching message is in the mailbox right now."""
    return _refute_receive(pattern, 0, failure_message, mailbox, scope)


def _prepare(pattern: Any, scope: Mapping[Var, Any] | None) -> Pattern:
    pattern = as_pattern(pattern)
    if scope is not None:
        return resolve_pins(pattern, scope)
    if missing := unresolved_pins(pattern):
        names = ", ".join(f"^{pin.name}" for pin in missing)
        msg = f"pinned variables are not bound in the enclosing scope: {names}"
        raise ConfigurationError(msg)
    return pattern


def _assert_receive(
    pattern: Any,
    timeout: int,
    failure_message: str | None,
    mailbox: Mailbox | None,
    scope: Mapping[Var, Any] | None,
    name: str,
) -> Outcome:
    pattern = _prepare(pattern, scope)
    mailbox = mailbox if mailbox is not None else current_mailbox()
    matcher = matcher_for(pattern)
    expr = f"{name} {render(pattern)}"

    logger.debug("Waiting up to %sms for %s", timeout, render(pattern))
    received = mailbox.receive(matcher, timeout)
    if received is not NO_VALUE:
        bindings = match(pattern, received)
        return Outcome(received, bindings if isinstance(bindings, BindingSet) else BindingSet())

    if failure_message is not None:
        flunk(failure_message, expr=expr)
    raise _timeout_failure(pattern, timeout, mailbox, scope, expr)


def _timeout_failure(
    pattern: Pattern,
    timeout: int,
    mailbox: Mailbox,
    scope: Mapping[Var, Any] | None,
    expr: str,
) -> AssertionFailure:
    found, messages = mailbox.inspect(matcher_for(pattern))
    if found:
        logger.warning("Message matching %s arrived after the %sms timeout", render(pattern), timeout)
        return AssertionFailure.build(
            f"Found message matching {render(pattern)} after {timeout}ms.\n\n"
            "This means the message was delivered too close to the timeout value, "
            "you may want to either:\n\n"
            "  1. Give an increased timeout to `assert_receive`\n"
            "  2. Increase the default timeout to all `assert_receive` calls by setting "
            "configure(assert_receive_timeout=...)\n",
            expr=expr,
        )

    snapshot = MailboxSnapshot.capture(messages)
    pins = collect(pattern, scope).pinned
    return AssertionFailure.build(
        f"Assertion failed, no matching message after {timeout}ms" + pins_message(pins) + "\n" + snapshot.summary,
        left=pattern,
        expr=expr,
        context=DiagnosticContext.MAILBOX,
        pinned_bindings=pins,
        mailbox=snapshot,
    )


def _refute_receive(
    pattern: Any,
    timeout: int,
    failure_message: str | None,
    mailbox: Mailbox | None,
    scope: Mapping[Var, Any] | None,
) -> bool:
    pattern = _prepare(pattern, scope)
    mailbox = mailbox if mailbox is not None else current_mailbox()

    received = mailbox.receive(matcher_for(pattern), timeout)
    if received is NO_VALUE:
        return False
    if failure_message is not None:
        flunk(failure_message)
    flunk(f"Unexpectedly received message {received!r} (which matched {render(pattern)})")

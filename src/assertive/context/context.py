from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING

from assertive.mailbox.queue import Mailbox

if TYPE_CHECKING:
    from assertive.testing.unit import TestUnit


UNIT_CONTEXT: ContextVar[TestUnit | None] = ContextVar("unit_context", default=None)
MAILBOX_CONTEXT: ContextVar[Mailbox | None] = ContextVar("mailbox_context", default=None)


def get_current_unit() -> TestUnit | None:
    """Get the running test unit, or None outside a unit."""
    return UNIT_CONTEXT.get()


def current_mailbox() -> Mailbox:
    """Mailbox of the calling context, created on first use outside a unit."""
    mailbox = MAILBOX_CONTEXT.get()
    if mailbox is None:
        mailbox = Mailbox()
        MAILBOX_CONTEXT.set(mailbox)
    return mailbox


@contextmanager
def mailbox_scope(mailbox: Mailbox) -> Iterator[Mailbox]:
    """Temporarily set `MAILBOX_CONTEXT` for the duration of the ``with`` block."""
    token = MAILBOX_CONTEXT.set(mailbox)
    try:
        yield mailbox
    finally:
        MAILBOX_CONTEXT.reset(token)


@contextmanager
def unit_context_scope(unit: TestUnit) -> Iterator[None]:
    """Bind `UNIT_CONTEXT` and the unit's mailbox for the duration of the ``with`` block.

    Parameters
    ----------
    unit : TestUnit
        The unit to bind as the current unit.
    """
    token = UNIT_CONTEXT.set(unit)
    try:
        with mailbox_scope(unit.mailbox):
            yield
    finally:
        UNIT_CONTEXT.reset(token)

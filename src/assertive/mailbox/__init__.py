"""Mailboxes and the timed receive assertions."""

from assertive.mailbox.queue import Mailbox

__all__ = ["Mailbox"]

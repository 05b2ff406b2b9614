"""Per-unit inbound message queue."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from typing import Any

from assertive.report import NO_VALUE

logger = logging.getLogger(__name__)

Matcher = Callable[[Any], bool]


class Mailbox:
    """FIFO queue of messages owned by one test unit.

    Any thread may ``send``. Only the owner reads: reads skip over messages that do
    not satisfy the matcher, leaving them queued in their original order, and
    remove just the first one that does.
    """

    def __init__(self) -> None:
        self._messages: deque[Any] = deque()
        self._cond = threading.Condition()

    def send(self, message: Any) -> None:
        with self._cond:
            self._messages.append(message)
            self._cond.notify_all()

    def __len__(self) -> int:
        with self._cond:
            return len(self._messages)

    def messages(self) -> list[Any]:
        """Copy of the queued messages, oldest first."""
        with self._cond:
            return list(self._messages)

    def flush(self) -> list[Any]:
        with self._cond:
            drained = list(self._messages)
            self._messages.clear()
            return drained

    def take(self, matcher: Matcher) -> Any:
        """Remove and return the first matching message without blocking.

        Returns ``NO_VALUE`` when no queued message matches.
        """
        with self._cond:
            return self._take_from(0, matcher)[0]

    def receive(self, matcher: Matcher, timeout_ms: int) -> Any:
        """Wait up to ``timeout_ms`` for a matching message and remove it.

        Returns ``NO_VALUE`` if the deadline passes first. A zero timeout scans the
        queue once without waiting.
        """
        deadline = time.monotonic() + timeout_ms / 1000
        with self._cond:
            found, checked = self._take_from(0, matcher)
            while found is NO_VALUE:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logger.debug("No matching message after %sms (%d queued)", timeout_ms, len(self._messages))
                    return NO_VALUE
                self._cond.wait(remaining)
                found, checked = self._take_from(checked, matcher)
            return found

    def inspect(self, matcher: Matcher) -> tuple[bool, list[Any]]:
        """Check for a matching message and copy the queue in one critical section."""
        with self._cond:
            messages = list(self._messages)
            return any(matcher(message) for message in messages), messages

    def _take_from(self, start: int, matcher: Matcher) -> tuple[Any, int]:
        # Called with the lock held. Messages before ``start`` were already rejected;
        # only the owner removes messages, so indices stay stable while waiting.
        for index in range(start, len(self._messages)):
            message = self._messages[index]
            if matcher(message):
                del self._messages[index]
                return message, index
        return NO_VALUE, len(self._messages)

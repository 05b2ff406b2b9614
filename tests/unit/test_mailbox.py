"""Tests for the unit mailbox and the receive assertions."""

import threading
import time

import pytest

from assertive.config import configure, reset_settings
from assertive.context import current_mailbox, mailbox_scope
from assertive.errors import AssertionFailure, ConfigurationError
from assertive.mailbox import Mailbox
from assertive.mailbox.receive import assert_receive, assert_received, refute_receive, refute_received
from assertive.patterns import Bind, Guard, Guarded, Pin, Var, Wildcard, tuple_
from assertive.report import NO_VALUE, DiagnosticContext


@pytest.fixture(autouse=True)
def settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def mailbox():
    with mailbox_scope(Mailbox()) as mb:
        yield mb


def send_later(mailbox: Mailbox, message, delay: float = 0.02) -> threading.Thread:
    def deliver():
        time.sleep(delay)
        mailbox.send(message)

    thread = threading.Thread(target=deliver)
    thread.start()
    return thread


class LateMailbox(Mailbox):
    """Delivers a message right after every receive gives up."""

    def __init__(self, late_message):
        super().__init__()
        self.late_message = late_message

    def receive(self, matcher, timeout_ms):
        found = super().receive(matcher, timeout_ms)
        if found is NO_VALUE:
            self.send(self.late_message)
        return found


# ---------------------------------------------------------------------------
# Mailbox
# ---------------------------------------------------------------------------


class TestMailbox:
    def test_take_skips_non_matching_messages(self):
        mb = Mailbox()
        for message in ["a", 1, "b", 2]:
            mb.send(message)

        assert mb.take(lambda m: isinstance(m, int)) == 1
        assert mb.messages() == ["a", "b", 2]

    def test_take_returns_no_value_when_nothing_matches(self):
        mb = Mailbox()
        mb.send("a")

        assert mb.take(lambda m: m == "z") is NO_VALUE
        assert len(mb) == 1

    def test_receive_waits_for_delivery(self):
        mb = Mailbox()
        thread = send_later(mb, "hello")

        assert mb.receive(lambda m: m == "hello", 2000) == "hello"
        thread.join()

    def test_receive_times_out(self):
        mb = Mailbox()
        started = time.monotonic()

        assert mb.receive(lambda m: True, 30) is NO_VALUE
        assert time.monotonic() - started >= 0.025

    def test_receive_keeps_order_of_skipped_messages(self):
        mb = Mailbox()
        mb.send("x")
        thread = send_later(mb, "y")

        assert mb.receive(lambda m: m == "y", 2000) == "y"
        thread.join()
        assert mb.messages() == ["x"]

    def test_flush(self):
        mb = Mailbox()
        mb.send(1)
        mb.send(2)

        assert mb.flush() == [1, 2]
        assert len(mb) == 0

    def test_inspect_does_not_consume(self):
        mb = Mailbox()
        mb.send(1)

        assert mb.inspect(lambda m: m == 1) == (True, [1])
        assert len(mb) == 1


# ---------------------------------------------------------------------------
# assert_receive
# ---------------------------------------------------------------------------


class TestAssertReceive:
    def test_consumes_first_matching_message_and_binds(self, mailbox):
        mailbox.send(("other", 0))
        mailbox.send(("hello", 1))
        mailbox.send(("hello", 2))

        outcome = assert_received(("hello", Bind("n")))

        assert outcome.value == ("hello", 1)
        assert outcome.bindings.by_name() == {"n": 1}
        assert mailbox.messages() == [("other", 0), ("hello", 2)]

    def test_waits_for_message_from_another_thread(self, mailbox):
        thread = send_later(mailbox, ("ready", 3))

        outcome = assert_receive(("ready", Bind("n")), 2000)

        thread.join()
        assert outcome.bindings.by_name() == {"n": 3}

    def test_returns_as_soon_as_message_arrives(self, mailbox):
        thread = send_later(mailbox, "fast", delay=0.02)
        started = time.monotonic()

        assert assert_receive("fast", 5000).value == "fast"

        elapsed = time.monotonic() - started
        thread.join()
        assert elapsed < 1.0

    def test_guards_are_allowed(self, mailbox):
        mailbox.send(("n", -1))
        mailbox.send(("n", 4))
        pattern = Guarded(tuple_("n", Bind("v")), Guard(lambda b: b["v"] > 0, "v > 0", (Var("v"),)))

        assert assert_received(pattern).value == ("n", 4)

    def test_raising_guard_skips_message(self, mailbox):
        mailbox.send(("n", "text"))
        mailbox.send(("n", 4))
        pattern = Guarded(tuple_("n", Bind("v")), Guard(lambda b: b["v"] > 0, "v > 0", (Var("v"),)))

        outcome = assert_received(pattern)

        assert outcome.value == ("n", 4)
        assert outcome.bindings.by_name() == {"v": 4}
        assert mailbox.messages() == [("n", "text")]

    def test_empty_mailbox_failure(self, mailbox):
        with pytest.raises(AssertionFailure) as exc_info:
            assert_receive(("hello", Wildcard()), 10)

        report = exc_info.value.report
        assert report.message == (
            "Assertion failed, no matching message after 10ms\nThe process mailbox is empty."
        )
        assert report.context is DiagnosticContext.MAILBOX
        assert report.mailbox.total_count == 0
        assert report.expr == "assert_receive ('hello', _)"

    def test_snapshot_shows_ten_most_recent_first(self, mailbox):
        for index in range(12):
            mailbox.send(index)

        with pytest.raises(AssertionFailure) as exc_info:
            assert_received("never")

        snapshot = exc_info.value.report.mailbox
        assert snapshot.total_count == 12
        assert snapshot.shown == tuple(range(11, 1, -1))
        assert snapshot.truncated
        assert exc_info.value.message.endswith("Showing 10 of 12 messages in the mailbox")

    def test_failure_lists_pins_in_scope(self, mailbox):
        mailbox.send(("v", 2))

        with pytest.raises(AssertionFailure) as exc_info:
            assert_received(tuple_("v", Pin("x")), scope={Var("x"): 1})

        assert exc_info.value.report.pinned_bindings == (("x", 1),)
        assert exc_info.value.message == (
            "Assertion failed, no matching message after 0ms\n"
            "The following variables were pinned:\n  x = 1\n"
            "Showing 1 of 1 message in the mailbox"
        )

    def test_unresolved_pin_is_configuration_error(self, mailbox):
        with pytest.raises(ConfigurationError, match=r"\^x"):
            assert_received(tuple_(Pin("x")))

    def test_late_delivery_gets_timeout_advice(self):
        late = LateMailbox(("done",))

        with pytest.raises(AssertionFailure) as exc_info:
            assert_receive(("done",), 5, mailbox=late)

        message = exc_info.value.message
        assert message.startswith("Found message matching ('done',) after 5ms.")
        assert "Give an increased timeout to `assert_receive`" in message
        assert exc_info.value.report.mailbox is None

    def test_custom_failure_message(self, mailbox):
        with pytest.raises(AssertionFailure) as exc_info:
            assert_received("x", "where is x?")

        assert exc_info.value.message == "where is x?"

    def test_default_timeout_from_settings(self, mailbox):
        configure(assert_receive_timeout=1)

        with pytest.raises(AssertionFailure, match="after 1ms"):
            assert_receive("x")

    @pytest.mark.parametrize("timeout", [-1, 1.5, True, "10"])
    def test_invalid_timeout(self, mailbox, timeout):
        with pytest.raises(ConfigurationError, match="timeout must be a non-negative integer"):
            assert_receive("x", timeout)

    def test_uses_context_mailbox(self, mailbox):
        current_mailbox().send("ping")

        assert assert_received("ping").value == "ping"


# ---------------------------------------------------------------------------
# refute_receive
# ---------------------------------------------------------------------------


class TestRefuteReceive:
    def test_passes_when_nothing_matches(self, mailbox):
        mailbox.send("other")

        assert refute_receive("bad", 5) is False
        assert mailbox.messages() == ["other"]

    def test_waits_no_longer_than_deadline(self, mailbox):
        started = time.monotonic()

        assert refute_receive("bye", 10) is False

        elapsed = time.monotonic() - started
        assert 0.009 <= elapsed < 1.0

    def test_fails_as_soon_as_matching_message_arrives(self, mailbox):
        thread = send_later(mailbox, ("bad", 1), delay=0.02)
        started = time.monotonic()

        with pytest.raises(AssertionFailure, match=r"Unexpectedly received message \('bad', 1\)"):
            refute_receive(("bad", Wildcard()), 2000)

        elapsed = time.monotonic() - started
        thread.join()
        assert elapsed < 1.0
        assert len(mailbox) == 0

    def test_fails_on_matching_message(self, mailbox):
        mailbox.send(("error", 7))

        with pytest.raises(AssertionFailure) as exc_info:
            refute_received(("error", Wildcard()))

        assert exc_info.value.message == "Unexpectedly received message ('error', 7) (which matched ('error', _))"

    def test_custom_failure_message(self, mailbox):
        mailbox.send("bad")

        with pytest.raises(AssertionFailure, match="should not arrive"):
            refute_received("bad", "should not arrive")

    def test_default_timeout_from_settings(self, mailbox):
        configure(refute_receive_timeout=0)
        thread = send_later(mailbox, "late", delay=0.05)

        assert refute_receive("late") is False
        thread.join()

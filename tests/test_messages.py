"""
Tests for support message threads and the polling stream behind /messages/stream.
"""

import asyncio
import json
import time
from datetime import timedelta

import pytest

from app.routes.messages import sse_events
from guestpost.core.errors import ConflictError, NotFoundError
from guestpost.models.message import new_comment_id
from guestpost.service.message_service import MessageService
from guestpost.service.message_stream import (
    CONNECTED_EVENT,
    POLL_ERROR_EVENT,
    MessagePoller,
    format_sse,
    select_new_entries,
)
from guestpost.utils.datetime_utils import utcnow


@pytest.fixture
def message_service(db) -> MessageService:
    return MessageService(db)


@pytest.fixture
async def thread(message_service) -> dict:
    return await message_service.create_message({
        "userEmail": "Alice@Example.com",
        "userName": "Alice",
        "content": [{"message": "Where is my order?", "sender": "user"}],
    })


class TestMessageService:
    async def test_create_generates_comment_id_and_entry_ids(self, thread):
        assert thread["commentId"].isdigit()
        assert thread["userEmail"] == "alice@example.com"
        assert thread["approved"] == 0
        assert len(thread["content"][0]["id"]) == 32

    async def test_reused_comment_id_is_conflict(self, message_service):
        await message_service.create_message({"commentId": "abc", "userEmail": "alice@example.com"})

        with pytest.raises(ConflictError, match="already exists"):
            await message_service.create_message({"commentId": "abc", "userEmail": "bob@example.com"})

    def test_comment_id_is_epoch_milliseconds(self):
        assert abs(int(new_comment_id()) - time.time() * 1000) < 5000

    async def test_reply_appends_and_touches_thread(self, message_service, thread):
        before = thread["date"]

        updated = await message_service.add_message_to_thread(
            thread["commentId"], {"message": "Shipped today", "sender": "admin", "senderName": "Support"}
        )

        assert [c["message"] for c in updated["content"]] == ["Where is my order?", "Shipped today"]
        assert updated["content"][1]["sender"] == "admin"
        assert updated["approved"] == 1
        assert updated["date"].replace(microsecond=0) >= before.replace(microsecond=0)

    async def test_reply_to_missing_thread_is_not_found(self, message_service):
        with pytest.raises(NotFoundError):
            await message_service.add_message_to_thread("404", {"message": "hello"})

    async def test_update_ignores_content_and_comment_id(self, message_service, thread):
        updated = await message_service.update_message(
            thread["commentId"], {"approved": 1, "content": [], "commentId": "other"}
        )

        assert updated["approved"] == 1
        assert updated["commentId"] == thread["commentId"]
        assert len(updated["content"]) == 1

    async def test_by_email_handles_blank_email(self, message_service, thread):
        assert await message_service.get_messages_by_user_email("") == []
        assert len(await message_service.get_messages_by_user_email("ALICE@example.com")) == 1

    async def test_stats_and_delete(self, message_service, thread):
        stats = await message_service.get_message_stats()
        assert stats["total"] == 1
        assert stats["unread"] == 1

        await message_service.delete_message(thread["commentId"])

        with pytest.raises(NotFoundError):
            await message_service.get_message_by_id(thread["commentId"])
        with pytest.raises(NotFoundError):
            await message_service.delete_message(thread["commentId"])


class TestSelectNewEntries:
    """The recency window, including the redelivery it allows."""

    def make_threads(self, now):
        return [{
            "commentId": "1700000000000",
            "content": [
                {"id": "old", "message": "old", "date": now - timedelta(seconds=30)},
                {"id": "fresh", "message": "fresh", "date": now - timedelta(seconds=3)},
            ],
        }]

    def test_without_cursor_everything_is_sent(self):
        now = utcnow()

        events = select_new_entries(self.make_threads(now), None, now)

        assert [e["id"] for e in events] == ["old", "fresh"]
        assert events[0]["commentId"] == events[0]["comment_id"] == "1700000000000"

    def test_with_cursor_only_the_window_is_sent(self):
        now = utcnow()

        events = select_new_entries(self.make_threads(now), "1700000000000", now)

        assert [e["id"] for e in events] == ["fresh"]

    def test_cursor_value_is_not_compared(self):
        # Any cursor switches on the window; its value never filters anything.
        now = utcnow()

        far_future_cursor = select_new_entries(self.make_threads(now), "9999999999999", now)

        assert [e["id"] for e in far_future_cursor] == ["fresh"]

    def test_entries_inside_window_are_redelivered_on_next_poll(self):
        now = utcnow()
        threads = self.make_threads(now)

        first = select_new_entries(threads, "x", now)
        second = select_new_entries(threads, "x", now + timedelta(seconds=2))

        assert [e["id"] for e in first] == [e["id"] for e in second] == ["fresh"]

    def test_entries_older_than_window_are_missed(self):
        now = utcnow()

        later = select_new_entries(self.make_threads(now), "x", now + timedelta(seconds=8))

        assert later == []

    def test_iso_string_dates_are_understood(self):
        now = utcnow()
        threads = [{"commentId": "1", "content": [
            {"id": "a", "message": "hi", "date": (now - timedelta(seconds=1)).isoformat() + "Z"},
        ]}]

        assert [e["id"] for e in select_new_entries(threads, "x", now)] == ["a"]


class FakeMessages:
    def __init__(self, threads=None, error=None):
        self.threads = threads or []
        self.error = error
        self.calls = 0

    async def get_messages_by_user_email(self, email):
        self.calls += 1
        if self.error:
            raise self.error
        return self.threads


class TestMessagePoller:
    async def test_connected_is_the_first_event(self):
        poller = MessagePoller(FakeMessages(), "alice@example.com", poll_interval=10)

        poller.start()
        try:
            assert poller.queue.get_nowait() == CONNECTED_EVENT
        finally:
            await poller.stop()

    async def test_poll_queues_entries(self):
        now = utcnow()
        threads = [{"commentId": "1", "content": [{"id": "a", "message": "hi", "date": now}]}]
        poller = MessagePoller(FakeMessages(threads), "alice@example.com", last_id="1")

        await poller.poll_once()

        event = poller.queue.get_nowait()
        assert event["id"] == "a"
        assert event["comment_id"] == "1"

    async def test_poll_error_queues_error_event(self):
        poller = MessagePoller(FakeMessages(error=RuntimeError("db down")), "alice@example.com")

        await poller.poll_once()

        assert poller.queue.get_nowait() == POLL_ERROR_EVENT

    async def test_stop_cancels_the_polling_task(self):
        source = FakeMessages()
        poller = MessagePoller(source, "alice@example.com", poll_interval=0.01)
        poller.start()
        await asyncio.sleep(0.05)
        assert poller.running

        await poller.stop()
        calls = source.calls
        await asyncio.sleep(0.05)

        assert not poller.running
        assert source.calls == calls


class TestSseEvents:
    async def test_stream_starts_with_connected_then_polled_entries(self):
        now = utcnow()
        threads = [{"commentId": "1", "content": [{"id": "a", "message": "hi", "date": now}]}]
        poller = MessagePoller(FakeMessages(threads), "alice@example.com", poll_interval=0.01)

        async def connected():
            return False

        stream = sse_events(poller, connected, wait=0.01)
        first = await stream.__anext__()
        second = await stream.__anext__()
        await stream.aclose()

        assert first == format_sse(CONNECTED_EVENT)
        assert second.startswith("data: ") and second.endswith("\n\n")
        assert json.loads(second[len("data: "):])["id"] == "a"
        assert not poller.running

    async def test_disconnect_ends_stream_and_stops_poller(self):
        poller = MessagePoller(FakeMessages(), "alice@example.com", poll_interval=0.01)
        checks = {"n": 0}

        async def is_disconnected():
            checks["n"] += 1
            return checks["n"] > 3

        frames = [frame async for frame in sse_events(poller, is_disconnected, wait=0.01)]

        assert frames[0] == format_sse(CONNECTED_EVENT)
        assert not poller.running

    async def test_immediate_disconnect_still_stops_poller(self):
        poller = MessagePoller(FakeMessages(), "alice@example.com", poll_interval=0.01)

        async def is_disconnected():
            return True

        frames = [frame async for frame in sse_events(poller, is_disconnected, wait=0.01)]

        assert frames == []
        assert not poller.running

# guestpost/service/message_stream.py
"""
Poll-and-diff delivery for the ``/messages/stream`` endpoint.

One ``MessagePoller`` per open connection. It re-reads the user's threads on a
fixed interval and queues every content entry that falls inside the look-back
window. Delivery is at-least-once: the same entry can be queued on several
consecutive polls, so consumers de-duplicate by entry ``id``.
"""
import asyncio
import contextlib
import json
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from guestpost.utils.datetime_utils import parse_datetime, utcnow

logger = logging.getLogger(__name__)

CONNECTED_EVENT = {"type": "connected"}
POLL_ERROR_EVENT = {"type": "error", "message": "Error polling messages"}


def select_new_entries(threads: List[dict], last_id: Optional[str], now: datetime,
                       lookback_seconds: float = 10.0) -> List[dict]:
    """Flatten thread content into stream events.

    Without a cursor every entry is returned. With one, only entries dated
    after ``now - lookback_seconds`` are; the cursor value itself is not
    compared, so entries older than the window are missed and entries inside
    it are sent again on the next poll.
    """
    cutoff = now - timedelta(seconds=lookback_seconds)
    events = []
    for thread in threads:
        for entry in thread.get("content") or []:
            if last_id:
                entry_date = parse_datetime(entry.get("date"))
                if entry_date is None or entry_date <= cutoff:
                    continue
            events.append({**entry, "commentId": thread.get("commentId"), "comment_id": thread.get("commentId")})
    return events


def format_sse(event: dict) -> str:
    return f"data: {json.dumps(event, default=str)}\n\n"


class MessagePoller:
    def __init__(self, message_service, user_email: str, last_id: Optional[str] = None,
                 poll_interval: float = 2.0, lookback_seconds: float = 10.0):
        self.message_service = message_service
        self.user_email = user_email
        self.last_id = last_id
        self.poll_interval = poll_interval
        self.lookback_seconds = lookback_seconds
        self.queue: asyncio.Queue = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self._task is not None:
            return
        self.queue.put_nowait(dict(CONNECTED_EVENT))
        self._task = asyncio.create_task(self._run())
        logger.info("Message stream opened for %s", self.user_email)

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        logger.info("Message stream closed for %s", self.user_email)

    async def _run(self):
        while True:
            await asyncio.sleep(self.poll_interval)
            await self.poll_once()

    async def poll_once(self):
        try:
            threads = await self.message_service.get_messages_by_user_email(self.user_email)
            events = select_new_entries(threads, self.last_id, utcnow(), self.lookback_seconds)
        except Exception:
            logger.exception("Error polling messages for %s", self.user_email)
            await self.queue.put(dict(POLL_ERROR_EVENT))
            return
        for event in events:
            await self.queue.put(event)

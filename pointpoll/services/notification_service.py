# pointpoll/services/notification_service.py
"""
In-process "votes for poll X changed" notifications.

Subscribers are asyncio queues living on the event loop that created them
(the websocket handlers). publish() is called from sync route handlers
running in the threadpool, so delivery goes through call_soon_threadsafe.
"""
import asyncio
import threading
from collections import defaultdict
from typing import Dict, List, Tuple

from pointpoll.core.logger import logger

VOTES_CHANGED = "votes_changed"


class VoteBroadcaster:
    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: Dict[str, List[Tuple[asyncio.AbstractEventLoop, asyncio.Queue]]] = defaultdict(list)

    def subscribe(self, poll_id: str) -> asyncio.Queue:
        """Register a queue on the running loop for this poll's changes"""
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()
        with self._lock:
            self._subscribers[poll_id].append((loop, queue))
        return queue

    def unsubscribe(self, poll_id: str, queue: asyncio.Queue) -> None:
        with self._lock:
            remaining = [(loop, q) for loop, q in self._subscribers.get(poll_id, []) if q is not queue]
            if remaining:
                self._subscribers[poll_id] = remaining
            else:
                self._subscribers.pop(poll_id, None)

    def subscriber_count(self, poll_id: str) -> int:
        with self._lock:
            return len(self._subscribers.get(poll_id, []))

    def publish(self, poll_id: str) -> int:
        """Tell every subscriber of a poll that its votes changed. Safe from any thread."""
        with self._lock:
            targets = list(self._subscribers.get(poll_id, []))

        delivered = 0
        for loop, queue in targets:
            if loop.is_closed():
                continue
            loop.call_soon_threadsafe(queue.put_nowait, {"event": VOTES_CHANGED, "poll_id": poll_id})
            delivered += 1

        if delivered:
            logger.debug(f"Notified {delivered} subscriber(s) of poll {poll_id}")
        return delivered

    @staticmethod
    def drain(queue: asyncio.Queue) -> int:
        """Drop events already queued; one recompute covers them all"""
        dropped = 0
        while not queue.empty():
            queue.get_nowait()
            dropped += 1
        return dropped


broadcaster = VoteBroadcaster()

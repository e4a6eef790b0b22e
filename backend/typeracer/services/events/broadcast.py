import queue
import threading
from typing import Any, Dict, Set


class ActiveEventBroadcaster:
    """Fan-out of active-event changes to Server-Sent Events listeners.

    Each stream owns a queue; publishing never blocks on slow readers.
    """

    def __init__(self):
        self._subscribers: Set[queue.Queue] = set()
        self._lock = threading.Lock()

    def subscribe(self) -> queue.Queue:
        q: queue.Queue = queue.Queue()
        with self._lock:
            self._subscribers.add(q)
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            self._subscribers.discard(q)

    def publish(self, payload: Dict[str, Any]) -> int:
        with self._lock:
            targets = list(self._subscribers)
        for q in targets:
            q.put(payload)
        return len(targets)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)


active_event_broadcaster = ActiveEventBroadcaster()

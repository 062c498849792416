from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

logger = logging.getLogger(__name__)

Listener = Callable[[str, str, Dict[str, Any]], None]

TOPICS = frozenset(
    {
        "session",
        "ideas",
        "clusters",
        "participants",
        "co_admin",
        "voting_rounds",
        "votes",
        "folders",
    }
)


class ChangeFeed:
    """
    In-process subscribe-by-key registry.

    Listeners register for a (topic, key) pair, typically a session id, and are
    called with ``(topic, key, event)`` after each committed change. Delivery to
    clients (websockets, polling) is left to whoever subscribes.
    """

    def __init__(self) -> None:
        # Key: (topic, key), Value: {subscription_id: listener}
        self._listeners: Dict[tuple, Dict[str, Listener]] = {}
        self._lock = threading.Lock()

    def subscribe(self, topic: str, key: str, listener: Listener) -> Callable[[], None]:
        """Register a listener and return a callable that removes it."""
        if topic not in TOPICS:
            raise ValueError(f"Unknown change feed topic '{topic}'")
        subscription_id = str(uuid4())
        with self._lock:
            self._listeners.setdefault((topic, key), {})[subscription_id] = listener
        logger.debug(
            "Subscribed: topic=%s key=%s subscription_id=%s", topic, key, subscription_id
        )

        def unsubscribe() -> None:
            self._remove(topic, key, subscription_id)

        return unsubscribe

    def _remove(self, topic: str, key: str, subscription_id: str) -> None:
        with self._lock:
            listeners = self._listeners.get((topic, key))
            if not listeners:
                return
            listeners.pop(subscription_id, None)
            if not listeners:
                self._listeners.pop((topic, key), None)

    def publish(
        self, topic: str, key: str, event: Optional[Dict[str, Any]] = None
    ) -> int:
        """Notify listeners of (topic, key). Returns how many were called successfully."""
        with self._lock:
            listeners = list(self._listeners.get((topic, key), {}).values())
        payload = dict(event or {})
        delivered = 0
        for listener in listeners:
            try:
                listener(topic, key, payload)
                delivered += 1
            except Exception:  # noqa: BLE001
                logger.exception(
                    "Change feed listener failed for topic=%s key=%s", topic, key
                )
        return delivered

    def subscriber_count(self, topic: str, key: str) -> int:
        with self._lock:
            return len(self._listeners.get((topic, key), {}))


change_feed = ChangeFeed()

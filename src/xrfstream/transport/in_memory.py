# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
"""
In-process publish/subscribe transport for development and testing.

NOT FOR PRODUCTION USE - use the ZeroMQ transport to reach other processes.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from queue import Empty, Full, Queue

from ..errors import TransportError

logger = logging.getLogger(__name__)

TopicPayload = tuple[str, bytes]


class InMemoryBroker:
    """
    Thread-safe topic fan-out into subscriber queues.

    Each subscriber gets its own bounded queue. If a queue is full, its oldest
    message is dropped. Messages on topics without subscribers are dropped, as with
    any publish/subscribe transport.

    Parameters
    ----------
    max_queue_size:
        Maximum messages per subscriber queue.
    """

    def __init__(self, max_queue_size: int = 1000):
        self._max_queue_size = max_queue_size
        self._subscribers: dict[str, list[Queue]] = defaultdict(list)
        self._lock = threading.RLock()

    def publish(self, topic: str, payload: bytes) -> None:
        with self._lock:
            subscribers = self._subscribers.get(topic, [])
            if not subscribers:
                logger.debug("No subscribers for topic '%s', dropping message", topic)
                return
            for queue in subscribers:
                try:
                    queue.put_nowait((topic, payload))
                except Full:
                    try:
                        queue.get_nowait()
                        queue.put_nowait((topic, payload))
                        logger.warning(
                            "Queue overflow on topic '%s', dropped oldest message",
                            topic,
                        )
                    except (Empty, Full):
                        logger.error(
                            "Failed to handle queue overflow on topic '%s'", topic
                        )

    def subscribe(self, topic: str) -> Queue[TopicPayload]:
        """Return a new queue receiving ``(topic, payload)`` tuples."""
        queue: Queue[TopicPayload] = Queue(maxsize=self._max_queue_size)
        with self._lock:
            self._subscribers[topic].append(queue)
        return queue

    def unsubscribe(self, queue: Queue) -> None:
        with self._lock:
            for subscribers in self._subscribers.values():
                if queue in subscribers:
                    subscribers.remove(queue)


class InMemoryTransport:
    """:py:class:`~xrfstream.transport.base.Transport` publishing to a broker."""

    def __init__(self, broker: InMemoryBroker):
        self._broker = broker
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, topic: str, payload: bytes) -> None:
        if self._closed:
            raise TransportError("In-memory transport is closed")
        self._broker.publish(topic, payload)

    def close(self) -> None:
        self._closed = True

# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
"""ZeroMQ publish transport."""

from __future__ import annotations

import logging
import threading
from typing import Self

import zmq

from ..errors import TransportError

DEFAULT_ENDPOINT = 'tcp://*:43434'


class ZmqPublishTransport:
    """
    ZeroMQ implementation of :py:class:`~xrfstream.transport.base.Transport`.

    Owns a PUB socket that is bound once on construction. Each payload is sent as
    a two-frame message, topic first, so subscribers can filter on the topic.
    Messages published while no subscriber is connected are dropped by ZeroMQ.

    Parameters
    ----------
    endpoint:
        Endpoint to bind to, e.g. ``'tcp://*:43434'``.
    linger_ms:
        How long pending messages are kept after close.
    send_hwm:
        High-water mark of the socket. Messages beyond it are dropped.
    context:
        Context to create the socket in. If None, the transport creates and owns
        its own context and terminates it on close.
    logger:
        Optional logger for transport events.
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        *,
        linger_ms: int = 1000,
        send_hwm: int = 1000,
        context: zmq.Context | None = None,
        logger: logging.Logger | None = None,
    ):
        self._logger = logger or logging.getLogger(__name__)
        self._owns_context = context is None
        self._context = zmq.Context() if context is None else context
        self._linger_ms = linger_ms
        self._socket = self._context.socket(zmq.PUB)
        self._socket.setsockopt(zmq.SNDHWM, send_hwm)
        try:
            self._socket.bind(endpoint)
        except zmq.ZMQError as e:
            self._socket.close(linger=0)
            if self._owns_context:
                self._context.term()
            raise TransportError(f"Failed to bind to {endpoint}: {e}") from e
        self._endpoint = self._socket.getsockopt_string(zmq.LAST_ENDPOINT)
        self._lock = threading.Lock()
        self._closed = False
        self._logger.info("Publishing on %s", self._endpoint)

    @property
    def endpoint(self) -> str:
        """The endpoint the socket is bound to, with wildcards resolved."""
        return self._endpoint

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, topic: str, payload: bytes) -> None:
        with self._lock:
            if self._closed:
                raise TransportError("Publish socket is closed")
            try:
                self._socket.send_multipart(
                    [topic.encode('utf-8'), payload], flags=zmq.NOBLOCK
                )
            except zmq.ZMQError as e:
                raise TransportError(
                    f"Failed to send message on topic '{topic}': {e}"
                ) from e

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._socket.close(linger=self._linger_ms)
            if self._owns_context:
                self._context.term()
        self._logger.info("Closed publish socket on %s", self._endpoint)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

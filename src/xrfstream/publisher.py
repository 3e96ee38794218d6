# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
"""Publishing of finished stream records."""

from __future__ import annotations

import logging
import threading
import time
from queue import Empty, Full, Queue
from typing import Self

from .config.streamer import StreamerConfig
from .core.record import StreamRecord
from .errors import SerializationError, TransportError, UnsupportedPayloadMode
from .serialization import CountsEncoder, PayloadEncoder, make_encoder
from .transport.base import Transport

DEFAULT_TOPIC = 'XRF-Counts'


class Publisher:
    """
    Encodes finished stream records and sends them on a topic.

    Delivery is at most once: failures are logged and counted but neither retried
    nor raised, so that the pipeline keeps going with the next record. Selecting
    a payload mode without an encoder is the exception, see
    :py:class:`~xrfstream.serialization.SpectraEncoder`.

    Parameters
    ----------
    transport:
        Transport to send on. If None, publishing is a no-op.
    encoder:
        Payload encoder, counts by default.
    topic:
        Topic sent with every payload.
    logger:
        Optional logger.
    """

    def __init__(
        self,
        transport: Transport | None,
        *,
        encoder: PayloadEncoder | None = None,
        topic: str = DEFAULT_TOPIC,
        logger: logging.Logger | None = None,
    ):
        self._transport = transport
        self._encoder = encoder or CountsEncoder()
        self._topic = topic
        self._logger = logger or logging.getLogger(__name__)
        self.sent = 0
        self.failed = 0

    @classmethod
    def from_config(
        cls,
        config: StreamerConfig,
        transport: Transport | None,
        logger: logging.Logger | None = None,
    ) -> Publisher:
        return cls(
            transport,
            encoder=make_encoder(config.payload_mode),
            topic=config.topic,
            logger=logger,
        )

    @property
    def topic(self) -> str:
        return self._topic

    def publish(self, record: StreamRecord) -> bool:
        """
        Publish one finished record.

        Returns
        -------
        :
            True if the payload was handed to the transport.
        """
        if self._transport is None:
            self._logger.debug(
                "No transport, discarding record of detector %d", record.detector_id
            )
            return False
        try:
            payload = self._encoder.encode(record)
        except SerializationError as e:
            self.failed += 1
            self._logger.error("Failed to serialize record: %s", e)
            return False
        try:
            self._transport.send(self._topic, payload)
        except TransportError as e:
            self.failed += 1
            self._logger.error(
                "Failed to publish record of detector %d to '%s': %s",
                record.detector_id,
                self._topic,
                e,
            )
            return False
        self.sent += 1
        self._logger.debug(
            "Published record of detector %d (%d bytes)",
            record.detector_id,
            len(payload),
        )
        return True

    __call__ = publish


class QueuedPublisher:
    """
    Decouples accumulation from the network with a bounded queue.

    Records submitted from the accumulator are sent by one dedicated thread. If
    the queue is full the oldest pending record is dropped, so :py:meth:`submit`
    never blocks on the transport. A record that fails to publish is logged and
    counted as failed. Only an unsupported payload mode stops the sender thread.

    Parameters
    ----------
    publisher:
        Publisher used by the sender thread.
    queue_size:
        Maximum number of records waiting to be sent.
    logger:
        Optional logger.
    """

    def __init__(
        self,
        publisher: Publisher,
        *,
        queue_size: int = 100,
        logger: logging.Logger | None = None,
    ):
        self._publisher = publisher
        self._logger = logger or logging.getLogger(__name__)
        self._queue: Queue[StreamRecord] = Queue(maxsize=queue_size)
        self._submit_lock = threading.Lock()
        self._stop = threading.Event()
        self._deadline = 0.0
        self._error: BaseException | None = None
        self._closed = False
        self.dropped = 0
        self._thread = threading.Thread(
            target=self._run_loop, name='xrf-publisher', daemon=True
        )
        self._thread.start()

    @property
    def publisher(self) -> Publisher:
        return self._publisher

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def running(self) -> bool:
        return self._thread.is_alive()

    def submit(self, record: StreamRecord) -> None:
        """
        Queue a finished record for sending.

        Raises
        ------
        RuntimeError:
            If the publisher is closed or its sender thread failed.
        """
        if self._error is not None:
            raise RuntimeError("Publisher stopped after an error") from self._error
        with self._submit_lock:
            if self._closed:
                raise RuntimeError("Publisher is closed")
            try:
                self._queue.put_nowait(record)
            except Full:
                try:
                    dropped = self._queue.get_nowait()
                except Empty:
                    pass
                else:
                    self.dropped += 1
                    self._logger.warning(
                        "Publish queue full, dropped record of detector %d",
                        dropped.detector_id,
                    )
                self._queue.put_nowait(record)

    __call__ = submit

    def _should_stop(self) -> bool:
        if not self._stop.is_set():
            return False
        return self._queue.empty() or time.monotonic() >= self._deadline

    def _send(self, record: StreamRecord) -> None:
        try:
            self._publisher.publish(record)
        except UnsupportedPayloadMode:
            raise
        except Exception:
            self._publisher.failed += 1
            self._logger.exception(
                "Failed to publish record of detector %d", record.detector_id
            )

    def _run_loop(self) -> None:
        try:
            while not self._should_stop():
                try:
                    record = self._queue.get(timeout=0.05)
                except Empty:
                    continue
                self._send(record)
        except Exception as e:
            self._error = e
            self._logger.exception("Error in publisher thread")
        finally:
            self._logger.info("Publisher thread stopped")

    def close(self, timeout: float = 5.0) -> int:
        """
        Stop the sender thread.

        Pending records are sent until ``timeout`` expires, the rest is abandoned.
        Closing again has no effect.

        Returns
        -------
        :
            Number of abandoned records.
        """
        with self._submit_lock:
            if self._closed:
                return 0
            self._closed = True
        self._deadline = time.monotonic() + timeout
        self._stop.set()
        self._thread.join(timeout + 1.0)
        if self._thread.is_alive():
            self._logger.warning("Publisher thread did not stop within %.1f s", timeout)
        abandoned = 0
        with self._submit_lock:
            while True:
                try:
                    self._queue.get_nowait()
                except Empty:
                    break
                abandoned += 1
        if abandoned:
            self._logger.warning("Abandoned %d unsent records on shutdown", abandoned)
        return abandoned

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

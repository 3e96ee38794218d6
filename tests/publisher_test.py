# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
import json
import logging
import threading
import time
from dataclasses import replace

import pytest

from xrfstream.config.streamer import StreamerConfig
from xrfstream.core.record import RecordState, StreamRecord
from xrfstream.core.spectrum import make_spectrum
from xrfstream.errors import TransportError, UnsupportedPayloadMode
from xrfstream.fitting import FitContext
from xrfstream.publisher import DEFAULT_TOPIC, Publisher, QueuedPublisher
from xrfstream.serialization import CountsEncoder, SpectraEncoder


class FakeTransport:
    def __init__(self) -> None:
        self.messages: list[tuple[str, bytes]] = []
        self.fail = False
        self.closed = False

    def send(self, topic: str, payload: bytes) -> None:
        if self.fail:
            raise TransportError("peer went away")
        self.messages.append((topic, payload))

    def close(self) -> None:
        self.closed = True


class BlockingTransport(FakeTransport):
    """Blocks every send until released."""

    def __init__(self) -> None:
        super().__init__()
        self.release = threading.Event()
        self.entered = threading.Event()

    def send(self, topic: str, payload: bytes) -> None:
        self.entered.set()
        self.release.wait()
        super().send(topic, payload)


class DivergingRoutine:
    """Fit routine failing with an arithmetic error."""

    name = 'diverging'

    def fit_spectra(self, model, spectrum, elements) -> dict[str, float]:
        raise ZeroDivisionError("fit diverged")


def make_record(detector_id: int, fit_context: FitContext | None) -> StreamRecord:
    return StreamRecord(
        row=1,
        col=1,
        scan_height=1,
        scan_width=1,
        detector_id=detector_id,
        spectrum=make_spectrum([5.0] * 5),
        fit_context=fit_context,
        state=RecordState.COMPLETE,
    )


def wait_for(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


class TestPublisher:
    def test_publishes_counts_on_topic(
        self, transport: FakeTransport, fit_context: FitContext
    ) -> None:
        publisher = Publisher(transport)
        assert publisher.publish(make_record(3, fit_context))
        [(topic, payload)] = transport.messages
        assert topic == DEFAULT_TOPIC
        assert json.loads(payload)['counts'] == {'Fe': 15.0, 'Cu': 10.0}
        assert publisher.sent == 1
        assert publisher.failed == 0

    def test_custom_topic(
        self, transport: FakeTransport, fit_context: FitContext
    ) -> None:
        publisher = Publisher(transport, topic='beamline-xrf')
        publisher(make_record(0, fit_context))
        assert transport.messages[0][0] == 'beamline-xrf'

    def test_without_transport_is_noop(self, fit_context: FitContext) -> None:
        publisher = Publisher(None)
        assert not publisher.publish(make_record(0, fit_context))
        assert publisher.sent == 0
        assert publisher.failed == 0

    def test_transport_failure_is_logged_and_not_raised(
        self,
        transport: FakeTransport,
        fit_context: FitContext,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        publisher = Publisher(transport)
        transport.fail = True
        with caplog.at_level(logging.ERROR):
            assert not publisher.publish(make_record(0, fit_context))
        assert "peer went away" in caplog.text
        assert publisher.failed == 1

        transport.fail = False
        assert publisher.publish(make_record(1, fit_context))
        assert len(transport.messages) == 1
        assert publisher.sent == 1

    def test_record_without_fit_context_is_counted_as_failure(
        self, transport: FakeTransport
    ) -> None:
        publisher = Publisher(transport)
        assert not publisher.publish(make_record(0, None))
        assert publisher.failed == 1
        assert transport.messages == []

    def test_spectra_mode_fails_loudly(
        self, transport: FakeTransport, fit_context: FitContext
    ) -> None:
        publisher = Publisher(transport, encoder=SpectraEncoder())
        with pytest.raises(UnsupportedPayloadMode):
            publisher.publish(make_record(0, fit_context))
        assert transport.messages == []

    def test_from_config(self, transport: FakeTransport) -> None:
        config = StreamerConfig(topic='xrf-test')
        publisher = Publisher.from_config(config, transport)
        assert publisher.topic == 'xrf-test'

    def test_from_config_with_spectra_mode(
        self, transport: FakeTransport, fit_context: FitContext
    ) -> None:
        config = StreamerConfig(send_counts=False, send_spectra=True)
        publisher = Publisher.from_config(config, transport)
        with pytest.raises(UnsupportedPayloadMode):
            publisher.publish(make_record(0, fit_context))

    def test_default_encoder_is_counts(self, transport: FakeTransport) -> None:
        assert isinstance(Publisher(transport)._encoder, CountsEncoder)


class TestQueuedPublisher:
    def test_sends_all_submitted_records(
        self, transport: FakeTransport, fit_context: FitContext
    ) -> None:
        queued = QueuedPublisher(Publisher(transport))
        for detector_id in range(5):
            queued.submit(make_record(detector_id, fit_context))
        assert queued.close(timeout=5.0) == 0
        assert len(transport.messages) == 5
        assert queued.publisher.sent == 5
        assert not queued.running

    def test_usable_as_completion_consumer(
        self, transport: FakeTransport, fit_context: FitContext
    ) -> None:
        with QueuedPublisher(Publisher(transport)) as queued:
            queued(make_record(0, fit_context))
        assert len(transport.messages) == 1

    def test_full_queue_drops_oldest(self, fit_context: FitContext) -> None:
        transport = BlockingTransport()
        queued = QueuedPublisher(Publisher(transport), queue_size=2)
        queued.submit(make_record(0, fit_context))
        assert transport.entered.wait(timeout=5.0)
        # Record 0 is in flight, the queue holds at most two more.
        for detector_id in (1, 2, 3):
            queued.submit(make_record(detector_id, fit_context))
        assert queued.dropped == 1
        assert queued.pending == 2

        transport.release.set()
        queued.close(timeout=5.0)
        sent = [json.loads(payload)['detector_id'] for _, payload in transport.messages]
        assert sent == [0, 2, 3]

    def test_close_abandons_records_after_timeout(
        self, fit_context: FitContext, caplog: pytest.LogCaptureFixture
    ) -> None:
        transport = BlockingTransport()
        queued = QueuedPublisher(Publisher(transport), queue_size=10)
        queued.submit(make_record(0, fit_context))
        assert transport.entered.wait(timeout=5.0)
        queued.submit(make_record(1, fit_context))
        queued.submit(make_record(2, fit_context))

        threading.Timer(0.2, transport.release.set).start()
        with caplog.at_level(logging.WARNING):
            abandoned = queued.close(timeout=0.0)
        # The in-flight send completes, the records still queued are abandoned.
        assert abandoned == 2
        assert len(transport.messages) == 1
        assert "Abandoned 2 unsent records" in caplog.text

    def test_close_is_idempotent(self, transport: FakeTransport) -> None:
        queued = QueuedPublisher(Publisher(transport))
        queued.close()
        assert queued.close() == 0

    def test_submit_after_close_raises(
        self, transport: FakeTransport, fit_context: FitContext
    ) -> None:
        queued = QueuedPublisher(Publisher(transport))
        queued.close()
        with pytest.raises(RuntimeError, match="closed"):
            queued.submit(make_record(0, fit_context))

    def test_unsupported_payload_mode_stops_sender(
        self, transport: FakeTransport, fit_context: FitContext
    ) -> None:
        queued = QueuedPublisher(Publisher(transport, encoder=SpectraEncoder()))
        queued.submit(make_record(0, fit_context))
        assert wait_for(lambda: not queued.running)
        with pytest.raises(RuntimeError, match="stopped after an error"):
            queued.submit(make_record(1, fit_context))
        queued.close(timeout=0.0)

    def test_transport_failures_do_not_stop_sender(
        self, transport: FakeTransport, fit_context: FitContext
    ) -> None:
        transport.fail = True
        queued = QueuedPublisher(Publisher(transport))
        queued.submit(make_record(0, fit_context))
        assert wait_for(lambda: queued.publisher.failed == 1)
        transport.fail = False
        queued.submit(make_record(1, fit_context))
        queued.close(timeout=5.0)
        assert len(transport.messages) == 1

    def test_failing_record_does_not_stop_sender(
        self, transport: FakeTransport, fit_context: FitContext
    ) -> None:
        bad_context = replace(fit_context, routine=DivergingRoutine())
        queued = QueuedPublisher(Publisher(transport))
        queued.submit(make_record(0, bad_context))
        assert wait_for(lambda: queued.publisher.failed == 1)
        assert queued.running
        queued.submit(make_record(1, fit_context))
        queued.close(timeout=5.0)
        [(_, payload)] = transport.messages
        assert json.loads(payload)['detector_id'] == 1
        assert queued.publisher.sent == 1
        assert queued.publisher.failed == 1

    def test_every_record_is_accounted_for_when_closing_during_submits(
        self, transport: FakeTransport, fit_context: FitContext
    ) -> None:
        queued = QueuedPublisher(Publisher(transport), queue_size=1000)
        n_threads, per_thread = 4, 200
        rejected = []
        started = threading.Barrier(n_threads + 1)

        def produce(offset: int) -> None:
            started.wait()
            for i in range(per_thread):
                try:
                    queued.submit(make_record(offset + i, fit_context))
                except RuntimeError:
                    rejected.append(offset + i)

        threads = [
            threading.Thread(target=produce, args=(n * per_thread,))
            for n in range(n_threads)
        ]
        for thread in threads:
            thread.start()
        started.wait()
        abandoned = queued.close(timeout=0.0)
        for thread in threads:
            thread.join()

        assert queued.pending == 0
        accounted = (
            queued.publisher.sent + abandoned + queued.dropped + len(rejected)
        )
        assert accounted == n_threads * per_thread

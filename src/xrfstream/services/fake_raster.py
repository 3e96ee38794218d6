# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
"""Fake raster scan that streams synthetic XRF spectra through the pipeline."""

from __future__ import annotations

import logging
import signal
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import ExitStack
from typing import Any

import numpy as np
import scipp as sc

from ..config import AnalysisJob, load_analysis_job, load_streamer_config
from ..core import StreamRecordAccumulator, make_spectrum
from ..errors import StreamProtocolError
from ..logging_config import configure_logging
from ..publisher import Publisher, QueuedPublisher
from ..transport import create_transport
from .options import get_env_defaults, setup_arg_parser

# Conversion from full width at half maximum to standard deviation.
_FWHM_TO_SIGMA = 1.0 / (2.0 * np.sqrt(2.0 * np.log(2.0)))

DeliveryCallback = Callable[..., Any]


class FakeRasterDriver:
    """
    Raster scan producing one synthetic spectrum per tile and detector.

    Each spectrum has a Gaussian line at every element of the detector's fit
    context on top of a flat background, with Poisson noise. Tiles are visited row
    by row and every detector is delivered before moving on to the next tile.
    The scan extents passed to the callback are the coordinates of the last tile.
    """

    def __init__(
        self,
        *,
        job: AnalysisJob,
        n_rows: int,
        n_cols: int,
        n_channels: int = 2048,
        background: float = 1.0,
        seed: int | None = None,
        logger: logging.Logger | None = None,
    ):
        if n_rows < 1 or n_cols < 1 or n_rows * n_cols < 2:
            raise ValueError("A raster scan needs at least two tiles")
        self._logger = logger or logging.getLogger(__name__)
        self._job = job
        self._n_rows = n_rows
        self._n_cols = n_cols
        self._n_channels = n_channels
        self._rng = np.random.default_rng(seed)
        self._expected = {
            detector_id: self._expected_counts(detector_id, background)
            for detector_id in job.detector_ids
        }

    @property
    def last_row(self) -> int:
        return self._n_rows - 1

    @property
    def last_col(self) -> int:
        return self._n_cols - 1

    def _expected_counts(self, detector_id: int, background: float) -> np.ndarray:
        context = self._job.fit_context(detector_id)
        model = context.model
        energy = model.energy_offset + model.energy_slope * np.arange(self._n_channels)
        expected = np.full(self._n_channels, background)
        for element in context.elements.values():
            sigma = element.width_ev / 1000.0 * _FWHM_TO_SIGMA
            amplitude = self._rng.uniform(5.0, 50.0)
            expected += amplitude * np.exp(
                -0.5 * ((energy - element.center_kev) / sigma) ** 2
            )
        return expected

    def make_spectrum(self, detector_id: int) -> sc.Variable:
        return make_spectrum(self._rng.poisson(self._expected[detector_id]))

    def tiles(self) -> Iterator[tuple[int, int]]:
        for row in range(self._n_rows):
            for col in range(self._n_cols):
                yield row, col

    def run(
        self,
        deliver: DeliveryCallback,
        *,
        stop: threading.Event | None = None,
        interval: float = 0.0,
    ) -> int:
        """
        Run one scan, calling ``deliver`` for every tile and detector.

        Rejected deliveries are logged and skipped.

        Returns
        -------
        :
            Number of accepted deliveries.
        """
        delivered = 0
        for row, col in self.tiles():
            for detector_id in self._job.detector_ids:
                if stop is not None and stop.is_set():
                    return delivered
                try:
                    deliver(
                        row,
                        col,
                        self.last_row,
                        self.last_col,
                        detector_id,
                        self.make_spectrum(detector_id),
                        self._job.fit_context(detector_id),
                    )
                except StreamProtocolError as e:
                    self._logger.error("Delivery rejected: %s", e)
                else:
                    delivered += 1
            if interval > 0:
                time.sleep(interval)
        return delivered


def run_service(
    *,
    streamer_config: str | None = None,
    analysis_job: str | None = None,
    endpoint: str | None = None,
    rows: int = 10,
    cols: int = 10,
    channels: int = 2048,
    scans: int = 1,
    interval: float = 0.0,
    seed: int | None = None,
) -> int:
    """
    Stream fake scans through accumulator and publisher.

    Parameters
    ----------
    scans:
        Number of scans to run, 0 to run until interrupted.
    """
    logger = logging.getLogger(__name__)
    config = load_streamer_config(streamer_config, endpoint=endpoint)
    job = load_analysis_job(analysis_job)
    stop = threading.Event()

    def _handle_shutdown(signum: int, _: Any) -> None:
        logger.info("Received signal %d, initiating shutdown...", signum)
        stop.set()

    signal.signal(signal.SIGTERM, _handle_shutdown)
    signal.signal(signal.SIGINT, _handle_shutdown)

    with ExitStack() as stack:
        transport = create_transport(config)
        if transport is not None:
            stack.callback(transport.close)
        queued = QueuedPublisher(
            Publisher.from_config(config, transport), queue_size=config.queue_size
        )
        stack.callback(queued.close, config.shutdown_timeout)
        accumulator = stack.enter_context(
            StreamRecordAccumulator(on_record_complete=queued)
        )
        driver = FakeRasterDriver(
            job=job, n_rows=rows, n_cols=cols, n_channels=channels, seed=seed
        )
        completed_scans = 0
        while not stop.is_set() and (scans == 0 or completed_scans < scans):
            driver.run(accumulator.deliver, stop=stop, interval=interval)
            completed_scans += 1
        logger.info(
            "Finished %d scans, %d records complete, %d still accumulating",
            completed_scans,
            accumulator.completed_count,
            accumulator.residual_count,
        )
    publisher = queued.publisher
    logger.info(
        "Published %d records, %d failed, %d dropped",
        publisher.sent,
        publisher.failed,
        queued.dropped,
    )
    return 0


def main() -> int:
    parser = setup_arg_parser(description='Fake XRF raster scan producer')
    parser.add_argument('--rows', type=int, default=10, help='Rows of the raster')
    parser.add_argument('--cols', type=int, default=10, help='Columns of the raster')
    parser.add_argument(
        '--channels', type=int, default=2048, help='Channels per spectrum'
    )
    parser.add_argument(
        '--scans', type=int, default=1, help='Number of scans, 0 runs forever'
    )
    parser.add_argument(
        '--interval', type=float, default=0.0, help='Seconds to wait between tiles'
    )
    parser.add_argument(
        '--seed', type=int, default=None, help='Seed of the random generator'
    )
    parser.set_defaults(**get_env_defaults(parser=parser))
    args = parser.parse_args()

    configure_logging(
        level=args.log_level,
        json_file=args.log_json_file,
        disable_stdout=args.no_stdout_log,
        service='fake_raster',
    )
    return run_service(
        streamer_config=args.streamer_config,
        analysis_job=args.analysis_job,
        endpoint=args.endpoint,
        rows=args.rows,
        cols=args.cols,
        channels=args.channels,
        scans=args.scans,
        interval=args.interval,
        seed=args.seed,
    )


if __name__ == "__main__":
    raise SystemExit(main())

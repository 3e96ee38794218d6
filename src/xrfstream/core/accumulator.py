# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
"""
Accumulation of per-tile spectra into one stream record per detector.

The raster driver calls :py:meth:`StreamRecordAccumulator.deliver` once per tile
and detector. There is no end-of-scan message: a record is complete when a
delivery for the last tile of the raster arrives, see
:py:func:`~xrfstream.core.record.is_final_tile`.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Self

import scipp as sc

from ..errors import OutOfSequenceCompletion, SpectrumLengthMismatch
from .record import StreamRecord, is_final_tile
from .spectrum import as_spectrum

if TYPE_CHECKING:
    from ..fitting.context import FitContext

CompletionConsumer = Callable[[StreamRecord], None]


class StreamRecordAccumulator:
    """
    Table of live stream records keyed by detector id.

    Deliveries for the same detector are serialized, deliveries for different
    detectors may come from different threads and proceed in parallel.

    Parameters
    ----------
    on_record_complete:
        Consumer receiving each completed record. Ownership of the record passes to
        the consumer. If None, completed records are returned from
        :py:meth:`deliver` instead and discarded unless the caller keeps them.
    logger:
        Optional logger.
    """

    def __init__(
        self,
        *,
        on_record_complete: CompletionConsumer | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._on_record_complete = on_record_complete
        self._records: dict[int, StreamRecord] = {}
        self._detector_locks: dict[int, threading.Lock] = {}
        self._table_lock = threading.Lock()
        self._completed = 0

    @property
    def on_record_complete(self) -> CompletionConsumer | None:
        return self._on_record_complete

    @on_record_complete.setter
    def on_record_complete(self, consumer: CompletionConsumer | None) -> None:
        self._on_record_complete = consumer

    @property
    def residual_count(self) -> int:
        """Number of records still waiting for their final tile."""
        with self._table_lock:
            return len(self._records)

    @property
    def pending_detectors(self) -> list[int]:
        with self._table_lock:
            return sorted(self._records)

    @property
    def completed_count(self) -> int:
        return self._completed

    def _lock_for(self, detector_id: int) -> threading.Lock:
        with self._table_lock:
            return self._detector_locks.setdefault(detector_id, threading.Lock())

    def _lookup(self, detector_id: int) -> StreamRecord | None:
        with self._table_lock:
            return self._records.get(detector_id)

    def _insert(self, record: StreamRecord) -> None:
        with self._table_lock:
            self._records[record.detector_id] = record

    def _remove(self, detector_id: int) -> None:
        with self._table_lock:
            self._records.pop(detector_id, None)

    def deliver(
        self,
        row: int,
        col: int,
        scan_height: int,
        scan_width: int,
        detector_id: int,
        spectrum: sc.Variable,
        fit_context: FitContext | None = None,
    ) -> StreamRecord | None:
        """
        Add the spectrum of one tile to the record of its detector.

        The spectrum is moved into the accumulator: it becomes the buffer of a new
        record or is added to the existing one. Callers must not use it afterwards.

        Returns
        -------
        :
            The completed record if this delivery completed it and no completion
            consumer is registered, else None.

        Raises
        ------
        SpectrumLengthMismatch:
            If the spectrum does not match the length of the accumulated one. The
            record of the detector is dropped.
        OutOfSequenceCompletion:
            If the final tile is the first delivery seen for the detector.
        """
        spectrum = as_spectrum(spectrum)
        with self._lock_for(detector_id):
            record = self._lookup(detector_id)
            if record is None:
                if is_final_tile(row, col, scan_height, scan_width):
                    self._logger.error(
                        "Detector %d delivered final tile (%d, %d) without a record",
                        detector_id,
                        row,
                        col,
                    )
                    raise OutOfSequenceCompletion(
                        f"Final tile of detector {detector_id} arrived before any "
                        "other tile"
                    )
                self._insert(
                    StreamRecord(
                        row=row,
                        col=col,
                        scan_height=scan_height,
                        scan_width=scan_width,
                        detector_id=detector_id,
                        spectrum=spectrum,
                        fit_context=fit_context,
                    )
                )
                self._logger.debug("Created stream record for detector %d", detector_id)
                return None

            try:
                record.merge(row, col, spectrum)
            except SpectrumLengthMismatch as err:
                self._remove(detector_id)
                self._logger.error(
                    "Dropping stream record of detector %d at tile (%d, %d): %s",
                    detector_id,
                    row,
                    col,
                    err,
                )
                raise

            if not is_final_tile(row, col, scan_height, scan_width):
                return None
            record.complete()
            with self._table_lock:
                self._records.pop(detector_id, None)
                self._completed += 1

        self._logger.info(
            "Stream record of detector %d complete after %d tiles",
            detector_id,
            record.n_tiles,
        )
        return self._emit(record)

    __call__ = deliver
    on_spectrum_delivered = deliver

    def _emit(self, record: StreamRecord) -> StreamRecord | None:
        consumer = self._on_record_complete
        if consumer is None:
            return record
        consumer(record)
        return None

    def close(self) -> int:
        """
        Discard all records that are still accumulating.

        Detector locks are kept, deliveries racing the close stay serialized.

        Returns
        -------
        :
            The number of discarded records. Non-zero means a scan did not
            complete.
        """
        with self._table_lock:
            residual = sorted(self._records)
            self._records.clear()
        if residual:
            self._logger.warning(
                "Discarding %d incomplete stream records (detectors %s)",
                len(residual),
                residual,
            )
        return len(residual)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

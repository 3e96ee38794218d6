# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import scipp as sc

from ..errors import StreamProtocolError
from .spectrum import accumulate

if TYPE_CHECKING:
    from ..fitting.context import FitContext


class RecordState(str, Enum):
    __slots__ = ()
    CREATED = "created"
    ACCUMULATING = "accumulating"
    COMPLETE = "complete"


def is_final_tile(row: int, col: int, scan_height: int, scan_width: int) -> bool:
    """
    Return True if ``(row, col)`` is the last tile of the raster.

    The raster driver reports the scan extents as the coordinates of its last
    tile, so completion is signalled by the tile coordinates reaching them.
    """
    return row == scan_height and col == scan_width


@dataclass(slots=True, kw_only=True)
class StreamRecord:
    """
    Accumulated spectrum of one detector over the tiles of a raster scan.

    Parameters
    ----------
    row, col:
        Coordinates of the most recently merged tile.
    scan_height, scan_width:
        Raster extents as reported by the driver.
    detector_id:
        Detector channel the record belongs to.
    spectrum:
        The accumulated spectrum. Owned exclusively by the record.
    fit_context:
        Calibration, elements and fit routine of the detector.
    """

    row: int
    col: int
    scan_height: int
    scan_width: int
    detector_id: int
    spectrum: sc.Variable
    fit_context: FitContext | None = None
    state: RecordState = RecordState.CREATED
    n_tiles: int = 1

    def merge(self, row: int, col: int, spectrum: sc.Variable) -> None:
        if self.state is RecordState.COMPLETE:
            raise StreamProtocolError(
                f"Record of detector {self.detector_id} is already complete"
            )
        accumulate(self.spectrum, spectrum)
        self.row = row
        self.col = col
        self.n_tiles += 1
        self.state = RecordState.ACCUMULATING

    def complete(self) -> None:
        self.state = RecordState.COMPLETE

    @property
    def is_complete(self) -> bool:
        return self.state is RecordState.COMPLETE

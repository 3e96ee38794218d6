# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
import numpy as np
import pytest

from xrfstream.core.record import RecordState, StreamRecord, is_final_tile
from xrfstream.core.spectrum import make_spectrum
from xrfstream.errors import StreamProtocolError


@pytest.mark.parametrize(
    ('row', 'col', 'expected'),
    [(0, 0, False), (2, 0, False), (0, 3, False), (2, 3, True), (3, 2, False)],
)
def test_is_final_tile(row: int, col: int, expected: bool) -> None:
    assert is_final_tile(row, col, scan_height=2, scan_width=3) is expected


def _make_record() -> StreamRecord:
    return StreamRecord(
        row=0,
        col=0,
        scan_height=1,
        scan_width=1,
        detector_id=7,
        spectrum=make_spectrum([1.0, 1.0]),
    )


class TestStreamRecord:
    def test_new_record_is_created(self) -> None:
        record = _make_record()
        assert record.state is RecordState.CREATED
        assert record.n_tiles == 1
        assert not record.is_complete

    def test_merge_accumulates_and_tracks_tile(self) -> None:
        record = _make_record()
        record.merge(0, 1, make_spectrum([2.0, 3.0]))
        assert record.state is RecordState.ACCUMULATING
        assert (record.row, record.col) == (0, 1)
        assert record.n_tiles == 2
        np.testing.assert_array_equal(record.spectrum.values, [3.0, 4.0])

    def test_complete_is_terminal(self) -> None:
        record = _make_record()
        record.merge(1, 1, make_spectrum([1.0, 1.0]))
        record.complete()
        assert record.is_complete
        with pytest.raises(StreamProtocolError, match="already complete"):
            record.merge(1, 1, make_spectrum([1.0, 1.0]))
        np.testing.assert_array_equal(record.spectrum.values, [2.0, 2.0])

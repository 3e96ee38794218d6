# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
from .accumulator import CompletionConsumer, StreamRecordAccumulator
from .record import RecordState, StreamRecord, is_final_tile
from .spectrum import accumulate, as_spectrum, make_spectrum, range_sum

__all__ = [
    'CompletionConsumer',
    'RecordState',
    'StreamRecord',
    'StreamRecordAccumulator',
    'accumulate',
    'as_spectrum',
    'is_final_tile',
    'make_spectrum',
    'range_sum',
]

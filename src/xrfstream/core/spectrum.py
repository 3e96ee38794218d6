# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
"""
Spectrum helpers.

A spectrum is a one-dimensional :py:class:`scipp.Variable` along the ``channel``
dimension holding ``float64`` counts. Spectra are accumulated in place, so the
buffer a caller hands over must not be used by the caller afterwards.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import scipp as sc

from ..errors import SpectrumLengthMismatch

CHANNEL_DIM = 'channel'
_COUNTS = sc.Unit('counts')


def make_spectrum(values: Sequence[float] | np.ndarray) -> sc.Variable:
    """Create a spectrum from raw channel counts."""
    return sc.array(
        dims=[CHANNEL_DIM],
        values=np.asarray(values, dtype=np.float64),
        unit=_COUNTS,
    )


def as_spectrum(data: sc.Variable | Sequence[float] | np.ndarray) -> sc.Variable:
    """
    Return ``data`` as a spectrum.

    Variables that already have the expected layout are returned as-is, without a
    copy, so that ownership of the buffer can be moved into the accumulator.
    """
    if not isinstance(data, sc.Variable):
        return make_spectrum(data)
    if data.dims != (CHANNEL_DIM,):
        raise ValueError(
            f"Expected spectrum with dims ('{CHANNEL_DIM}',), got {data.dims}"
        )
    if data.unit != _COUNTS:
        raise ValueError(f"Expected spectrum unit 'counts', got '{data.unit}'")
    if data.dtype != sc.DType.float64:
        return data.astype(sc.DType.float64)
    return data


def n_channels(spectrum: sc.Variable) -> int:
    return spectrum.sizes[CHANNEL_DIM]


def accumulate(into: sc.Variable, other: sc.Variable) -> sc.Variable:
    """
    Add ``other`` to ``into`` element-wise, in place.

    Raises
    ------
    SpectrumLengthMismatch:
        If the spectra have different numbers of channels. Buffers are never
        truncated or padded.
    """
    if into.sizes != other.sizes:
        raise SpectrumLengthMismatch(
            f"Cannot merge spectrum with {n_channels(other)} channels into "
            f"spectrum with {n_channels(into)} channels"
        )
    into += other
    return into


def range_sum(spectrum: sc.Variable, left: int, right: int) -> float:
    """Sum of channels over the inclusive interval ``[left, right]``."""
    if left > right:
        return 0.0
    return float(spectrum[CHANNEL_DIM, left : right + 1].sum().value)

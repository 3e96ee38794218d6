# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
"""
Region-of-interest (ROI) extraction.

Each element is attributed the summed counts of the channels around its emission
line. The channel interval is derived from the energy calibration and clamped to
the spectrum with a fixed sequence of rules:

1. ``right >= N``: ``right = N - 2``
2. ``left > right``: ``left = right - 1``
3. ``left < 0``: ``left = 1``
4. ``right < 0``: ``right = N - 2``

The rules are applied in this order and later rules may override earlier ones.
For pathological calibrations (e.g. a negative slope) the resulting interval can
be empty, in which case the intensity is zero. A position that overflows to
infinity (e.g. for a vanishingly small slope) is placed just beyond the
corresponding end of the spectrum, ``N`` or ``-1``, before the rules apply.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass

import scipp as sc

from ..core.spectrum import n_channels, range_sum
from .elements import ElementEntry
from .parameters import CalibrationModel

MIN_CHANNELS = 2


@dataclass(frozen=True, slots=True)
class RoiBounds:
    """Inclusive channel interval of one element."""

    left: int
    right: int


def _channel(energy_kev: float, model: CalibrationModel, n_channels: int) -> int:
    position = (energy_kev - model.energy_offset) / model.energy_slope
    if math.isinf(position):
        return n_channels if position > 0 else -1
    return math.floor(position)


def roi_bounds(
    element: ElementEntry, model: CalibrationModel, n_channels: int
) -> RoiBounds:
    """
    Compute the clamped channel interval of an element.

    Raises
    ------
    ValueError:
        If the spectrum has fewer than two channels or the calibration cannot
        place the element on the channel axis (zero slope or non-finite values).
        Neither case has a meaningful interval.
    """
    if n_channels < MIN_CHANNELS:
        raise ValueError(
            f"ROI extraction needs at least {MIN_CHANNELS} channels, got {n_channels}"
        )
    if model.energy_slope == 0:
        raise ValueError("Energy calibration slope must be non-zero")
    if not all(
        math.isfinite(value)
        for value in (model.energy_offset, model.energy_slope, element.center_kev)
    ):
        raise ValueError(
            f"Non-finite energy calibration for element '{element.name}'"
        )
    half_width_kev = element.width_ev / 2.0 / 1000.0
    left = _channel(element.center_kev - half_width_kev, model, n_channels)
    right = _channel(element.center_kev + half_width_kev, model, n_channels)

    if right >= n_channels:
        right = n_channels - 2
    if left > right:
        left = right - 1
    if left < 0:
        left = 1
    if right < 0:
        right = n_channels - 2
    return RoiBounds(left=left, right=right)


def extract(
    model: CalibrationModel,
    spectrum: sc.Variable,
    elements: Mapping[str, ElementEntry],
) -> dict[str, float]:
    """Sum the counts of each element's region of interest."""
    size = n_channels(spectrum)
    counts = {}
    for name, element in elements.items():
        bounds = roi_bounds(element, model, size)
        counts[name] = range_sum(spectrum, bounds.left, bounds.right)
    return counts


class ROIFitRoutine:
    """Fit routine that reports plain region-of-interest sums."""

    @property
    def name(self) -> str:
        return 'roi'

    def fit_spectra(
        self,
        model: CalibrationModel,
        spectrum: sc.Variable,
        elements: Mapping[str, ElementEntry],
    ) -> dict[str, float]:
        return extract(model, spectrum, elements)

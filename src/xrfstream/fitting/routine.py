# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

import scipp as sc

from .elements import ElementEntry
from .parameters import CalibrationModel


class FitRoutine(Protocol):
    """
    Protocol for routines turning one spectrum into per-element intensities.

    Only region-of-interest summation is provided here. Other fitting algorithms
    can be plugged in by implementing this protocol.
    """

    @property
    def name(self) -> str: ...

    def fit_spectra(
        self,
        model: CalibrationModel,
        spectrum: sc.Variable,
        elements: Mapping[str, ElementEntry],
    ) -> dict[str, float]: ...

# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
from __future__ import annotations

from dataclasses import dataclass, field

import scipp as sc

from .elements import ElementSpec
from .parameters import CalibrationModel
from .roi import ROIFitRoutine
from .routine import FitRoutine


@dataclass(frozen=True, slots=True)
class FitContext:
    """
    Everything needed to turn a finished spectrum of one detector into counts.

    Shared by all stream records of the same detector and never mutated.
    """

    model: CalibrationModel
    elements: ElementSpec
    routine: FitRoutine = field(default_factory=ROIFitRoutine)

    def fit(self, spectrum: sc.Variable) -> dict[str, float]:
        return self.routine.fit_spectra(self.model, spectrum, self.elements)

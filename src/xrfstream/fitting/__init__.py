# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
from .context import FitContext
from .elements import ElementEntry, ElementSpec
from .parameters import CalibrationModel, FitParameters
from .roi import ROIFitRoutine, RoiBounds, extract, roi_bounds
from .routine import FitRoutine

__all__ = [
    'CalibrationModel',
    'ElementEntry',
    'ElementSpec',
    'FitContext',
    'FitParameters',
    'FitRoutine',
    'ROIFitRoutine',
    'RoiBounds',
    'extract',
    'roi_bounds',
]

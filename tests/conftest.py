# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
import pytest

from xrfstream.fitting import ElementEntry, ElementSpec, FitContext, FitParameters


@pytest.fixture
def unit_calibration() -> FitParameters:
    """Calibration where channel index equals energy in keV."""
    return FitParameters(energy_offset=0.0, energy_slope=1.0)


@pytest.fixture
def fit_context(unit_calibration: FitParameters) -> FitContext:
    elements = ElementSpec(
        [
            ElementEntry(name='Fe', center_kev=2.5, width_ev=2000.0),
            ElementEntry(name='Cu', center_kev=1.5, width_ev=1000.0),
        ]
    )
    return FitContext(model=unit_calibration, elements=elements)

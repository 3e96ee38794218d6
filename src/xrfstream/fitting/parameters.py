# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
"""Energy calibration parameters of a fit model."""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

ENERGY_OFFSET = 'energy_offset'
ENERGY_SLOPE = 'energy_slope'
ENERGY_QUADRATIC = 'energy_quadratic'


class CalibrationModel(Protocol):
    """Anything that exposes a linear channel-to-energy calibration in keV."""

    @property
    def energy_offset(self) -> float: ...

    @property
    def energy_slope(self) -> float: ...


class FitParameters(BaseModel):
    """
    Calibration parameters of a fit model.

    Energies are in keV: ``energy = energy_offset + energy_slope * channel``.
    ``energy_quadratic`` is carried for models that need it but is not used by
    region-of-interest extraction.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    energy_offset: float = Field(default=0.0, description="Energy offset in keV.")
    energy_slope: float = Field(
        default=0.01, description="Energy per channel in keV."
    )
    energy_quadratic: float = Field(
        default=0.0, description="Quadratic calibration term in keV."
    )

    def value(self, name: str) -> float:
        """Look up a parameter by name."""
        if name not in type(self).model_fields:
            raise KeyError(f"Unknown fit parameter '{name}'")
        return getattr(self, name)

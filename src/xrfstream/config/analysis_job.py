# SPDX-FileCopyrightText: 2026 Scipp contributors (https://github.com/scipp)
# SPDX-License-Identifier: BSD-3-Clause
"""Per-detector calibration and elements of an analysis job."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, PrivateAttr, field_validator

from ..fitting import ElementEntry, ElementSpec, FitContext, FitParameters
from ..fitting.roi import ROIFitRoutine
from .streamer import _read_yaml

_ROUTINES = {'roi': ROIFitRoutine}


class DetectorConfig(BaseModel, frozen=True):
    """Fit setup of one detector channel."""

    fit_parameters: FitParameters = Field(default_factory=FitParameters)
    elements: list[ElementEntry] = Field(min_length=1)
    routine: Literal['roi'] = 'roi'

    @field_validator('elements')
    @classmethod
    def _unique_names(cls, elements: list[ElementEntry]) -> list[ElementEntry]:
        names = [element.name for element in elements]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate element names: {duplicates}")
        return elements


class AnalysisJob(BaseModel, frozen=True):
    """
    Fit setup of all detectors contributing to a scan.

    The fit context of each detector is built once and shared by all stream records
    of that detector.
    """

    detectors: dict[int, DetectorConfig] = Field(min_length=1)

    _contexts: dict[int, FitContext] = PrivateAttr(default_factory=dict)

    def model_post_init(self, /, __context: Any) -> None:
        self._contexts = {
            detector_id: FitContext(
                model=config.fit_parameters,
                elements=ElementSpec(config.elements),
                routine=_ROUTINES[config.routine](),
            )
            for detector_id, config in self.detectors.items()
        }

    @property
    def detector_ids(self) -> list[int]:
        return sorted(self.detectors)

    def fit_context(self, detector_id: int) -> FitContext:
        try:
            return self._contexts[detector_id]
        except KeyError:
            raise KeyError(
                f"Detector {detector_id} is not part of the analysis job, "
                f"configured detectors: {self.detector_ids}"
            ) from None


def load_analysis_job(path: Path | str | None = None) -> AnalysisJob:
    """Load an analysis job from YAML, or the packaged default if path is None."""
    return AnalysisJob(**_read_yaml(path, 'analysis_job.yaml'))

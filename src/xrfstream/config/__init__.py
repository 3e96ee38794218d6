# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
from .analysis_job import AnalysisJob, DetectorConfig, load_analysis_job
from .streamer import PayloadMode, StreamerConfig, load_streamer_config

__all__ = [
    'AnalysisJob',
    'DetectorConfig',
    'PayloadMode',
    'StreamerConfig',
    'load_analysis_job',
    'load_streamer_config',
]

# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
# ruff: noqa: E402, I

import importlib.metadata

try:
    __version__ = importlib.metadata.version(__package__ or __name__)
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0"

del importlib

from .core import (
    RecordState,
    StreamRecord,
    StreamRecordAccumulator,
    is_final_tile,
    make_spectrum,
)
from .fitting import ElementEntry, ElementSpec, FitContext, FitParameters, extract
from .publisher import Publisher, QueuedPublisher

__all__ = [
    "ElementEntry",
    "ElementSpec",
    "FitContext",
    "FitParameters",
    "Publisher",
    "QueuedPublisher",
    "RecordState",
    "StreamRecord",
    "StreamRecordAccumulator",
    "extract",
    "is_final_tile",
    "make_spectrum",
]

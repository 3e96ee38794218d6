# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
"""
Payload encoders for finished stream records.

Counts payloads are UTF-8 JSON documents carrying a schema ``version``. The
version must be incremented whenever the layout changes.
"""

from __future__ import annotations

import json
from typing import Protocol

import pydantic
from pydantic import BaseModel, Field

from .config.streamer import PayloadMode
from .core.record import StreamRecord
from .errors import PayloadVersionError, SerializationError, UnsupportedPayloadMode

PAYLOAD_VERSION = 1


class CountsPayload(BaseModel, frozen=True):
    """Per-element intensities of one finished stream record."""

    version: int = PAYLOAD_VERSION
    detector_id: int
    row: int
    col: int
    scan_height: int
    scan_width: int
    routine: str = Field(description="Name of the fit routine producing the counts.")
    counts: dict[str, float]


class PayloadEncoder(Protocol):
    """Serializes a finished stream record to bytes for transmission."""

    def encode(self, record: StreamRecord) -> bytes: ...


class CountsEncoder:
    """Encodes the fitted per-element counts of a record."""

    def encode(self, record: StreamRecord) -> bytes:
        if record.fit_context is None:
            raise SerializationError(
                f"Record of detector {record.detector_id} has no fit context"
            )
        try:
            counts = record.fit_context.fit(record.spectrum)
        except ValueError as e:
            raise SerializationError(
                f"Fitting record of detector {record.detector_id} failed: {e}"
            ) from e
        payload = CountsPayload(
            detector_id=record.detector_id,
            row=record.row,
            col=record.col,
            scan_height=record.scan_height,
            scan_width=record.scan_width,
            routine=record.fit_context.routine.name,
            counts=counts,
        )
        return payload.model_dump_json().encode('utf-8')

    @staticmethod
    def decode(data: bytes) -> CountsPayload:
        """
        Decode a counts payload.

        Raises
        ------
        PayloadVersionError:
            If the payload was written with a different schema version.
        SerializationError:
            If the payload is not a valid counts document.
        """
        try:
            raw = json.loads(data.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SerializationError(f"Invalid counts payload: {e}") from None
        if not isinstance(raw, dict):
            raise SerializationError("Invalid counts payload: expected an object")
        version = raw.get('version')
        if version != PAYLOAD_VERSION:
            raise PayloadVersionError(
                f"Unsupported counts payload version {version!r}, "
                f"expected {PAYLOAD_VERSION}"
            )
        try:
            return CountsPayload.model_validate(raw)
        except pydantic.ValidationError as e:
            raise SerializationError(f"Invalid counts payload: {e}") from None


class SpectraEncoder:
    """Placeholder for publishing full spectra. Not implemented."""

    def encode(self, record: StreamRecord) -> bytes:
        raise UnsupportedPayloadMode(
            "Publishing full spectra is not supported, enable 'send_counts' instead"
        )


def make_encoder(mode: PayloadMode) -> PayloadEncoder:
    if mode is PayloadMode.COUNTS:
        return CountsEncoder()
    return SpectraEncoder()

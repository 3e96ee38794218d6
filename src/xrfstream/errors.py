# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
"""Exceptions raised by the XRF streaming pipeline."""


class StreamProtocolError(RuntimeError):
    """A delivery violated the raster/detector protocol of a stream record."""


class SpectrumLengthMismatch(StreamProtocolError, ValueError):
    """Raised when merging spectra with different numbers of channels."""


class OutOfSequenceCompletion(StreamProtocolError):
    """Raised when a detector delivers its final tile before any other tile."""


class TransportError(RuntimeError):
    """Raised when the publish transport fails to send or is not bound."""


class UnsupportedPayloadMode(NotImplementedError):
    """Raised when a payload mode without an encoder is selected."""


class PayloadVersionError(ValueError):
    """Raised when decoding a payload with an unknown schema version."""


class SerializationError(ValueError):
    """Raised when a finished record cannot be encoded into a payload."""

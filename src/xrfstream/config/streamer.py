# SPDX-FileCopyrightText: 2026 Scipp contributors (https://github.com/scipp)
# SPDX-License-Identifier: BSD-3-Clause
"""
Configuration of the counts publisher.

Settings are read from YAML and validated with Pydantic. The packaged default
lives in ``xrfstream/config/defaults/streamer.yaml``.
"""

from __future__ import annotations

from enum import Enum
from importlib import resources
from pathlib import Path
from typing import Any, Literal, Self

import yaml
from pydantic import BaseModel, Field, model_validator


class PayloadMode(str, Enum):
    """What is published for each finished stream record."""

    COUNTS = 'counts'
    SPECTRA = 'spectra'


class StreamerConfig(BaseModel, frozen=True):
    """
    Settings of the publish transport and payload.

    Parameters
    ----------
    enabled:
        If False no transport is created and publishing is a no-op.
    transport:
        ``'zmq'`` for a ZeroMQ PUB socket, ``'in_memory'`` for the in-process
        broker used in development and tests.
    endpoint:
        Endpoint the PUB socket binds to.
    topic:
        Topic frame sent before each payload.
    send_counts, send_spectra:
        Payload selection. Exactly one of them must be set.
    queue_size:
        Maximum number of finished records waiting to be sent.
    shutdown_timeout:
        Seconds to wait for pending sends on shutdown.
    linger_ms:
        Milliseconds the socket may keep unsent messages after close.
    """

    enabled: bool = True
    transport: Literal['zmq', 'in_memory'] = 'zmq'
    endpoint: str = 'tcp://*:43434'
    topic: str = Field(default='XRF-Counts', min_length=1)
    send_counts: bool = True
    send_spectra: bool = False
    queue_size: int = Field(default=100, ge=1)
    shutdown_timeout: float = Field(default=5.0, ge=0)
    linger_ms: int = Field(default=1000, ge=0)

    @model_validator(mode='after')
    def _check_payload_flags(self) -> Self:
        if self.send_counts == self.send_spectra:
            raise ValueError(
                "Exactly one of 'send_counts' and 'send_spectra' must be enabled"
            )
        return self

    @property
    def payload_mode(self) -> PayloadMode:
        return PayloadMode.COUNTS if self.send_counts else PayloadMode.SPECTRA


def _read_yaml(path: Path | str | None, default: str) -> dict[str, Any]:
    if path is None:
        resource = resources.files('xrfstream.config.defaults').joinpath(default)
        with resource.open() as f:
            return yaml.safe_load(f) or {}
    try:
        with open(path) as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise FileNotFoundError(f"Config file '{path}' not found") from None


def load_streamer_config(
    path: Path | str | None = None, **overrides: Any
) -> StreamerConfig:
    """
    Load the streamer configuration.

    Parameters
    ----------
    path:
        YAML file to load. If None, the packaged default is used.
    overrides:
        Values taking precedence over the file, e.g. from the command line.
        Entries that are None are ignored.

    Returns
    -------
    :
        Validated configuration.
    """
    data = _read_yaml(path, 'streamer.yaml')
    data.update({key: value for key, value in overrides.items() if value is not None})
    return StreamerConfig(**data)

# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
"""Transport abstraction for publishing payloads."""

from __future__ import annotations

from typing import Protocol


class Transport(Protocol):
    """
    Protocol for publish transports.

    A transport is opened once, used by a single sender and closed exactly once.
    Implementations raise :py:class:`~xrfstream.errors.TransportError` when a
    payload cannot be handed to the underlying channel.
    """

    def send(self, topic: str, payload: bytes) -> None:
        """
        Send one payload, preceded by its topic, as a single logical message.

        Parameters
        ----------
        topic:
            Topic the payload is published on.
        payload:
            Serialized payload.
        """
        ...

    def close(self) -> None:
        """Release the underlying channel. Calling close again has no effect."""
        ...

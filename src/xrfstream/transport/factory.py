# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
from __future__ import annotations

import logging

from ..config.streamer import StreamerConfig
from ..errors import TransportError
from .base import Transport
from .in_memory import InMemoryBroker, InMemoryTransport
from .zeromq import ZmqPublishTransport


def create_transport(
    config: StreamerConfig,
    *,
    broker: InMemoryBroker | None = None,
    logger: logging.Logger | None = None,
) -> Transport | None:
    """
    Create the publish transport described by the configuration.

    Returns None if publishing is disabled or the socket cannot be bound. In both
    cases the publisher degrades to a no-op and the pipeline keeps running.
    """
    logger = logger or logging.getLogger(__name__)
    if not config.enabled:
        logger.info("Publishing disabled, finished records will be discarded")
        return None
    if config.transport == 'in_memory':
        return InMemoryTransport(broker if broker is not None else InMemoryBroker())

    try:
        return ZmqPublishTransport(
            config.endpoint, linger_ms=config.linger_ms, logger=logger
        )
    except TransportError as e:
        logger.error("Publishing disabled: %s", e)
        return None

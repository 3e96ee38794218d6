# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
from .base import Transport
from .factory import create_transport
from .in_memory import InMemoryBroker, InMemoryTransport
from .zeromq import ZmqPublishTransport

__all__ = [
    'InMemoryBroker',
    'InMemoryTransport',
    'Transport',
    'ZmqPublishTransport',
    'create_transport',
]

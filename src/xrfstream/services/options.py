# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
"""Command-line options shared by xrfstream services."""

from __future__ import annotations

import argparse
import os
from typing import Any

ENV_PREFIX = 'XRFSTREAM'


def setup_arg_parser(description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=description,
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        '--streamer-config',
        default=None,
        metavar='PATH',
        help='YAML file with publisher settings (default: packaged settings)',
    )
    parser.add_argument(
        '--analysis-job',
        default=None,
        metavar='PATH',
        help='YAML file with per-detector calibration and elements',
    )
    parser.add_argument(
        '--endpoint',
        default=None,
        help='Endpoint to publish on, overrides the streamer config',
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default='INFO',
        help='Set the logging level',
    )
    parser.add_argument(
        '--log-json-file',
        default=None,
        metavar='PATH',
        help='Write JSON-formatted logs to this file',
    )
    parser.add_argument(
        '--no-stdout-log',
        action='store_true',
        default=False,
        help='Disable logging to stdout',
    )
    return parser


def get_env_defaults(
    *, parser: argparse.ArgumentParser, prefix: str = ENV_PREFIX
) -> dict[str, Any]:
    """
    Get defaults from environment variables based on parser arguments.

    ``--arg-name`` is read from ``<PREFIX>_ARG_NAME``.
    """
    env_defaults = {}
    for action in parser._actions:
        if action.dest == 'help':
            continue
        default_value = action.default
        env_val = os.getenv(f"{prefix}_{action.dest.upper()}")
        if env_val is None:
            env_defaults[action.dest] = default_value
        elif isinstance(default_value, bool):
            env_defaults[action.dest] = env_val.lower() in ('true', '1', 'yes')
        elif isinstance(default_value, int):
            env_defaults[action.dest] = int(env_val)
        elif isinstance(default_value, float):
            env_defaults[action.dest] = float(env_val)
        else:
            env_defaults[action.dest] = env_val
    return env_defaults

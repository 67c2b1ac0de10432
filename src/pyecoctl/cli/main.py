#!/usr/bin/env python3
"""ecoctl - EcoFlow power station controller.

Lists devices, dumps a device's parameters, or switches the energy strategy
between self-powered and time-of-use operation.

Credentials and the target serial number come from ``~/.ecoflow`` (JSON with
``accessKey``, ``secretKey``, ``serialNumber``); the ``ACCESS_KEY``,
``SECRET_KEY`` and ``SERIAL_NUMBER`` environment variables override it.

Usage:
    ecoctl list        # Devices bound to the developer account
    ecoctl check       # All parameters of SERIAL_NUMBER as JSON on stdout
    ecoctl selfpow     # Self-powered, 70% backup reserve
    ecoctl tou         # Time-of-use, 45% backup reserve (any other mode)

Exit status:
    0  success
    1  missing credentials or serial number, or the API call failed
    2  mode argument missing
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TextIO

from pyecoctl.client import EcoflowClient
from pyecoctl.config import ConfigResolver, EffectiveConfig
from pyecoctl.constants import ENV_LOG_LEVEL
from pyecoctl.exceptions import EcoflowConfigError, EcoflowError
from pyecoctl.models import Mode
from pyecoctl.router import (
    Action,
    CommandRouter,
    EnumerateDevices,
    FetchAllParameters,
    route,
)

_LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="ecoctl",
        description="Control an EcoFlow power station through the EcoFlow Open API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Modes:
  list      List devices bound to the developer account
  check     Print all parameters of the configured device as JSON
  selfpow   Enable self-powered mode with a 70% backup reserve
  <other>   Enable time-of-use mode with a 45% backup reserve
""",
    )
    parser.add_argument(
        "mode",
        metavar="MODE",
        help="list, check, selfpow, or anything else for the time-of-use default",
    )
    return parser


def configure_logging(environ: Mapping[str, str]) -> None:
    """Configure root logging from ``ECOCTL_LOG_LEVEL`` (default DEBUG)."""
    level_name = environ.get(ENV_LOG_LEVEL, "").upper() or "DEBUG"
    level = logging.getLevelName(level_name)
    known = isinstance(level, int)
    if not known:
        level = logging.DEBUG
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # aiohttp logs every connection at DEBUG
    logging.getLogger("aiohttp").setLevel(max(level, logging.INFO))
    if not known:
        _LOGGER.warning("Unknown log level %r, using DEBUG", level_name)


def _describe(action: Action) -> str:
    if isinstance(action, EnumerateDevices):
        return "getting device list"
    if isinstance(action, FetchAllParameters):
        return "getting device parameters"
    return "setting device parameter"


async def run(
    mode: Mode,
    config: EffectiveConfig,
    output: TextIO | None = None,
) -> int:
    """Validate, dispatch one action and report the outcome.

    Args:
        mode: Requested mode
        config: Effective configuration
        output: Stream for the ``check`` JSON dump (default: stdout)

    Returns:
        Process exit status
    """
    try:
        action = route(mode, config)
    except EcoflowConfigError as err:
        _LOGGER.error("%s", err)
        return EXIT_FAILURE

    async with EcoflowClient(config.access_key, config.secret_key) as client:
        try:
            await CommandRouter(client, output).dispatch(action)
        except EcoflowError as err:
            _LOGGER.error("Error %s: %s", _describe(action), err)
            return EXIT_FAILURE

    return EXIT_OK


def main(
    argv: Sequence[str] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    settings_path: Path | str | None = None,
    output: TextIO | None = None,
) -> int:
    """Main entry point.

    Args:
        argv: Command line arguments without the program name
        environ: Environment lookup (default: ``os.environ``)
        settings_path: Settings file (default: ``~/.ecoflow``)
        output: Stream for the ``check`` JSON dump (default: stdout)

    Returns:
        Process exit status
    """
    environ = os.environ if environ is None else environ
    configure_logging(environ)

    args = create_parser().parse_args(argv)
    mode = Mode.from_token(args.mode)
    _LOGGER.debug("Mode %r -> %s", args.mode, mode.name)

    config = ConfigResolver(settings_path, environ=environ).resolve()
    return asyncio.run(run(mode, config, output))


if __name__ == "__main__":
    sys.exit(main())

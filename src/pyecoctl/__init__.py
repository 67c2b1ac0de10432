"""Python client and command line controller for EcoFlow power stations.

Usage:
    Resolve settings and switch strategy:
        from pyecoctl import CommandRouter, ConfigResolver, EcoflowClient, Mode

        config = ConfigResolver().resolve()
        async with EcoflowClient(config.access_key, config.secret_key) as client:
            await CommandRouter(client).run(Mode.SELF_POWERED, config)

    Low-level API calls:
        from pyecoctl import EcoflowClient

        async with EcoflowClient(access_key, secret_key) as client:
            devices = await client.get_device_list()
            quota = await client.get_device_all_parameters(devices.data[0].sn)
"""

from __future__ import annotations

from .client import EcoflowClient
from .config import ConfigResolver, EffectiveConfig
from .exceptions import (
    EcoflowAPIError,
    EcoflowAuthError,
    EcoflowConfigError,
    EcoflowConnectionError,
    EcoflowError,
)
from .models import CommandEnvelope, Mode, StrategyProfile
from .payload import build as build_command
from .router import (
    CommandRouter,
    EnumerateDevices,
    FetchAllParameters,
    SetStrategy,
    route,
)

__version__ = "0.1.0"
__all__ = [
    "EcoflowClient",
    "ConfigResolver",
    "EffectiveConfig",
    "CommandRouter",
    "route",
    "build_command",
    # Actions
    "EnumerateDevices",
    "FetchAllParameters",
    "SetStrategy",
    # Models
    "CommandEnvelope",
    "Mode",
    "StrategyProfile",
    # Exceptions
    "EcoflowError",
    "EcoflowAPIError",
    "EcoflowAuthError",
    "EcoflowConfigError",
    "EcoflowConnectionError",
]

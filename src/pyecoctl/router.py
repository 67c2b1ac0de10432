"""Mode validation and dispatch.

:func:`route` applies the precondition gates and picks exactly one action for
the requested :class:`~pyecoctl.models.Mode`:

============================  =====================================
Mode                          Action
============================  =====================================
``list``                      :class:`EnumerateDevices`
``check``                     :class:`FetchAllParameters`
``selfpow``                   :class:`SetStrategy` (self-powered)
anything else                 :class:`SetStrategy` (time-of-use)
============================  =====================================

Gates, in order, each stopping the run before any API call:

1. access key and secret key are set (every mode, including ``list``)
2. serial number is set (every mode except ``list``)

:class:`CommandRouter` then executes the chosen action against an
:class:`~pyecoctl.client.EcoflowClient`.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, TextIO

from . import payload
from .exceptions import EcoflowConfigError
from .models import Mode, StrategyProfile

if TYPE_CHECKING:
    from .client import EcoflowClient
    from .config import EffectiveConfig
    from .models import DeviceListResponse, ParameterSetResponse, SetParameterResponse

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnumerateDevices:
    """List devices bound to the account."""


@dataclass(frozen=True)
class FetchAllParameters:
    """Dump every parameter of one device."""

    serial_number: str


@dataclass(frozen=True)
class SetStrategy:
    """Apply a strategy profile to one device."""

    serial_number: str
    profile: StrategyProfile


Action = EnumerateDevices | FetchAllParameters | SetStrategy


def route(mode: Mode, config: EffectiveConfig) -> Action:
    """Validate the configuration for ``mode`` and select the action.

    Args:
        mode: Requested mode
        config: Effective configuration

    Returns:
        The single action to execute

    Raises:
        EcoflowConfigError: If a required setting is missing
    """
    if not config.has_credentials:
        raise EcoflowConfigError(
            "AccessKey and SecretKey are mandatory. Set them in ~/.ecoflow (JSON format) "
            "or via ACCESS_KEY and SECRET_KEY environment variables."
        )

    if mode is Mode.LIST:
        return EnumerateDevices()

    if not config.serial_number:
        raise EcoflowConfigError(
            "SerialNumber is mandatory for modes other than 'list'. Set it in ~/.ecoflow "
            "(JSON format) or via SERIAL_NUMBER environment variable."
        )

    if mode is Mode.CHECK:
        return FetchAllParameters(config.serial_number)

    return SetStrategy(
        config.serial_number,
        StrategyProfile.for_self_powered(mode is Mode.SELF_POWERED),
    )


class CommandRouter:
    """Execute routed actions against the EcoFlow API.

    Remote errors are not caught here; they propagate to the caller as
    :class:`~pyecoctl.exceptions.EcoflowError`.
    """

    def __init__(self, client: EcoflowClient, output: TextIO | None = None) -> None:
        """Initialize the router.

        Args:
            client: Open API client
            output: Stream for the ``check`` JSON dump (default: stdout)
        """
        self.client = client
        self.output = output if output is not None else sys.stdout

    async def run(self, mode: Mode, config: EffectiveConfig) -> None:
        """Route ``mode`` and dispatch the resulting action."""
        await self.dispatch(route(mode, config))

    async def dispatch(self, action: Action) -> None:
        """Execute one action.

        Args:
            action: Action returned by :func:`route`
        """
        if isinstance(action, EnumerateDevices):
            await self._enumerate_devices()
        elif isinstance(action, FetchAllParameters):
            await self._fetch_all_parameters(action.serial_number)
        else:
            await self._set_strategy(action.serial_number, action.profile)

    async def _enumerate_devices(self) -> DeviceListResponse:
        devices = await self.client.get_device_list()
        _LOGGER.info("Device list: %d device(s)", len(devices.data))
        for device in devices.data:
            _LOGGER.info("  %s", device)
        return devices

    async def _fetch_all_parameters(self, serial_number: str) -> ParameterSetResponse:
        parameters = await self.client.get_device_all_parameters(serial_number)
        self.output.write(json.dumps(parameters.data, indent=2))
        self.output.write("\n")
        self.output.flush()
        return parameters

    async def _set_strategy(
        self, serial_number: str, profile: StrategyProfile
    ) -> SetParameterResponse:
        envelope = payload.build(serial_number, profile)
        _LOGGER.debug(
            "Setting strategy: self_powered=%s backup_reserve=%d%%",
            profile.self_powered_enabled,
            profile.backup_reserve_start_soc,
        )
        response = await self.client.set_device_parameter(envelope)
        _LOGGER.info(
            "Set device parameter response: code=%s message=%s",
            response.code,
            response.message,
        )
        return response


__all__ = [
    "Action",
    "CommandRouter",
    "EnumerateDevices",
    "FetchAllParameters",
    "SetStrategy",
    "route",
]

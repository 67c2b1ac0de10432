"""Pydantic models for the EcoFlow Open API and the strategy command.

Request side:
    :class:`StrategyProfile` describes which operating strategy to apply, and
    :class:`CommandEnvelope` is the fixed-shape request the device expects for
    ``PUT /iot-open/sign/device/quota``. The envelope validates its shape when
    constructed, so a malformed command never reaches the wire.

Response side:
    Every Open API response is wrapped as ``{"code", "message", "data"}``;
    ``code == "0"`` signals success.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .constants import (
    API_SUCCESS_CODE,
    SELF_POWERED_BACKUP_RESERVE_SOC,
    STRATEGY_CMD_FUNC,
    STRATEGY_CMD_ID,
    STRATEGY_DEST,
    STRATEGY_DIR_DEST,
    STRATEGY_DIR_SRC,
    TOU_BACKUP_RESERVE_SOC,
)


def _obfuscate_serial(serial: str) -> str:
    """Keep the first and last two characters of a serial number."""
    if len(serial) <= 4:
        return "*" * len(serial)
    return f"{serial[:2]}{'*' * (len(serial) - 4)}{serial[-2:]}"


class Mode(str, Enum):
    """Operator intent selected by the single command-line token.

    String enum so members compare equal to the literal tokens. Tokens other
    than ``list``, ``check`` and ``selfpow`` map to :attr:`DEFAULT_STRATEGY`
    (see :meth:`from_token`); that fallthrough is intentional.
    """

    LIST = "list"
    CHECK = "check"
    SELF_POWERED = "selfpow"
    DEFAULT_STRATEGY = "default"

    @classmethod
    def from_token(cls, token: str) -> Mode:
        """Map a command-line token to a mode.

        Matching is exact and case-sensitive. Any token that is not one of the
        three named modes, including ``"default"`` itself, selects the
        time-of-use default strategy.

        Args:
            token: Raw mode argument

        Returns:
            Mode for the token
        """
        for mode in (cls.LIST, cls.CHECK, cls.SELF_POWERED):
            if token == mode.value:
                return mode
        return cls.DEFAULT_STRATEGY


class StrategyProfile(BaseModel):
    """Self-powered vs time-of-use strategy with its backup reserve."""

    model_config = ConfigDict(frozen=True)

    self_powered_enabled: bool
    tou_mode_enabled: bool
    backup_reserve_start_soc: int = Field(ge=0, le=100)

    @model_validator(mode="after")
    def _check_complementary(self) -> StrategyProfile:
        if self.self_powered_enabled == self.tou_mode_enabled:
            raise ValueError("self_powered_enabled and tou_mode_enabled must differ")
        return self

    @classmethod
    def for_self_powered(cls, enabled: bool) -> StrategyProfile:
        """Build the profile for self-powered (True) or time-of-use (False) operation."""
        return cls(
            self_powered_enabled=enabled,
            tou_mode_enabled=not enabled,
            backup_reserve_start_soc=(
                SELF_POWERED_BACKUP_RESERVE_SOC if enabled else TOU_BACKUP_RESERVE_SOC
            ),
        )


class _WireModel(BaseModel):
    """Base for request models: immutable, camelCase on the wire, no extra keys."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class EnergyBackupConfig(_WireModel):
    """``cfgEnergyBackup`` block."""

    energy_backup_start_soc: int = Field(alias="energyBackupStartSoc", ge=0, le=100)
    energy_backup_en: bool = Field(default=True, alias="energyBackupEn")


class StrategyOperateModeConfig(_WireModel):
    """``cfgEnergyStrategyOperateMode`` block."""

    operate_self_powered_open: bool = Field(alias="operateSelfPoweredOpen")
    operate_tou_mode_open: bool = Field(alias="operateTouModeOpen")

    @model_validator(mode="after")
    def _check_complementary(self) -> StrategyOperateModeConfig:
        if self.operate_self_powered_open == self.operate_tou_mode_open:
            raise ValueError("exactly one of self-powered and TOU mode must be open")
        return self


class StrategyParams(_WireModel):
    """``params`` block of the strategy command."""

    cfg_energy_backup: EnergyBackupConfig = Field(alias="cfgEnergyBackup")
    cfg_energy_strategy_operate_mode: StrategyOperateModeConfig = Field(
        alias="cfgEnergyStrategyOperateMode"
    )


class CommandEnvelope(_WireModel):
    """Strategy command sent with ``PUT /iot-open/sign/device/quota``.

    The header fields are fixed by the device protocol; any other value is
    rejected at construction.

    Example:
        >>> envelope.to_payload()
        {'sn': 'HJ31ZDH4ZF7U0123', 'cmdId': 17, 'dirDest': 1, 'dirSrc': 1,
         'cmdFunc': 254, 'dest': 2, 'needAck': True, 'params': {...}}
    """

    sn: str = Field(min_length=1)
    cmd_id: Literal[17] = Field(default=STRATEGY_CMD_ID, alias="cmdId")
    dir_dest: Literal[1] = Field(default=STRATEGY_DIR_DEST, alias="dirDest")
    dir_src: Literal[1] = Field(default=STRATEGY_DIR_SRC, alias="dirSrc")
    cmd_func: Literal[254] = Field(default=STRATEGY_CMD_FUNC, alias="cmdFunc")
    dest: Literal[2] = Field(default=STRATEGY_DEST)
    need_ack: Literal[True] = Field(default=True, alias="needAck")
    params: StrategyParams

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready request body using the wire field names."""
        return self.model_dump(by_alias=True)


class ApiResponse(BaseModel):
    """Common ``{code, message}`` wrapper of every Open API response."""

    model_config = ConfigDict(extra="allow")

    code: str
    message: str | None = None

    @field_validator("code", mode="before")
    @classmethod
    def _code_to_str(cls, value: Any) -> Any:
        # Some endpoints return the code as a JSON number
        if isinstance(value, int):
            return str(value)
        return value

    @property
    def success(self) -> bool:
        """True when the API reported success."""
        return self.code == API_SUCCESS_CODE


class DeviceInfo(BaseModel):
    """One device bound to the developer account."""

    model_config = ConfigDict(extra="allow")

    sn: str
    deviceName: str | None = None
    productName: str | None = None
    online: int = 0

    @property
    def is_online(self) -> bool:
        return self.online == 1

    def __str__(self) -> str:
        state = "online" if self.is_online else "offline"
        name = self.deviceName or self.productName or "unnamed"
        return f"{_obfuscate_serial(self.sn)} ({name}, {state})"


class DeviceListResponse(ApiResponse):
    """Response of ``GET /iot-open/sign/device/list``."""

    data: list[DeviceInfo] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class ParameterSetResponse(ApiResponse):
    """Response of ``GET /iot-open/sign/device/quota/all``.

    ``data`` is the flat quota map, keys like ``bpSoc`` or
    ``cfgEnergyBackup.energyBackupStartSoc``; the shape depends on the product.
    """

    data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("data", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class SetParameterResponse(ApiResponse):
    """Response of ``PUT /iot-open/sign/device/quota``."""

    data: Any = None


__all__ = [
    "ApiResponse",
    "CommandEnvelope",
    "DeviceInfo",
    "DeviceListResponse",
    "EnergyBackupConfig",
    "Mode",
    "ParameterSetResponse",
    "SetParameterResponse",
    "StrategyOperateModeConfig",
    "StrategyParams",
    "StrategyProfile",
]

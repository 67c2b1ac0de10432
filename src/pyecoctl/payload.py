"""Strategy command construction.

Turns a serial number and a :class:`~pyecoctl.models.StrategyProfile` into
the :class:`~pyecoctl.models.CommandEnvelope` accepted by
``PUT /iot-open/sign/device/quota``. No I/O and no shared state: equal inputs
always produce equal envelopes.
"""

from __future__ import annotations

from .models import (
    CommandEnvelope,
    EnergyBackupConfig,
    StrategyOperateModeConfig,
    StrategyParams,
    StrategyProfile,
)


def build(serial_number: str, profile: StrategyProfile) -> CommandEnvelope:
    """Build the strategy command for one device.

    The header fields (``cmdId=17``, ``dirDest=1``, ``dirSrc=1``,
    ``cmdFunc=254``, ``dest=2``, ``needAck=true``) are fixed by the protocol
    and filled in by the envelope model.

    Args:
        serial_number: Target device serial number
        profile: Strategy to apply

    Returns:
        Validated command envelope

    Raises:
        pydantic.ValidationError: If ``serial_number`` is empty

    Example:
        >>> envelope = build("HJ31ZDH4ZF7U0123", StrategyProfile.for_self_powered(True))
        >>> envelope.to_payload()["params"]["cfgEnergyBackup"]
        {'energyBackupStartSoc': 70, 'energyBackupEn': True}
    """
    params = StrategyParams(
        cfg_energy_backup=EnergyBackupConfig(
            energy_backup_start_soc=profile.backup_reserve_start_soc,
            energy_backup_en=True,
        ),
        cfg_energy_strategy_operate_mode=StrategyOperateModeConfig(
            operate_self_powered_open=profile.self_powered_enabled,
            operate_tou_mode_open=profile.tou_mode_enabled,
        ),
    )
    return CommandEnvelope(sn=serial_number, params=params)


__all__ = ["build"]

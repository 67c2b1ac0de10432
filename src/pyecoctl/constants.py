"""Constants for the EcoFlow Open API and the ecoctl command line tool.

Protocol values for the strategy command were captured from the EcoFlow
app while switching a PowerOcean station between self-powered and
time-of-use operation.
"""

from __future__ import annotations

from typing import Final

# API hosts. The EU host serves accounts registered in Europe, the global
# host everything else; both accept the same signed requests.
DEFAULT_BASE_URL: Final = "https://api-e.ecoflow.com"
GLOBAL_BASE_URL: Final = "https://api.ecoflow.com"

# Signed Open API endpoints
DEVICE_LIST_PATH: Final = "/iot-open/sign/device/list"
DEVICE_QUOTA_ALL_PATH: Final = "/iot-open/sign/device/quota/all"
DEVICE_QUOTA_PATH: Final = "/iot-open/sign/device/quota"

# Response code for a successful call (the API returns it as a string)
API_SUCCESS_CODE: Final = "0"

# Codes returned for bad credentials, stale timestamps and bad signatures
API_AUTH_ERROR_CODES: Final[frozenset[str]] = frozenset({"8513", "8521", "8524"})

DEFAULT_TIMEOUT: Final = 30

# Settings file in the user's home directory (JSON object)
SETTINGS_FILENAME: Final = ".ecoflow"

# Keys in the settings file
SETTINGS_ACCESS_KEY: Final = "accessKey"
SETTINGS_SECRET_KEY: Final = "secretKey"
SETTINGS_SERIAL_NUMBER: Final = "serialNumber"

# Environment overrides, applied when set and non-empty
ENV_ACCESS_KEY: Final = "ACCESS_KEY"
ENV_SECRET_KEY: Final = "SECRET_KEY"
ENV_SERIAL_NUMBER: Final = "SERIAL_NUMBER"
ENV_LOG_LEVEL: Final = "ECOCTL_LOG_LEVEL"

# Strategy command header (cmdId 17 = energy strategy configuration)
STRATEGY_CMD_ID: Final = 17
STRATEGY_DIR_DEST: Final = 1
STRATEGY_DIR_SRC: Final = 1
STRATEGY_CMD_FUNC: Final = 254
STRATEGY_DEST: Final = 2
STRATEGY_NEED_ACK: Final = True

# Backup reserve start SOC (%) for each operating strategy
SELF_POWERED_BACKUP_RESERVE_SOC: Final = 70
TOU_BACKUP_RESERVE_SOC: Final = 45

__all__ = [
    "API_AUTH_ERROR_CODES",
    "API_SUCCESS_CODE",
    "DEFAULT_BASE_URL",
    "DEFAULT_TIMEOUT",
    "DEVICE_LIST_PATH",
    "DEVICE_QUOTA_ALL_PATH",
    "DEVICE_QUOTA_PATH",
    "ENV_ACCESS_KEY",
    "ENV_LOG_LEVEL",
    "ENV_SECRET_KEY",
    "ENV_SERIAL_NUMBER",
    "GLOBAL_BASE_URL",
    "SELF_POWERED_BACKUP_RESERVE_SOC",
    "SETTINGS_ACCESS_KEY",
    "SETTINGS_FILENAME",
    "SETTINGS_SECRET_KEY",
    "SETTINGS_SERIAL_NUMBER",
    "STRATEGY_CMD_FUNC",
    "STRATEGY_CMD_ID",
    "STRATEGY_DEST",
    "STRATEGY_DIR_DEST",
    "STRATEGY_DIR_SRC",
    "STRATEGY_NEED_ACK",
    "TOU_BACKUP_RESERVE_SOC",
]

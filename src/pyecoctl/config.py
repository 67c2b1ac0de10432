"""Configuration resolution for ecoctl.

Effective settings come from two layers, applied in order:

1. The JSON settings file ``~/.ecoflow`` with optional ``accessKey``,
   ``secretKey`` and ``serialNumber`` string fields.
2. The ``ACCESS_KEY``, ``SECRET_KEY`` and ``SERIAL_NUMBER`` environment
   variables, each replacing the file value when set and non-empty.

A settings file that cannot be read or parsed is logged as a warning and
contributes nothing; the run continues with whatever the environment supplies.
A missing file is normal and is not reported.

Example:
    resolver = ConfigResolver(environ={"SERIAL_NUMBER": "HJ31ZDH4ZF7U0123"})
    config = resolver.resolve()
    config.serial_number
    'HJ31ZDH4ZF7U0123'
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .constants import (
    ENV_ACCESS_KEY,
    ENV_SECRET_KEY,
    ENV_SERIAL_NUMBER,
    SETTINGS_ACCESS_KEY,
    SETTINGS_FILENAME,
    SETTINGS_SECRET_KEY,
    SETTINGS_SERIAL_NUMBER,
)

_LOGGER = logging.getLogger(__name__)

# field name -> (settings file key, environment variable)
_FIELD_SOURCES: dict[str, tuple[str, str]] = {
    "access_key": (SETTINGS_ACCESS_KEY, ENV_ACCESS_KEY),
    "secret_key": (SETTINGS_SECRET_KEY, ENV_SECRET_KEY),
    "serial_number": (SETTINGS_SERIAL_NUMBER, ENV_SERIAL_NUMBER),
}


class SettingsParseError(ValueError):
    """Settings content is not a JSON object of string fields."""

    pass


def _mask(value: str) -> str:
    if not value:
        return ""
    if len(value) <= 4:
        return "****"
    return f"{value[:4]}****"


@dataclass(frozen=True)
class EffectiveConfig:
    """Resolved settings for one run.

    Attributes:
        access_key: Developer access key (required by every mode)
        secret_key: Developer secret key (required by every mode)
        serial_number: Target device serial (required by every mode but ``list``)
    """

    access_key: str = ""
    secret_key: str = ""
    serial_number: str = ""

    @property
    def has_credentials(self) -> bool:
        """True when both the access key and the secret key are set."""
        return bool(self.access_key) and bool(self.secret_key)

    def to_dict(self, *, mask_secrets: bool = True) -> dict[str, str]:
        """Return the settings-file shape of this configuration.

        Args:
            mask_secrets: Replace key material with a short masked prefix

        Returns:
            Dictionary keyed like ``~/.ecoflow``
        """
        access_key = _mask(self.access_key) if mask_secrets else self.access_key
        secret_key = _mask(self.secret_key) if mask_secrets else self.secret_key
        return {
            SETTINGS_ACCESS_KEY: access_key,
            SETTINGS_SECRET_KEY: secret_key,
            SETTINGS_SERIAL_NUMBER: self.serial_number,
        }


def default_settings_path() -> Path:
    """Return ``~/.ecoflow`` for the current user.

    Raises:
        RuntimeError: If the home directory cannot be determined
    """
    return Path.home() / SETTINGS_FILENAME


def _lookup(data: dict[str, Any], key: str) -> Any:
    """Return the value for ``key``, preferring an exact match over a case-insensitive one."""
    if key in data:
        return data[key]
    folded = key.casefold()
    value = None
    for name, candidate in data.items():
        # later duplicates win, as they would when decoding into a struct
        if name.casefold() == folded:
            value = candidate
    return value


def parse_settings(text: str) -> dict[str, str]:
    """Parse settings file content.

    Keys match exactly first, then case-insensitively (``AccessKey`` is read
    as ``accessKey``). Unknown keys are ignored and ``null`` values count as
    unset.

    Args:
        text: Raw file content

    Returns:
        Mapping of field name to value for the fields present in the file

    Raises:
        SettingsParseError: If the content is not a JSON object or a known
            field holds something other than a string
    """
    try:
        data: Any = json.loads(text)
    except ValueError as err:
        raise SettingsParseError(f"invalid JSON: {err}") from err

    if not isinstance(data, dict):
        raise SettingsParseError(f"expected a JSON object, got {type(data).__name__}")

    values: dict[str, str] = {}
    for field_name, (key, _env) in _FIELD_SOURCES.items():
        value = _lookup(data, key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise SettingsParseError(f"{key} must be a string, got {type(value).__name__}")
        values[field_name] = value
    return values


class ConfigResolver:
    """Merge the settings file and environment overrides into an EffectiveConfig.

    Both sources are injectable so resolution does not depend on process
    state: pass ``settings_text`` to skip the filesystem and ``environ`` to
    replace ``os.environ``.
    """

    def __init__(
        self,
        settings_path: Path | str | None = None,
        *,
        settings_text: str | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            settings_path: Settings file location (default: ``~/.ecoflow``)
            settings_text: Settings content to use instead of reading a file
            environ: Environment lookup (default: ``os.environ``)
        """
        self._settings_path = Path(settings_path) if settings_path is not None else None
        self._settings_text = settings_text
        self._environ: Mapping[str, str] = os.environ if environ is None else environ

    def _load_settings(self) -> dict[str, str]:
        """Return values from the settings source, empty on any failure."""
        if self._settings_text is not None:
            try:
                return parse_settings(self._settings_text)
            except SettingsParseError as err:
                _LOGGER.warning(
                    "Error parsing settings, will rely on environment variables: %s", err
                )
                return {}

        path = self._settings_path
        if path is None:
            try:
                path = default_settings_path()
            except RuntimeError as err:
                _LOGGER.warning(
                    "Error getting home directory, proceeding without settings file: %s", err
                )
                return {}

        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            _LOGGER.debug("No settings file at %s", path)
            return {}
        except (OSError, UnicodeDecodeError) as err:
            _LOGGER.warning(
                "Error reading settings file %s, will rely on environment variables: %s",
                path,
                err,
            )
            return {}

        try:
            values = parse_settings(text)
        except SettingsParseError as err:
            _LOGGER.warning(
                "Error parsing settings file %s, will rely on environment variables: %s",
                path,
                err,
            )
            return {}

        _LOGGER.debug("Loaded settings file %s (%s)", path, ", ".join(sorted(values)) or "empty")
        return values

    def resolve(self) -> EffectiveConfig:
        """Resolve the effective configuration.

        Returns:
            EffectiveConfig with environment values taking precedence
        """
        values = self._load_settings()

        for field_name, (_key, env_name) in _FIELD_SOURCES.items():
            env_value = self._environ.get(env_name)
            if env_value:
                _LOGGER.debug("Using %s from environment", env_name)
                values[field_name] = env_value

        return EffectiveConfig(**values)


__all__ = [
    "ConfigResolver",
    "EffectiveConfig",
    "SettingsParseError",
    "default_settings_path",
    "parse_settings",
]

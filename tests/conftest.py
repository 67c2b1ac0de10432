"""Pytest configuration and fixtures for pyecoctl tests."""

from __future__ import annotations

import json
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from aioresponses import aioresponses

from pyecoctl.config import EffectiveConfig

TEST_ACCESS_KEY = "Ak1234567890abcdef"
TEST_SECRET_KEY = "Sk1234567890abcdef"
TEST_SERIAL = "HJ31ZDH4ZF7U0123"

# Load sample API responses
SAMPLES_DIR = Path(__file__).parent / "samples"


def load_sample(filename: str) -> dict[str, Any]:
    """Load a sample JSON response file."""
    file_path = SAMPLES_DIR / filename
    with open(file_path) as f:
        result: dict[str, Any] = json.load(f)
        return result


@pytest.fixture
def device_list_response() -> dict[str, Any]:
    """Sample device list response."""
    return load_sample("device_list.json")


@pytest.fixture
def quota_all_response() -> dict[str, Any]:
    """Sample all-parameters (quota) response."""
    return load_sample("quota_all.json")


@pytest.fixture
def set_parameter_response() -> dict[str, Any]:
    """Sample set-parameter response."""
    return {"code": "0", "message": "Success", "eagleEyeTraceId": "", "tid": ""}


@pytest.fixture
def full_config() -> EffectiveConfig:
    """Configuration with credentials and serial number."""
    return EffectiveConfig(
        access_key=TEST_ACCESS_KEY,
        secret_key=TEST_SECRET_KEY,
        serial_number=TEST_SERIAL,
    )


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    """Path for a settings file that does not exist yet."""
    return tmp_path / ".ecoflow"


@pytest.fixture
def mocked_api() -> Generator[aioresponses, None, None]:
    """Create aioresponses mock for HTTP requests.

    This fixture provides a context manager for mocking aiohttp requests
    using the aioresponses library.
    """
    with aioresponses() as m:
        yield m

"""Unit tests for EcoflowClient using aioresponses for HTTP mocking."""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import logging
from typing import Any

import aiohttp
import pytest
from aioresponses import aioresponses
from yarl import URL

from pyecoctl import EcoflowClient
from pyecoctl.exceptions import (
    EcoflowAPIError,
    EcoflowAuthError,
    EcoflowConnectionError,
)
from pyecoctl.models import StrategyProfile
from pyecoctl.payload import build
from pyecoctl.signing import build_sign_string

BASE_URL = "https://api-e.ecoflow.com"
ACCESS_KEY = "Ak1234567890abcdef"
SECRET_KEY = "Sk1234567890abcdef"
SERIAL = "HJ31ZDH4ZF7U0123"

LIST_URL = f"{BASE_URL}/iot-open/sign/device/list"
QUOTA_ALL_URL = f"{BASE_URL}/iot-open/sign/device/quota/all?sn={SERIAL}"
QUOTA_URL = f"{BASE_URL}/iot-open/sign/device/quota"


def _only_call(mocked_api: aioresponses, method: str, url: str) -> Any:
    calls = mocked_api.requests[(method, URL(url))]
    assert len(calls) == 1
    return calls[0]


def _expected_sign(headers: dict[str, str], params: dict[str, Any] | None) -> str:
    message = build_sign_string(params, ACCESS_KEY, headers["nonce"], headers["timestamp"])
    return hmac.new(SECRET_KEY.encode(), message.encode(), hashlib.sha256).hexdigest()


class TestDeviceList:
    """Test device enumeration."""

    @pytest.mark.asyncio
    async def test_get_device_list(
        self, mocked_api: aioresponses, device_list_response: dict[str, Any]
    ) -> None:
        """Devices are parsed from the response data."""
        mocked_api.get(LIST_URL, payload=device_list_response)

        async with EcoflowClient(ACCESS_KEY, SECRET_KEY) as client:
            response = await client.get_device_list()

        assert response.success is True
        assert [device.sn for device in response.data] == [
            "HJ31ZDH4ZF7U0123",
            "R331ZEB4ZEA70456",
        ]

    @pytest.mark.asyncio
    async def test_request_is_signed(
        self, mocked_api: aioresponses, device_list_response: dict[str, Any]
    ) -> None:
        """Signature covers only the credential pairs when there are no params."""
        mocked_api.get(LIST_URL, payload=device_list_response)

        async with EcoflowClient(ACCESS_KEY, SECRET_KEY) as client:
            await client.get_device_list()

        headers = _only_call(mocked_api, "GET", LIST_URL).kwargs["headers"]
        assert headers["accessKey"] == ACCESS_KEY
        assert headers["sign"] == _expected_sign(headers, None)
        assert SECRET_KEY not in headers.values()


class TestDeviceParameters:
    """Test reading all device parameters."""

    @pytest.mark.asyncio
    async def test_get_device_all_parameters(
        self, mocked_api: aioresponses, quota_all_response: dict[str, Any]
    ) -> None:
        mocked_api.get(QUOTA_ALL_URL, payload=quota_all_response)

        async with EcoflowClient(ACCESS_KEY, SECRET_KEY) as client:
            response = await client.get_device_all_parameters(SERIAL)

        assert response.data["bpSoc"] == 83

        call = _only_call(mocked_api, "GET", QUOTA_ALL_URL)
        assert call.kwargs["params"] == {"sn": SERIAL}
        headers = call.kwargs["headers"]
        assert headers["sign"] == _expected_sign(headers, {"sn": SERIAL})


class TestSetParameter:
    """Test sending the strategy command."""

    @pytest.mark.asyncio
    async def test_set_device_parameter(
        self, mocked_api: aioresponses, set_parameter_response: dict[str, Any]
    ) -> None:
        """The envelope is sent as a signed JSON body."""
        mocked_api.put(QUOTA_URL, payload=set_parameter_response)
        envelope = build(SERIAL, StrategyProfile.for_self_powered(True))

        async with EcoflowClient(ACCESS_KEY, SECRET_KEY) as client:
            response = await client.set_device_parameter(envelope)

        assert response.success is True

        call = _only_call(mocked_api, "PUT", QUOTA_URL)
        assert call.kwargs["json"] == envelope.to_payload()
        headers = call.kwargs["headers"]
        assert headers["Content-Type"] == "application/json;charset=UTF-8"
        assert headers["sign"] == _expected_sign(headers, envelope.to_payload())

    @pytest.mark.asyncio
    async def test_serial_obfuscated_in_log(
        self,
        mocked_api: aioresponses,
        set_parameter_response: dict[str, Any],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        mocked_api.put(QUOTA_URL, payload=set_parameter_response)
        envelope = build(SERIAL, StrategyProfile.for_self_powered(False))

        with caplog.at_level(logging.INFO, logger="pyecoctl.client"):
            async with EcoflowClient(ACCESS_KEY, SECRET_KEY) as client:
                await client.set_device_parameter(envelope)

        assert "Sending command 17 to HJ************23" in caplog.text
        assert SERIAL not in caplog.text


class TestErrorHandling:
    """Test API and transport error mapping."""

    @pytest.mark.asyncio
    async def test_api_error_code(self, mocked_api: aioresponses) -> None:
        mocked_api.get(LIST_URL, payload={"code": "1006", "message": "device offline"})

        async with EcoflowClient(ACCESS_KEY, SECRET_KEY) as client:
            with pytest.raises(EcoflowAPIError, match="device offline") as exc_info:
                await client.get_device_list()

        assert exc_info.value.code == "1006"
        assert not isinstance(exc_info.value, EcoflowAuthError)

    @pytest.mark.asyncio
    async def test_signature_error_code(self, mocked_api: aioresponses) -> None:
        mocked_api.get(LIST_URL, payload={"code": "8521", "message": "signature is wrong"})

        async with EcoflowClient(ACCESS_KEY, "wrong") as client:
            with pytest.raises(EcoflowAuthError, match="signature is wrong"):
                await client.get_device_list()

    @pytest.mark.asyncio
    async def test_error_without_message(self, mocked_api: aioresponses) -> None:
        mocked_api.get(LIST_URL, payload={"code": "500"})

        async with EcoflowClient(ACCESS_KEY, SECRET_KEY) as client:
            with pytest.raises(EcoflowAPIError, match="Full response"):
                await client.get_device_list()

    @pytest.mark.asyncio
    async def test_http_error(self, mocked_api: aioresponses) -> None:
        mocked_api.get(LIST_URL, status=500)

        async with EcoflowClient(ACCESS_KEY, SECRET_KEY) as client:
            with pytest.raises(EcoflowAPIError, match="HTTP 500"):
                await client.get_device_list()

    @pytest.mark.asyncio
    async def test_http_unauthorized(self, mocked_api: aioresponses) -> None:
        mocked_api.get(LIST_URL, status=401)

        async with EcoflowClient(ACCESS_KEY, SECRET_KEY) as client:
            with pytest.raises(EcoflowAuthError):
                await client.get_device_list()

    @pytest.mark.asyncio
    async def test_connection_error(self, mocked_api: aioresponses) -> None:
        mocked_api.get(LIST_URL, exception=aiohttp.ClientConnectionError("refused"))

        async with EcoflowClient(ACCESS_KEY, SECRET_KEY) as client:
            with pytest.raises(EcoflowConnectionError, match="refused"):
                await client.get_device_list()

    @pytest.mark.asyncio
    async def test_timeout(self, mocked_api: aioresponses) -> None:
        mocked_api.get(LIST_URL, exception=asyncio.TimeoutError())

        async with EcoflowClient(ACCESS_KEY, SECRET_KEY) as client:
            with pytest.raises(EcoflowConnectionError):
                await client.get_device_list()

    @pytest.mark.asyncio
    async def test_invalid_json(self, mocked_api: aioresponses) -> None:
        mocked_api.get(LIST_URL, body="<html>maintenance</html>", content_type="application/json")

        async with EcoflowClient(ACCESS_KEY, SECRET_KEY) as client:
            with pytest.raises(EcoflowAPIError, match="Invalid response"):
                await client.get_device_list()

    @pytest.mark.asyncio
    async def test_malformed_parameter_data(self, mocked_api: aioresponses) -> None:
        """A success code with data of the wrong shape is an API error."""
        mocked_api.get(QUOTA_ALL_URL, payload={"code": "0", "data": ["x"]})

        async with EcoflowClient(ACCESS_KEY, SECRET_KEY) as client:
            with pytest.raises(EcoflowAPIError, match="Invalid response"):
                await client.get_device_all_parameters(SERIAL)

    @pytest.mark.asyncio
    async def test_device_without_serial(self, mocked_api: aioresponses) -> None:
        mocked_api.get(LIST_URL, payload={"code": "0", "data": [{"online": 1}]})

        async with EcoflowClient(ACCESS_KEY, SECRET_KEY) as client:
            with pytest.raises(EcoflowAPIError, match="Invalid response"):
                await client.get_device_list()

    @pytest.mark.asyncio
    async def test_no_retry(self, mocked_api: aioresponses) -> None:
        """A failed call is made exactly once."""
        mocked_api.get(LIST_URL, status=503)

        async with EcoflowClient(ACCESS_KEY, SECRET_KEY) as client:
            with pytest.raises(EcoflowAPIError):
                await client.get_device_list()

        assert len(mocked_api.requests[("GET", URL(LIST_URL))]) == 1


class TestSessionManagement:
    """Test session ownership."""

    @pytest.mark.asyncio
    async def test_injected_session_not_closed(
        self, mocked_api: aioresponses, device_list_response: dict[str, Any]
    ) -> None:
        mocked_api.get(LIST_URL, payload=device_list_response)

        async with aiohttp.ClientSession() as session:
            async with EcoflowClient(ACCESS_KEY, SECRET_KEY, session=session) as client:
                await client.get_device_list()
            assert not session.closed

    @pytest.mark.asyncio
    async def test_owned_session_closed(
        self, mocked_api: aioresponses, device_list_response: dict[str, Any]
    ) -> None:
        mocked_api.get(LIST_URL, payload=device_list_response)

        client = EcoflowClient(ACCESS_KEY, SECRET_KEY)
        await client.get_device_list()
        session = client._session
        await client.close()

        assert session is not None
        assert session.closed

    def test_base_url_trailing_slash(self) -> None:
        client = EcoflowClient(ACCESS_KEY, SECRET_KEY, base_url="https://api.ecoflow.com/")
        assert client.base_url == "https://api.ecoflow.com"

"""EcoFlow Open API Client.

This module provides an async client for the three Open API calls ecoctl
needs: listing the devices bound to a developer account, reading a device's
full quota (parameter) set, and sending a set-parameter command.

Key Features:
- Async/await support with aiohttp
- HMAC-SHA256 request signing (see :mod:`pyecoctl.signing`)
- Support for injected aiohttp.ClientSession
- API error codes mapped onto the pyecoctl exception hierarchy

Requests are never retried; a failed call surfaces as an exception.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, TypeVar
from urllib.parse import urljoin

import aiohttp
from aiohttp import ClientTimeout
from pydantic import BaseModel, ValidationError

from .constants import (
    API_AUTH_ERROR_CODES,
    API_SUCCESS_CODE,
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    DEVICE_LIST_PATH,
    DEVICE_QUOTA_ALL_PATH,
    DEVICE_QUOTA_PATH,
)
from .exceptions import (
    EcoflowAPIError,
    EcoflowAuthError,
    EcoflowConnectionError,
    EcoflowError,
)
from .models import (
    CommandEnvelope,
    DeviceListResponse,
    ParameterSetResponse,
    SetParameterResponse,
    _obfuscate_serial,
)
from .signing import signed_headers

_LOGGER = logging.getLogger(__name__)

_ResponseT = TypeVar("_ResponseT", bound=BaseModel)


def _parse_response(model: type[_ResponseT], response: dict[str, Any]) -> _ResponseT:
    """Validate a successful response body against its model.

    Raises:
        EcoflowAPIError: If the body does not have the expected shape
    """
    try:
        return model.model_validate(response)
    except ValidationError as err:
        raise EcoflowAPIError(f"Invalid response: {err}") from err


class EcoflowClient:
    """EcoFlow Open API Client.

    Example:
        ```python
        async with EcoflowClient(access_key, secret_key) as client:
            devices = await client.get_device_list()
            for device in devices.data:
                quota = await client.get_device_all_parameters(device.sn)
                print(device.sn, quota.data.get("bpSoc"))
        ```
    """

    def __init__(
        self,
        access_key: str,
        secret_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        verify_ssl: bool = True,
        timeout: int = DEFAULT_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the EcoFlow API client.

        Args:
            access_key: Developer access key from the EcoFlow developer portal
            secret_key: Developer secret key used to sign requests
            base_url: Base URL for the API (default: EU endpoint)
            verify_ssl: Whether to verify SSL certificates
            timeout: Request timeout in seconds (default: 30)
            session: Optional aiohttp ClientSession for session injection
        """
        self.access_key = access_key
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.verify_ssl = verify_ssl
        self.timeout = ClientTimeout(total=timeout)

        self._session: aiohttp.ClientSession | None = session
        self._owns_session: bool = session is None

    async def __aenter__(self) -> EcoflowClient:
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session.

        Returns:
            aiohttp.ClientSession: The session to use for requests.
        """
        if self._session is not None and not self._owns_session:
            return self._session

        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(ssl=self.verify_ssl)
            self._session = aiohttp.ClientSession(connector=connector, timeout=self.timeout)
            self._owns_session = True

        return self._session

    async def close(self) -> None:
        """Close the session if we own it.

        Only closes the session if it was created by this client,
        not if it was injected.
        """
        if self._session and not self._session.closed and self._owns_session:
            await self._session.close()

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make a signed HTTP request to the API.

        Args:
            method: HTTP method (GET, PUT)
            endpoint: API endpoint (will be joined with base_url)
            params: Query string parameters
            json_body: JSON request body

        Returns:
            dict: JSON response from the API

        Raises:
            EcoflowAuthError: If the API rejects the credentials or signature
            EcoflowConnectionError: If the API cannot be reached
            EcoflowAPIError: If the API returns an error
        """
        session = await self._get_session()
        url = urljoin(self.base_url, endpoint)

        signed = json_body if json_body is not None else params
        headers = {
            "Content-Type": "application/json;charset=UTF-8",
            "Accept": "application/json",
            **signed_headers(self.access_key, self.secret_key, signed),
        }

        _LOGGER.debug("%s %s", method, endpoint)
        try:
            async with session.request(
                method, url, params=params, json=json_body, headers=headers
            ) as response:
                response.raise_for_status()
                json_data: dict[str, Any] = await response.json()

                # API-level errors come back as HTTP 200 with a non-zero code
                if not isinstance(json_data, dict):
                    raise EcoflowAPIError(f"Unexpected response: {json_data!r}")
                code = str(json_data.get("code", ""))
                if code != API_SUCCESS_CODE:
                    error_msg = json_data.get("message") or f"Full response: {json_data}"
                    if code in API_AUTH_ERROR_CODES:
                        raise EcoflowAuthError(f"Authentication failed: {error_msg}", code)
                    raise EcoflowAPIError(f"API error (code {code}): {error_msg}", code)

                return json_data

        except EcoflowError:
            raise

        except aiohttp.ClientResponseError as err:
            if err.status in (401, 403):
                raise EcoflowAuthError(f"HTTP {err.status}: {err.message}") from err
            raise EcoflowAPIError(f"HTTP {err.status}: {err.message}") from err

        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise EcoflowConnectionError(f"Connection error: {err}") from err

        except ValueError as err:
            # Body was not valid JSON
            raise EcoflowAPIError(f"Invalid response: {err}") from err

    async def get_device_list(self) -> DeviceListResponse:
        """List the devices bound to the developer account.

        Returns:
            DeviceListResponse: Devices with serial number, name and online state
        """
        response = await self._request("GET", DEVICE_LIST_PATH)
        return _parse_response(DeviceListResponse, response)

    async def get_device_all_parameters(self, serial_number: str) -> ParameterSetResponse:
        """Read every quota value a device reports.

        Args:
            serial_number: Device serial number

        Returns:
            ParameterSetResponse: Flat quota map in ``data``
        """
        response = await self._request(
            "GET", DEVICE_QUOTA_ALL_PATH, params={"sn": serial_number}
        )
        return _parse_response(ParameterSetResponse, response)

    async def set_device_parameter(self, envelope: CommandEnvelope) -> SetParameterResponse:
        """Send a set-parameter command.

         WARNING: This changes device configuration!

        Args:
            envelope: Validated command envelope

        Returns:
            SetParameterResponse: Operation result
        """
        _LOGGER.info(
            "Sending command %d to %s", envelope.cmd_id, _obfuscate_serial(envelope.sn)
        )
        response = await self._request(
            "PUT", DEVICE_QUOTA_PATH, json_body=envelope.to_payload()
        )
        return _parse_response(SetParameterResponse, response)

"""
WhatsApp gateway client (go-whatsapp-web-multidevice compatible).

Sends plain-text messages with ``POST {endpoint}/send/message`` using HTTP
basic auth when a username/password is configured, else a bearer API key.
"""

import re
from dataclasses import dataclass
from typing import Optional

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


def normalize_phone(raw: Optional[str]) -> str:
    """Normalize an Indonesian phone number to the 62... form.

    Digits only; a leading 0 becomes 62; a number without country code and
    longer than five digits gets 62 prepended.
    """
    digits = re.sub(r"\D", "", raw or "")
    if digits.startswith("0"):
        return "62" + digits[1:]
    if not digits.startswith("62") and len(digits) > 5:
        return "62" + digits
    return digits


@dataclass
class SendResult:
    """Result of a send call."""

    phone: str
    message_id: Optional[str] = None
    status: Optional[str] = None


class GatewayError(Exception):
    """Base exception for WhatsApp gateway errors."""

    def __init__(
        self, message: str, status_code: int = None, response_data: dict = None
    ):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}
        super().__init__(message)


class WhatsAppClient:
    """Async client for the WhatsApp gateway send API."""

    def __init__(
        self,
        endpoint: str,
        *,
        username: Optional[str] = None,
        password: Optional[str] = None,
        api_key: Optional[str] = None,
        device_id: Optional[str] = None,
        transport: httpx.AsyncBaseTransport = None,
    ):
        if not endpoint:
            raise ValueError("WhatsApp gateway endpoint is required")
        self.endpoint = endpoint.rstrip("/")
        self._auth = httpx.BasicAuth(username, password) if username and password else None
        self._headers = {"Content-Type": "application/json"}
        if self._auth is None and api_key:
            self._headers["Authorization"] = f"Bearer {api_key}"
        if device_id:
            self._headers["X-Device-Id"] = device_id
        self.timeout = get_settings().HTTP_TIMEOUT_SECONDS
        self._transport = transport

    @classmethod
    def from_config(cls, config, transport: httpx.AsyncBaseTransport = None):
        """Build a client from a GatewayConfig row."""
        return cls(
            config.endpoint,
            username=config.username,
            password=config.password,
            api_key=config.api_key,
            device_id=config.device_id,
            transport=transport,
        )

    async def send_message(self, phone: str, message: str) -> SendResult:
        """
        Send a text message.

        Raises:
            GatewayError: on transport failures or a non-2xx response.
        """
        target = normalize_phone(phone)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self.endpoint}/send/message",
                    json={"phone": target, "message": message},
                    headers=self._headers,
                    auth=self._auth,
                )
        except httpx.HTTPError as e:
            raise GatewayError(f"Gateway unreachable: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not response.is_success:
            logger.error(f"Gateway API error: {response.status_code} - {data}")
            raise GatewayError(
                message=data.get("message", "Failed to send message"),
                status_code=response.status_code,
                response_data=data,
            )

        results = data.get("results") or {}
        return SendResult(
            phone=target,
            message_id=results.get("message_id"),
            status=results.get("status"),
        )

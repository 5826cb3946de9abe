"""SMS gateway backends (Twilio REST or a generic HTTP provider)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import requests
from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.rest import Client

from ..config import Settings, settings

logger = logging.getLogger(__name__)


class SmsDeliveryError(RuntimeError):
    """Gateway rejected the message or could not be reached."""


class SmsGateway(Protocol):
    def send(self, phone: str, message: str) -> str:
        """Deliver the message and return the provider message id."""
        ...


@dataclass
class TwilioGateway:
    account_sid: str
    auth_token: str
    from_number: str

    def __post_init__(self) -> None:
        self._client = Client(self.account_sid, self.auth_token)

    def send(self, phone: str, message: str) -> str:
        try:
            sent = self._client.messages.create(body=message, from_=self.from_number, to=phone)
        except TwilioRestException as exc:
            raise SmsDeliveryError(f"TWILIO_{exc.status}: {exc.msg}") from exc
        except TwilioException as exc:
            raise SmsDeliveryError(f"TWILIO: {exc}") from exc
        except requests.RequestException as exc:
            raise SmsDeliveryError(f"EXCEPTION: {exc}") from exc
        return sent.sid


@dataclass
class HttpGateway:
    url: str
    auth_token: str | None = None
    sender_name: str | None = None
    timeout: int = 10

    def send(self, phone: str, message: str) -> str:
        payload = {"to": phone, "message": message}
        if self.sender_name:
            payload["sender"] = self.sender_name
        headers = {"Content-Type": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"

        try:
            response = requests.post(self.url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise SmsDeliveryError(f"EXCEPTION: {exc}") from exc

        if response.status_code == 429:
            raise SmsDeliveryError("RATE_LIMIT")
        if response.status_code >= 400:
            raise SmsDeliveryError(f"HTTP_{response.status_code}: {response.text[:200]}")

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        return str(body.get("id") or body.get("messageId") or "")


def build_gateway(config: Settings = settings) -> SmsGateway | None:
    """Return the configured gateway, or None when SMS delivery is not configured."""
    provider = (config.SMS_PROVIDER or "none").strip().lower()

    if provider == "twilio":
        if not all([config.TWILIO_ACCOUNT_SID, config.TWILIO_AUTH_TOKEN, config.TWILIO_PHONE_NUMBER]):
            logger.warning("Twilio credentials not fully configured. SMS delivery is disabled.")
            return None
        return TwilioGateway(
            account_sid=config.TWILIO_ACCOUNT_SID,
            auth_token=config.TWILIO_AUTH_TOKEN,
            from_number=config.TWILIO_PHONE_NUMBER,
        )

    if provider == "http":
        if not config.SMS_HTTP_URL:
            logger.warning("SMS_HTTP_URL is not set. SMS delivery is disabled.")
            return None
        return HttpGateway(
            url=config.SMS_HTTP_URL,
            auth_token=config.SMS_HTTP_TOKEN,
            sender_name=config.SMS_SENDER_NAME,
            timeout=config.SMS_HTTP_TIMEOUT_SECONDS,
        )

    return None


def get_sms_gateway() -> SmsGateway | None:
    """FastAPI dependency; overridden in tests."""
    return build_gateway(settings)

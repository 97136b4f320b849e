"""Bland.ai REST client.

Wraps the handful of endpoints the app uses (inbound numbers, inbound agent
config, inbound call hand-off) and turns Bland's error bodies into typed
exceptions so callers branch on classes, not on message text.
"""

import logging
from typing import Optional

import httpx

from app.core.config import Settings

logger = logging.getLogger(__name__)

# Bland caps inbound agent calls at this many minutes
MAX_CALL_MINUTES = 5


class BlandError(Exception):
    """A failed Bland API call. ``body`` is the raw response text, if any."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class BlandSubscriptionNotActive(BlandError):
    pass


class BlandMissingPaymentMethod(BlandError):
    pass


def classify_error(status_code: Optional[int], body: str) -> BlandError:
    """Map a Bland error body onto the matching BlandError subclass."""
    lowered = (body or "").lower()
    message = f"Bland API error ({status_code}): {body}"
    if "subscription_not_active" in lowered or "subscription not active" in lowered \
            or "subscription is not active" in lowered:
        return BlandSubscriptionNotActive(message, status_code, body)
    if "missing_payment_method" in lowered or "payment method" in lowered:
        return BlandMissingPaymentMethod(message, status_code, body)
    return BlandError(message, status_code, body)


class BlandClient:
    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.api_key = settings.BLAND_API_KEY
        self.base_url = settings.BLAND_BASE_URL.rstrip("/")
        self.voice = settings.BLAND_VOICE
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": self.api_key, "Content-Type": "application/json"},
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, payload: dict | None = None) -> dict:
        async with self._client() as client:
            try:
                resp = await client.request(method, path, json=payload)
            except httpx.HTTPError as e:
                raise BlandError(f"Bland request to {path} failed: {e}") from e

        if resp.is_error:
            raise classify_error(resp.status_code, resp.text)

        data = resp.json() if resp.content else {}
        # Some endpoints answer 200 with an error envelope
        if isinstance(data, dict) and (data.get("status") == "error" or data.get("errors")):
            raise classify_error(resp.status_code, resp.text)
        return data

    async def list_inbound_numbers(self) -> list[str]:
        """Phone numbers already owned by the Bland account."""
        data = await self._request("GET", "/inbound")
        numbers = data.get("inbound_numbers") or []
        return [n["phone_number"] for n in numbers if n.get("phone_number")]

    async def purchase_number(self, area_code: str, country_code: str = "US") -> str:
        data = await self._request(
            "POST",
            "/inbound/purchase",
            {"area_code": area_code, "country_code": country_code},
        )
        phone_number = data.get("phone_number")
        if not phone_number:
            raise BlandError(f"Bland purchase returned no phone number: {data}")
        logger.info("Purchased Bland number %s", phone_number)
        return phone_number

    async def configure_inbound(
        self,
        phone_number: str,
        prompt: str,
        transfer_phone_number: str | None,
        webhook: str,
        record: bool = True,
    ) -> dict:
        """Attach the agent prompt, transfer target and webhook to a number."""
        payload = {
            "prompt": prompt,
            "voice": self.voice,
            "webhook": webhook,
            "record": record,
            "language": "en",
            "max_duration": MAX_CALL_MINUTES,
        }
        if transfer_phone_number:
            payload["transfer_phone_number"] = transfer_phone_number
        data = await self._request("POST", f"/inbound/{phone_number}", payload)
        logger.info("Configured Bland inbound agent for %s", phone_number)
        return data

    async def start_inbound_call(self, from_number: str, to_number: str, call_sid: str | None) -> dict:
        """Ask Bland to pick up a call Twilio just received on ``to_number``."""
        return await self._request(
            "POST",
            "/calls",
            {
                "phone_number": from_number,
                "from": to_number,
                "task": "answer_inbound",
                "wait_for_greeting": True,
                "record": True,
                "metadata": {"twilio_call_sid": call_sid},
            },
        )

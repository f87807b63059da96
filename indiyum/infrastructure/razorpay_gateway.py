import logging
from typing import Optional

import httpx
from pydantic import ValidationError as SchemaError

from indiyum.core.config import Settings
from indiyum.core.errors import ConfigurationError, UpstreamError
from indiyum.domain.models import RemoteOrder
from indiyum.interfaces.IPaymentGateway import IPaymentGateway

logger = logging.getLogger(__name__)

COMMON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


def _safe_preview(text: str, limit: int = 300) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + " ...(truncated)"


class RazorpayGateway(IPaymentGateway):
    """
    Thin async client for the Razorpay Orders API.
    Only order creation goes over the wire; payment signatures are checked
    locally with the key secret (see ``core.security``).
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._key_id = settings.RAZORPAY_KEY_ID
        self._key_secret = settings.RAZORPAY_KEY_SECRET
        self.base_url = settings.RAZORPAY_BASE_URL.rstrip("/")
        self.timeout = settings.GATEWAY_TIMEOUT_SECONDS
        self._transport = transport  # tests plug an httpx.MockTransport in here

        if not (self._key_id and self._key_secret):
            logger.warning("⚠️ RazorpayGateway: credentials missing. Only cash on delivery will work.")

    @property
    def key_id(self) -> Optional[str]:
        return self._key_id

    async def create_remote_order(self, amount_minor: int, currency: str, receipt: str) -> RemoteOrder:
        if not (self._key_id and self._key_secret):
            raise ConfigurationError("Razorpay keys are not configured", reason="gateway_not_configured")

        payload = {"amount": amount_minor, "currency": currency, "receipt": receipt}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                auth=(self._key_id, self._key_secret),
                headers=COMMON_HEADERS,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                resp = await client.post("/orders", json=payload)
        except httpx.TimeoutException as e:
            logger.error(f"❌ Razorpay timed out after {self.timeout}s for receipt {receipt}")
            raise UpstreamError("Payment gateway timed out", reason="gateway_timeout", detail=str(e)) from e
        except httpx.HTTPError as e:
            logger.error(f"❌ Razorpay unreachable: {e}")
            raise UpstreamError("Payment gateway unreachable", reason="gateway_unreachable", detail=str(e)) from e

        if resp.status_code >= 400:
            detail = _error_description(resp)
            logger.error(f"❌ Razorpay rejected order for receipt {receipt}: {resp.status_code} {detail}")
            raise UpstreamError("Failed to create order", reason="gateway_rejected", detail=detail)

        try:
            remote = RemoteOrder.model_validate(resp.json())
        except (ValueError, SchemaError) as e:
            raise UpstreamError(
                "Payment gateway returned an unexpected response",
                reason="gateway_bad_response",
                detail=_safe_preview(resp.text),
            ) from e

        logger.info(f"✅ Razorpay order {remote.id} created for receipt {receipt}")
        return remote


def _error_description(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return _safe_preview(resp.text)
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("description"):
        return str(error["description"])
    return _safe_preview(resp.text)

# backend/utils/paystack_client.py
import hashlib
import hmac
import logging
from urllib.parse import urljoin

import httpx

from config import settings

logger = logging.getLogger(__name__)


def verify_paystack_signature(header: str, payload: bytes, secret: str) -> bool:
    """x-paystack-signature is the HMAC-SHA512 of the raw body."""
    if not header or not secret:
        return False
    expected = hmac.new(secret.encode("utf-8"), payload, hashlib.sha512).hexdigest()
    return hmac.compare_digest(expected, header)


class PaystackClient:
    def __init__(self):
        self.api_url = settings.PAYSTACK_API_URL
        self.secret_key = settings.PAYSTACK_SECRET_KEY
        self.callback_url = urljoin(settings.FRONTEND_URL, "/order/success")

    async def initialize_transaction(self, reference: str, email: str, amount_minor: int, currency: str) -> dict:
        url = urljoin(self.api_url, "/transaction/initialize")
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.secret_key}",
        }
        body = {
            "reference": reference,
            "email": email,
            "amount": amount_minor,
            "currency": currency.upper(),
            "callback_url": self.callback_url,
            "metadata": {"reference": reference},
        }
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            try:
                response = await client.post(url, json=body, headers=headers)
                response.raise_for_status()
                return response.json().get("data", {})
            except (httpx.RequestError, httpx.HTTPStatusError) as e:
                resp_text = e.response.text if isinstance(e, httpx.HTTPStatusError) else str(e)
                logger.error("Paystack initialize error: %s", resp_text)
                raise


paystack_client = PaystackClient()

# backend/utils/stripe_client.py
import hashlib
import hmac
import logging
import time
from urllib.parse import urljoin

import httpx

from config import settings

logger = logging.getLogger(__name__)


def verify_stripe_signature(header: str, payload: bytes, secret: str, tolerance: int, now: float = None) -> bool:
    """Checks a Stripe-Signature header (t=...,v1=...) against the raw body."""
    if not header or not secret:
        return False
    try:
        parts = [p.split("=", 1) for p in header.split(",")]
        timestamp = next(v for k, v in parts if k.strip() == "t")
        signatures = [v for k, v in parts if k.strip() == "v1"]
        ts = int(timestamp)
    except (StopIteration, ValueError):
        return False
    if not signatures:
        return False

    now = time.time() if now is None else now
    if tolerance and abs(now - ts) > tolerance:
        return False

    signed = f"{timestamp}.".encode("utf-8") + payload
    expected = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return any(hmac.compare_digest(expected, s) for s in signatures)


class StripeClient:
    def __init__(self):
        self.api_url = settings.STRIPE_API_URL
        self.secret_key = settings.STRIPE_SECRET_KEY
        self.success_url = urljoin(settings.FRONTEND_URL, "/order/success?reference={reference}")
        self.cancel_url = urljoin(settings.FRONTEND_URL, "/cart")

    async def create_checkout_session(self, reference: str, email: str, currency: str, line_items: list) -> dict:
        # line_items: [{"name", "unit_amount" (minor units), "quantity"}]
        url = urljoin(self.api_url, "/v1/checkout/sessions")
        form = {
            "mode": "payment",
            "client_reference_id": reference,
            "customer_email": email,
            "success_url": self.success_url.format(reference=reference),
            "cancel_url": self.cancel_url,
            "metadata[reference]": reference,
        }
        for i, item in enumerate(line_items):
            form[f"line_items[{i}][quantity]"] = item["quantity"]
            form[f"line_items[{i}][price_data][currency]"] = currency.lower()
            form[f"line_items[{i}][price_data][unit_amount]"] = item["unit_amount"]
            form[f"line_items[{i}][price_data][product_data][name]"] = item["name"]

        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            try:
                response = await client.post(url, data=form, auth=(self.secret_key, ""))
                response.raise_for_status()
                return response.json()
            except (httpx.RequestError, httpx.HTTPStatusError) as e:
                resp_text = e.response.text if isinstance(e, httpx.HTTPStatusError) else str(e)
                logger.error("Stripe create session error: %s", resp_text)
                raise


stripe_client = StripeClient()

# backend/routes/payments.py
import json
import logging

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.checkout import CheckoutSession
from services.orders import materialize_checkout
from utils.errors import NotFoundError, SignatureError, ValidationFailed
from utils.paystack_client import verify_paystack_signature
from utils.stripe_client import verify_stripe_signature

router = APIRouter(prefix="/payment", tags=["Payments"])
logger = logging.getLogger(__name__)


def _parse(body: bytes) -> dict:
    try:
        return json.loads(body)
    except ValueError:
        raise ValidationFailed("Malformed webhook payload")


def _checkout_by_reference(db: Session, reference: str) -> CheckoutSession:
    checkout = db.query(CheckoutSession).filter(CheckoutSession.reference == reference).first() if reference else None
    if not checkout:
        logger.warning("Webhook for unknown checkout reference %s", reference)
        raise NotFoundError("Checkout", reference)
    return checkout


@router.post("/stripe/webhook")
async def stripe_webhook(
    request: Request,
    db: Session = Depends(get_db),
    stripe_signature: str = Header(None, alias="Stripe-Signature"),
):
    body = await request.body()
    verified = verify_stripe_signature(
        stripe_signature, body, settings.STRIPE_WEBHOOK_SECRET, settings.STRIPE_WEBHOOK_TOLERANCE_SECONDS
    )
    if not verified:
        logger.warning("Stripe signature verification failed")
        raise SignatureError("Signature verification failed")

    event = _parse(body)
    event_type = event.get("type")
    logger.info("Stripe webhook received: %s", event_type)

    if event_type == "checkout.session.completed":
        obj = event.get("data", {}).get("object", {})
        if obj.get("payment_status") == "paid":
            reference = obj.get("client_reference_id") or (obj.get("metadata") or {}).get("reference")
            checkout = _checkout_by_reference(db, reference)
            materialize_checkout(db, checkout, obj.get("payment_intent") or obj.get("id"), paid=True)

    return {"received": True}


@router.post("/paystack/webhook")
async def paystack_webhook(
    request: Request,
    db: Session = Depends(get_db),
    paystack_signature: str = Header(None, alias="x-paystack-signature"),
):
    body = await request.body()
    if not verify_paystack_signature(paystack_signature, body, settings.PAYSTACK_SECRET_KEY):
        logger.warning("Paystack signature verification failed")
        raise SignatureError("Signature verification failed")

    event = _parse(body)
    event_type = event.get("event")
    logger.info("Paystack webhook received: %s", event_type)

    if event_type == "charge.success":
        data = event.get("data") or {}
        checkout = _checkout_by_reference(db, data.get("reference"))
        materialize_checkout(db, checkout, str(data.get("id") or data.get("reference")), paid=True)

    return {"received": True}

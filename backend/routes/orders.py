# backend/routes/orders.py
import logging
import uuid

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.cart import CartItem
from models.checkout import CheckoutSession
from models.order import Order
from models.reference import ShippingMethod
from models.users import User
from services.orders import materialize_checkout, website_available, website_unit_price
from services.reference import convert, get_rate
from utils.errors import InsufficientStockError, NotFoundError, ValidationFailed
from utils.paystack_client import paystack_client
from utils.policy import is_allowed
from utils.stripe_client import stripe_client
from utils.tokenJWT import get_current_user
from schemas.order import CheckoutCreate, CheckoutResponse, OrderOut, OrdersPage

router = APIRouter(prefix="/orders", tags=["Orders"])
logger = logging.getLogger(__name__)


def _minor_units(amount: float) -> int:
    return int(round(amount * 100))


def _snapshot_cart(db: Session, user: User):
    items = db.query(CartItem).filter(CartItem.user_id == user.id).order_by(CartItem.id).all()
    if not items:
        raise ValidationFailed("Cart is empty")

    snapshot, sub_total = [], 0.0
    for it in items:
        product = it.product
        if product is None or not product.product_availability:
            raise ValidationFailed(f"Product {it.product_id} is no longer available")
        unit_price = website_unit_price(product, it.price_option)
        if it.price_option == "regular":
            available = website_available(product)
            if available < it.quantity:
                raise InsufficientStockError(product.name, available, it.quantity)
        snapshot.append({
            "product_id": product.id,
            "name": product.name,
            "price_option": it.price_option,
            "quantity": it.quantity,
            "unit_price": unit_price,
        })
        sub_total += unit_price * it.quantity
    return snapshot, round(sub_total, 2)


# Start a website checkout: snapshot the cart and hand over to the payment provider
@router.post("/checkout", response_model=CheckoutResponse)
async def checkout(
    payload: CheckoutCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    snapshot, sub_total = _snapshot_cart(db, current_user)

    shipping_cost, shipping_code = 0.0, None
    if payload.shipping_method_id is not None:
        method = db.get(ShippingMethod, payload.shipping_method_id)
        if not method or not method.is_active:
            raise NotFoundError("Shipping method", payload.shipping_method_id)
        shipping_cost, shipping_code = method.cost, method.code

    currency = payload.currency.upper()
    rate = get_rate(db, settings.BASE_CURRENCY, currency)
    if rate is None:
        raise ValidationFailed(f"Unsupported currency: {currency}")

    session = CheckoutSession(
        reference=f"CHK-{uuid.uuid4().hex[:16].upper()}",
        user_id=current_user.id,
        provider=payload.payment_method,
        status="PENDING",
        items=snapshot,
        sub_total=sub_total,
        shipping_cost=shipping_cost,
        shipping_method=shipping_code,
        total=round(sub_total + shipping_cost, 2),
        currency=currency,
        exchange_rate=rate,
        delivery_address=payload.delivery_address,
    )
    db.add(session)
    db.commit()
    db.refresh(session)

    # Bank transfers are recorded straight away and confirmed by staff later
    if payload.payment_method == "BANK_TRANSFER":
        orders = materialize_checkout(db, session, None, paid=False)
        return CheckoutResponse(
            reference=session.reference,
            order_group_id=orders[0].order_group_id,
            total=session.total,
            currency=settings.BASE_CURRENCY,
        )

    pay_total = round(convert(db, session.total, settings.BASE_CURRENCY, currency), 2)
    try:
        if payload.payment_method == "STRIPE":
            line_items = [
                {"name": item["name"], "unit_amount": _minor_units(item["unit_price"] * rate), "quantity": item["quantity"]}
                for item in snapshot
            ]
            if shipping_cost:
                line_items.append({"name": "Shipping", "unit_amount": _minor_units(shipping_cost * rate), "quantity": 1})
            response = await stripe_client.create_checkout_session(session.reference, current_user.email, currency, line_items)
            session.provider_session_id = response.get("id")
            session.payment_url = response.get("url")
        else:
            response = await paystack_client.initialize_transaction(
                session.reference, current_user.email, _minor_units(pay_total), currency
            )
            session.provider_session_id = response.get("access_code")
            session.payment_url = response.get("authorization_url")
        db.commit()
    except httpx.HTTPError as e:
        logger.exception("%s checkout %s failed: %s", payload.payment_method, session.reference, e)
        raise HTTPException(status_code=502, detail="Payment provider unavailable")

    logger.info("Checkout %s started with %s for user %s", session.reference, payload.payment_method, current_user.id)
    return CheckoutResponse(
        reference=session.reference,
        payment_url=session.payment_url,
        total=pay_total,
        currency=currency,
    )


# List the current user's website orders
@router.get("", response_model=OrdersPage)
def list_my_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    q = db.query(Order).filter(Order.user_id == current_user.id).order_by(Order.created_at.desc(), Order.id.desc())
    total = q.count()
    rows = q.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": rows, "total": total, "page": page, "page_size": page_size}


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = db.query(Order).filter(Order.order_id == order_id).first()
    if not order:
        raise NotFoundError("Order", order_id)
    # Shoppers see their own orders, staff go through the policy
    if order.user_id != current_user.id and not is_allowed(current_user, "order:view", order):
        raise NotFoundError("Order", order_id)
    return order

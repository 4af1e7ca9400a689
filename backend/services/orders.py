# backend/services/orders.py
"""Order pricing, stock deduction and order group creation.

Manual (sales agent) orders and paid website checkouts both end up in
``_create_order_group``; the stock for every line is deducted inside the same
database transaction as the order rows, so either all lines are recorded with
their stock taken or nothing changes.
"""
import logging
import math
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from sqlalchemy import update
from sqlalchemy.orm import Session

from models.cart import CartItem
from models.checkout import CheckoutSession
from models.customer import Customer
from models.order import Order, OrderMode, OrderType, PaymentStatus, DELIVERY_DAYS
from models.product import Product
from services.order_status import OrderStatus
from utils.audit import log_activity
from utils.errors import (
    InsufficientStockError,
    NotFoundError,
    ShopError,
    TransactionError,
    ValidationFailed,
)
from utils.invoice import render_invoice_html, invoice_number
from utils.mailer import send_email
from utils.policy import authorize

logger = logging.getLogger(__name__)

PRICE_OPTIONS = ("regular", "3weeks", "5weeks")

# Payment methods settled at the moment of sale
SETTLED_METHODS = {"CASH", "CARD"}

# Order in which channel pools are drawn down per order mode
DRAW_ORDER = {
    OrderMode.OFFLINE.value: ("offline", "unallocated", "online"),
    OrderMode.ONLINE.value: ("online", "unallocated", "offline"),
}


def new_order_id() -> str:
    return f"ORD-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9].upper()}"


def new_group_id() -> str:
    return f"GRP-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6].upper()}"


# -------------------------------------------------------------------
# Pricing
# -------------------------------------------------------------------

def resolve_unit_price(product: Product, order_type: str, price_option: str = "regular") -> float:
    """First positive price along the tier chain for the order type."""
    if order_type == OrderType.BTB.value:
        chain = [product.btb_price, product.price]
    else:
        option_price = {
            "3weeks": product.price_3weeks_delivery,
            "5weeks": product.price_5weeks_delivery,
        }.get(price_option)
        chain = [option_price, product.btc_price, product.price]

    for value in chain:
        if value is not None and value > 0:
            return float(value)
    raise ValidationFailed(f"Invalid price for {product.name}")


def website_unit_price(product: Product, price_option: str = "regular") -> float:
    base = resolve_unit_price(product, OrderType.BTC.value, price_option)
    if not product.discount:
        return base
    discount = math.ceil(base * product.discount / 100)
    return max(base - discount, 0)


def _split(amount: float, weights: Sequence[float]) -> List[float]:
    # Last part takes whatever rounding left over
    total_weight = sum(weights)
    parts, allocated = [], 0.0
    for index, weight in enumerate(weights):
        if index == len(weights) - 1:
            parts.append(round(amount - allocated, 2))
            break
        share = weight / total_weight if total_weight > 0 else 1 / len(weights)
        part = round(amount * share, 2)
        parts.append(part)
        allocated += part
    return parts


def allocate_group_amounts(subtotals: Sequence[float], discount: float = 0, tax: float = 0, shipping: float = 0) -> List[dict]:
    """Spreads group-level discount, tax and shipping over the lines of an order."""
    if not subtotals:
        return []
    discounts = _split(discount, subtotals)
    taxes = _split(tax, subtotals)
    shippings = _split(shipping, subtotals)
    return [
        {
            "sub_total": round(sub, 2),
            "discount": d,
            "tax": t,
            "shipping": s,
            "total": round(sub + t + s - d, 2),
        }
        for sub, d, t, s in zip(subtotals, discounts, taxes, shippings)
    ]


# -------------------------------------------------------------------
# Stock
# -------------------------------------------------------------------

def sales_available(product: Product) -> int:
    """Units a sales agent may sell: all sellable stock."""
    if product.warehouse_enabled:
        return product.warehouse_final_stock or 0
    return product.stock or 0


def website_available(product: Product) -> int:
    """Units the website may sell: the online allocation."""
    if product.warehouse_enabled:
        return product.warehouse_online_stock or 0
    return product.stock or 0


def _plan_deduction(product: Product, quantity: int, mode: str):
    available = sales_available(product)
    take = min(quantity, available)
    if not product.warehouse_enabled:
        return available, take, {"stock": take}

    online = product.warehouse_online_stock or 0
    offline = product.warehouse_offline_stock or 0
    pools = {
        "online": online,
        "offline": offline,
        "unallocated": max(available - online - offline, 0),
    }
    breakdown, remaining = {}, take
    for name in DRAW_ORDER[mode]:
        drawn = min(pools[name], remaining)
        breakdown[name] = drawn
        remaining -= drawn
    return available, take, breakdown


def _guarded_decrement(db: Session, product: Product, take: int, breakdown: dict) -> bool:
    """Conditional UPDATE that only succeeds while the pools still hold the units."""
    if product.warehouse_enabled:
        stmt = (
            update(Product)
            .where(
                Product.id == product.id,
                Product.warehouse_enabled.is_(True),
                Product.warehouse_final_stock >= take,
                Product.warehouse_online_stock >= breakdown["online"],
                Product.warehouse_offline_stock >= breakdown["offline"],
            )
            .values(
                warehouse_final_stock=Product.warehouse_final_stock - take,
                warehouse_online_stock=Product.warehouse_online_stock - breakdown["online"],
                warehouse_offline_stock=Product.warehouse_offline_stock - breakdown["offline"],
                stock=Product.warehouse_final_stock - take,
            )
        )
    else:
        stmt = (
            update(Product)
            .where(
                Product.id == product.id,
                Product.warehouse_enabled.is_(False),
                Product.stock >= take,
            )
            .values(stock=Product.stock - take)
        )
    result = db.execute(stmt.execution_options(synchronize_session=False))
    return result.rowcount == 1


def deduct_stock(db: Session, product: Product, quantity: int, mode: str, allow_shortfall: bool = False) -> dict:
    """Takes quantity units of product within the caller's transaction.

    Raises InsufficientStockError when the product cannot cover the quantity,
    unless allow_shortfall is set, in which case whatever is left is taken.
    """
    previous = sales_available(product)
    for _ in range(2):
        available, take, breakdown = _plan_deduction(product, quantity, mode)
        if take < quantity and not allow_shortfall:
            raise InsufficientStockError(product.name, available, quantity)
        if _guarded_decrement(db, product, take, breakdown):
            break
        # Another sale changed the row since it was read
        db.refresh(product)
    else:
        raise InsufficientStockError(product.name, sales_available(product), quantity)

    db.refresh(product)
    if take < quantity:
        logger.warning(
            "Stock shortfall for product %s (%s): required %s, only %s deducted",
            product.id, product.name, quantity, take,
        )
    return {
        "product_id": product.id,
        "name": product.name,
        "sku": product.sku,
        "quantity": quantity,
        "previous": previous,
        "current": sales_available(product),
        "pool_breakdown": breakdown,
    }


def _lock_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).with_for_update().first()
    if not product:
        raise NotFoundError("Product", product_id)
    return product


# -------------------------------------------------------------------
# Order groups
# -------------------------------------------------------------------

def _create_order_group(db: Session, lines: List[dict], amounts: List[dict], fields: dict, now: datetime) -> List[Order]:
    group_id = new_group_id()
    totals = {
        key: round(sum(a[key] for a in amounts), 2)
        for key in ("sub_total", "discount", "tax", "shipping", "total")
    }
    orders = []
    for index, (line, amount) in enumerate(zip(lines, amounts)):
        product = line["product"]
        option = line.get("price_option") or "regular"
        order = Order(
            order_id=new_order_id(),
            order_group_id=group_id,
            is_parent=index == 0,
            product_id=product.id,
            product_name=product.name,
            product_sku=product.sku,
            price_option=option,
            quantity=line["quantity"],
            unit_price=line["unit_price"],
            sub_total_amt=amount["sub_total"],
            discount_amount=amount["discount"],
            tax_amount=amount["tax"],
            shipping_cost=amount["shipping"],
            total_amt=amount["total"],
            estimated_delivery=now + timedelta(days=DELIVERY_DAYS.get(option, DELIVERY_DAYS["regular"])),
            created_at=now,
            **fields,
        )
        if index == 0:
            order.group_sub_total = totals["sub_total"]
            order.group_discount = totals["discount"]
            order.group_tax = totals["tax"]
            order.group_shipping = totals["shipping"]
            order.group_total = totals["total"]
            order.group_size = len(lines)
        db.add(order)
        orders.append(order)
    db.flush()
    return orders


def _bump_customer_stats(customer: Optional[Customer], lines: int, total: float, now: datetime):
    if customer is None:
        return
    customer.total_orders = (customer.total_orders or 0) + lines
    customer.total_order_value = round((customer.total_order_value or 0) + total, 2)
    customer.last_order_date = now


def get_group(db: Session, group_id: str) -> List[Order]:
    orders = (
        db.query(Order)
        .filter(Order.order_group_id == group_id)
        .order_by(Order.is_parent.desc(), Order.id)
        .all()
    )
    if not orders:
        raise NotFoundError("Order group", group_id)
    return orders


def send_group_invoice(orders: List[Order], email: str, name: str, delivery_address: Optional[str] = None,
                       sales_agent: Optional[str] = None) -> bool:
    html = render_invoice_html(orders, name, delivery_address, sales_agent)
    subject = f"Your invoice {invoice_number(orders[0].order_group_id)}"
    return send_email(email, subject, html)


def place_manual_order(db: Session, user, payload, request=None) -> dict:
    """Prices a sales agent's order, deducts stock and records the order group atomically."""
    customer = db.get(Customer, payload.customer_id)
    if not customer:
        raise NotFoundError("Customer", payload.customer_id)
    authorize(user, "order:create_manual", customer)

    if not payload.items:
        raise ValidationFailed("Order must contain at least one item")
    for item in payload.items:
        if item.quantity < 1:
            raise ValidationFailed("Quantity must be at least 1")
        if item.price_option not in PRICE_OPTIONS:
            raise ValidationFailed(f"Unknown price option: {item.price_option}")

    now = datetime.now(timezone.utc)
    try:
        lines, stock_updates = [], []
        for item in payload.items:
            product = _lock_product(db, item.product_id)
            unit_price = resolve_unit_price(product, payload.order_type, item.price_option)
            stock_updates.append(deduct_stock(db, product, item.quantity, payload.order_mode))
            lines.append({
                "product": product,
                "quantity": item.quantity,
                "unit_price": unit_price,
                "price_option": item.price_option,
            })

        amounts = allocate_group_amounts(
            [line["unit_price"] * line["quantity"] for line in lines],
            discount=payload.discount_amount,
            tax=payload.tax_amount,
            shipping=payload.shipping_cost,
        )
        paid = (payload.payment_method or "").upper() in SETTLED_METHODS
        orders = _create_order_group(db, lines, amounts, {
            "customer_id": customer.id,
            "created_by": user.id,
            "is_website_order": False,
            "order_type": payload.order_type,
            "order_mode": payload.order_mode,
            "payment_method": payload.payment_method,
            "payment_status": PaymentStatus.PAID.value if paid else PaymentStatus.PENDING.value,
            "order_status": OrderStatus.CONFIRMED.value,
            "delivery_address": payload.delivery_address or customer.address_line,
            "notes": payload.notes,
            "customer_notes": payload.customer_notes,
        }, now)
        group_total = orders[0].group_total
        _bump_customer_stats(customer, len(orders), group_total, now)
        db.commit()
    except ShopError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.exception("Manual order for customer %s failed: %s", customer.id, e)
        raise TransactionError(str(e))

    logger.info("Manual order group %s created by user %s (%s lines)", orders[0].order_group_id, user.id, len(orders))

    for change in stock_updates:
        log_activity(
            db,
            user=user,
            action="ORDER_STOCK_DEDUCTION",
            target_type="PRODUCT",
            target_id=change["product_id"],
            target_name=change["name"],
            target_sku=change["sku"],
            changes={"available": {"from": change["previous"], "to": change["current"]}},
            notes=f"Order group {orders[0].order_group_id}: -{change['quantity']} units",
            request=request,
        )

    email_sent = False
    if payload.send_invoice_email:
        email_sent = send_group_invoice(
            orders, customer.email, customer.display_name,
            orders[0].delivery_address, user.name or user.email,
        )

    return {
        "order_group_id": orders[0].order_group_id,
        "orders": orders,
        "totals": {
            "sub_total": orders[0].group_sub_total,
            "discount": orders[0].group_discount,
            "tax": orders[0].group_tax,
            "shipping": orders[0].group_shipping,
            "total": orders[0].group_total,
        },
        "stock_updates": stock_updates,
        "email_sent": email_sent,
    }


def materialize_checkout(db: Session, checkout: CheckoutSession, payment_id: Optional[str], paid: bool) -> List[Order]:
    """Turns a checkout session into its order group, exactly once per reference."""
    checkout = (
        db.query(CheckoutSession)
        .filter(CheckoutSession.id == checkout.id)
        .with_for_update()
        .first()
    )
    if checkout.status == "COMPLETED":
        logger.info("Checkout %s already processed, skipping", checkout.reference)
        return get_group(db, checkout.order_group_id)

    now = datetime.now(timezone.utc)
    try:
        lines = []
        for item in checkout.items:
            product = _lock_product(db, item["product_id"])
            option = item.get("price_option") or "regular"
            # Pre-order options ship later and are not drawn from stock
            if option == "regular":
                deduct_stock(db, product, item["quantity"], OrderMode.ONLINE.value, allow_shortfall=paid)
            lines.append({
                "product": product,
                "quantity": item["quantity"],
                "unit_price": item["unit_price"],
                "price_option": option,
            })

        amounts = allocate_group_amounts(
            [line["unit_price"] * line["quantity"] for line in lines],
            shipping=checkout.shipping_cost,
        )
        # Amounts stay in the base currency; exchange_rate records the paying currency
        orders = _create_order_group(db, lines, amounts, {
            "user_id": checkout.user_id,
            "is_website_order": True,
            "order_type": OrderType.BTC.value,
            "order_mode": OrderMode.ONLINE.value,
            "currency": checkout.currency,
            "exchange_rate": checkout.exchange_rate,
            "payment_id": payment_id,
            "payment_method": checkout.provider,
            "payment_status": PaymentStatus.PAID.value if paid else PaymentStatus.PENDING.value,
            "order_status": OrderStatus.CONFIRMED.value if paid else OrderStatus.PENDING.value,
            "delivery_address": checkout.delivery_address,
            "shipping_method": checkout.shipping_method,
        }, now)

        customer = db.query(Customer).filter(Customer.user_id == checkout.user_id).first()
        _bump_customer_stats(customer, len(orders), orders[0].group_total, now)

        db.query(CartItem).filter(CartItem.user_id == checkout.user_id).delete(synchronize_session=False)
        checkout.status = "COMPLETED"
        checkout.payment_id = payment_id
        checkout.order_group_id = orders[0].order_group_id
        checkout.processed_at = now
        db.commit()
    except ShopError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.exception("Failed to materialise checkout %s: %s", checkout.reference, e)
        raise TransactionError(str(e))

    logger.info("Checkout %s materialised as order group %s", checkout.reference, orders[0].order_group_id)
    return orders

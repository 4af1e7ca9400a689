# backend/routes/admin_orders.py
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from database import get_db
from models.customer import Customer
from models.order import Order
from models.users import User
from services import orders as order_service
from services.order_status import apply_transition
from utils.errors import NotFoundError, ValidationFailed
from utils.invoice import invoice_number
from utils.pdf import generate_group_invoice_pdf
from utils.policy import authorize, is_elevated
from utils.tokenJWT import get_current_user
import schemas.order as order_schemas

router = APIRouter(prefix="/admin-orders", tags=["Admin orders"])
logger = logging.getLogger(__name__)


def _visible_orders(db: Session, user: User):
    query = db.query(Order)
    # Sales agents see their own manual orders and every website order
    if not is_elevated(user):
        query = query.filter(or_(Order.created_by == user.id, Order.is_website_order.is_(True)))
    return query


def _group_recipient(db: Session, parent: Order):
    if parent.customer_id:
        customer = db.get(Customer, parent.customer_id)
        if customer:
            return customer.email, customer.display_name
    if parent.user_id:
        user = db.get(User, parent.user_id)
        if user:
            return user.email, user.name or user.email
    return None, "Customer"


@router.post("/create")
def create_admin_order(
    payload: order_schemas.ManualOrderCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = order_service.place_manual_order(db, current_user, payload, request)
    data = order_schemas.ManualOrderResult(
        order_group_id=result["order_group_id"],
        orders=[order_schemas.OrderOut.model_validate(o) for o in result["orders"]],
        totals=result["totals"],
        stock_updates=result["stock_updates"],
        email_sent=result["email_sent"],
    )
    return {"message": "Order created successfully", "success": True, "error": False, "data": data}


@router.get("/list", response_model=order_schemas.OrdersPage)
def list_admin_orders(
    order_type: Optional[str] = Query(None),
    order_mode: Optional[str] = Query(None),
    order_status: Optional[str] = Query(None),
    payment_status: Optional[str] = Query(None),
    is_website_order: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "order:view")

    query = _visible_orders(db, current_user)
    if order_type:
        query = query.filter(Order.order_type == order_type.upper())
    if order_mode:
        query = query.filter(Order.order_mode == order_mode.upper())
    if order_status:
        query = query.filter(Order.order_status == order_status.upper())
    if payment_status:
        query = query.filter(Order.payment_status == payment_status.upper())
    if is_website_order is not None:
        query = query.filter(Order.is_website_order.is_(is_website_order))
    if search:
        like = f"%{search}%"
        query = query.filter(or_(
            Order.order_id.ilike(like),
            Order.order_group_id.ilike(like),
            Order.product_name.ilike(like),
        ))
    if date_from:
        query = query.filter(Order.created_at >= date_from)
    if date_to:
        query = query.filter(Order.created_at <= date_to)

    total = query.count()
    items = query.order_by(Order.created_at.desc(), Order.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.get("/analytics")
def order_analytics(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "order:analytics")
    base = _visible_orders(db, current_user)

    def grouped(column):
        rows = (
            base.with_entities(column, func.count(Order.id), func.coalesce(func.sum(Order.total_amt), 0))
            .group_by(column)
            .all()
        )
        return {str(key): {"orders": count, "revenue": round(revenue, 2)} for key, count, revenue in rows}

    total_orders, total_revenue = base.with_entities(
        func.count(Order.id), func.coalesce(func.sum(Order.total_amt), 0)
    ).one()

    data = {
        "total_orders": total_orders,
        "total_revenue": round(total_revenue, 2),
        "by_type": grouped(Order.order_type),
        "by_mode": grouped(Order.order_mode),
        "by_status": grouped(Order.order_status),
        "by_payment_status": grouped(Order.payment_status),
        "by_source": {
            ("website" if key == "True" else "manual"): value
            for key, value in grouped(Order.is_website_order).items()
        },
    }

    if is_elevated(current_user):
        rows = (
            db.query(User.id, User.name, User.email, func.count(Order.id), func.coalesce(func.sum(Order.total_amt), 0))
            .join(Order, Order.created_by == User.id)
            .group_by(User.id, User.name, User.email)
            .all()
        )
        data["by_agent"] = [
            {"user_id": uid, "name": name or email, "orders": count, "revenue": round(revenue, 2)}
            for uid, name, email, count, revenue in rows
        ]
    return {"message": "Order analytics", "success": True, "data": data}


@router.put("/{order_id}/status", response_model=order_schemas.OrderOut)
def update_order_status(
    order_id: str,
    payload: order_schemas.OrderStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = db.query(Order).filter(Order.order_id == order_id).first()
    if not order:
        raise NotFoundError("Order", order_id)
    authorize(current_user, "order:update_status", order)

    if payload.order_status is None and payload.payment_status is None and payload.notes is None:
        raise ValidationFailed("Nothing to update")

    previous = order.order_status
    if payload.order_status is not None and payload.order_status.upper() != order.order_status:
        apply_transition(order, payload.order_status.upper())
    if payload.payment_status is not None:
        order.payment_status = payload.payment_status
    if payload.notes is not None:
        order.admin_notes = payload.notes
    db.commit()
    db.refresh(order)

    logger.info("Order %s status %s -> %s by user %s", order.order_id, previous, order.order_status, current_user.id)
    return order


def _authorized_group(db: Session, group_id: str, user: User):
    orders = order_service.get_group(db, group_id)
    authorize(user, "order:view", orders[0])
    return orders


@router.get("/group/{group_id}/invoice.pdf")
def download_group_invoice(
    group_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    orders = _authorized_group(db, group_id, current_user)
    _, name = _group_recipient(db, orders[0])
    pdf_bytes = generate_group_invoice_pdf(orders, name, orders[0].delivery_address)
    filename = f"{invoice_number(group_id)}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/group/{group_id}/send-invoice")
def send_group_invoice(
    group_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    orders = _authorized_group(db, group_id, current_user)
    email, name = _group_recipient(db, orders[0])
    if not email:
        raise ValidationFailed("Order group has no recipient email")

    creator = db.get(User, orders[0].created_by) if orders[0].created_by else None
    agent = (creator.name or creator.email) if creator else None
    sent = order_service.send_group_invoice(orders, email, name, orders[0].delivery_address, agent)
    return {
        "message": "Invoice sent" if sent else "Invoice could not be sent",
        "success": sent,
        "data": {"order_group_id": group_id, "email_sent": sent},
    }

# backend/routes/customers.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from database import get_db
from models.customer import Customer
from models.users import User
from utils.errors import NotFoundError, ValidationFailed
from utils.policy import authorize, is_elevated
from utils.tokenJWT import get_current_user
import schemas.customer as customer_schemas

router = APIRouter(prefix="/customers", tags=["Customers"])
logger = logging.getLogger(__name__)


def _check_btb(customer_type: str, company_name: Optional[str], registration_number: Optional[str]):
    if customer_type != "BTB":
        return
    errors = []
    if not (company_name or "").strip():
        errors.append("Company name is required for BTB customers")
    if not (registration_number or "").strip():
        errors.append("Registration number is required for BTB customers")
    if errors:
        raise ValidationFailed("Invalid BTB customer", errors=errors)


def _get_customer(db: Session, customer_id: int) -> Customer:
    customer = db.get(Customer, customer_id)
    if not customer:
        raise NotFoundError("Customer", customer_id)
    return customer


@router.post("", response_model=customer_schemas.CustomerOut)
def create_customer(
    payload: customer_schemas.CustomerCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "customer:create")
    _check_btb(payload.customer_type, payload.company_name, payload.registration_number)

    email = payload.email.strip().lower()
    if db.query(Customer).filter(func.lower(Customer.email) == email).first():
        raise ValidationFailed(f"Customer with email {email} already exists")

    customer = Customer(**payload.model_dump(exclude={"email"}), email=email, created_by=current_user.id)
    db.add(customer)
    db.commit()
    db.refresh(customer)
    logger.info("Customer %s created by user %s", customer.id, current_user.id)
    return customer


@router.get("", response_model=customer_schemas.CustomerPage)
def list_customers(
    q: Optional[str] = Query(None),
    customer_type: Optional[str] = Query(None),
    customer_mode: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "customer:view")

    query = db.query(Customer)
    # Agents only see their own customers and website customers
    if not is_elevated(current_user):
        query = query.filter(or_(Customer.created_by == current_user.id, Customer.is_website_customer.is_(True)))
    if q:
        like = f"%{q}%"
        query = query.filter(or_(
            Customer.name.ilike(like),
            Customer.email.ilike(like),
            Customer.company_name.ilike(like),
            Customer.mobile.ilike(like),
        ))
    if customer_type:
        query = query.filter(Customer.customer_type == customer_type.upper())
    if customer_mode:
        query = query.filter(Customer.customer_mode == customer_mode.upper())

    total = query.count()
    items = query.order_by(Customer.created_at.desc(), Customer.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.get("/{customer_id}", response_model=customer_schemas.CustomerOut)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    customer = _get_customer(db, customer_id)
    authorize(current_user, "customer:view", customer)
    return customer


@router.put("/{customer_id}", response_model=customer_schemas.CustomerOut)
def update_customer(
    customer_id: int,
    payload: customer_schemas.CustomerUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    customer = _get_customer(db, customer_id)
    authorize(current_user, "customer:update", customer)

    data = payload.model_dump(exclude_unset=True)
    if "email" in data:
        data["email"] = data["email"].strip().lower()
        clash = db.query(Customer).filter(func.lower(Customer.email) == data["email"], Customer.id != customer.id).first()
        if clash:
            raise ValidationFailed(f"Customer with email {data['email']} already exists")

    _check_btb(
        data.get("customer_type", customer.customer_type),
        data.get("company_name", customer.company_name),
        data.get("registration_number", customer.registration_number),
    )
    for key, value in data.items():
        setattr(customer, key, value)
    db.commit()
    db.refresh(customer)
    return customer

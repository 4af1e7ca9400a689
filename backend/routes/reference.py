# backend/routes/reference.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from models.reference import ExchangeRate, ShippingMethod, ShippingZone
from models.users import User
from utils.errors import NotFoundError, ValidationFailed
from utils.policy import authorize
from utils.tokenJWT import get_current_user
import schemas.reference as ref_schemas

router = APIRouter(tags=["Reference data"])


@router.get("/exchange-rates", response_model=List[ref_schemas.ExchangeRateOut])
def list_exchange_rates(db: Session = Depends(get_db)):
    return db.query(ExchangeRate).order_by(ExchangeRate.base_currency, ExchangeRate.target_currency).all()


# Create or replace the rate for a currency pair
@router.put("/exchange-rates", response_model=ref_schemas.ExchangeRateOut)
def upsert_exchange_rate(
    payload: ref_schemas.ExchangeRateIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "catalog:manage")
    base, target = payload.base_currency.upper(), payload.target_currency.upper()
    if base == target:
        raise ValidationFailed("Base and target currency must differ")

    rate = db.query(ExchangeRate).filter(
        ExchangeRate.base_currency == base, ExchangeRate.target_currency == target
    ).first()
    if rate is None:
        rate = ExchangeRate(base_currency=base, target_currency=target)
        db.add(rate)
    rate.rate = payload.rate
    rate.is_active = payload.is_active
    db.commit()
    db.refresh(rate)
    return rate


@router.get("/shipping/methods", response_model=List[ref_schemas.ShippingMethodOut])
def list_shipping_methods(zone_id: Optional[int] = Query(None), db: Session = Depends(get_db)):
    query = db.query(ShippingMethod).filter(ShippingMethod.is_active.is_(True))
    if zone_id is not None:
        query = query.filter(ShippingMethod.zone_id == zone_id)
    return query.order_by(ShippingMethod.cost).all()


@router.post("/shipping/methods", response_model=ref_schemas.ShippingMethodOut)
def create_shipping_method(
    payload: ref_schemas.ShippingMethodIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "catalog:manage")
    if payload.zone_id is not None and not db.get(ShippingZone, payload.zone_id):
        raise NotFoundError("Shipping zone", payload.zone_id)
    if db.query(ShippingMethod).filter(ShippingMethod.code == payload.code).first():
        raise ValidationFailed(f"Shipping method {payload.code} already exists")

    method = ShippingMethod(**payload.model_dump())
    db.add(method)
    db.commit()
    db.refresh(method)
    return method


@router.post("/shipping/zones", response_model=ref_schemas.ShippingZoneOut)
def create_shipping_zone(
    payload: ref_schemas.ShippingZoneIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "catalog:manage")
    if db.query(ShippingZone).filter(ShippingZone.name == payload.name).first():
        raise ValidationFailed(f"Shipping zone {payload.name} already exists")

    zone = ShippingZone(**payload.model_dump())
    db.add(zone)
    db.commit()
    db.refresh(zone)
    return zone

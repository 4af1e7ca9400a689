# backend/routes/products.py
import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user
from utils.errors import NotFoundError, ValidationFailed
from utils.policy import authorize
from models.users import User
from models.product import Product
from services.stock import get_effective_stock
import schemas.product as product_schemas

router = APIRouter(tags=["Products"])
logger = logging.getLogger(__name__)


# ---- HELPERS ----
def _norm_sku(sku: Optional[str]) -> Optional[str]:
    if sku is None:
        return None
    s = sku.strip().upper()
    return s if s else None


def _slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def _product_out(db: Session, product: Product) -> dict:
    data = product_schemas.ProductOut.model_validate(product).model_dump()
    data["effective_stock"] = get_effective_stock(db, product).as_dict()
    return data


@router.get("/products", response_model=product_schemas.ProductListPage)
def list_products(
    q: Optional[str] = Query(None),
    product_type: Optional[str] = Query(None),
    available_only: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    query = db.query(Product)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(Product.name.ilike(like), Product.sku.ilike(like)))
    if product_type:
        query = query.filter(Product.product_type == product_type)
    if available_only:
        query = query.filter(Product.product_availability.is_(True))

    total = query.count()
    products = query.order_by(Product.name.asc()).offset((page - 1) * page_size).limit(page_size).all()
    return {
        "items": [_product_out(db, p) for p in products],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


@router.get("/products/{product_id}", response_model=product_schemas.ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    product = db.get(Product, product_id)
    if not product:
        raise NotFoundError("Product", product_id)
    return _product_out(db, product)


@router.post("/products", response_model=product_schemas.ProductOut)
def create_product(
    payload: product_schemas.ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "product:manage")

    data = payload.model_dump()
    data["sku"] = _norm_sku(data["sku"])
    if not data["sku"]:
        raise ValidationFailed("SKU is required")
    if db.query(Product).filter(Product.sku == data["sku"]).first():
        raise ValidationFailed(f"Product with SKU {data['sku']} already exists")
    data["slug"] = data.get("slug") or f"{_slugify(payload.name)}-{data['sku'].lower()}"

    product = Product(**data)
    db.add(product)
    db.commit()
    db.refresh(product)
    logger.info("Product %s (%s) created by user %s", product.id, product.sku, current_user.id)
    return _product_out(db, product)


@router.patch("/products/{product_id}", response_model=product_schemas.ProductOut)
def update_product(
    product_id: int,
    payload: product_schemas.ProductEditRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "product:manage")
    product = db.get(Product, product_id)
    if not product:
        raise NotFoundError("Product", product_id)

    data = payload.model_dump(exclude_unset=True)
    cleared = [key for key, value in data.items() if value is None and not Product.__table__.columns[key].nullable]
    if cleared:
        raise ValidationFailed("Fields cannot be null", errors=[f"{key}: cannot be null" for key in cleared])
    if "sku" in data:
        data["sku"] = _norm_sku(data["sku"])
        if not data["sku"]:
            raise ValidationFailed("SKU cannot be empty")
        clash = db.query(Product).filter(Product.sku == data["sku"], Product.id != product.id).first()
        if clash:
            raise ValidationFailed(f"Product with SKU {data['sku']} already exists")

    for key, value in data.items():
        setattr(product, key, value)
    db.commit()
    db.refresh(product)
    return _product_out(db, product)

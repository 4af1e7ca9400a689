# backend/routes/cart.py
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user
from utils.errors import NotFoundError, ValidationFailed
from models.users import User
from models.product import Product
from models.cart import CartItem
from services.orders import website_unit_price, website_available
from schemas.cart import CartAddItem, CartUpdateItem, CartOut, CartItemOut, CartValidation

router = APIRouter(prefix="/cart", tags=["Cart"])
logger = logging.getLogger(__name__)


def _cart_items(db: Session, user_id: int):
    return db.query(CartItem).filter(CartItem.user_id == user_id).order_by(CartItem.id).all()


def _cart_to_out(items) -> CartOut:
    items_out = []
    total = 0.0
    for it in items:
        line_total = it.unit_price_snapshot * it.quantity
        total += line_total
        items_out.append(CartItemOut(
            id=it.id,
            product_id=it.product_id,
            name=it.product.name if it.product else "",
            price_option=it.price_option,
            quantity=it.quantity,
            unit_price=round(it.unit_price_snapshot, 2),
            line_total=round(line_total, 2),
        ))
    return CartOut(items=items_out, total=round(total, 2))


def _own_item(db: Session, user_id: int, item_id: int) -> CartItem:
    item = db.query(CartItem).filter(CartItem.id == item_id, CartItem.user_id == user_id).first()
    if not item:
        raise NotFoundError("Cart item", item_id)
    return item


@router.get("", response_model=CartOut)
def get_cart(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _cart_to_out(_cart_items(db, current_user.id))


@router.post("/add", response_model=CartOut)
def add_to_cart(
    payload: CartAddItem,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = db.get(Product, payload.product_id)
    if not product:
        raise NotFoundError("Product", payload.product_id)
    if not product.product_availability:
        raise ValidationFailed(f"{product.name} is not available")

    unit_price = website_unit_price(product, payload.price_option)

    # Same product and option in the cart again: increase quantity
    item = db.query(CartItem).filter(
        CartItem.user_id == current_user.id,
        CartItem.product_id == product.id,
        CartItem.price_option == payload.price_option,
    ).first()
    if item:
        item.quantity += payload.quantity
        item.unit_price_snapshot = unit_price
    else:
        db.add(CartItem(
            user_id=current_user.id,
            product_id=product.id,
            price_option=payload.price_option,
            quantity=payload.quantity,
            unit_price_snapshot=unit_price,
        ))
    db.commit()
    return _cart_to_out(_cart_items(db, current_user.id))


@router.put("/items/{item_id}", response_model=CartOut)
def update_cart_item(
    item_id: int,
    payload: CartUpdateItem,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    item = _own_item(db, current_user.id, item_id)
    item.quantity = payload.quantity
    db.commit()
    return _cart_to_out(_cart_items(db, current_user.id))


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_cart_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    item = _own_item(db, current_user.id, item_id)
    db.delete(item)
    db.commit()
    return _cart_to_out(_cart_items(db, current_user.id))


@router.post("/validate", response_model=CartValidation)
def validate_cart(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Re-checks each line against current website stock. Advisory only, checkout re-checks."""
    lines = []
    for it in _cart_items(db, current_user.id):
        product = it.product
        if product is None or not product.product_availability:
            lines.append({
                "item_id": it.id, "product_id": it.product_id,
                "name": product.name if product else "", "requested": it.quantity,
                "ok": False, "message": "Product is no longer available",
            })
            continue
        # Pre-order options are not limited by stock on hand
        if it.price_option != "regular":
            lines.append({
                "item_id": it.id, "product_id": product.id, "name": product.name,
                "requested": it.quantity, "ok": True,
            })
            continue
        available = website_available(product)
        ok = available >= it.quantity
        lines.append({
            "item_id": it.id, "product_id": product.id, "name": product.name,
            "requested": it.quantity, "available": available, "ok": ok,
            "message": None if ok else f"Only {available} left in stock",
        })
    return {"valid": all(line["ok"] for line in lines), "items": lines}

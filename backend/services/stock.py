# backend/services/stock.py
"""Effective stock resolution and warehouse manual stock writes.

A product's stock can come from three places, in order of precedence:

1. the warehouse manual override (``Product.warehouse_*`` columns), when enabled;
2. the sum of its active stock batches;
3. the legacy ``Product.stock`` figure.

Everything that reads stock for display, alerts or summaries goes through
``get_effective_stock`` so that exactly one source is used per product.
"""
import logging
import math
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.product import Product, StockSource
from models.stock import StockBatch, ACTIVE_BATCH_STATUSES
from models.settings import WarehouseSettings
from utils.errors import NotFoundError, ValidationFailed

logger = logging.getLogger(__name__)

# Quantity fields of a stock snapshot and their override columns on Product
STOCK_FIELDS = {
    "stock_on_arrival": "warehouse_stock_on_arrival",
    "damaged_qty": "warehouse_damaged_qty",
    "expired_qty": "warehouse_expired_qty",
    "refurbished_qty": "warehouse_refurbished_qty",
    "final_stock": "warehouse_final_stock",
    "online_stock": "warehouse_online_stock",
    "offline_stock": "warehouse_offline_stock",
}

FIELD_LABELS = {
    "stock_on_arrival": "Stock on arrival",
    "damaged_qty": "Damaged qty",
    "expired_qty": "Expired qty",
    "refurbished_qty": "Refurbished qty",
    "final_stock": "Final stock",
    "online_stock": "Online stock",
    "offline_stock": "Offline stock",
}


@dataclass
class EffectiveStock:
    stock_on_arrival: int = 0
    damaged_qty: int = 0
    expired_qty: int = 0
    refurbished_qty: int = 0
    final_stock: int = 0
    online_stock: int = 0
    offline_stock: int = 0
    source: str = StockSource.PRODUCT_DEFAULT.value
    notes: Optional[str] = None
    last_updated: Optional[datetime] = None

    def quantities(self) -> Dict[str, int]:
        return {name: getattr(self, name) for name in STOCK_FIELDS}

    def as_dict(self) -> dict:
        return asdict(self)


def batch_totals(db: Session, product_id: int) -> Optional[Dict[str, int]]:
    """Sums the active batches of a product, or None when it has none."""
    row = (
        db.query(
            func.count(StockBatch.id),
            func.coalesce(func.sum(StockBatch.original_quantity), 0),
            func.coalesce(func.sum(StockBatch.good_quantity), 0),
            func.coalesce(func.sum(StockBatch.refurbished_quantity), 0),
            func.coalesce(func.sum(StockBatch.damaged_quantity), 0),
            func.coalesce(func.sum(StockBatch.online_stock), 0),
            func.coalesce(func.sum(StockBatch.offline_stock), 0),
        )
        .filter(
            StockBatch.product_id == product_id,
            StockBatch.status.in_(ACTIVE_BATCH_STATUSES),
        )
        .one()
    )
    count, original, good, refurbished, damaged, online, offline = row
    if not count:
        return None
    return {
        "batch_count": int(count),
        "stock_on_arrival": int(original),
        "damaged_qty": int(damaged),
        "expired_qty": 0,
        "refurbished_qty": int(refurbished),
        "final_stock": int(good) + int(refurbished),
        "online_stock": int(online),
        "offline_stock": int(offline),
    }


def get_effective_stock(db: Session, product: Product) -> EffectiveStock:
    if product.warehouse_enabled:
        return EffectiveStock(
            stock_on_arrival=product.warehouse_stock_on_arrival or 0,
            damaged_qty=product.warehouse_damaged_qty or 0,
            expired_qty=product.warehouse_expired_qty or 0,
            refurbished_qty=product.warehouse_refurbished_qty or 0,
            final_stock=product.warehouse_final_stock or 0,
            online_stock=product.warehouse_online_stock or 0,
            offline_stock=product.warehouse_offline_stock or 0,
            source=StockSource.WAREHOUSE_MANUAL.value,
            notes=product.warehouse_notes,
            last_updated=product.warehouse_last_updated,
        )

    totals = batch_totals(db, product.id)
    if totals is not None:
        totals.pop("batch_count")
        return EffectiveStock(source=StockSource.STOCK_BATCHES.value, **totals)

    legacy = product.stock or 0
    return EffectiveStock(
        stock_on_arrival=legacy,
        final_stock=legacy,
        source=StockSource.PRODUCT_DEFAULT.value,
    )


def validate_stock_update(values: Dict[str, int]) -> List[str]:
    """Checks a manual stock payload and returns every violation found."""
    errors = []
    q = {name: values.get(name) or 0 for name in STOCK_FIELDS}

    for name, value in q.items():
        if value < 0:
            errors.append(f"{FIELD_LABELS[name]} cannot be negative")

    accounted = q["damaged_qty"] + q["expired_qty"] + q["refurbished_qty"] + q["final_stock"]
    if accounted != q["stock_on_arrival"]:
        errors.append(
            f"Stock on arrival ({q['stock_on_arrival']}) must equal Damaged ({q['damaged_qty']}) "
            f"+ Expired ({q['expired_qty']}) + Refurbished ({q['refurbished_qty']}) "
            f"+ Final stock ({q['final_stock']}) = {accounted}"
        )

    channels = q["online_stock"] + q["offline_stock"]
    if channels > q["final_stock"]:
        errors.append(
            f"Online stock ({q['online_stock']}) + Offline stock ({q['offline_stock']}) "
            f"= {channels} exceeds Final stock ({q['final_stock']})"
        )
    return errors


def stock_diff(before: EffectiveStock, after: EffectiveStock) -> dict:
    b, a = before.quantities(), after.quantities()
    return {name: {"from": b[name], "to": a[name]} for name in STOCK_FIELDS if b[name] != a[name]}


def _write_override(product: Product, values: Dict[str, int], user_id: Optional[int], notes: Optional[str]):
    for name, column in STOCK_FIELDS.items():
        setattr(product, column, int(values.get(name) or 0))
    if notes is not None:
        product.warehouse_notes = notes
    product.warehouse_enabled = True
    product.warehouse_last_updated = datetime.now(timezone.utc)
    product.warehouse_updated_by = user_id
    # Legacy readers keep working off stock
    product.stock = product.warehouse_final_stock
    product.stock_source = StockSource.WAREHOUSE_MANUAL.value


def apply_manual_update(db: Session, product_id: int, values: Dict[str, int], user_id: Optional[int], notes: Optional[str] = None):
    """Validates and writes a manual override. Does not commit.

    Returns (before, after) effective stock snapshots.
    """
    errors = validate_stock_update(values)
    if errors:
        logger.warning("Rejected stock update for product %s: %s", product_id, errors)
        raise ValidationFailed("Stock validation failed", errors=errors)

    product = db.query(Product).filter(Product.id == product_id).with_for_update().first()
    if not product:
        raise NotFoundError("Product", product_id)

    before = get_effective_stock(db, product)
    _write_override(product, values, user_id, notes)
    db.flush()
    return product, before, get_effective_stock(db, product)


def reconcile(db: Session, product_id: int, actual_count: int, user_id: Optional[int]):
    """Sets the physical count as final stock under the manual override. Does not commit."""
    if actual_count is None or actual_count < 0:
        raise ValidationFailed("Actual count must be a non-negative integer")

    product = db.query(Product).filter(Product.id == product_id).with_for_update().first()
    if not product:
        raise NotFoundError("Product", product_id)

    before = get_effective_stock(db, product)
    values = before.quantities()
    values["final_stock"] = actual_count

    # Channel allocations must fit the new final stock, offline gives way first
    excess = values["online_stock"] + values["offline_stock"] - actual_count
    if excess > 0:
        cut = min(excess, values["offline_stock"])
        values["offline_stock"] -= cut
        values["online_stock"] -= excess - cut
    values["stock_on_arrival"] = (
        values["damaged_qty"] + values["expired_qty"] + values["refurbished_qty"] + actual_count
    )

    _write_override(product, values, user_id, None)
    db.flush()
    return product, before, get_effective_stock(db, product)


def sync_product_from_batches(db: Session, product: Product, keep_when_empty: bool = True) -> bool:
    """Mirrors batch totals into the legacy stock of a non-override product.

    With keep_when_empty=False a product whose batches are no longer active
    (all damaged, disposed, ...) drops to zero instead of keeping its old figure.
    """
    if product.warehouse_enabled:
        return False
    # Pending batch changes must be visible to the totals query
    db.flush()
    totals = batch_totals(db, product.id)
    if totals is None:
        if keep_when_empty:
            return False
        totals = {"final_stock": 0}
    product.stock = totals["final_stock"]
    product.stock_source = StockSource.STOCK_BATCHES.value
    return True


def auto_sync(db: Session, product: Product, settings: WarehouseSettings) -> bool:
    if not settings.auto_sync_enabled:
        return False
    return sync_product_from_batches(db, product, keep_when_empty=False)


def disable_override(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).with_for_update().first()
    if not product:
        raise NotFoundError("Product", product_id)
    product.warehouse_enabled = False
    if not sync_product_from_batches(db, product):
        product.stock_source = StockSource.PRODUCT_DEFAULT.value
    db.flush()
    return product


def sync_all(db: Session) -> Dict[str, int]:
    synced, skipped_override, without_batches = 0, 0, 0
    for product in db.query(Product).order_by(Product.id).all():
        if product.warehouse_enabled:
            skipped_override += 1
        elif sync_product_from_batches(db, product):
            synced += 1
        else:
            without_batches += 1
    db.flush()
    return {"synced": synced, "skipped_override": skipped_override, "without_batches": without_batches}


def stock_summary(db: Session, settings: WarehouseSettings) -> dict:
    summary = {
        "total_products": 0,
        "total_stock": 0,
        "online_stock": 0,
        "offline_stock": 0,
        "damaged_qty": 0,
        "refurbished_qty": 0,
        "expired_qty": 0,
        "low_stock_count": 0,
        "out_of_stock_count": 0,
        "manual_override_count": 0,
        "batch_sourced_count": 0,
    }
    for product in db.query(Product).all():
        eff = get_effective_stock(db, product)
        summary["total_products"] += 1
        summary["total_stock"] += eff.final_stock
        summary["online_stock"] += eff.online_stock
        summary["offline_stock"] += eff.offline_stock
        summary["damaged_qty"] += eff.damaged_qty
        summary["refurbished_qty"] += eff.refurbished_qty
        summary["expired_qty"] += eff.expired_qty
        if eff.final_stock == 0:
            summary["out_of_stock_count"] += 1
        elif eff.final_stock <= settings.low_stock_threshold:
            summary["low_stock_count"] += 1
        if eff.source == StockSource.WAREHOUSE_MANUAL.value:
            summary["manual_override_count"] += 1
        elif eff.source == StockSource.STOCK_BATCHES.value:
            summary["batch_sourced_count"] += 1
    return summary


def stock_alerts(db: Session, settings: WarehouseSettings) -> dict:
    alerts = {"out_of_stock": [], "critical_stock": [], "low_stock": []}
    for product in db.query(Product).order_by(Product.name).all():
        eff = get_effective_stock(db, product)
        entry = {
            "product_id": product.id,
            "name": product.name,
            "sku": product.sku,
            "final_stock": eff.final_stock,
            "online_stock": eff.online_stock,
            "offline_stock": eff.offline_stock,
            "source": eff.source,
        }
        if eff.final_stock == 0:
            alerts["out_of_stock"].append(entry)
        elif eff.final_stock <= settings.critical_stock_threshold:
            alerts["critical_stock"].append(entry)
        elif eff.final_stock <= settings.low_stock_threshold:
            alerts["low_stock"].append(entry)
    alerts["thresholds"] = {
        "low": settings.low_stock_threshold,
        "critical": settings.critical_stock_threshold,
    }
    return alerts


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes, stored values are UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def expiring_batches(db: Session, days: int, now: Optional[datetime] = None) -> List[dict]:
    """Active batches whose expiry date falls between now and `days` ahead, soonest first."""
    now = now or datetime.now(timezone.utc)
    horizon = now + timedelta(days=days)

    batches = (
        db.query(StockBatch)
        .filter(StockBatch.expiry_date.isnot(None), StockBatch.status.in_(ACTIVE_BATCH_STATUSES))
        .all()
    )
    rows = []
    for batch in batches:
        expiry = _as_utc(batch.expiry_date)
        if not now <= expiry <= horizon:
            continue
        rows.append({
            "batch_id": batch.id,
            "batch_number": batch.batch_number,
            "product_id": batch.product_id,
            "product_name": batch.product.name if batch.product else None,
            "sku": batch.product.sku if batch.product else None,
            "supplier": batch.supplier,
            "expiry_date": expiry,
            "days_until_expiry": math.ceil((expiry - now).total_seconds() / 86400),
            "current_quantity": batch.good_quantity + batch.refurbished_quantity,
            "online_stock": batch.online_stock,
            "offline_stock": batch.offline_stock,
        })
    rows.sort(key=lambda row: row["expiry_date"])
    return rows

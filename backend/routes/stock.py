# backend/routes/stock.py
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from models.stock import StockBatch, BatchStatus, QualityStatus
from models.product import Product
from models.users import User
from services.settings import get_warehouse_settings
from services.stock import auto_sync, expiring_batches
from utils.audit import log_activity
from utils.errors import NotFoundError, ValidationFailed
from utils.policy import authorize
from utils.tokenJWT import get_current_user
import schemas.stock as stock_schemas

router = APIRouter(prefix="/stock", tags=["Stock"])
logger = logging.getLogger(__name__)


def _batch_out(batch: StockBatch) -> dict:
    data = stock_schemas.BatchOut.model_validate(batch).model_dump()
    data["product_name"] = batch.product.name if batch.product else None
    return data


def _get_batch(db: Session, batch_id: int) -> StockBatch:
    batch = db.query(StockBatch).filter(StockBatch.id == batch_id).with_for_update().first()
    if not batch:
        raise NotFoundError("Stock batch", batch_id)
    return batch


def _after_batch_write(db: Session, batch: StockBatch, user: User, request: Request, action: str, changes: dict, notes: str):
    # Keep the legacy stock figure in line with the batches
    synced = auto_sync(db, batch.product, get_warehouse_settings(db))
    log_activity(
        db,
        user=user,
        action=action,
        target_type="BATCH",
        target_id=batch.id,
        target_name=batch.batch_number,
        target_sku=batch.product.sku if batch.product else None,
        changes=changes,
        notes=notes + (" (product stock synced)" if synced else ""),
        request=request,
        commit=False,
    )
    db.commit()
    db.refresh(batch)


@router.get("/batches", response_model=stock_schemas.BatchPage)
def list_batches(
    product_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "stock:view")

    query = db.query(StockBatch)
    if product_id is not None:
        query = query.filter(StockBatch.product_id == product_id)
    if status:
        query = query.filter(StockBatch.status == status.upper())

    total = query.count()
    batches = query.order_by(StockBatch.received_date.desc(), StockBatch.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
    return {"items": [_batch_out(b) for b in batches], "total": total, "page": page, "page_size": page_size}


@router.get("/batches/expiring", response_model=List[stock_schemas.ExpiringBatchOut])
def list_expiring_batches(
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "stock:view")
    return expiring_batches(db, days)


@router.post("/batches", response_model=stock_schemas.BatchOut)
def create_batch(
    payload: stock_schemas.BatchCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "batch:manage")

    product = db.get(Product, payload.product_id)
    if not product:
        raise NotFoundError("Product", payload.product_id)
    if db.query(StockBatch).filter(StockBatch.batch_number == payload.batch_number).first():
        raise ValidationFailed(f"Batch number {payload.batch_number} already exists")

    batch = StockBatch(
        batch_number=payload.batch_number,
        product_id=product.id,
        supplier=payload.supplier,
        status=BatchStatus.RECEIVED.value,
        quality_status=QualityStatus.PENDING.value,
        original_quantity=payload.original_quantity,
        # Units count as good until inspected
        good_quantity=payload.original_quantity,
        unit_cost=payload.unit_cost,
        expiry_date=payload.expiry_date,
        created_by=current_user.id,
    )
    db.add(batch)
    db.flush()
    _after_batch_write(
        db, batch, current_user, request, "STOCK_BATCH_CREATED",
        {"original_quantity": {"from": None, "to": batch.original_quantity}},
        f"Batch {batch.batch_number} received for {product.name}",
    )
    logger.info("Batch %s created for product %s", batch.batch_number, product.id)
    return _batch_out(batch)


@router.post("/batches/{batch_id}/quality-check", response_model=stock_schemas.BatchOut)
def quality_check(
    batch_id: int,
    payload: stock_schemas.BatchQualityCheck,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "batch:manage")
    batch = _get_batch(db, batch_id)

    inspected = payload.good_quantity + payload.refurbished_quantity + payload.damaged_quantity
    if inspected != batch.original_quantity:
        raise ValidationFailed(
            f"Good ({payload.good_quantity}) + Refurbished ({payload.refurbished_quantity}) "
            f"+ Damaged ({payload.damaged_quantity}) must equal original quantity ({batch.original_quantity})"
        )

    before = {
        "good_quantity": batch.good_quantity,
        "refurbished_quantity": batch.refurbished_quantity,
        "damaged_quantity": batch.damaged_quantity,
        "status": batch.status,
    }
    batch.good_quantity = payload.good_quantity
    batch.refurbished_quantity = payload.refurbished_quantity
    batch.damaged_quantity = payload.damaged_quantity
    batch.quality_notes = payload.quality_notes
    # Channel allocations are reset after inspection
    batch.online_stock = 0
    batch.offline_stock = 0

    if payload.good_quantity + payload.refurbished_quantity == 0:
        batch.status = BatchStatus.DAMAGED.value
        batch.quality_status = QualityStatus.FAILED.value
    else:
        batch.status = BatchStatus.AVAILABLE.value
        batch.quality_status = (
            QualityStatus.REFURBISHED.value if payload.good_quantity == 0 else QualityStatus.PASSED.value
        )

    changes = {
        key: {"from": before[key], "to": getattr(batch, key)}
        for key in before
        if before[key] != getattr(batch, key)
    }
    _after_batch_write(db, batch, current_user, request, "STOCK_BATCH_QUALITY_CHECK", changes,
                       f"Quality check: {batch.quality_status}")
    return _batch_out(batch)


@router.post("/batches/{batch_id}/distribute", response_model=stock_schemas.BatchOut)
def distribute_batch(
    batch_id: int,
    payload: stock_schemas.BatchDistribute,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "batch:manage")
    batch = _get_batch(db, batch_id)

    if batch.status not in (BatchStatus.AVAILABLE.value, BatchStatus.PARTIALLY_ALLOCATED.value):
        raise ValidationFailed(f"Batch {batch.batch_number} is {batch.status} and cannot be distributed")

    sellable = batch.good_quantity + batch.refurbished_quantity
    allocated = payload.online_stock + payload.offline_stock
    if allocated > sellable:
        raise ValidationFailed(
            f"Online ({payload.online_stock}) + Offline ({payload.offline_stock}) = {allocated} exceeds sellable quantity ({sellable})"
        )

    changes = {
        "online_stock": {"from": batch.online_stock, "to": payload.online_stock},
        "offline_stock": {"from": batch.offline_stock, "to": payload.offline_stock},
    }
    batch.online_stock = payload.online_stock
    batch.offline_stock = payload.offline_stock
    batch.status = (
        BatchStatus.PARTIALLY_ALLOCATED.value if allocated < sellable else BatchStatus.AVAILABLE.value
    )
    _after_batch_write(db, batch, current_user, request, "STOCK_BATCH_DISTRIBUTED", changes,
                       f"Distributed {allocated} of {sellable} units")
    return _batch_out(batch)

# backend/routes/warehouse.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from database import get_db
from models.activity import WarehouseActivity
from models.product import Product
from models.users import User
from services.settings import get_warehouse_settings
from services import stock as stock_service
from utils.audit import log_activity, diff_fields
from utils.errors import AuthorizationError, NotFoundError, ShopError, ValidationFailed
from utils.policy import authorize
from utils.tokenJWT import get_current_user
import schemas.warehouse as wh_schemas

router = APIRouter(prefix="/warehouse", tags=["Warehouse"])
logger = logging.getLogger(__name__)


def _require_enabled(db: Session):
    if not get_warehouse_settings(db).enabled:
        raise AuthorizationError("Warehouse system is disabled")


def _product_row(db: Session, product: Product) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "sku": product.sku,
        "product_type": product.product_type,
        "unit": product.unit,
        "packaging": product.packaging,
        "warehouse_enabled": product.warehouse_enabled,
        "stock": product.stock,
        "effective_stock": stock_service.get_effective_stock(db, product).as_dict(),
    }


@router.get("/products", response_model=wh_schemas.WarehouseProductPage)
def list_stock_products(
    q: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "stock:view")

    query = db.query(Product)
    # Filter by product name or SKU
    if q:
        like = f"%{q}%"
        query = query.filter((Product.name.ilike(like)) | (Product.sku.ilike(like)))

    total = query.count()
    products = query.order_by(Product.name.asc()).offset((page - 1) * page_size).limit(page_size).all()
    items = [_product_row(db, p) for p in products]
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.get("/products/{product_id}/stock", response_model=wh_schemas.WarehouseProductOut)
def get_product_stock(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "stock:view")
    product = db.get(Product, product_id)
    if not product:
        raise NotFoundError("Product", product_id)
    return _product_row(db, product)


@router.post("/stock/update")
def update_stock(
    payload: wh_schemas.StockUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "stock:update")
    _require_enabled(db)

    try:
        product, before, after = stock_service.apply_manual_update(
            db, payload.product_id, payload.quantities(), current_user.id, payload.notes
        )
        log_activity(
            db,
            user=current_user,
            action="STOCK_UPDATE",
            target_type="PRODUCT",
            target_id=product.id,
            target_name=product.name,
            target_sku=product.sku,
            changes=stock_service.stock_diff(before, after),
            notes=payload.notes or "",
            request=request,
            commit=False,
        )
        db.commit()
    except ShopError:
        db.rollback()
        raise

    logger.info("Stock of product %s updated by user %s", product.id, current_user.id)
    return {
        "message": "Stock updated successfully",
        "success": True,
        "data": {"product_id": product.id, "effective_stock": after.as_dict()},
    }


@router.put("/stock/bulk-update", response_model=wh_schemas.BulkStockResponse)
def bulk_update_stock(
    payload: wh_schemas.BulkStockUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "stock:bulk_update")
    _require_enabled(db)
    if not payload.updates:
        raise ValidationFailed("No stock updates supplied")

    # Items are applied independently, one failure does not undo the others
    results = []
    for item in payload.updates:
        try:
            product, before, after = stock_service.apply_manual_update(
                db, item.product_id, item.quantities(), current_user.id, item.notes
            )
            log_activity(
                db,
                user=current_user,
                action="BULK_STOCK_UPDATE",
                target_type="PRODUCT",
                target_id=product.id,
                target_name=product.name,
                target_sku=product.sku,
                changes=stock_service.stock_diff(before, after),
                notes=item.notes or "",
                request=request,
                commit=False,
            )
            db.commit()
            results.append({"product_id": item.product_id, "success": True, "message": "Updated"})
        except ShopError as e:
            db.rollback()
            results.append({
                "product_id": item.product_id,
                "success": False,
                "message": e.message,
                "errors": e.errors,
            })

    applied = sum(1 for r in results if r["success"])
    logger.info("Bulk stock update by user %s: %s/%s applied", current_user.id, applied, len(results))
    return {
        "message": f"{applied} of {len(results)} products updated",
        "success": applied == len(results),
        "data": results,
    }


@router.patch("/products/{product_id}/disable-override")
def disable_warehouse_override(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "stock:disable_override")
    product = stock_service.disable_override(db, product_id)
    after = stock_service.get_effective_stock(db, product)
    log_activity(
        db,
        user=current_user,
        action="WAREHOUSE_OVERRIDE_DISABLED",
        target_type="PRODUCT",
        target_id=product.id,
        target_name=product.name,
        target_sku=product.sku,
        changes={"warehouse_enabled": {"from": True, "to": False}},
        notes=f"Stock source reverted to {after.source}",
        request=request,
        commit=False,
    )
    db.commit()
    return {
        "message": "Warehouse override disabled",
        "success": True,
        "data": {"product_id": product.id, "stock": product.stock, "effective_stock": after.as_dict()},
    }


@router.post("/stock/reconcile")
def reconcile_stock(
    payload: wh_schemas.ReconcileRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "stock:reconcile")
    _require_enabled(db)

    try:
        product, before, after = stock_service.reconcile(db, payload.product_id, payload.actual_count, current_user.id)
        difference = after.final_stock - before.final_stock
        log_activity(
            db,
            user=current_user,
            action="STOCK_RECONCILIATION",
            target_type="PRODUCT",
            target_id=product.id,
            target_name=product.name,
            target_sku=product.sku,
            changes=stock_service.stock_diff(before, after),
            notes=f"Stock reconciliation: {difference:+d} units",
            request=request,
            commit=False,
        )
        db.commit()
    except ShopError:
        db.rollback()
        raise

    return {
        "message": "Stock reconciled successfully",
        "success": True,
        "data": wh_schemas.ReconcileResult(
            product_id=product.id,
            previous_stock=before.final_stock,
            new_stock=after.final_stock,
            difference=difference,
        ),
    }


@router.post("/stock/sync-all")
def sync_all_stock(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "stock:sync_all")
    counts = stock_service.sync_all(db)
    log_activity(
        db,
        user=current_user,
        action="BULK_STOCK_SYNC",
        target_type="SYSTEM",
        notes=f"Synced {counts['synced']} products from stock batches",
        request=request,
        commit=False,
    )
    db.commit()
    return {"message": "Stock synchronised from batches", "success": True, "data": counts}


@router.get("/stock/summary")
def stock_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "stock:view")
    return stock_service.stock_summary(db, get_warehouse_settings(db))


@router.get("/stock/alerts")
def stock_alerts(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "stock:view")
    return stock_service.stock_alerts(db, get_warehouse_settings(db))


@router.get("/settings", response_model=wh_schemas.WarehouseSettingsOut)
def get_settings(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "stock:view")
    settings = get_warehouse_settings(db)
    db.commit()
    return settings


@router.put("/settings", response_model=wh_schemas.WarehouseSettingsOut)
def update_settings(
    payload: wh_schemas.WarehouseSettingsUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "warehouse:settings")
    settings = get_warehouse_settings(db)

    low = payload.low_stock_threshold if payload.low_stock_threshold is not None else settings.low_stock_threshold
    critical = (
        payload.critical_stock_threshold
        if payload.critical_stock_threshold is not None
        else settings.critical_stock_threshold
    )
    errors = []
    if not 1 <= low <= 100:
        errors.append("Low stock threshold must be between 1 and 100")
    if not 1 <= critical <= low:
        errors.append("Critical stock threshold must be between 1 and the low stock threshold")
    if errors:
        raise ValidationFailed("Invalid warehouse settings", errors=errors)

    before = {
        "auto_sync_enabled": settings.auto_sync_enabled,
        "low_stock_threshold": settings.low_stock_threshold,
        "critical_stock_threshold": settings.critical_stock_threshold,
        "notification_emails": list(settings.notification_emails or []),
    }
    after = dict(before, low_stock_threshold=low, critical_stock_threshold=critical)
    if payload.auto_sync_enabled is not None:
        after["auto_sync_enabled"] = payload.auto_sync_enabled
    if payload.notification_emails is not None:
        after["notification_emails"] = [str(e) for e in payload.notification_emails]

    for key, value in after.items():
        setattr(settings, key, value)
    settings.updated_by = current_user.id

    log_activity(
        db,
        user=current_user,
        action="SETTINGS_UPDATE",
        target_type="SYSTEM",
        changes=diff_fields(before, after),
        request=request,
        commit=False,
    )
    db.commit()
    db.refresh(settings)
    return settings


def _toggle_system(db: Session, user: User, request: Request, enabled: bool):
    authorize(user, "warehouse:toggle")
    settings = get_warehouse_settings(db)
    previous = settings.enabled
    settings.enabled = enabled
    settings.updated_by = user.id
    log_activity(
        db,
        user=user,
        action="SYSTEM_ENABLED" if enabled else "SYSTEM_DISABLED",
        target_type="SYSTEM",
        changes={"enabled": {"from": previous, "to": enabled}},
        request=request,
        commit=False,
    )
    db.commit()
    logger.info("Warehouse system %s by user %s", "enabled" if enabled else "disabled", user.id)
    return {"message": f"Warehouse system {'enabled' if enabled else 'disabled'}", "success": True, "data": {"enabled": enabled}}


@router.post("/system/enable")
def enable_system(request: Request, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _toggle_system(db, current_user, request, True)


@router.post("/system/disable")
def disable_system(request: Request, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _toggle_system(db, current_user, request, False)


@router.get("/activity", response_model=wh_schemas.ActivityPage)
def list_activity(
    action: Optional[str] = Query(None),
    user_id: Optional[int] = Query(None),
    days: Optional[int] = Query(None, ge=1, le=365),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    authorize(current_user, "stock:view")

    query = db.query(WarehouseActivity)
    if action:
        query = query.filter(WarehouseActivity.action == action)
    if user_id is not None:
        query = query.filter(WarehouseActivity.user_id == user_id)
    if days:
        query = query.filter(WarehouseActivity.ts >= datetime.now(timezone.utc) - timedelta(days=days))

    total = query.count()
    rows = (
        query.order_by(WarehouseActivity.ts.desc(), WarehouseActivity.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    items = [
        {
            "id": r.id,
            "ts": r.ts,
            "user_id": r.user_id,
            "user_email": r.user.email if r.user else None,
            "action": r.action,
            "target_type": r.target_type,
            "target_id": r.target_id,
            "target_name": r.target_name,
            "target_sku": r.target_sku,
            "changes": r.changes,
            "notes": r.notes,
            "ip": r.ip,
        }
        for r in rows
    ]
    return {"items": items, "total": total, "page": page, "page_size": page_size}

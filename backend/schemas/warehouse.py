# backend/schemas/warehouse.py
from pydantic import BaseModel, ConfigDict, EmailStr
from datetime import datetime
from typing import List, Optional, Dict, Any

from schemas.product import EffectiveStockOut


# Manual stock count for one product. Sign and accounting checks are
# itemized by the validator rather than rejected field by field here.
class StockUpdate(BaseModel):
    product_id: int
    stock_on_arrival: int = 0
    damaged_qty: int = 0
    expired_qty: int = 0
    refurbished_qty: int = 0
    final_stock: int = 0
    online_stock: int = 0
    offline_stock: int = 0
    notes: Optional[str] = None

    def quantities(self) -> Dict[str, int]:
        return self.model_dump(exclude={"product_id", "notes"})


class BulkStockUpdate(BaseModel):
    updates: List[StockUpdate]


class BulkStockResult(BaseModel):
    product_id: int
    success: bool
    message: str
    errors: Optional[List[str]] = None


class BulkStockResponse(BaseModel):
    message: str
    success: bool
    data: List[BulkStockResult]


class ReconcileRequest(BaseModel):
    product_id: int
    actual_count: int


class ReconcileResult(BaseModel):
    product_id: int
    previous_stock: int
    new_stock: int
    difference: int


# Product row of the warehouse stock table
class WarehouseProductOut(BaseModel):
    id: int
    name: str
    sku: str
    product_type: Optional[str] = None
    unit: Optional[str] = None
    packaging: Optional[str] = None
    warehouse_enabled: bool
    stock: int
    effective_stock: EffectiveStockOut


class WarehouseProductPage(BaseModel):
    items: List[WarehouseProductOut]
    total: int
    page: int
    page_size: int


class WarehouseSettingsOut(BaseModel):
    enabled: bool
    auto_sync_enabled: bool
    low_stock_threshold: int
    critical_stock_threshold: int
    notification_emails: List[str]
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class WarehouseSettingsUpdate(BaseModel):
    auto_sync_enabled: Optional[bool] = None
    low_stock_threshold: Optional[int] = None
    critical_stock_threshold: Optional[int] = None
    notification_emails: Optional[List[EmailStr]] = None


class ActivityOut(BaseModel):
    id: int
    ts: datetime
    user_id: Optional[int] = None
    user_email: Optional[str] = None
    action: str
    target_type: str
    target_id: Optional[int] = None
    target_name: Optional[str] = None
    target_sku: Optional[str] = None
    changes: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    ip: Optional[str] = None


class ActivityPage(BaseModel):
    items: List[ActivityOut]
    total: int
    page: int
    page_size: int

# backend/schemas/stock.py
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import List, Optional


# Schema for registering a received batch
class BatchCreate(BaseModel):
    product_id: int
    batch_number: str
    supplier: Optional[str] = None
    original_quantity: int = Field(gt=0)
    unit_cost: float = Field(default=0, ge=0)
    expiry_date: Optional[datetime] = None


# Result of the quality inspection of a batch
class BatchQualityCheck(BaseModel):
    good_quantity: int = Field(ge=0)
    refurbished_quantity: int = Field(default=0, ge=0)
    damaged_quantity: int = Field(default=0, ge=0)
    quality_notes: Optional[str] = None


# Allocation of a batch's sellable units between channels
class BatchDistribute(BaseModel):
    online_stock: int = Field(ge=0)
    offline_stock: int = Field(ge=0)


class BatchOut(BaseModel):
    id: int
    batch_number: str
    product_id: int
    product_name: Optional[str] = None
    supplier: Optional[str] = None
    status: str
    quality_status: str
    quality_notes: Optional[str] = None
    original_quantity: int
    good_quantity: int
    refurbished_quantity: int
    damaged_quantity: int
    online_stock: int
    offline_stock: int
    unit_cost: float
    received_date: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    created_by: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


# Paginated response for batch listings
class BatchPage(BaseModel):
    items: List[BatchOut]
    total: int
    page: int
    page_size: int


# Active batch nearing its expiry date
class ExpiringBatchOut(BaseModel):
    batch_id: int
    batch_number: str
    product_id: int
    product_name: Optional[str] = None
    sku: Optional[str] = None
    supplier: Optional[str] = None
    expiry_date: datetime
    days_until_expiry: int
    current_quantity: int
    online_stock: int
    offline_stock: int

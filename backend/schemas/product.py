# backend/schemas/product.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Shared base attributes for product entities
class ProductBase(ORMBase):
    name: str
    sku: str
    slug: Optional[str] = None
    description: Optional[str] = None
    product_type: Optional[str] = None
    btb_product: bool = False
    unit: Optional[str] = None
    packaging: Optional[str] = None
    product_availability: bool = True
    price: float = Field(ge=0)
    btc_price: float = Field(default=0, ge=0)
    btb_price: float = Field(default=0, ge=0)
    price_3weeks_delivery: float = Field(default=0, ge=0)
    price_5weeks_delivery: float = Field(default=0, ge=0)
    discount: float = Field(default=0, ge=0, le=100)


# Schema for creating a new product
class ProductCreate(ProductBase):
    stock: int = Field(default=0, ge=0)


# Schema for partial product updates
class ProductEditRequest(ORMBase):
    """Schema for PATCH requests - all fields optional. Stock is managed by the warehouse."""
    name: Optional[str] = None
    sku: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    product_type: Optional[str] = None
    btb_product: Optional[bool] = None
    unit: Optional[str] = None
    packaging: Optional[str] = None
    product_availability: Optional[bool] = None
    price: Optional[float] = Field(None, ge=0)
    btc_price: Optional[float] = Field(None, ge=0)
    btb_price: Optional[float] = Field(None, ge=0)
    price_3weeks_delivery: Optional[float] = Field(None, ge=0)
    price_5weeks_delivery: Optional[float] = Field(None, ge=0)
    discount: Optional[float] = Field(None, ge=0, le=100)


# Resolved stock of a product, whatever its source
class EffectiveStockOut(BaseModel):
    stock_on_arrival: int
    damaged_qty: int
    expired_qty: int
    refurbished_qty: int
    final_stock: int
    online_stock: int
    offline_stock: int
    source: str
    notes: Optional[str] = None
    last_updated: Optional[datetime] = None


# Full product representation including ID and stock
class ProductOut(ProductBase):
    id: int
    stock: int
    stock_source: str
    warehouse_enabled: bool
    effective_stock: Optional[EffectiveStockOut] = None


# Paginated response for product listings
class ProductListPage(ORMBase):
    items: List[ProductOut]
    total: int
    page: int
    page_size: int

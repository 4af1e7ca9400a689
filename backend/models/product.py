# backend/models/product.py
import enum
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, CheckConstraint, func
from database import Base


# Where a product's effective stock figure comes from
class StockSource(str, enum.Enum):
    WAREHOUSE_MANUAL = "WAREHOUSE_MANUAL"
    STOCK_BATCHES = "STOCK_BATCHES"
    PRODUCT_DEFAULT = "PRODUCT_DEFAULT"


# Model Product
# A catalog item with its pricing tiers, the legacy `stock` figure and the
# warehouse manual override. When warehouse_enabled is set, the warehouse_*
# columns are authoritative; otherwise stock is derived from stock batches.
class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock"),
        CheckConstraint("warehouse_final_stock >= 0", name="ck_products_wh_final"),
        CheckConstraint("warehouse_online_stock >= 0", name="ck_products_wh_online"),
        CheckConstraint("warehouse_offline_stock >= 0", name="ck_products_wh_offline"),
    )

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False, index=True)
    slug = Column(String, unique=True, nullable=True)
    description = Column(String, nullable=True)
    product_type = Column(String, nullable=True) # COFFEE, COFFEE_BEANS, MACHINE, ...
    btb_product = Column(Boolean, nullable=False, default=False)
    unit = Column(String, nullable=True)
    packaging = Column(String, nullable=True)
    product_availability = Column(Boolean, nullable=False, default=True)

    # Pricing tiers, 0 means "not set" and falls back along the price chain
    price = Column(Float, CheckConstraint("price >= 0"), nullable=False)
    btc_price = Column(Float, nullable=False, default=0)
    btb_price = Column(Float, nullable=False, default=0)
    price_3weeks_delivery = Column(Float, nullable=False, default=0)
    price_5weeks_delivery = Column(Float, nullable=False, default=0)
    discount = Column(Float, nullable=False, default=0) # percent, website only

    # Legacy stock figure, mirrored from the authoritative source
    stock = Column(Integer, nullable=False, default=0)
    stock_source = Column(String, nullable=False, default=StockSource.PRODUCT_DEFAULT.value)

    # Warehouse manual override
    warehouse_enabled = Column(Boolean, nullable=False, default=False)
    warehouse_stock_on_arrival = Column(Integer, nullable=False, default=0)
    warehouse_damaged_qty = Column(Integer, nullable=False, default=0)
    warehouse_expired_qty = Column(Integer, nullable=False, default=0)
    warehouse_refurbished_qty = Column(Integer, nullable=False, default=0)
    warehouse_final_stock = Column(Integer, nullable=False, default=0)
    warehouse_online_stock = Column(Integer, nullable=False, default=0)
    warehouse_offline_stock = Column(Integer, nullable=False, default=0)
    warehouse_notes = Column(String, nullable=True)
    warehouse_last_updated = Column(DateTime(timezone=True), nullable=True)
    warehouse_updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

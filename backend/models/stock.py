# backend/models/stock.py
import enum
from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from database import Base


class BatchStatus(str, enum.Enum):
    RECEIVED = "RECEIVED"
    IN_QUALITY_CHECK = "IN_QUALITY_CHECK"
    AVAILABLE = "AVAILABLE"
    PARTIALLY_ALLOCATED = "PARTIALLY_ALLOCATED"
    ALLOCATED = "ALLOCATED"
    EXPIRED = "EXPIRED"
    DAMAGED = "DAMAGED"
    DISPOSED = "DISPOSED"
    RETURNED = "RETURNED"
    DEPLETED = "DEPLETED"


# Only these batches count towards a product's stock
ACTIVE_BATCH_STATUSES = (
    BatchStatus.AVAILABLE.value,
    BatchStatus.PARTIALLY_ALLOCATED.value,
    BatchStatus.RECEIVED.value,
)


class QualityStatus(str, enum.Enum):
    PENDING = "PENDING"
    PASSED = "PASSED"
    FAILED = "FAILED"
    REFURBISHED = "REFURBISHED"


# A received shipment of one product with its quality breakdown
class StockBatch(Base):
    __tablename__ = "stock_batches"

    id = Column(Integer, primary_key=True, index=True)
    batch_number = Column(String, unique=True, nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    supplier = Column(String, nullable=True)

    status = Column(String, nullable=False, default=BatchStatus.RECEIVED.value, index=True)
    quality_status = Column(String, nullable=False, default=QualityStatus.PENDING.value)
    quality_notes = Column(String, nullable=True)

    # Quantity breakdown
    original_quantity = Column(Integer, nullable=False)
    good_quantity = Column(Integer, nullable=False, default=0)
    refurbished_quantity = Column(Integer, nullable=False, default=0)
    damaged_quantity = Column(Integer, nullable=False, default=0)

    # Distribution between sales channels
    online_stock = Column(Integer, nullable=False, default=0)
    offline_stock = Column(Integer, nullable=False, default=0)

    unit_cost = Column(Float, nullable=False, default=0)
    received_date = Column(DateTime(timezone=True), server_default=func.now())
    expiry_date = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    product = relationship("Product")

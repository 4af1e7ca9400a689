from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey, JSON, func
from database import Base

# Persisted warehouse feature flags. A single row (id=1) is used.
class WarehouseSettings(Base):
    __tablename__ = "warehouse_settings"

    id = Column(Integer, primary_key=True)
    enabled = Column(Boolean, nullable=False, default=True)
    auto_sync_enabled = Column(Boolean, nullable=False, default=True)
    low_stock_threshold = Column(Integer, nullable=False, default=10)
    critical_stock_threshold = Column(Integer, nullable=False, default=5)
    notification_emails = Column(JSON, nullable=False, default=list)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

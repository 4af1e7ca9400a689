from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from database import Base

# Append-only audit trail of stock-affecting actions
class WarehouseActivity(Base):
    __tablename__ = "warehouse_activities"

    id = Column(Integer, primary_key=True, index=True)

    # Event timestamp and core action details
    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    action = Column(String(50), nullable=False, index=True)

    # What the action touched (PRODUCT / BATCH / ORDER / SYSTEM)
    target_type = Column(String(20), nullable=False)
    target_id = Column(Integer, nullable=True, index=True)
    target_name = Column(String, nullable=True)
    target_sku = Column(String, nullable=True)

    # {field: {"from": old, "to": new}}
    changes = Column(JSON, nullable=True)
    notes = Column(String, nullable=True)

    ip = Column(String(64), nullable=True)
    user_agent = Column(String, nullable=True)

    # Relationship to the acting user
    user = relationship("User", lazy="joined", uselist=False)

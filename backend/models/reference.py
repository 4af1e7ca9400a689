from sqlalchemy import Column, Integer, String, Float, Boolean, ForeignKey, DateTime, JSON, UniqueConstraint, func
from sqlalchemy.orm import relationship
from database import Base


# Conversion rate from base_currency to target_currency
class ExchangeRate(Base):
    __tablename__ = "exchange_rates"
    __table_args__ = (
        UniqueConstraint("base_currency", "target_currency", name="uq_exchange_rate_pair"),
    )

    id = Column(Integer, primary_key=True, index=True)
    base_currency = Column(String(3), nullable=False)
    target_currency = Column(String(3), nullable=False)
    rate = Column(Float, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


# Geographic area with its own delivery pricing
class ShippingZone(Base):
    __tablename__ = "shipping_zones"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    states = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)


# Delivery option offered at checkout, priced per zone
class ShippingMethod(Base):
    __tablename__ = "shipping_methods"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    code = Column(String, unique=True, nullable=False)
    zone_id = Column(Integer, ForeignKey("shipping_zones.id"), nullable=True)
    cost = Column(Float, nullable=False, default=0)
    estimated_days = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    zone = relationship("ShippingZone")

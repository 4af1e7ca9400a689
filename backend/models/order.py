# backend/models/order.py
import enum
from sqlalchemy import Column, Integer, String, Float, Boolean, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from database import Base


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class OrderType(str, enum.Enum):
    BTC = "BTC"
    BTB = "BTB"


class OrderMode(str, enum.Enum):
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"


# Delivery lead time in days per price option
DELIVERY_DAYS = {"regular": 3, "3weeks": 21, "5weeks": 35}


# One row per (order group, product line). A multi-item checkout produces
# sibling rows sharing order_group_id; the parent row carries group totals.
class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String, unique=True, nullable=False, index=True)
    order_group_id = Column(String, nullable=False, index=True)
    is_parent = Column(Boolean, nullable=False, default=False)

    # Website orders carry user_id, manual orders customer_id + created_by
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    is_website_order = Column(Boolean, nullable=False, default=False, index=True)
    order_type = Column(String, nullable=False, default=OrderType.BTC.value)
    order_mode = Column(String, nullable=False, default=OrderMode.ONLINE.value)

    # Product snapshot
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    product_name = Column(String, nullable=False)
    product_sku = Column(String, nullable=True)
    price_option = Column(String, nullable=False, default="regular")
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False)

    # Line amounts
    sub_total_amt = Column(Float, nullable=False, default=0)
    discount_amount = Column(Float, nullable=False, default=0)
    tax_amount = Column(Float, nullable=False, default=0)
    shipping_cost = Column(Float, nullable=False, default=0)
    total_amt = Column(Float, nullable=False, default=0)

    # Group totals, set on the parent row only
    group_sub_total = Column(Float, nullable=True)
    group_discount = Column(Float, nullable=True)
    group_tax = Column(Float, nullable=True)
    group_shipping = Column(Float, nullable=True)
    group_total = Column(Float, nullable=True)
    group_size = Column(Integer, nullable=True)

    currency = Column(String, nullable=False, default="NGN")
    exchange_rate = Column(Float, nullable=False, default=1)

    # Payment
    payment_id = Column(String, nullable=True, index=True)
    payment_method = Column(String, nullable=True)
    payment_status = Column(String, nullable=False, default=PaymentStatus.PENDING.value, index=True)

    # Fulfilment
    order_status = Column(String, nullable=False, default="PENDING", index=True)
    delivery_address = Column(String, nullable=True)
    shipping_method = Column(String, nullable=True)
    estimated_delivery = Column(DateTime(timezone=True), nullable=True)
    actual_delivery = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    notes = Column(String, nullable=True)
    customer_notes = Column(String, nullable=True)
    admin_notes = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    product = relationship("Product")
    customer = relationship("Customer")
    user = relationship("User", foreign_keys=[user_id])
    creator = relationship("User", foreign_keys=[created_by])

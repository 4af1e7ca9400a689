from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, JSON, func
from database import Base

# A website checkout awaiting payment confirmation. The webhook looks it up
# by reference and materialises the orders exactly once.
class CheckoutSession(Base):
    __tablename__ = "checkout_sessions"

    id = Column(Integer, primary_key=True, index=True)
    reference = Column(String, unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    provider = Column(String, nullable=False) # STRIPE / PAYSTACK / BANK_TRANSFER
    status = Column(String, nullable=False, default="PENDING") # PENDING / COMPLETED

    # Snapshot of the cart: [{product_id, price_option, quantity, unit_price}]
    items = Column(JSON, nullable=False)
    sub_total = Column(Float, nullable=False)
    shipping_cost = Column(Float, nullable=False, default=0)
    shipping_method = Column(String, nullable=True)
    total = Column(Float, nullable=False)

    # Currency the customer pays in; amounts above are in the base currency
    currency = Column(String(3), nullable=False)
    exchange_rate = Column(Float, nullable=False, default=1)
    delivery_address = Column(String, nullable=True)

    provider_session_id = Column(String, nullable=True)
    payment_url = Column(String, nullable=True)
    payment_id = Column(String, nullable=True)
    order_group_id = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    processed_at = Column(DateTime(timezone=True), nullable=True)

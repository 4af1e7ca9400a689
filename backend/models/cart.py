from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Float, UniqueConstraint, func
from sqlalchemy.orm import relationship
from database import Base


# A single line of a user's cart. The same product may appear once per
# price option (regular / 3weeks / 5weeks delivery).
class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), index=True, nullable=False)
    price_option = Column(String, nullable=False, default="regular")
    quantity = Column(Integer, nullable=False, default=1)
    unit_price_snapshot = Column(Float, nullable=False) # Unit price at the moment of addition
    created_at = Column(DateTime, server_default=func.now())

    product = relationship("Product")

    __table_args__ = (
        UniqueConstraint("user_id", "product_id", "price_option", name="uq_cartitem_user_product_option"),
    )

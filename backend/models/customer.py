from sqlalchemy import Column, Integer, String, Float, Boolean, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from database import Base


# Represents a BTC or BTB buyer, either registered on the website or
# managed offline by a sales agent
class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    mobile = Column(String, nullable=True)

    # Address details
    street = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    country = Column(String, nullable=True, default="Nigeria")
    postal_code = Column(String, nullable=True)

    customer_type = Column(String, nullable=False, index=True) # BTC / BTB
    customer_mode = Column(String, nullable=False, index=True) # ONLINE / OFFLINE
    company_name = Column(String, nullable=True)
    registration_number = Column(String, nullable=True) # CAC number, BTB only

    # Ownership
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, unique=True)
    is_website_customer = Column(Boolean, nullable=False, default=False)

    status = Column(String, nullable=False, default="ACTIVE")
    notes = Column(String, nullable=True)

    # Order statistics
    total_orders = Column(Integer, nullable=False, default=0)
    total_order_value = Column(Float, nullable=False, default=0)
    last_order_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    creator = relationship("User", foreign_keys=[created_by])

    @property
    def display_name(self):
        if self.customer_type == "BTB" and self.company_name:
            return f"{self.company_name} ({self.name})"
        return self.name

    @property
    def address_line(self):
        parts = [self.street, self.city, self.state, self.country]
        return ", ".join(p for p in parts if p)

# backend/models/users.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from database import Base

# Staff sub-roles recognised by the access policy
SUB_ROLES = ("SALES", "WAREHOUSE", "IT", "MANAGER", "DIRECTOR", "EDITOR")

# Represents a user account with authentication details and system role.
# Website shoppers have role USER, staff have role ADMIN plus a sub_role.
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="USER")
    sub_role = Column(String, nullable=True)
    name = Column(String, nullable=True)
    mobile = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

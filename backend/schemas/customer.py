from pydantic import BaseModel, EmailStr, ConfigDict
from typing import List, Optional, Literal
from datetime import datetime


class CustomerBase(BaseModel):
    name: str
    email: EmailStr
    mobile: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = "Nigeria"
    postal_code: Optional[str] = None
    customer_type: Literal["BTC", "BTB"] = "BTC"
    customer_mode: Literal["ONLINE", "OFFLINE"] = "OFFLINE"
    company_name: Optional[str] = None
    registration_number: Optional[str] = None
    notes: Optional[str] = None


class CustomerCreate(CustomerBase):
    pass


# All fields optional for partial updates
class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    mobile: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    customer_type: Optional[Literal["BTC", "BTB"]] = None
    customer_mode: Optional[Literal["ONLINE", "OFFLINE"]] = None
    company_name: Optional[str] = None
    registration_number: Optional[str] = None
    status: Optional[Literal["ACTIVE", "INACTIVE"]] = None
    notes: Optional[str] = None


class CustomerOut(CustomerBase):
    id: int
    created_by: Optional[int] = None
    user_id: Optional[int] = None
    is_website_customer: bool
    status: str
    total_orders: int
    total_order_value: float
    last_order_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CustomerPage(BaseModel):
    items: List[CustomerOut]
    total: int
    page: int
    page_size: int

from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional, Literal
from datetime import datetime

PriceOption = Literal["regular", "3weeks", "5weeks"]


# One product line of a manual order
class ManualOrderItem(BaseModel):
    product_id: int
    quantity: int = Field(ge=1)
    price_option: PriceOption = "regular"


# Input schema for an order placed by a sales agent on behalf of a customer
class ManualOrderCreate(BaseModel):
    customer_id: int
    items: List[ManualOrderItem] = Field(min_length=1)
    order_type: Literal["BTC", "BTB"] = "BTC"
    order_mode: Literal["ONLINE", "OFFLINE"] = "OFFLINE"
    payment_method: Literal["CASH", "BANK_TRANSFER", "CARD"] = "BANK_TRANSFER"
    delivery_address: Optional[str] = None
    notes: Optional[str] = None
    customer_notes: Optional[str] = None
    discount_amount: float = Field(default=0, ge=0)
    tax_amount: float = Field(default=0, ge=0)
    shipping_cost: float = Field(default=0, ge=0)
    send_invoice_email: bool = False


# Output schema for one order line
class OrderOut(BaseModel):
    id: int
    order_id: str
    order_group_id: str
    is_parent: bool
    user_id: Optional[int] = None
    customer_id: Optional[int] = None
    created_by: Optional[int] = None
    is_website_order: bool
    order_type: str
    order_mode: str
    product_id: int
    product_name: str
    product_sku: Optional[str] = None
    price_option: str
    quantity: int
    unit_price: float
    sub_total_amt: float
    discount_amount: float
    tax_amount: float
    shipping_cost: float
    total_amt: float
    group_total: Optional[float] = None
    currency: str
    payment_method: Optional[str] = None
    payment_status: str
    order_status: str
    delivery_address: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    actual_delivery: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    notes: Optional[str] = None
    admin_notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# Schema for paginated order lists
class OrdersPage(BaseModel):
    items: List[OrderOut]
    total: int
    page: int
    page_size: int


class GroupTotals(BaseModel):
    sub_total: float
    discount: float
    tax: float
    shipping: float
    total: float


class StockChange(BaseModel):
    product_id: int
    name: str
    previous: int
    current: int
    pool_breakdown: dict


class ManualOrderResult(BaseModel):
    order_group_id: str
    orders: List[OrderOut]
    totals: GroupTotals
    stock_updates: List[StockChange]
    email_sent: bool


# Schema for updating order and payment status
class OrderStatusUpdate(BaseModel):
    order_status: Optional[str] = None
    payment_status: Optional[Literal["PENDING", "PAID", "FAILED", "REFUNDED"]] = None
    notes: Optional[str] = None


# Input schema for a website checkout
class CheckoutCreate(BaseModel):
    payment_method: Literal["STRIPE", "PAYSTACK", "BANK_TRANSFER"]
    currency: str = Field(default="NGN", min_length=3, max_length=3)
    delivery_address: str
    shipping_method_id: Optional[int] = None


# Response schema for payment initiation result
class CheckoutResponse(BaseModel):
    reference: str
    payment_url: Optional[str] = None
    order_group_id: Optional[str] = None
    total: float
    currency: str

from pydantic import BaseModel, Field
from typing import List, Literal, Optional

# Request schema for adding an item to the cart
class CartAddItem(BaseModel):
    product_id: int
    quantity: int = Field(default=1, gt=0)
    price_option: Literal["regular", "3weeks", "5weeks"] = "regular"

# Request schema for updating cart item quantity
class CartUpdateItem(BaseModel):
    quantity: int = Field(gt=0)

# Response schema for a single cart line item
class CartItemOut(BaseModel):
    id: int
    product_id: int
    name: str
    price_option: str
    quantity: int
    unit_price: float
    line_total: float

    class Config:
        from_attributes = True

# Response schema for the entire cart summary
class CartOut(BaseModel):
    items: List[CartItemOut]
    total: float

# Availability report for one cart line
class CartLineCheck(BaseModel):
    item_id: int
    product_id: int
    name: str
    requested: int
    available: Optional[int] = None
    ok: bool
    message: Optional[str] = None

class CartValidation(BaseModel):
    valid: bool
    items: List[CartLineCheck]

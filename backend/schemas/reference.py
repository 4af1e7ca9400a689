from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import datetime


class ExchangeRateIn(BaseModel):
    base_currency: str = Field(min_length=3, max_length=3)
    target_currency: str = Field(min_length=3, max_length=3)
    rate: float = Field(gt=0)
    is_active: bool = True


class ExchangeRateOut(ExchangeRateIn):
    id: int
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ShippingZoneIn(BaseModel):
    name: str
    states: List[str] = []
    is_active: bool = True


class ShippingZoneOut(ShippingZoneIn):
    id: int

    model_config = ConfigDict(from_attributes=True)


class ShippingMethodIn(BaseModel):
    name: str
    code: str
    zone_id: Optional[int] = None
    cost: float = Field(default=0, ge=0)
    estimated_days: Optional[int] = Field(default=None, ge=0)
    is_active: bool = True


class ShippingMethodOut(ShippingMethodIn):
    id: int

    model_config = ConfigDict(from_attributes=True)

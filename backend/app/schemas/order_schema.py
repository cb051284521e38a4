# backend/app/schemas/order_schema.py
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from app.models.order import OrderStatus


class OrderLineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)
    id: str
    order_id: str
    product_id: str
    quantity: int
    price: Decimal


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    user_id: str
    total_amount: Decimal
    status: OrderStatus
    created_at: Optional[datetime] = None


class OrderDetailOut(OrderOut):
    lines: List[OrderLineOut] = []


class OrderSummaryOut(BaseModel):
    total: int
    pending: int
    delivered: int


class CheckoutOut(BaseModel):
    order_id: str

# backend/app/schemas/cart_schema.py
from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict

from app.schemas.catalogue_schema import ProductOut


class CartLine(BaseModel):
    """One cart_items row joined with the product it points at."""

    model_config = ConfigDict(from_attributes=True, frozen=True)
    id: str
    user_id: str
    product_id: str
    quantity: int
    product: ProductOut

    @property
    def line_total(self) -> Decimal:
        return self.product.price * self.quantity


class CartOut(BaseModel):
    items: List[CartLine]
    total_items: int
    total_price: Decimal
    loading: bool = False


class AddItemIn(BaseModel):
    product_id: str
    quantity: int = 1


class UpdateQuantityIn(BaseModel):
    # zero or negative removes the line
    quantity: int

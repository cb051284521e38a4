# backend/app/schemas/catalogue_schema.py
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from app.models.category import ColorTheme


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    name: str
    color_theme: ColorTheme
    created_at: Optional[datetime] = None


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    name: str
    description: str = ""
    price: Decimal
    image_url: str = ""
    category_id: Optional[str] = None
    stock_quantity: int = 0
    age_range: str = ""
    created_at: Optional[datetime] = None


class ProductPage(BaseModel):
    items: List[ProductOut]
    total: int
    page: int
    size: int

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from .common import CamelModel


class ProductCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    stock: int = Field(0, ge=0)


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    stock: Optional[int] = Field(None, ge=0)


class ProductResponse(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    price: Decimal
    stock: int
    created_at: datetime
    updated_at: datetime


class ProductFilter(CamelModel):
    """Фильтры списка товаров"""

    name: Optional[str] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None

from datetime import datetime
from decimal import Decimal
from typing import List

from pydantic import Field

from .common import CamelModel


class AddToCartRequest(CamelModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)


class CartItemResponse(CamelModel):
    id: str
    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    created_at: datetime

    @classmethod
    def from_item(cls, item) -> "CartItemResponse":
        return cls(
            id=item.id,
            product_id=item.product_id,
            product_name=item.product.name if item.product else "",
            quantity=item.quantity,
            unit_price=item.unit_price,
            total_price=Decimal(item.unit_price) * item.quantity,
            created_at=item.created_at
        )


class CartResponse(CamelModel):
    id: str
    user_id: str
    items: List[CartItemResponse] = []
    total_items: int = 0
    total_amount: Decimal = Decimal("0")
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_cart(cls, cart) -> "CartResponse":
        items = [CartItemResponse.from_item(item) for item in cart.items]
        return cls(
            id=cart.id,
            user_id=cart.user_id,
            items=items,
            total_items=sum(item.quantity for item in items),
            total_amount=sum((item.total_price for item in items), Decimal("0")),
            created_at=cart.created_at,
            updated_at=cart.updated_at
        )

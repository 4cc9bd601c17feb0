from datetime import datetime
from decimal import Decimal
from typing import List

from .common import CamelModel
from ..models.order import OrderStatus


class OrderItemResponse(CamelModel):
    id: str
    product_id: str
    product_name: str
    quantity: int
    price: Decimal


class OrderResponse(CamelModel):
    id: str
    user_id: str
    status: OrderStatus
    total_amount: Decimal
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemResponse] = []


class OrderStatusUpdate(CamelModel):
    status: OrderStatus

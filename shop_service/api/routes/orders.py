from uuid import UUID

from fastapi import APIRouter, Depends, status

from ...models.user import User
from ...pagination import PaginationInfo, get_pagination
from ...schemas.common import StandardResponse, StandardList
from ...schemas.order import OrderResponse, OrderStatusUpdate
from ...services.order_service import OrderService
from ..dependencies import get_order_service, require_admin, require_customer

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post(
    "/checkout",
    response_model=StandardResponse[OrderResponse],
    status_code=status.HTTP_201_CREATED
)
async def checkout(
        current_user: User = Depends(require_customer),
        order_service: OrderService = Depends(get_order_service)
):
    """Оформить заказ из корзины текущего пользователя"""
    order = await order_service.checkout(current_user)
    return StandardResponse(data=OrderResponse.model_validate(order))


@router.get("", response_model=StandardList[OrderResponse])
async def list_orders(
        pagination: PaginationInfo = Depends(get_pagination),
        current_user: User = Depends(require_customer),
        order_service: OrderService = Depends(get_order_service)
):
    """Получить список заказов с пагинацией"""
    orders, total = await order_service.list_orders(current_user, pagination)
    return StandardList.build(
        [OrderResponse.model_validate(order) for order in orders],
        total,
        pagination
    )


@router.get("/{order_id}", response_model=StandardResponse[OrderResponse])
async def get_order(
        order_id: UUID,
        current_user: User = Depends(require_customer),
        order_service: OrderService = Depends(get_order_service)
):
    """Получить заказ по ID"""
    order = await order_service.get_order(str(order_id), current_user)
    return StandardResponse(data=OrderResponse.model_validate(order))


@router.patch(
    "/{order_id}",
    response_model=StandardResponse[OrderResponse],
    dependencies=[Depends(require_admin)]
)
async def update_order_status(
        order_id: UUID,
        data: OrderStatusUpdate,
        order_service: OrderService = Depends(get_order_service)
):
    """Обновить статус заказа"""
    order = await order_service.update_order_status(str(order_id), data.status)
    return StandardResponse(data=OrderResponse.model_validate(order))

from uuid import UUID

from fastapi import APIRouter, Depends, status

from ...models.user import User
from ...pagination import PaginationInfo, get_pagination
from ...schemas.cart import AddToCartRequest, CartResponse, CartItemResponse
from ...schemas.common import StandardResponse, StandardList
from ...services.cart_service import CartService
from ..dependencies import get_cart_service, require_customer

router = APIRouter(prefix="/carts", tags=["carts"])


@router.post(
    "/cart",
    response_model=StandardResponse[CartResponse],
    status_code=status.HTTP_201_CREATED
)
async def add_to_cart(
        data: AddToCartRequest,
        current_user: User = Depends(require_customer),
        cart_service: CartService = Depends(get_cart_service)
):
    """Добавить товар в корзину текущего пользователя"""
    cart = await cart_service.add_to_cart(current_user.id, data.product_id, data.quantity)
    return StandardResponse(data=CartResponse.from_cart(cart))


@router.get("/cart", response_model=StandardResponse[CartResponse])
async def get_my_cart(
        current_user: User = Depends(require_customer),
        cart_service: CartService = Depends(get_cart_service)
):
    """Корзина текущего пользователя"""
    cart = await cart_service.get_cart(current_user.id)
    return StandardResponse(data=CartResponse.from_cart(cart))


@router.get("/cart/{cart_id}", response_model=StandardResponse[CartResponse])
async def get_cart(
        cart_id: UUID,
        current_user: User = Depends(require_customer),
        cart_service: CartService = Depends(get_cart_service)
):
    """Получить корзину по ID (владелец или админ)"""
    cart = await cart_service.get_cart_by_id(str(cart_id), current_user)
    return StandardResponse(data=CartResponse.from_cart(cart))


@router.get("/cart/{cart_id}/items", response_model=StandardList[CartItemResponse])
async def list_cart_items(
        cart_id: UUID,
        pagination: PaginationInfo = Depends(get_pagination),
        current_user: User = Depends(require_customer),
        cart_service: CartService = Depends(get_cart_service)
):
    """Позиции корзины с пагинацией"""
    items, total = await cart_service.list_cart_items(str(cart_id), current_user, pagination)
    return StandardList.build(
        [CartItemResponse.from_item(item) for item in items],
        total,
        pagination
    )


@router.delete("/cart/{cart_item_id}", response_model=StandardResponse[CartResponse])
async def remove_from_cart(
        cart_item_id: UUID,
        current_user: User = Depends(require_customer),
        cart_service: CartService = Depends(get_cart_service)
):
    """Убрать одну единицу позиции из корзины"""
    cart = await cart_service.remove_from_cart(current_user.id, str(cart_item_id))
    return StandardResponse(data=CartResponse.from_cart(cart))

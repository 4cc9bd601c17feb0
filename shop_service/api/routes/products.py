from decimal import Decimal
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from ...models.user import User
from ...pagination import PaginationInfo, get_pagination
from ...schemas.comment import CommentCreate, CommentResponse
from ...schemas.common import StandardResponse, StandardList
from ...schemas.product import ProductCreate, ProductUpdate, ProductResponse, ProductFilter
from ...services.product_service import ProductService
from ..dependencies import get_product_service, require_admin, require_customer

router = APIRouter(prefix="/products", tags=["products"])


@router.post(
    "",
    response_model=StandardResponse[ProductResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)]
)
async def create_product(
        data: ProductCreate,
        product_service: ProductService = Depends(get_product_service)
):
    """Создать товар"""
    product = await product_service.create_product(data)
    return StandardResponse(data=ProductResponse.model_validate(product))


@router.get("", response_model=StandardList[ProductResponse])
async def list_products(
        name: Optional[str] = Query(None, description="Поиск по части названия"),
        min_price: Optional[Decimal] = Query(None, ge=0, alias="minPrice"),
        max_price: Optional[Decimal] = Query(None, ge=0, alias="maxPrice"),
        sort: Optional[str] = Query(None, description="Поле сортировки, '-' в начале для убывания"),
        pagination: PaginationInfo = Depends(get_pagination),
        product_service: ProductService = Depends(get_product_service)
):
    """Список товаров с фильтрами, сортировкой и пагинацией"""
    filters = ProductFilter(name=name, min_price=min_price, max_price=max_price)
    products, total = await product_service.list_products(pagination, sort, filters)
    return StandardList.build(
        [ProductResponse.model_validate(product) for product in products],
        total,
        pagination
    )


@router.get("/{product_id}", response_model=StandardResponse[ProductResponse])
async def get_product(
        product_id: UUID,
        product_service: ProductService = Depends(get_product_service)
):
    """Получить товар по ID"""
    product = await product_service.get_product(str(product_id))
    return StandardResponse(data=ProductResponse.model_validate(product))


@router.patch(
    "/{product_id}",
    response_model=StandardResponse[ProductResponse],
    dependencies=[Depends(require_admin)]
)
async def update_product(
        product_id: UUID,
        data: ProductUpdate,
        product_service: ProductService = Depends(get_product_service)
):
    """Обновить товар"""
    product = await product_service.update_product(str(product_id), data)
    return StandardResponse(data=ProductResponse.model_validate(product))


@router.delete(
    "/{product_id}",
    response_model=StandardResponse[bool],
    dependencies=[Depends(require_admin)]
)
async def delete_product(
        product_id: UUID,
        product_service: ProductService = Depends(get_product_service)
):
    """Удалить товар, если на него не ссылаются корзины и заказы"""
    deleted = await product_service.delete_product(str(product_id))
    return StandardResponse(data=deleted)


@router.post(
    "/{product_id}/comments",
    response_model=StandardResponse[CommentResponse],
    status_code=status.HTTP_201_CREATED
)
async def add_comment(
        product_id: UUID,
        data: CommentCreate,
        current_user: User = Depends(require_customer),
        product_service: ProductService = Depends(get_product_service)
):
    """Добавить комментарий к товару"""
    comment = await product_service.add_comment(str(product_id), data, default_author=current_user.name)
    return StandardResponse(data=CommentResponse.model_validate(comment))


@router.get("/{product_id}/comments", response_model=StandardList[CommentResponse])
async def list_comments(
        product_id: UUID,
        pagination: PaginationInfo = Depends(get_pagination),
        product_service: ProductService = Depends(get_product_service)
):
    """Комментарии к товару, новые первыми"""
    comments, total = await product_service.list_comments(str(product_id), pagination)
    return StandardList.build(
        [CommentResponse.model_validate(comment) for comment in comments],
        total,
        pagination
    )


@router.delete(
    "/{product_id}/comments/{comment_id}",
    response_model=StandardResponse[bool],
    dependencies=[Depends(require_admin)]
)
async def delete_comment(
        product_id: UUID,
        comment_id: UUID,
        product_service: ProductService = Depends(get_product_service)
):
    """Удалить комментарий"""
    deleted = await product_service.delete_comment(str(product_id), str(comment_id))
    return StandardResponse(data=deleted)

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status

from ...models.user import User, UserRole
from ...schemas.common import StandardResponse
from ...schemas.user import UserCreate, UserUpdate, UserResponse
from ...services.user_service import UserService
from ..dependencies import get_optional_user, get_user_service, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.post(
    "",
    response_model=StandardResponse[UserResponse],
    status_code=status.HTTP_201_CREATED
)
async def create_user(
        data: UserCreate,
        current_user: Optional[User] = Depends(get_optional_user),
        user_service: UserService = Depends(get_user_service)
):
    """Создать пользователя. Роль, отличную от user, может назначить только админ"""
    if data.role != UserRole.USER and (not current_user or current_user.role != UserRole.ADMIN):
        logger.warning(f"⚠️ Role {data.role.value} requested without admin rights, creating {data.email} as user")
        data = data.model_copy(update={"role": UserRole.USER})

    user = await user_service.create_user(data)
    return StandardResponse(data=UserResponse.model_validate(user))


@router.get(
    "/{user_id}",
    response_model=StandardResponse[UserResponse],
    dependencies=[Depends(require_admin)]
)
async def get_user(
        user_id: UUID,
        user_service: UserService = Depends(get_user_service)
):
    """Получить пользователя по ID"""
    user = await user_service.get_user(str(user_id))
    return StandardResponse(data=UserResponse.model_validate(user))


@router.patch(
    "/{user_id}",
    response_model=StandardResponse[UserResponse],
    dependencies=[Depends(require_admin)]
)
async def update_user(
        user_id: UUID,
        data: UserUpdate,
        user_service: UserService = Depends(get_user_service)
):
    """Обновить пользователя"""
    user = await user_service.update_user(str(user_id), data)
    return StandardResponse(data=UserResponse.model_validate(user))


@router.delete(
    "/{user_id}",
    response_model=StandardResponse[bool],
    dependencies=[Depends(require_admin)]
)
async def delete_user(
        user_id: UUID,
        user_service: UserService = Depends(get_user_service)
):
    """Удалить пользователя вместе с корзиной и заказами"""
    deleted = await user_service.delete_user(str(user_id))
    return StandardResponse(data=deleted)

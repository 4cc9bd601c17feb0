from fastapi import APIRouter, Depends, status

from ...schemas.auth import RegisterRequest, LoginRequest, TokenResponse
from ...schemas.common import StandardResponse
from ...schemas.user import UserResponse
from ...services.auth_service import AuthService
from ..dependencies import get_auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=StandardResponse[UserResponse],
    status_code=status.HTTP_201_CREATED
)
async def register(
        data: RegisterRequest,
        auth_service: AuthService = Depends(get_auth_service)
):
    """Регистрация нового пользователя"""
    user = await auth_service.register(data)
    return StandardResponse(data=UserResponse.model_validate(user))


@router.post("/login", response_model=StandardResponse[TokenResponse])
async def login(
        data: LoginRequest,
        auth_service: AuthService = Depends(get_auth_service)
):
    """Вход по email и паролю, возвращает JWT"""
    token = await auth_service.login(data)
    return StandardResponse(data=TokenResponse(**token))

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..errors import AppException, Errors
from ..models.user import User, UserRole
from ..security import decode_access_token
from ..services.auth_service import AuthService
from ..services.cart_service import CartService
from ..services.order_service import OrderService
from ..services.product_service import ProductService
from ..services.user_service import UserService

bearer_scheme = HTTPBearer(auto_error=False)


async def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    """Dependency для получения UserService"""
    return UserService(db)


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """Dependency для получения AuthService"""
    return AuthService(db)


async def get_product_service(db: AsyncSession = Depends(get_db)) -> ProductService:
    """Dependency для получения ProductService"""
    return ProductService(db)


async def get_cart_service(db: AsyncSession = Depends(get_db)) -> CartService:
    """Dependency для получения CartService"""
    return CartService(db)


async def get_order_service(db: AsyncSession = Depends(get_db)) -> OrderService:
    """Dependency для получения OrderService"""
    return OrderService(db)


async def get_optional_user(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
        user_service: UserService = Depends(get_user_service)
) -> Optional[User]:
    """Пользователь из Bearer токена или None, если токена нет или он недействителен"""
    if not credentials or credentials.scheme.lower() != "bearer":
        return None

    payload = decode_access_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        return None

    return await user_service.find_user(payload["sub"])


async def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """Достает пользователя из Bearer токена"""
    if not user:
        raise AppException(Errors.NOT_AUTHORIZED)
    return user


def require_roles(*roles: UserRole):
    """Фабрика dependency: пускает только пользователей с одной из ролей"""

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise AppException(Errors.FORBIDDEN)
        return current_user

    return role_checker


require_admin = require_roles(UserRole.ADMIN)
require_customer = require_roles(UserRole.USER, UserRole.ADMIN)

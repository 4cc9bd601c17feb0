import logging
from typing import Dict

from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import AppException, Errors
from ..events.producer import email_event_producer
from ..models.user import User, UserRole
from ..schemas.auth import RegisterRequest, LoginRequest
from ..schemas.user import UserCreate
from ..security import verify_password, create_access_token
from .user_service import UserService

logger = logging.getLogger(__name__)


class AuthService:
    """Регистрация, проверка учетных данных и выдача JWT"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_service = UserService(db)

    async def register(self, data: RegisterRequest) -> User:
        user = await self.user_service.create_user(
            UserCreate(
                name=data.name,
                email=data.email,
                password=data.password,
                role=UserRole.USER
            )
        )
        logger.info(f"✅ User registered with email: {user.email}")

        await email_event_producer.send_email_task(
            email=user.email,
            subject="Welcome to Our Platform",
            message=f"Hello {user.email}, your registration was successful."
        )
        return user

    async def validate_user(self, email: str, password: str) -> User:
        """Неизвестный email и неверный пароль дают одну и ту же ошибку"""
        user = await self.user_service.get_by_email(email)
        if not user or not verify_password(password, user.password):
            logger.warning(f"⚠️ Failed login attempt for {email}")
            raise AppException(Errors.INVALID_CREDENTIALS)
        return user

    async def login(self, data: LoginRequest) -> Dict[str, str]:
        user = await self.validate_user(data.email, data.password)

        access_token = create_access_token(
            subject=user.id,
            email=user.email,
            role=user.role.value
        )
        logger.info(f"✅ User {user.id} logged in")

        await email_event_producer.send_email_task(
            email=user.email,
            subject="Login Notification",
            message=f"Hello {user.email}, you have successfully logged in."
        )
        return {"access_token": access_token, "token_type": "bearer"}

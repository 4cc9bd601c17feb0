import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..errors import AppException, Errors
from ..models.cart import Cart
from ..models.user import User
from ..schemas.user import UserCreate, UserUpdate
from ..security import hash_password

logger = logging.getLogger(__name__)


class UserService:
    """Сервис для работы с пользователями"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def find_user(self, user_id: str) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_user(self, user_id: str) -> User:
        """Получает пользователя по ID или падает с USER_NOT_FOUND"""
        user = await self.find_user(user_id)
        if not user:
            raise AppException(Errors.USER_NOT_FOUND)
        return user

    async def create_user(self, data: UserCreate) -> User:
        """Создает пользователя, email должен быть уникальным"""
        email = data.email.lower()
        try:
            if await self.get_by_email(email):
                raise AppException(Errors.DUPLICATE_USER)

            user = User(
                name=data.name,
                email=email,
                password=hash_password(data.password),
                role=data.role
            )
            self.db.add(user)
            await self.db.commit()

            logger.info(f"✅ User {user.id} created with email {email}")
            return user

        except AppException:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(f"❌ Duplicate user {email}: {e}")
            raise AppException(Errors.DUPLICATE_USER) from e
        except Exception as e:
            await self.db.rollback()
            logger.error(f"❌ Error creating user {email}: {e}")
            raise AppException(Errors.USER_CREATION_ERROR) from e

    async def update_user(self, user_id: str, data: UserUpdate) -> User:
        """Частичное обновление, новый пароль хешируется заново"""
        try:
            user = await self.get_user(user_id)
            changes = data.model_dump(exclude_unset=True)

            if changes.get("email"):
                email = changes["email"].lower()
                existing = await self.get_by_email(email)
                if existing and existing.id != user.id:
                    raise AppException(Errors.DUPLICATE_USER)
                user.email = email

            if changes.get("name"):
                user.name = changes["name"]
            if changes.get("password"):
                user.password = hash_password(changes["password"])
            if changes.get("role"):
                user.role = changes["role"]

            await self.db.commit()
            logger.info(f"✅ User {user_id} updated")
            return user

        except AppException:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(f"❌ Integrity error updating user {user_id}: {e}")
            raise AppException(Errors.DUPLICATE_USER) from e
        except Exception as e:
            await self.db.rollback()
            logger.error(f"❌ Error updating user {user_id}: {e}")
            raise AppException(Errors.USER_UPDATE_ERROR) from e

    async def delete_user(self, user_id: str) -> bool:
        """Удаляет пользователя вместе с корзиной и заказами"""
        try:
            query = select(User).options(
                selectinload(User.cart).selectinload(Cart.items),
                selectinload(User.orders)
            ).where(User.id == user_id)
            result = await self.db.execute(query)
            user = result.scalar_one_or_none()

            if not user:
                raise AppException(Errors.USER_NOT_FOUND)

            await self.db.delete(user)
            await self.db.commit()

            logger.info(f"🗑️ User {user_id} deleted")
            return True

        except AppException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"❌ Error deleting user {user_id}: {e}")
            raise AppException(Errors.USER_REMOVE_ERROR) from e

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import AppException, Errors
from ..models.cart import Cart
from ..models.cart_item import CartItem
from ..models.product import Product
from ..models.user import User, UserRole
from ..pagination import PaginationInfo

logger = logging.getLogger(__name__)


async def lock_product(db: AsyncSession, product_id: str) -> Product:
    """SELECT ... FOR UPDATE по товару, остаток читается заново из БД"""
    query = (
        select(Product)
        .where(Product.id == product_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    result = await db.execute(query)
    product = result.scalar_one_or_none()
    if not product:
        raise AppException(Errors.PRODUCT_NOT_FOUND)
    return product


class CartService:
    """Корзина пользователя: добавление, удаление, просмотр"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_cart(self, user_id: str) -> Optional[Cart]:
        query = (
            select(Cart)
            .where(Cart.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_cart(self, user_id: str) -> Cart:
        cart = await self.find_cart(user_id)
        if not cart:
            raise AppException(Errors.CART_NOT_FOUND)
        return cart

    async def get_cart_by_id(self, cart_id: str, user: User) -> Cart:
        """Чужая корзина для обычного пользователя выглядит как несуществующая"""
        query = (
            select(Cart)
            .where(Cart.id == cart_id)
            .execution_options(populate_existing=True)
        )
        cart = (await self.db.execute(query)).scalar_one_or_none()
        if not cart or (cart.user_id != user.id and user.role != UserRole.ADMIN):
            raise AppException(Errors.CART_NOT_FOUND)
        return cart

    async def list_cart_items(
            self,
            cart_id: str,
            user: User,
            pagination: PaginationInfo
    ) -> Tuple[List[CartItem], int]:
        cart = await self.get_cart_by_id(cart_id, user)

        try:
            total = (await self.db.execute(
                select(func.count(CartItem.id)).where(CartItem.cart_id == cart.id)
            )).scalar() or 0

            query = pagination.apply(
                select(CartItem)
                .where(CartItem.cart_id == cart.id)
                .order_by(CartItem.created_at, CartItem.id)
            )
            result = await self.db.execute(query)
            return list(result.scalars().all()), total

        except Exception as e:
            logger.error(f"❌ Error fetching items of cart {cart_id}: {e}")
            raise AppException(Errors.CART_FETCH_ERROR) from e

    async def add_to_cart(self, user_id: str, product_id: str, quantity: int) -> Cart:
        """
        Добавляет товар в корзину одной транзакцией.

        Остаток товара списывается сразу; корзина создается при первом
        добавлении; повторное добавление увеличивает существующую позицию.
        """
        try:
            product = await lock_product(self.db, product_id)

            if quantity > product.stock:
                raise AppException(
                    Errors.INSUFFICIENT_STOCK,
                    data={
                        "productId": product.id,
                        "requested": quantity,
                        "available": product.stock
                    }
                )

            product.stock -= quantity

            cart = await self.find_cart(user_id)
            if not cart:
                cart = Cart(user_id=user_id, items=[])
                self.db.add(cart)
                logger.info(f"🛒 Cart created for user {user_id}")

            existing_item = next((item for item in cart.items if item.product_id == product.id), None)

            if existing_item:
                existing_item.quantity += quantity
                existing_item.unit_price = product.price
            else:
                cart.items.append(
                    CartItem(
                        product=product,
                        product_id=product.id,
                        quantity=quantity,
                        unit_price=product.price
                    )
                )

            await self.db.commit()
            logger.info(f"✅ Added product {product_id} x{quantity} to cart of user {user_id}")

        except AppException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"❌ Error adding product {product_id} to cart of user {user_id}: {e}")
            raise AppException(Errors.CART_ADD_ERROR) from e

        return await self.get_cart(user_id)

    async def remove_from_cart(self, user_id: str, cart_item_id: str) -> Cart:
        """Убирает одну единицу позиции и возвращает ее на склад"""
        try:
            query = (
                select(CartItem)
                .join(Cart, CartItem.cart_id == Cart.id)
                .where(CartItem.id == cart_item_id, Cart.user_id == user_id)
            )
            item = (await self.db.execute(query)).scalar_one_or_none()
            if not item:
                raise AppException(Errors.CART_ITEM_NOT_FOUND)

            product = await lock_product(self.db, item.product_id)
            product.stock += 1

            if item.quantity <= 1:
                await self.db.delete(item)
            else:
                item.quantity -= 1

            await self.db.commit()
            logger.info(f"✅ Removed one unit of cart item {cart_item_id} for user {user_id}")

        except AppException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"❌ Error removing cart item {cart_item_id}: {e}")
            raise AppException(Errors.CART_REMOVE_ERROR) from e

        return await self.get_cart(user_id)

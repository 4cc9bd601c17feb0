import logging
from decimal import Decimal
from typing import List, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..errors import AppException, Errors
from ..events.producer import email_event_producer
from ..models.order import Order, OrderStatus
from ..models.order_item import OrderItem
from ..models.user import User, UserRole
from ..pagination import PaginationInfo
from .cart_service import CartService, lock_product

logger = logging.getLogger(__name__)


class OrderService:
    """Сервис для работы с заказами"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def checkout(self, user: User) -> Order:
        """
        Переносит корзину пользователя в новый заказ одной транзакцией.

        Остаток уже зарезервирован при добавлении в корзину, поэтому здесь
        товар только блокируется и проверяется, что резерв не ушел в минус.
        В заказ копируются количество и текущая цена. Корзина очищается,
        но не удаляется. Любая ошибка откатывает все изменения.
        """
        cart_service = CartService(self.db)
        user_id = user.id

        try:
            cart = await cart_service.find_cart(user_id)
            if not cart:
                raise AppException(Errors.CART_NOT_FOUND)
            if not cart.items:
                raise AppException(Errors.CART_EMPTY)

            order = Order(
                user_id=user_id,
                status=OrderStatus.CREATED,
                total_amount=Decimal("0"),
                items=[]
            )
            self.db.add(order)

            total_amount = Decimal("0")
            for cart_item in cart.items:
                product = await lock_product(self.db, cart_item.product_id)

                if product.stock < 0:
                    raise AppException(
                        Errors.INSUFFICIENT_STOCK,
                        data={
                            "productId": product.id,
                            "requested": cart_item.quantity,
                            "available": product.stock
                        }
                    )

                order.items.append(
                    OrderItem(
                        product_id=product.id,
                        product_name=product.name,
                        quantity=cart_item.quantity,
                        price=product.price
                    )
                )
                total_amount += Decimal(product.price) * cart_item.quantity

            order.total_amount = total_amount

            # delete-orphan удаляет позиции, сама корзина остается
            cart.items.clear()

            await self.db.commit()
            logger.info(f"✅ Order {order.id} created from cart {cart.id} ({len(order.items)} items)")

        except AppException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"❌ Checkout failed for user {user_id}: {e}")
            raise AppException(Errors.ORDER_CREATION_ERROR) from e

        await self._send_order_confirmation(user, order)
        return order

    async def get_order(self, order_id: str, user: User) -> Order:
        query = (
            select(Order)
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        order = (await self.db.execute(query)).scalar_one_or_none()

        if not order or (order.user_id != user.id and user.role != UserRole.ADMIN):
            raise AppException(Errors.ORDER_NOT_FOUND)
        return order

    async def list_orders(self, user: User, pagination: PaginationInfo) -> Tuple[List[Order], int]:
        """Админ видит все заказы, пользователь только свои"""
        conditions = []
        if user.role != UserRole.ADMIN:
            conditions.append(Order.user_id == user.id)

        total = (await self.db.execute(
            select(func.count(Order.id)).where(*conditions)
        )).scalar() or 0

        query = pagination.apply(
            select(Order).where(*conditions).order_by(Order.created_at.desc(), Order.id)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def update_order_status(self, order_id: str, status: OrderStatus) -> Order:
        try:
            query = (
                select(Order)
                .options(selectinload(Order.user))
                .where(Order.id == order_id)
            )
            order = (await self.db.execute(query)).scalar_one_or_none()
            if not order:
                raise AppException(Errors.ORDER_NOT_FOUND)

            order.status = status
            await self.db.commit()
            logger.info(f"✅ Order {order_id} status updated to {status.value}")

        except AppException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"❌ Error updating order {order_id} status: {e}")
            raise AppException(Errors.ORDER_SAVE_ERROR) from e

        await email_event_producer.send_email_task(
            email=order.user.email,
            subject="Order Status Update",
            message=f"Your order status has been updated to: {status.value}"
        )
        if status == OrderStatus.DELIVERED:
            await email_event_producer.send_email_task(
                email=order.user.email,
                subject="Order Delivered",
                message="Your order has been successfully delivered!"
            )
        return order

    async def _send_order_confirmation(self, user: User, order: Order):
        """Письмо с составом заказа, после commit"""
        details = "Your order details:\n\n"
        for item in order.items:
            details += f"Product: {item.product_name}\n"
            details += f"Quantity: {item.quantity}\n"
            details += f"Price: ${Decimal(item.price):.2f}\n\n"
        details += f"Total Price: ${Decimal(order.total_amount):.2f}\n\nThank you for your purchase!"

        await email_event_producer.send_email_task(
            email=user.email,
            subject="Order Confirmation",
            message=f"Your order has been successfully placed!\n\nOrder ID: {order.id}\n\n{details}"
        )

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select, func, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import AppException, Errors
from ..models.cart_item import CartItem
from ..models.comment import Comment
from ..models.order_item import OrderItem
from ..models.product import Product
from ..pagination import PaginationInfo
from ..schemas.comment import CommentCreate
from ..schemas.product import ProductCreate, ProductUpdate, ProductFilter

logger = logging.getLogger(__name__)

# Поля, по которым разрешена сортировка: имя из query -> колонка
SORTABLE_FIELDS = {
    "name": Product.name,
    "price": Product.price,
    "stock": Product.stock,
    "createdAt": Product.created_at,
    "updatedAt": Product.updated_at,
}

MIN_COMMENT_LENGTH = 3


def build_order_by(sort: Optional[str]):
    """
    Разбирает параметр sort вида "price" или "-price".

    Без параметра товары идут от новых к старым.
    """
    if not sort:
        return [Product.created_at.desc(), Product.id]

    clauses = []
    for raw in sort.split(","):
        raw = raw.strip()
        if not raw:
            continue
        descending = raw.startswith("-")
        field = raw.lstrip("-+")
        column = SORTABLE_FIELDS.get(field)
        if column is None:
            raise AppException(
                Errors.VALIDATION_KO,
                data=[f"sort: unsupported field '{field}', expected one of {sorted(SORTABLE_FIELDS)}"]
            )
        clauses.append(column.desc() if descending else column.asc())

    clauses.append(Product.id)
    return clauses


class ProductService:
    """Сервис каталога: товары и комментарии"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_product(self, product_id: str) -> Product:
        product = await self.db.get(Product, product_id)
        if not product:
            raise AppException(Errors.PRODUCT_NOT_FOUND)
        return product

    async def _name_taken(self, name: str, exclude_id: Optional[str] = None) -> bool:
        query = select(Product.id).where(Product.name == name)
        if exclude_id:
            query = query.where(Product.id != exclude_id)
        result = await self.db.execute(query)
        return result.first() is not None

    async def create_product(self, data: ProductCreate) -> Product:
        try:
            if await self._name_taken(data.name):
                raise AppException(Errors.DUPLICATE_PRODUCT)

            product = Product(
                name=data.name,
                description=data.description,
                price=data.price,
                stock=data.stock
            )
            self.db.add(product)
            await self.db.commit()

            logger.info(f"✅ Product {product.id} '{product.name}' created")
            return product

        except AppException:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(f"❌ Integrity error creating product '{data.name}': {e}")
            raise AppException(Errors.DUPLICATE_PRODUCT) from e
        except Exception as e:
            await self.db.rollback()
            logger.error(f"❌ Error creating product '{data.name}': {e}")
            raise AppException(Errors.PRODUCT_CREATION_ERROR) from e

    async def list_products(
            self,
            pagination: PaginationInfo,
            sort: Optional[str] = None,
            filters: Optional[ProductFilter] = None
    ) -> Tuple[List[Product], int]:
        """Список товаров с фильтрами, сортировкой и пагинацией"""
        conditions = []
        if filters:
            if filters.name:
                conditions.append(Product.name.ilike(f"%{filters.name}%"))
            if filters.min_price is not None:
                conditions.append(Product.price >= filters.min_price)
            if filters.max_price is not None:
                conditions.append(Product.price <= filters.max_price)

        order_by = build_order_by(sort)

        count_query = select(func.count(Product.id)).where(*conditions)
        total = (await self.db.execute(count_query)).scalar() or 0

        query = pagination.apply(select(Product).where(*conditions).order_by(*order_by))
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def update_product(self, product_id: str, data: ProductUpdate) -> Product:
        try:
            product = await self.get_product(product_id)
            changes = data.model_dump(exclude_unset=True)

            new_name = changes.get("name")
            if new_name and new_name != product.name and await self._name_taken(new_name, product.id):
                raise AppException(Errors.DUPLICATE_PRODUCT)

            for field, value in changes.items():
                if value is None and field != "description":
                    continue
                setattr(product, field, value)

            await self.db.commit()
            logger.info(f"✅ Product {product_id} updated: {sorted(changes)}")
            return product

        except AppException:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(f"❌ Integrity error updating product {product_id}: {e}")
            raise AppException(Errors.DUPLICATE_PRODUCT) from e
        except Exception as e:
            await self.db.rollback()
            logger.error(f"❌ Error updating product {product_id}: {e}")
            raise AppException(Errors.PRODUCT_UPDATE_ERROR) from e

    async def delete_product(self, product_id: str) -> bool:
        """Удаление запрещено, пока на товар ссылаются позиции корзин или заказов"""
        try:
            product = await self.get_product(product_id)

            cart_refs = (await self.db.execute(
                select(func.count(CartItem.id)).where(CartItem.product_id == product_id)
            )).scalar() or 0
            order_refs = (await self.db.execute(
                select(func.count(OrderItem.id)).where(OrderItem.product_id == product_id)
            )).scalar() or 0

            if cart_refs or order_refs:
                raise AppException(
                    Errors.PRODUCT_DELETE_CONSTRAINT,
                    data={"cartItems": cart_refs, "orderItems": order_refs}
                )

            await self.db.execute(delete(Comment).where(Comment.product_id == product_id))
            await self.db.delete(product)
            await self.db.commit()

            logger.info(f"🗑️ Product {product_id} deleted")
            return True

        except AppException:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(f"❌ Product {product_id} is still referenced: {e}")
            raise AppException(Errors.PRODUCT_DELETE_CONSTRAINT) from e
        except Exception as e:
            await self.db.rollback()
            logger.error(f"❌ Error deleting product {product_id}: {e}")
            raise AppException(Errors.PRODUCT_REMOVE_ERROR) from e

    # Комментарии

    async def add_comment(self, product_id: str, data: CommentCreate, default_author: str) -> Comment:
        try:
            await self.get_product(product_id)

            content = data.content.strip()
            if len(content) < MIN_COMMENT_LENGTH:
                raise AppException(Errors.INVALID_COMMENT)

            comment = Comment(
                product_id=product_id,
                content=content,
                author=(data.author or "").strip() or default_author
            )
            self.db.add(comment)
            await self.db.commit()

            logger.info(f"💬 Comment {comment.id} added to product {product_id}")
            return comment

        except AppException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"❌ Error adding comment to product {product_id}: {e}")
            raise AppException(Errors.COMMENT_CREATION_ERROR) from e

    async def list_comments(self, product_id: str, pagination: PaginationInfo) -> Tuple[List[Comment], int]:
        await self.get_product(product_id)

        try:
            total = (await self.db.execute(
                select(func.count(Comment.id)).where(Comment.product_id == product_id)
            )).scalar() or 0

            query = pagination.apply(
                select(Comment)
                .where(Comment.product_id == product_id)
                .order_by(Comment.created_at.desc(), Comment.id)
            )
            result = await self.db.execute(query)
            return list(result.scalars().all()), total

        except Exception as e:
            logger.error(f"❌ Error fetching comments for product {product_id}: {e}")
            raise AppException(Errors.COMMENT_FETCH_ERROR) from e

    async def delete_comment(self, product_id: str, comment_id: str) -> bool:
        try:
            result = await self.db.execute(
                select(Comment).where(Comment.id == comment_id, Comment.product_id == product_id)
            )
            comment = result.scalar_one_or_none()
            if not comment:
                raise AppException(Errors.COMMENT_NOT_FOUND)

            await self.db.delete(comment)
            await self.db.commit()

            logger.info(f"🗑️ Comment {comment_id} deleted from product {product_id}")
            return True

        except AppException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"❌ Error deleting comment {comment_id}: {e}")
            raise AppException(Errors.COMMENT_DELETION_ERROR) from e

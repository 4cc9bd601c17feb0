from sqlalchemy import Column, String, Integer, Numeric, Text, DateTime, CheckConstraint

from ..database import Base, generate_uuid, utcnow


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # CartItem / OrderItem ссылаются на товар по FK, обратных связей нет:
    # удаление товара с зависимыми строками должно падать, а не обнулять FK

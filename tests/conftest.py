from decimal import Decimal

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker

from shop_service.database import Base, get_db
from shop_service.events.producer import email_event_producer
from shop_service.main import app
from shop_service.models import User, UserRole, Product
from shop_service.security import hash_password, create_access_token

PASSWORD = "secret123"


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'shop.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def sent_emails(monkeypatch):
    """Подменяет публикацию в Kafka и собирает задачи send_email"""
    sent = []

    async def fake_publish_event(topic, event_type, payload, key=None):
        sent.append({"topic": topic, "event_type": event_type, **payload})
        return True

    monkeypatch.setattr(email_event_producer, "publish_event", fake_publish_event)
    return sent


@pytest.fixture
async def client(session_factory, sent_emails):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def create_user(session_factory, email, role=UserRole.USER, name="Test User", password=PASSWORD):
    async with session_factory() as session:
        user = User(name=name, email=email, password=hash_password(password), role=role)
        session.add(user)
        await session.commit()
        return user


def auth_headers(user: User) -> dict:
    token = create_access_token(subject=user.id, email=user.email, role=user.role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin(session_factory):
    return await create_user(session_factory, "admin@shopmail.com", role=UserRole.ADMIN, name="Admin")


@pytest.fixture
async def customer(session_factory):
    return await create_user(session_factory, "alice@shopmail.com", name="Alice")


@pytest.fixture
async def other_customer(session_factory):
    return await create_user(session_factory, "bob@shopmail.com", name="Bob")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def customer_headers(customer):
    return auth_headers(customer)


@pytest.fixture
def other_headers(other_customer):
    return auth_headers(other_customer)


@pytest.fixture
def make_product(session_factory):
    async def _make_product(name="Keyboard", price="10.00", stock=10, description=None):
        async with session_factory() as session:
            product = Product(name=name, price=Decimal(price), stock=stock, description=description)
            session.add(product)
            await session.commit()
            return product

    return _make_product


@pytest.fixture
def product_stock(session_factory):
    async def _product_stock(product_id):
        async with session_factory() as session:
            product = await session.get(Product, product_id)
            return product.stock

    return _product_stock

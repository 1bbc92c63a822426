from datetime import datetime
from uuid import uuid4

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.app import create_app
from src.api.utils.jwt import generate_jwt
from src.app.services.credential_crypto import hash_password
from src.app.services.security_config import SecurityConfig
from src.depends import get_security_config, get_unit_of_work
from src.domain.entities import User, UserStatus
from tests.fixtures.json_loader import TestDataLoader


@pytest_asyncio.fixture
def test_data():
    return TestDataLoader()


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
def security_config():
    return SecurityConfig(bcrypt_rounds=4, expose_reset_token=True)


def build_app(db_session, security_config):
    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_security_config] = lambda: security_config
    return app


@pytest_asyncio.fixture
def app(db_session, security_config):
    return build_app(db_session, security_config)


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def production_client(db_session):
    config = SecurityConfig(bcrypt_rounds=4, expose_reset_token=False)
    transport = ASGITransport(app=build_app(db_session, config))
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def create_user(db_session, test_data):
    async def _create(key: str = "active_user", **overrides) -> User:
        data = test_data.get_copy("users")[key]
        data.update(overrides)
        user = User(
            id=uuid4(),
            name=data["name"],
            email=data["email"],
            password_hash=hash_password(data["password"], 4),
            status=UserStatus(data["status"]),
            created_at=datetime.utcnow(),
            updated_at=datetime.utcnow(),
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _create


@pytest_asyncio.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {generate_jwt(user.id)}"}

    return _headers

"""
Pytest fixtures for testing.

Provides:
- Async database session (SQLite in-memory)
- Test client with database override and auth helpers
- A small location tree: Lagos (5) with LGAs 9 and 10, Kano (20) with LGA 30
- Role and user factories
"""

from dataclasses import dataclass
from typing import AsyncGenerator, Callable
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from changetracker.core.auth import AuthorizationEngine, build_default_registry
from changetracker.main import app
from changetracker.models.base import Base
from changetracker.models.database import get_db
from changetracker.models.location import State, Lga, Ward
from changetracker.models.role import Role, Permission
from changetracker.models.user import User
from changetracker.services.token import TokenService


# Test database URL (SQLite in-memory for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Database session, rolled back after each test."""
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Test client with database session override."""

    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


# ============ Location Tree ============


@dataclass
class Geo:
    lagos: State
    kano: State
    ikeja: Lga
    epe: Lga
    kano_municipal: Lga
    ward_42: Ward
    ward_43: Ward
    ward_50: Ward

    def all(self) -> list:
        return [
            self.lagos, self.kano,
            self.ikeja, self.epe, self.kano_municipal,
            self.ward_42, self.ward_43, self.ward_50,
        ]


@pytest.fixture
def geo() -> Geo:
    """
    Location tree (not persisted):

        Lagos (5)  -> Ikeja (9)  -> wards 42, 43
                   -> Epe (10)   -> ward 50
        Kano (20)  -> Kano Municipal (30)
    """
    lagos = State(id=5, name="Lagos", lgas=[])
    kano = State(id=20, name="Kano", lgas=[])
    ikeja = Lga(id=9, name="Ikeja", state_id=5, state=lagos)
    epe = Lga(id=10, name="Epe", state_id=5, state=lagos)
    kano_municipal = Lga(id=30, name="Kano Municipal", state_id=20, state=kano)
    return Geo(
        lagos=lagos,
        kano=kano,
        ikeja=ikeja,
        epe=epe,
        kano_municipal=kano_municipal,
        ward_42=Ward(id=42, name="Ward 42", lga_id=9, lga=ikeja),
        ward_43=Ward(id=43, name="Ward 43", lga_id=9, lga=ikeja),
        ward_50=Ward(id=50, name="Ward 50", lga_id=10, lga=epe),
    )


@pytest_asyncio.fixture
async def db_geo(db: AsyncSession, geo: Geo) -> Geo:
    """The location tree, persisted."""
    db.add_all(geo.all())
    await db.flush()
    return geo


# ============ Roles and Users ============


@pytest.fixture
def make_role() -> Callable[..., Role]:
    """
    Build a role carrying the given permission names.

    Permission rows are shared between roles built by the same factory so
    that persisted roles never collide on the unique permission name.
    """
    permissions: dict[str, Permission] = {}

    def factory(name: str, *permission_names: str) -> Role:
        perms = [
            permissions.setdefault(perm_name, Permission(name=perm_name))
            for perm_name in permission_names
        ]
        return Role(name=name, permissions=perms)

    return factory


@pytest.fixture
def make_user() -> Callable[..., User]:
    """Build a user with roles and direct grants (not persisted)."""

    def factory(
        roles: list[Role] | None = None,
        states: list[State] | None = None,
        lgas: list[Lga] | None = None,
        wards: list[Ward] | None = None,
        email: str | None = None,
        is_active: bool = True,
    ) -> User:
        return User(
            id=uuid4(),
            email=email or f"test-{uuid4().hex[:8]}@example.com",
            name="Test User",
            is_active=is_active,
            roles=list(roles or []),
            state_grants=list(states or []),
            lga_grants=list(lgas or []),
            ward_grants=list(wards or []),
        )

    return factory


class UserFactory:
    """Factory for creating persisted test users."""

    def __init__(self, db: AsyncSession, make_user: Callable[..., User]):
        self.db = db
        self.make_user = make_user

    async def create(self, **kwargs) -> User:
        user = self.make_user(**kwargs)
        self.db.add(user)
        await self.db.flush()
        return user


@pytest_asyncio.fixture
async def user_factory(db: AsyncSession, make_user) -> UserFactory:
    """Fixture that provides UserFactory."""
    return UserFactory(db, make_user)


@pytest.fixture
def engine() -> AuthorizationEngine:
    """Engine over a fresh default registry."""
    return AuthorizationEngine(build_default_registry())


# ============ Auth Helpers ============


def get_auth_headers(user: User) -> dict[str, str]:
    """Bearer headers for any user."""
    token = TokenService().create_access_token(user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers_for() -> Callable[[User], dict[str, str]]:
    return get_auth_headers

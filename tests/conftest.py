"""
Pytest fixtures for the logistics backend test suite.

Provides:
- A fresh in-memory SQLite database per test (aiosqlite + StaticPool)
- A seeded world: main storage B001, branches B002/B003, one user per role
- An httpx client bound to the FastAPI app with get_db overridden

Environment is configured before any ``app`` import so ``app.core.config``
reads test values.
"""

import os

os.environ["APP_ENV"] = "test"
os.environ["DB_TYPE"] = "sqlite"
os.environ["SQLITE_URL"] = "sqlite+aiosqlite://"
os.environ["MAIN_STORAGE_BRANCH_ID"] = "B001"
os.environ["STATE_EXPORT_KEY"] = "test-export-key"
os.environ["ENABLE_SNAPSHOT_FLUSH"] = "false"

from decimal import Decimal
from types import SimpleNamespace

import httpx
import pytest
from sqlalchemy import select

from app import models  # noqa: F401
from app.core.db import build_engine, build_session_factory, create_tables, get_db
from app.core.locks import stock_locks
from app.core.security import hash_password
from app.models.catalog.branch_models import Branch
from app.models.catalog.item_models import Item
from app.models.logistics.movement_models import Movement
from app.models.users.user_models import User

PASSWORD = "secret-pass"
# bcrypt is slow on purpose; hash once for every seeded user
PASSWORD_HASH = hash_password(PASSWORD)

ITEM_ID = "ITEM-001"


@pytest.fixture(autouse=True)
def reset_stock_locks():
    stock_locks.reset()
    yield
    stock_locks.reset()


@pytest.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite://")
    await create_tables(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


def _user(user_id, name, role, branch_id):
    return User(
        id=user_id,
        name=name,
        name_key=name.lower(),
        password_hash=PASSWORD_HASH,
        role=role,
        branch_id=branch_id,
    )


@pytest.fixture
async def seed(session_factory):
    """Main storage with 10 units of ITEM-001 and one user per role."""
    async with session_factory() as session:
        session.add_all([
            Branch(id="B001", name="Main Storage"),
            Branch(id="B002", name="North Branch"),
            Branch(id="B003", name="South Branch"),
        ])
        await session.flush()

        users = {
            "admin": _user("U-admin", "Admin", "admin", "B001"),
            "manager": _user("U-manager", "Maya", "manager", "B001"),
            "staff": _user("U-staff", "Sami", "staff", "B002"),
            "staff_south": _user("U-staff-south", "Sara", "staff", "B003"),
            "supervisor": _user("U-supervisor", "Omar", "supervisor", "B002"),
            "driver": _user("U-driver", "Dina", "driver", None),
            "driver_b": _user("U-driver-b", "Badr", "driver", None),
        }
        session.add_all(users.values())

        session.add(
            Item(
                id=ITEM_ID,
                branch_id="B001",
                name="Cement bag",
                name_en="Cement bag",
                name_ar="كيس اسمنت",
                min_qty=2,
                base_qty=10,
                unit_cost=Decimal("12.50"),
            )
        )
        await session.commit()

    return SimpleNamespace(
        item_id=ITEM_ID,
        **{key: user.id for key, user in users.items()},
    )


async def stock_of(session_factory, item_id, branch_id):
    async with session_factory() as session:
        item = await session.get(Item, (item_id, branch_id))
        return item.base_qty if item else None


async def movements_for(session_factory, item_id):
    async with session_factory() as session:
        return (
            await session.scalars(
                select(Movement)
                .where(Movement.item_id == item_id)
                .order_by(Movement.created_at, Movement.id)
            )
        ).all()


async def load_user(session_factory, user_id):
    async with session_factory() as session:
        return await session.get(User, user_id)


@pytest.fixture
def helpers(session_factory):
    return SimpleNamespace(
        stock=lambda item_id, branch_id: stock_of(session_factory, item_id, branch_id),
        movements=lambda item_id=ITEM_ID: movements_for(session_factory, item_id),
        user=lambda user_id: load_user(session_factory, user_id),
    )


@pytest.fixture
async def client(session_factory, seed):
    from main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()

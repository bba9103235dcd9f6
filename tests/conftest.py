"""Shared pytest fixtures for unit and integration tests."""

import os
from decimal import Decimal

import pytest

# Settings are read at import time; point them at a throw-away database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./bill_settlement_test.db")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_FORMAT", "text")

from httpx import ASGITransport, AsyncClient

from app import models  # noqa: F401  (registers tables on Base.metadata)
from app.config import settings
from app.database import Base, build_engine, build_sessionmaker, get_db
from app.main import app
from app.schemas.bill import BillItemCreate
from app.schemas.business import BusinessCreate
from app.services.business_service import BusinessService
from app.services.table_service import TableService


def make_item(name: str, price: str, quantity: int = 1, menu_item_id: str = None) -> BillItemCreate:
    """Line item payload; the menu reference defaults to a slug of the name."""
    return BillItemCreate(
        menu_item_id=menu_item_id or name.lower().replace(" ", "-"),
        name=name,
        price=Decimal(price),
        quantity=quantity,
    )


@pytest.fixture
async def engine(tmp_path):
    """Fresh SQLite database per test."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def api_base() -> str:
    """Base URL for API requests."""
    return f"http://test{settings.API_V1_PREFIX}"


@pytest.fixture
async def async_client(session_factory, api_base: str):
    """Async HTTP client bound to the per-test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=api_base, timeout=30.0) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
async def business(db):
    """Business charging 10% tax and a 5% service fee."""
    return await BusinessService.create_business(
        db,
        BusinessCreate(
            name="Harbor Grill",
            owner_address="0xowner",
            settlement_address="0xsettle",
            tipping_address="0xtips",
            tax_rate=Decimal("0.10"),
            service_fee_rate=Decimal("0.05"),
        ),
    )


@pytest.fixture
async def table(db, business):
    return await TableService.create_table(db, business.id, "Table 1")


@pytest.fixture
async def other_table(db, business):
    return await TableService.create_table(db, business.id, "Table 2")

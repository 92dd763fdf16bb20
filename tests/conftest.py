import os

os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-jwt-refresh-secret")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

import fakeredis
import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from licita.core.clock import Clock, utcnow
from licita.core.config import Config
from licita.core.container import build_container
from licita.db.database import Database
from licita.models.registry import Base, PublicEntity, Supplier, User
from licita.services.actor import Actor
from licita.services.auth_service import hash_password

PASSWORD = "correct-horse-battery"
PASSWORD_HASH = hash_password(PASSWORD)


class FakeClock(Clock):
    def __init__(self, start=None):
        self.current = start or utcnow().replace(microsecond=0)

    def now(self):
        return self.current

    def advance(self, **kwargs):
        self.current = self.current + timedelta(**kwargs)
        return self.current


@dataclass
class Seed:
    admin: Actor
    owner: Actor
    other_owner: Actor
    supplier: Actor
    other_supplier: Actor
    citizen: Actor


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def test_settings():
    config = Config()
    config.JWT_SECRET = "test-jwt-secret"
    config.JWT_REFRESH_SECRET = "test-jwt-refresh-secret"
    config.SCHEDULER_ENABLED = False
    config.NOTIFICATION_WEBHOOK_URL = None
    config.ALLOWED_ORIGINS = ["http://testserver"]
    return config


@pytest.fixture
async def database(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'licita.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield Database(engine)
    await engine.dispose()


@pytest.fixture
async def redis_client():
    client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def container(test_settings, database, redis_client, clock):
    return build_container(test_settings, database=database, redis_client=redis_client, clock=clock)


@pytest.fixture
async def db(database):
    async with database.session() as session:
        yield session


async def _create_user(db, email, role, profile=None):
    user = User(email=email, password_hash=PASSWORD_HASH, first_name=role.title(), role=role)
    db.add(user)
    await db.flush()
    public_entity_id = supplier_id = None
    if profile == "entity":
        entity = PublicEntity(user_id=user.id, name=f"Prefeitura {email}", city="Recife", state="PE")
        db.add(entity)
        await db.flush()
        public_entity_id = entity.id
    elif profile == "supplier":
        supplier = Supplier(user_id=user.id, company_name=f"Fornecedor {email}")
        db.add(supplier)
        await db.flush()
        supplier_id = supplier.id
    return user, Actor(
        user_id=user.id,
        role=role,
        email=email,
        public_entity_id=public_entity_id,
        supplier_id=supplier_id,
    )


@pytest.fixture
async def seed(database, container) -> Seed:
    async with database.session() as session:
        created = [
            await _create_user(session, "admin@licita.test", "ADMIN"),
            await _create_user(session, "owner@licita.test", "PUBLIC_ENTITY", "entity"),
            await _create_user(session, "other-owner@licita.test", "PUBLIC_ENTITY", "entity"),
            await _create_user(session, "supplier@licita.test", "SUPPLIER", "supplier"),
            await _create_user(session, "other-supplier@licita.test", "SUPPLIER", "supplier"),
            await _create_user(session, "citizen@licita.test", "CITIZEN"),
        ]
        await session.commit()
        for user, _ in created:
            await container.permissions.grant_role_defaults(session, user)
    return Seed(*(actor for _, actor in created))


@pytest.fixture
def bidding_data(clock):
    def build(number="PE-001/2025", **overrides):
        now = clock.now()
        data = {
            "title": "Aquisição de computadores",
            "description": "Compra de 50 computadores para escolas municipais",
            "bidding_number": number,
            "type": "PREGAO",
            "estimated_value": Decimal("250000.00"),
            "opening_date": now + timedelta(hours=1),
            "closing_date": now + timedelta(hours=2),
            "delivery_deadline": now + timedelta(hours=3),
            "delivery_location": "Secretaria de Educação",
        }
        data.update(overrides)
        return data

    return build


ITEMS = [
    {"description": "Notebook", "quantity": Decimal("3"), "unit_price": Decimal("10")},
    {"description": "Mouse", "quantity": Decimal("1"), "unit_price": Decimal("5")},
]


@pytest.fixture
def open_bidding(container, seed, bidding_data, clock, database):
    """Фабрика: лицитация, опубликованная и открытая плановым проходом."""
    async def build(number="PE-001/2025", owner=None, **overrides):
        owner = owner or seed.owner
        async with database.session() as session:
            bidding = await container.biddings.create_bidding(session, owner, bidding_data(number, **overrides))
            await container.biddings.publish_bidding(session, owner, bidding.id)
        clock.advance(hours=1, seconds=1)
        await container.scheduler.sweep_open_transitions()
        return bidding.id

    return build


@pytest.fixture
def items():
    return [dict(item) for item in ITEMS]

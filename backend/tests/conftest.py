"""
Fixtures pytest partagées.

SQLite en mémoire avec StaticPool : toutes les sessions partagent la même
connexion, les données écrites par une session sont visibles des autres
(indispensable pour les tests HTTP).
"""
import uuid
from datetime import date, time

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.core.database import Base, get_db, make_sessionmaker
from app.engine.types import ShiftCandidate, ShiftKind
from app.main import app
from app.models.contract import Contract

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

EMPLOYER_ID = uuid.UUID("00000000-0000-0000-0000-0000000000e1")


# ── Base de test (une base neuve par test) ────────────────────────────────────

@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine) -> AsyncSession:
    async with make_sessionmaker(engine)() as session:
        yield session


# ── Client HTTP ───────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def client(engine) -> AsyncClient:
    """Client FastAPI dont get_db pointe sur la base de test."""
    session_factory = make_sessionmaker(engine)

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


# ── Contrats ──────────────────────────────────────────────────────────────────

async def add_contract(db, name: str = "Camille Martin", weekly_hours: float = 35,
                       hourly_rate: float = 15.0, **kwargs) -> Contract:
    c = Contract(
        id=uuid.uuid4(),
        employer_id=kwargs.pop("employer_id", EMPLOYER_ID),
        employee_id=kwargs.pop("employee_id", uuid.uuid4()),
        employee_name=name,
        weekly_hours=weekly_hours,
        hourly_rate=hourly_rate,
        status="active",
        start_date=kwargs.pop("start_date", date(2025, 1, 1)),
        **kwargs,
    )
    db.add(c)
    await db.commit()
    await db.refresh(c)
    return c


@pytest_asyncio.fixture
async def contract(db) -> Contract:
    return await add_contract(db)


# ── Interventions du moteur ───────────────────────────────────────────────────

CONTRACT = "contract-1"
EMPLOYEE = "employee-1"


def make_shift(day: date, start: str, end: str, break_minutes: int = 0,
               kind: ShiftKind = ShiftKind.EFFECTIVE, **kwargs) -> ShiftCandidate:
    """Intervention du moteur à partir d'heures "HH:MM"."""
    sh, sm = (int(p) for p in start.split(":"))
    eh, em = (int(p) for p in end.split(":"))
    return ShiftCandidate(
        contract_id=kwargs.pop("contract_id", CONTRACT),
        employee_id=kwargs.pop("employee_id", EMPLOYEE),
        date=day,
        start_time=time(sh, sm),
        end_time=time(eh, em),
        break_minutes=break_minutes,
        shift_kind=kind,
        **kwargs,
    )


@pytest.fixture
def shift_factory():
    return make_shift

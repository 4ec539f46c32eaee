"""Shared test infrastructure for the job-site CRM test suite.

Provides:
- clock: controllable clock injected into the store and change log
- reference: ReferenceData with reps, stages (phases 1-4) and types
- make_store / store: EntityStore factory pre-loaded with opportunities
- make_project_data: factory for project create payloads
- db_session: async SQLite in-memory session with all tables created
- workspace / client: Workspace plus an httpx AsyncClient over the ASGI app
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from jobsite_crm.infra.database import Base

# Import model modules so their tables are registered with Base.metadata
import jobsite_crm.domain.models  # noqa: F401

from jobsite_crm.domain.schemas import (
    Opportunity,
    OpportunityStage,
    OpportunityType,
    SalesRep,
)
from jobsite_crm.services.entity_store import EntityStore
from jobsite_crm.services.preferences import default_note_tags
from jobsite_crm.services.reference_data import ReferenceData
from jobsite_crm.services.workspace import Workspace

USER = 7
OTHER_USER = 9


class FakeClock:
    """Returns a fixed instant until ``tick`` moves it forward."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def tick(self, seconds: int = 1) -> datetime:
        self.current += timedelta(seconds=seconds)
        return self.current


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

@pytest.fixture
def reference():
    return ReferenceData(
        sales_reps=[
            SalesRep(salesrepid=1, firstname="Dana", lastname="Whitfield"),
            SalesRep(salesrepid=2, firstname="Marcus", lastname="Oyelaran"),
            SalesRep(salesrepid=3, firstname="Priya", lastname="Raman"),
        ],
        stages=[
            OpportunityStage(stageid=1, stagename="Prospecting", phaseid=1, displayorder=1),
            OpportunityStage(stageid=3, stagename="Quote Sent", phaseid=2, displayorder=3),
            OpportunityStage(stageid=5, stagename="Closed Won", phaseid=3, displayorder=5),
            OpportunityStage(stageid=6, stagename="Closed Lost", phaseid=4, displayorder=6),
        ],
        types=[
            OpportunityType(typeid=2, typename="Rental", displayorder=2),
            OpportunityType(typeid=1, typename="Sale", displayorder=1),
            OpportunityType(typeid=3, typename="Service", displayorder=3),
        ],
    )


def _opportunity(opp_id, **overrides) -> Opportunity:
    data = {
        "id": opp_id,
        "description": f"Opportunity {opp_id}",
        "estimateRevenue": 1000.0,
        "stageId": 1,
        "typeId": 1,
        "divisionId": "A",
        "salesRepId": 1,
    }
    data.update(overrides)
    return Opportunity.model_validate(data)


@pytest.fixture
def opportunities():
    """Eight unattached opportunities, ids 100001-100008."""
    return [
        _opportunity(100001, estimateRevenue=1000.0, typeId=1, divisionId="A", stageId=3,
                     estimateDeliveryMonth=3, estimateDeliveryYear=2026),
        _opportunity(100002, estimateRevenue=500.0, typeId=2, divisionId="B", stageId=1, salesRepId=2),
        _opportunity(100003, estimateRevenue=250.0, typeId=1, divisionId="C", stageId=5),
        _opportunity(100004, estimateRevenue=0.0, typeId=3, divisionId="D", stageId=6),
        _opportunity(100005, estimateRevenue=100.0),
        _opportunity(100006, estimateRevenue=100.0),
        _opportunity(100007, estimateRevenue=100.0),
        _opportunity(100008, estimateRevenue=100.0, customerName="Opaque Co", caseNumber="C-1"),
    ]


@pytest.fixture
def make_store(clock, opportunities):
    """Factory for an EntityStore sharing the test clock."""

    def _factory(projects=(), opportunities=opportunities, note_tags=None):
        return EntityStore(
            projects=projects,
            opportunities=opportunities,
            note_tags=default_note_tags() if note_tags is None else note_tags,
            clock=clock,
        )

    return _factory


@pytest.fixture
def store(make_store):
    return make_store()


@pytest.fixture
def make_project_data():
    """Factory for a minimal project payload (camelCase, as the API sends it)."""

    def _factory(name="Harbor Point", **overrides):
        data = {
            "name": name,
            "statusId": "Active",
            "salesRepIds": [1],
            "plannedAnnualRate": 5,
            "address": {"street": "1 Main St", "city": "Oakland", "state": "CA"},
            "projectPrimaryContact": {"name": "Elena Ruiz", "email": "eruiz@example.com"},
        }
        data.update(overrides)
        return data

    return _factory


# ---------------------------------------------------------------------------
# Database session fixture
# ---------------------------------------------------------------------------

@pytest.fixture
async def db_session():
    """Async SQLite in-memory session with all tables created.

    Creates a fresh engine + tables for each test, yields a session,
    then rolls back and tears down.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


# ---------------------------------------------------------------------------
# Application fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def workspace(store, reference):
    return Workspace(store, reference, current_user_id=USER)


@pytest.fixture
async def client(workspace, db_session):
    """httpx AsyncClient over the app with the test workspace and database."""
    from jobsite_crm.app.main import app
    from jobsite_crm.infra.database import get_db

    async def _get_test_db():
        yield db_session

    app.state.workspace = workspace
    app.dependency_overrides[get_db] = _get_test_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()

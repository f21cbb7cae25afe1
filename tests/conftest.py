"""
Pytest configuration and fixtures.
"""

import os
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

# Point the app at SQLite before any src module builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.models import (
    Base,
    CalcMethod,
    CommissionRule,
    Deal,
    OverrideSource,
    PayPlan,
    Person,
    PersonPayPlanAssignment,
    Role,
    RuleType,
)

# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

PLAN_START = date(2024, 1, 1)
CLOSE_DATE = date(2024, 6, 1)


def enable_sqlite_savepoints(engine) -> None:
    """
    Let SQLAlchemy own BEGIN so SAVEPOINT behaves on SQLite.

    The sqlite3 driver otherwise starts transactions lazily and a
    RELEASE of the outermost savepoint would commit.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")


async def create_test_engine(url: str = TEST_DATABASE_URL):
    kwargs = {"echo": False}
    if ":memory:" in url:
        kwargs["poolclass"] = StaticPool
    engine = create_async_engine(url, **kwargs)
    enable_sqlite_savepoints(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return engine


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    engine = await create_test_engine()

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session


# ── Scenario data ─────────────────────────────────────────


async def seed_scenario(db: AsyncSession) -> SimpleNamespace:
    """
    Rep S -> team lead M1 -> regional manager M2, all on one plan.

    The plan pays reps 10% of deal value as base and team leads a 2%
    level-1 setter override. There is no level-2 rule. The deal is a
    $100,000 self-gen solar sale by S closed on CLOSE_DATE.
    """
    rep_role = Role(name="Sales Rep")
    lead_role = Role(name="Team Lead")
    regional_role = Role(name="Regional Manager")
    db.add_all([rep_role, lead_role, regional_role])
    await db.flush()

    m2 = Person(first_name="Morgan", last_name="Reyes", role_id=regional_role.id)
    db.add(m2)
    await db.flush()
    m1 = Person(first_name="Jordan", last_name="Kim", role_id=lead_role.id, reports_to_id=m2.id)
    db.add(m1)
    await db.flush()
    s = Person(first_name="Sam", last_name="Ortiz", role_id=rep_role.id, reports_to_id=m1.id)
    db.add(s)
    await db.flush()

    plan = PayPlan(name="Standard Solar")
    db.add(plan)
    await db.flush()

    base_rule = CommissionRule(
        pay_plan_id=plan.id,
        name="Rep base 10%",
        rule_type=RuleType.BASE,
        calc_method=CalcMethod.PERCENT_OF_DEAL_VALUE.value,
        amount=Decimal("10"),
        applies_to_role_id=rep_role.id,
    )
    override_rule = CommissionRule(
        pay_plan_id=plan.id,
        name="Lead L1 setter override 2%",
        rule_type=RuleType.OVERRIDE,
        calc_method=CalcMethod.PERCENT_OF_DEAL_VALUE.value,
        amount=Decimal("2"),
        applies_to_role_id=lead_role.id,
        override_level=1,
        override_source=OverrideSource.SETTER,
    )
    db.add_all([base_rule, override_rule])
    await db.flush()

    assignments = {}
    for person in (s, m1, m2):
        assignment = PersonPayPlanAssignment(
            person_id=person.id,
            pay_plan_id=plan.id,
            effective_date=PLAN_START,
        )
        db.add(assignment)
        assignments[person.id] = assignment
    await db.flush()

    deal = Deal(
        setter_id=s.id,
        closer_id=s.id,
        is_self_gen=True,
        deal_type="solar",
        deal_value=Decimal("100000.00"),
        system_size_kw=Decimal("8.000"),
        sale_date=date(2024, 5, 20),
        close_date=CLOSE_DATE,
    )
    db.add(deal)
    await db.commit()

    return SimpleNamespace(
        rep_role=rep_role,
        lead_role=lead_role,
        regional_role=regional_role,
        s=s,
        m1=m1,
        m2=m2,
        plan=plan,
        base_rule=base_rule,
        override_rule=override_rule,
        assignments=assignments,
        deal=deal,
    )


@pytest_asyncio.fixture
async def scenario(db_session):
    return await seed_scenario(db_session)


async def seed_split_deal(db: AsyncSession, base: SimpleNamespace) -> SimpleNamespace:
    """
    Adds closer C -> team lead CM -> M2 to a seeded scenario.

    The plan gains a 6% base rule for closers and a 1% level-1 closer
    override for team leads. The deal is a $100,000 solar sale set by
    S and closed by C.
    """
    closer_role = Role(name="Closer")
    db.add(closer_role)
    await db.flush()

    cm = Person(first_name="Casey", last_name="Nguyen", role_id=base.lead_role.id, reports_to_id=base.m2.id)
    db.add(cm)
    await db.flush()
    c = Person(first_name="Chris", last_name="Patel", role_id=closer_role.id, reports_to_id=cm.id)
    db.add(c)
    await db.flush()

    closer_base_rule = CommissionRule(
        pay_plan_id=base.plan.id,
        name="Closer base 6%",
        rule_type=RuleType.BASE,
        calc_method=CalcMethod.PERCENT_OF_DEAL_VALUE.value,
        amount=Decimal("6"),
        applies_to_role_id=closer_role.id,
    )
    closer_override_rule = CommissionRule(
        pay_plan_id=base.plan.id,
        name="Lead L1 closer override 1%",
        rule_type=RuleType.OVERRIDE,
        calc_method=CalcMethod.PERCENT_OF_DEAL_VALUE.value,
        amount=Decimal("1"),
        applies_to_role_id=base.lead_role.id,
        override_level=1,
        override_source=OverrideSource.CLOSER,
    )
    db.add_all([closer_base_rule, closer_override_rule])

    for person in (c, cm):
        db.add(PersonPayPlanAssignment(
            person_id=person.id,
            pay_plan_id=base.plan.id,
            effective_date=PLAN_START,
        ))

    deal = Deal(
        setter_id=base.s.id,
        closer_id=c.id,
        is_self_gen=False,
        deal_type="solar",
        deal_value=Decimal("100000.00"),
        system_size_kw=Decimal("8.000"),
        close_date=CLOSE_DATE,
    )
    db.add(deal)
    await db.commit()

    return SimpleNamespace(
        closer_role=closer_role,
        c=c,
        cm=cm,
        closer_base_rule=closer_base_rule,
        closer_override_rule=closer_override_rule,
        deal=deal,
    )


@pytest_asyncio.fixture
async def split(db_session, scenario):
    return await seed_split_deal(db_session, scenario)


# ── HTTP client ───────────────────────────────────────────


@pytest_asyncio.fixture
async def client(db_session):
    """httpx client bound to the app, sharing the test session."""
    from httpx import ASGITransport, AsyncClient

    from src.db import get_db
    from src.main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()

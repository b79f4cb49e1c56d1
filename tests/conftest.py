"""Shared pytest fixtures for Sprintpair tests.

Service and API tests run against a throwaway SQLite file per test (via
aiosqlite) so that concurrent sessions get real, separate connections.
"""
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

import app.models  # noqa: F401  (registers every table on Base.metadata)
from app.config import get_settings
from app.database import Base
from app.models.participant import Participant, Role
from app.models.project import ProjectPromptContext, ProjectTemplate


@pytest.fixture(autouse=True)
def test_settings(monkeypatch, tmp_path):
    """Deterministic settings for every test; the cache is reset around each one."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'app.db'}")
    monkeypatch.setenv("GROQ_API_KEY", "test-groq-key")
    monkeypatch.setenv("GROQ_BASE_URL", "https://api.groq.com/openai/v1")
    monkeypatch.setenv("GITHUB_TOKEN", "")
    monkeypatch.setenv("GITHUB_RAW_BASE_URL", "https://raw.githubusercontent.com")
    monkeypatch.setenv("PROJECT_DURATION_DAYS", "7")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'sprintpair.db'}",
        echo=False,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.rollback()


# ── Data helpers ──────────────────────────────────────────────────────────────


async def create_participant(
    session_factory,
    name: str,
    role: Role | None = None,
    waiting_minutes_ago: int | None = None,
) -> Participant:
    """Insert and commit a participant; optionally already waiting."""
    waiting_since = None
    if waiting_minutes_ago is not None:
        waiting_since = datetime.now(timezone.utc) - timedelta(minutes=waiting_minutes_ago)

    async with session_factory() as session:
        participant = Participant(
            external_id=f"https://github.com/{name.lower()}",
            display_name=name,
            surname="Dev",
            role=role,
            waiting_since=waiting_since,
        )
        session.add(participant)
        await session.commit()
        return participant


async def create_template(session_factory, with_context: bool = True) -> ProjectTemplate:
    """Insert the only project template, with or without a crisis context."""
    async with session_factory() as session:
        context = None
        if with_context:
            context = ProjectPromptContext(
                industry="FinTech",
                sub_domain="Payment Processing",
                crisis_category="Data Integrity",
                crisis_scenario="Refunds were double-posted after a migration.",
                primary_constraint="Read-only ledger access",
                secondary_constraint="Reproducible results",
                compliance_requirement="PCI-DSS",
                success_metric="Every mismatch classified",
                timeline="7 days",
                legacy_system_issue="Nightly batch jobs overwrite manual fixes",
            )
            session.add(context)
            await session.flush()

        template = ProjectTemplate(
            title="Payment Reconciliation Firefight",
            description="Find and explain every ledger mismatch.",
            prompt_context_id=context.id if context else None,
        )
        session.add(template)
        await session.commit()
        return template


@pytest_asyncio.fixture
async def frontend(session_factory) -> Participant:
    return await create_participant(session_factory, "Ada", Role.FRONTEND)


@pytest_asyncio.fixture
async def backend(session_factory) -> Participant:
    return await create_participant(session_factory, "Linus", Role.BACKEND)


@pytest.fixture
def make_participant(session_factory):
    async def _make(name: str, role: Role | None = None, waiting_minutes_ago: int | None = None):
        return await create_participant(session_factory, name, role, waiting_minutes_ago)
    return _make


@pytest.fixture
def make_template(session_factory):
    async def _make(with_context: bool = True):
        return await create_template(session_factory, with_context)
    return _make

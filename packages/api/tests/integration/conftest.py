# This project was developed with assistance from AI tools.
"""Integration test fixtures -- real PostgreSQL + real MinIO, no mocks.

Session-scoped containers (started once per test run) provide real PostgreSQL
and MinIO instances. Function-scoped fixtures give each test an isolated DB
session with savepoint rollback so tests don't leak state.
"""

import os
from collections import namedtuple

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool
from testcontainers.minio import MinioContainer
from testcontainers.postgres import PostgresContainer

# ---------------------------------------------------------------------------
# Mark all tests in this directory as integration
# ---------------------------------------------------------------------------
pytestmark = pytest.mark.integration

_DB_PACKAGE = os.path.join(os.path.dirname(__file__), "..", "..", "..", "db")


# ---------------------------------------------------------------------------
# Session-scoped: containers + engine + migrations
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def pg_container():
    """Start postgres:16 via testcontainers."""
    with PostgresContainer(
        image="postgres:16",
        username="test",
        password="test",
        dbname="test",
    ) as pg:
        yield pg


@pytest.fixture(scope="session")
def minio_container():
    """Start minio/minio:latest via testcontainers."""
    with MinioContainer() as mc:
        yield mc


@pytest.fixture(scope="session")
def db_url(pg_container):
    """Async DB URL for asyncpg."""
    host = pg_container.get_container_host_ip()
    port = pg_container.get_exposed_port(5432)
    return f"postgresql+asyncpg://test:test@{host}:{port}/test"


@pytest.fixture(scope="session")
def sync_db_url(pg_container):
    """Sync DB URL for Alembic (psycopg2)."""
    host = pg_container.get_container_host_ip()
    port = pg_container.get_exposed_port(5432)
    return f"postgresql://test:test@{host}:{port}/test"


@pytest.fixture(scope="session")
def _run_migrations(sync_db_url):
    """Run alembic upgrade head against the test container."""
    os.environ["DATABASE_URL"] = sync_db_url
    from alembic import command
    from alembic.config import Config

    alembic_cfg = Config(os.path.join(_DB_PACKAGE, "alembic.ini"))
    alembic_cfg.set_main_option("script_location", os.path.join(_DB_PACKAGE, "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", sync_db_url)
    command.upgrade(alembic_cfg, "head")


@pytest.fixture(scope="session")
def async_engine(db_url, _run_migrations):
    """Create an async engine pointing at the test container."""
    engine = create_async_engine(db_url, echo=False, poolclass=NullPool)
    yield engine


@pytest.fixture(scope="session", autouse=True)
def _patch_db_module(async_engine):
    """Point db.database globals at the test database.

    The health check and the notification feed resolve the engine and
    session factory through this module at call time.
    """
    import db.database as db_mod

    db_mod.engine = async_engine
    db_mod.SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    db_mod.db_service = db_mod.DatabaseService(engine=async_engine)


@pytest.fixture(scope="session", autouse=True)
def _init_storage(minio_container):
    """Initialize the StorageService singleton with test MinIO."""
    from app_tracker.core.config import settings
    from app_tracker.services import storage as storage_mod

    host = minio_container.get_container_host_ip()
    port = minio_container.get_exposed_port(9000)

    storage_mod._service = storage_mod.StorageService(
        endpoint=f"http://{host}:{port}",
        access_key="minioadmin",
        secret_key="minioadmin",
        default_bucket="test-documents",
        public_buckets=("test-avatars",),
    )
    settings.AVATARS_BUCKET = "test-avatars"


# ---------------------------------------------------------------------------
# Function-scoped: per-test session with savepoint rollback
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_session(async_engine):
    """Per-test DB session with savepoint rollback."""
    conn = await async_engine.connect()
    txn = await conn.begin()
    session = AsyncSession(
        bind=conn,
        join_transaction_mode="create_savepoint",
        expire_on_commit=False,
    )
    yield session
    await session.close()
    await txn.rollback()
    await conn.close()


@pytest.fixture
def client_factory(db_session):
    """Factory returning an async httpx client with dependency overrides."""
    import db.database as db_mod
    from db.database import get_db, get_db_service

    from app_tracker.main import app
    from app_tracker.middleware.auth import get_current_user

    async def _make(user):
        async def _get_db():
            yield db_session

        async def _get_current_user(request=None):
            return user

        async def _get_db_service():
            return db_mod.db_service

        app.dependency_overrides[get_db] = _get_db
        app.dependency_overrides[get_current_user] = _get_current_user
        app.dependency_overrides[get_db_service] = _get_db_service
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        return httpx.AsyncClient(transport=transport, base_url="http://test")

    yield _make

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Seed data helper
# ---------------------------------------------------------------------------


SeedData = namedtuple(
    "SeedData",
    ["alice_pending", "alice_approved", "bob_review", "doc1", "comment1"],
)


@pytest_asyncio.fixture
async def seed_data(db_session):
    """Profiles for every persona plus three applications."""
    from db.enums import ApplicationStatus, UserRole
    from db.models import Application, ApplicationComment, Document, Profile

    from tests.functional.personas import (
        ADMIN_USER_ID,
        ALICE_USER_ID,
        BOB_USER_ID,
        RAY_USER_ID,
        RITA_USER_ID,
    )

    db_session.add_all(
        [
            Profile(
                user_id=ALICE_USER_ID,
                email="alice@example.com",
                full_name="Alice Johnson",
                role=UserRole.APPLICANT,
            ),
            Profile(
                user_id=BOB_USER_ID,
                email="bob@example.com",
                full_name="Bob Smith",
                role=UserRole.APPLICANT,
            ),
            Profile(
                user_id=RITA_USER_ID,
                email="rita@example.com",
                full_name="Rita Gomez",
                role=UserRole.REVIEWER,
            ),
            Profile(
                user_id=RAY_USER_ID,
                email="ray@example.com",
                full_name="Ray Patel",
                role=UserRole.REVIEWER,
            ),
            Profile(
                user_id=ADMIN_USER_ID,
                email="admin@example.com",
                full_name="Admin User",
                role=UserRole.ADMIN,
            ),
        ]
    )
    await db_session.flush()

    alice_pending = Application(
        title="Research grant",
        description="Funding for a soil study",
        status=ApplicationStatus.PENDING,
        applicant_id=ALICE_USER_ID,
        assigned_reviewer_id=RITA_USER_ID,
    )
    alice_approved = Application(
        title="Travel stipend",
        description="Conference travel",
        status=ApplicationStatus.APPROVED,
        applicant_id=ALICE_USER_ID,
        assigned_reviewer_id=RITA_USER_ID,
    )
    bob_review = Application(
        title="Equipment purchase",
        description="Lab microscope",
        status=ApplicationStatus.UNDER_REVIEW,
        applicant_id=BOB_USER_ID,
    )
    db_session.add_all([alice_pending, alice_approved, bob_review])
    await db_session.flush()

    doc1 = Document(
        application_id=alice_pending.id,
        file_name="budget.pdf",
        file_type="application/pdf",
        file_size=4,
        storage_path=f"{ALICE_USER_ID}/seed-budget.pdf",
        uploaded_by=ALICE_USER_ID,
    )
    comment1 = ApplicationComment(
        application_id=alice_pending.id,
        commenter_id=RITA_USER_ID,
        comment="Please attach a budget breakdown.",
    )
    db_session.add_all([doc1, comment1])
    await db_session.flush()

    return SeedData(
        alice_pending=alice_pending,
        alice_approved=alice_approved,
        bob_review=bob_review,
        doc1=doc1,
        comment1=comment1,
    )

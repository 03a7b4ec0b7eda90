"""Pytest configuration and fixtures."""

from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from docsign.main import app
from docsign.models import Document, Field, FieldType, Signer, User, get_db
from docsign.models.base import Base
from docsign.schemas import BoundingBox
from docsign.services.field_store import field_store
from docsign.services.lifecycle import lifecycle_manager
from docsign.services.notifications import Notification, notification_service
from docsign.services.signer_store import signer_store
from docsign.services.storage import storage_service
from docsign.services.units import document_unit


# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

SAMPLE_PDF = b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\ntrailer << >>\n%%EOF\n"


@pytest_asyncio.fixture
async def test_db() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(engine, expire_on_commit=False)

    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def client(test_db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def temp_storage(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point file storage at a temporary directory."""
    monkeypatch.setattr(storage_service, "storage_path", tmp_path)
    return tmp_path


@pytest.fixture(autouse=True)
def notifications(monkeypatch: pytest.MonkeyPatch) -> list[Notification]:
    """Record notifications instead of logging them."""
    sent: list[Notification] = []
    monkeypatch.setattr(notification_service, "transport", sent.append)
    return sent


@pytest_asyncio.fixture
async def owner(test_db: AsyncSession) -> User:
    user = User(email="owner@example.com", name="Olivia Owner")
    test_db.add(user)
    await test_db.commit()
    return user


@pytest_asyncio.fixture
async def document(test_db: AsyncSession, owner: User) -> Document:
    """A freshly uploaded draft."""
    return await lifecycle_manager.create_document(
        test_db,
        owner=owner,
        name="Lease Agreement",
        filename="lease.pdf",
        content=SAMPLE_PDF,
        mime_type="application/pdf",
    )


async def add_signer(db: AsyncSession, document_id: str, name: str) -> Signer:
    async with document_unit(db, document_id):
        return await signer_store.add_signer(
            db, document_id, name, f"{name.lower()}@example.com"
        )


async def add_field(
    db: AsyncSession,
    document_id: str,
    assigned_to: str | None,
    field_type: FieldType = FieldType.SIGNATURE,
    required: bool = True,
) -> Field:
    async with document_unit(db, document_id):
        return await field_store.add_field(
            db,
            document_id,
            page=1,
            bbox=BoundingBox(x=72, y=600, width=180, height=36),
            field_type=field_type,
            required=required,
            assigned_to=assigned_to,
        )


@pytest.fixture
def prepare(test_db: AsyncSession, document: Document):
    """
    Factory that gives the draft one signer per name, each with one
    required signature field, optionally in sequential order.
    """

    async def _prepare(
        *names: str,
        sequential: bool = False,
    ) -> tuple[list[Signer], list[Field]]:
        signers = [await add_signer(test_db, document.id, name) for name in names]
        fields = [await add_field(test_db, document.id, s.id) for s in signers]
        if sequential:
            await lifecycle_manager.set_signing_order(
                test_db,
                document.id,
                order=[s.id for s in signers],
                sequential_enabled=True,
            )
        return signers, fields

    return _prepare

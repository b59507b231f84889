"""
Shared fixtures: a temporary SQLite database, a temporary upload directory
and TestClients with and without an admin session.
"""
import asyncio
import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from wedding_api.config import settings
from wedding_api.database import Base, get_db
from wedding_api.main import app
from wedding_api.models import Admin
from wedding_api.utils.auth import hash_password
from wedding_api.utils.rate_limit import limiter

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "s3cret-pass"


def make_image_bytes(fmt="JPEG", size=(640, 480), mode="RGB", color=(200, 120, 80)):
    """Encode a solid-colour test image."""
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    path.mkdir()
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(path))
    return path


@pytest.fixture
def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)

    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_tables())
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def run_db(session_factory):
    """Run fn(session) to completion in a fresh session and return its result."""
    def run(fn):
        async def go():
            async with session_factory() as db:
                return await fn(db)
        return asyncio.run(go())
    return run


@pytest.fixture
def client(session_factory, upload_dir):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    limiter.enabled = True
    limiter.reset()


@pytest.fixture
def admin_account(run_db):
    async def create(db):
        admin = Admin(username=ADMIN_USERNAME, password=hash_password(ADMIN_PASSWORD))
        db.add(admin)
        await db.commit()
        return admin.id
    return run_db(create)


@pytest.fixture
def admin_client(client, admin_account):
    response = client.post(
        "/api/admin/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200
    return client

import asyncio
import os
import tempfile

# Point the module-level engine and upload mount somewhere disposable before
# config.py is imported by anything below.
_SCRATCH = tempfile.mkdtemp(prefix="book_catalog_tests_")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_SCRATCH}/books.db")
os.environ.setdefault("UPLOAD_DIR", os.path.join(_SCRATCH, "uploads"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from database import get_db, init_db
from services.image_storage import ImageStorage, get_image_storage


class FakeImageStorage(ImageStorage):
    """Keeps uploads in memory and records every delete it is asked for."""

    def __init__(self, folder="Book-Management", fail_delete=False):
        super().__init__(folder)
        self.stored = {}
        self.deleted = []
        self.fail_delete = fail_delete

    async def store(self, content, filename, content_type=None):
        ext = os.path.splitext(filename)[1].lower()
        url = f"https://images.example.com/upload/v1/{self.folder}/cover{len(self.stored) + 1}{ext}"
        self.stored[url] = content
        return url

    async def delete(self, identifier):
        self.deleted.append(identifier)
        if self.fail_delete:
            raise RuntimeError("image backend unavailable")
        return True


@pytest.fixture
def images():
    return FakeImageStorage()


@pytest.fixture
def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    asyncio.run(init_db(engine))
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def app_overrides(session_factory, images):
    from main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_image_storage] = lambda: images
    try:
        yield app
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def client(app_overrides):
    return TestClient(app_overrides)

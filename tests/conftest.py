from datetime import date, timedelta

import pytest
import httpx
from pydantic import SecretStr

from app.core.config import Settings
from app.main import create_app
from app.models.base import Base

from tests.helpers import ADMIN_TOKEN, MAX_PHOTO_BYTES


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'petspot.db'}",
        upload_dir=str(tmp_path / "images"),
        max_photo_bytes=MAX_PHOTO_BYTES,
        max_json_body_bytes=8 * 1024,
        admin_api_token=SecretStr(ADMIN_TOKEN),
        otlp_endpoint="",
    )


@pytest.fixture
async def app(settings):
    application = create_app(settings)
    engine = application.state.engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield application
    finally:
        await engine.dispose()


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session(app):
    async with app.state.session_factory() as session:
        yield session


@pytest.fixture
def announcement_payload():
    def _make(**overrides):
        body = {
            "petName": "Burek",
            "species": "dog",
            "breed": "mixed",
            "sex": "MALE",
            "age": 4,
            "description": "Brown with a white patch on the chest",
            "locationLatitude": 52.2297,
            "locationLongitude": 21.0122,
            "email": "owner@example.com",
            "phone": "+48 123 456 789",
            "lastSeenDate": (date.today() - timedelta(days=1)).isoformat(),
            "status": "MISSING",
        }
        body.update(overrides)
        return {k: v for k, v in body.items() if v is not None}

    return _make


@pytest.fixture
async def created(client, announcement_payload):
    """An announcement created through the API: (id, management password)."""
    r = await client.post("/api/v1/announcements", json=announcement_payload())
    assert r.status_code == 201
    body = r.json()
    return body["id"], body["managementPassword"]


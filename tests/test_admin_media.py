"""End-to-end tests for the admin media routes."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from litestar.testing import TestClient

from hotelsite.asgi import create_app
from hotelsite.config import DatabaseConfig, Settings
from hotelsite.db.models import MediaAsset, Page
from hotelsite.db.session import session_scope

TOKEN = "s3cret"
HEADERS = {"X-Admin-Token": TOKEN}
T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        debug=True,
        secret_key="test-secret-key",
        site_name="Seaside",
        admin_token=TOKEN,
        db=DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"),
    )


@pytest.fixture
def seed(settings):
    """Write rows straight to the database before the app starts."""
    def _seed(*rows):
        async def _write():
            async with session_scope(settings, create_all=True) as session:
                session.add_all(rows)
                await session.commit()

        asyncio.run(_write())

    return _seed


@pytest.fixture
def client(settings):
    with TestClient(app=create_app(settings, create_all=True)) as client:
        yield client


class TestAccess:
    def test_health_is_public(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_requires_token(self, client):
        response = client.get("/admin/media/stats")
        assert response.status_code == 401
        assert response.json()["detail"] == "Admin access required"

    def test_wrong_token(self, client):
        response = client.get("/admin/media/stats", headers={"X-Admin-Token": "guess"})
        assert response.status_code == 401

    def test_login_sets_session(self, client):
        response = client.post("/admin/login", data={"token": TOKEN}, follow_redirects=False)
        assert response.status_code in (301, 302, 303, 307)
        assert response.headers["location"] == "/admin/media"

        assert client.get("/admin/media/stats").status_code == 200

        client.post("/admin/logout", follow_redirects=False)
        assert client.get("/admin/media/stats").status_code == 401

    def test_login_rejects_bad_token(self, client):
        response = client.post("/admin/login", data={"token": "guess"}, follow_redirects=False)
        assert response.status_code == 401


class TestMediaRoutes:
    def test_register_and_detail(self, client):
        response = client.post(
            "/admin/media", json={"url": "/media/pool.jpg", "title": "Pool"}, headers=HEADERS
        )
        assert response.status_code == 201
        created = response.json()
        assert created["source_type"] == "mirrored"
        assert created["content_hash"] is None

        detail = client.get(f"/admin/media/{created['id']}", headers=HEADERS)
        assert detail.status_code == 200
        assert detail.json()["title"] == "Pool"
        assert detail.json()["usage"] == []

    def test_unknown_id(self, client):
        response = client.get("/admin/media/00000000-0000-0000-0000-000000000001", headers=HEADERS)
        assert response.status_code == 404

    def test_protected_delete_conflicts(self, client):
        created = client.post(
            "/admin/media", json={"url": "/logo.png", "source_type": "hardcoded"}, headers=HEADERS
        ).json()
        assert created["is_protected"] is True

        response = client.post(
            f"/admin/media/{created['id']}/delete", headers=HEADERS, follow_redirects=False
        )
        assert response.status_code == 409

        assert client.get(f"/admin/media/{created['id']}", headers=HEADERS).status_code == 200

    def test_delete(self, client):
        created = client.post("/admin/media", json={"url": "/a.jpg"}, headers=HEADERS).json()

        response = client.post(
            f"/admin/media/{created['id']}/delete", headers=HEADERS, follow_redirects=False
        )
        assert response.status_code in (301, 302, 303, 307)
        assert client.get(f"/admin/media/{created['id']}", headers=HEADERS).status_code == 404

    def test_register_rejects_bad_source(self, client):
        response = client.post(
            "/admin/media", json={"url": "/a.jpg", "source_type": "ftp"}, headers=HEADERS
        )
        assert response.status_code == 400

    def test_library_page(self, client, seed):
        seed(MediaAsset(url="/media/terrace.jpg", title="Terrace", created_at=T0))

        response = client.get("/admin/media", headers=HEADERS)

        assert response.status_code == 200
        assert "Terrace" in response.text
        assert "Seaside" in response.text

    def test_library_count_follows_usage_filter(self, client, seed):
        seed(
            MediaAsset(url="/a.jpg", title="A", created_at=T0),
            MediaAsset(url="/b.jpg", title="B", created_at=T0 + timedelta(seconds=1)),
            MediaAsset(url="/c.jpg", title="C", created_at=T0 + timedelta(seconds=2)),
            Page(slug="home", title="Home", hero_image="/b.jpg"),
        )

        used = client.get("/admin/media", params={"usage": "used"}, headers=HEADERS)
        unused = client.get("/admin/media", params={"usage": "unused"}, headers=HEADERS)

        assert "<small>(1)</small>" in used.text
        assert "<small>(2)</small>" in unused.text


class TestDuplicateRoutes:
    def test_preview_and_merge(self, client, seed):
        seed(
            MediaAsset(url="/a.jpg", content_hash="h1" * 32, byte_size=100, created_at=T0),
            MediaAsset(
                url="/b.jpg", content_hash="h1" * 32, byte_size=100, created_at=T0 + timedelta(minutes=1)
            ),
            Page(slug="home", title="Home", hero_image="/b.jpg"),
        )

        preview = client.get("/admin/media/duplicates", headers=HEADERS)
        assert preview.status_code == 200
        assert "Remove: /b.jpg" in preview.text

        merged = client.post("/admin/media/duplicates/merge", headers=HEADERS, follow_redirects=False)
        assert merged.status_code in (301, 302, 303, 307)
        assert merged.headers["location"] == "/admin/media/duplicates"

        stats = client.get("/admin/media/stats", headers=HEADERS).json()
        assert stats["total"] == 1
        assert stats["used"] == 1

        usage = client.get("/admin/media/usage", params={"url": "/a.jpg"}, headers=HEADERS).json()
        assert usage == [
            {"type": "page", "id": usage[0]["id"], "title": "Home", "field": "hero_image"}
        ]
        assert client.get("/admin/media/usage", params={"url": "/b.jpg"}, headers=HEADERS).json() == []

    def test_unused_listing(self, client, seed):
        seed(
            MediaAsset(url="/used.jpg", created_at=T0),
            MediaAsset(url="/free.jpg", created_at=T0),
            Page(slug="home", title="Home", og_image="/used.jpg"),
        )

        unused = client.get("/admin/media/unused", headers=HEADERS).json()
        assert [item["url"] for item in unused] == ["/free.jpg"]

import mongomock
import pytest
from fastapi.testclient import TestClient

import database
import main
import media
import settings
from auth import create_access_token


@pytest.fixture
def db():
    return mongomock.MongoClient()["company_site_test"]


@pytest.fixture
def client(db, monkeypatch):
    monkeypatch.setattr(database, "db", db)
    database.ensure_indexes(db)
    return TestClient(main.app)


@pytest.fixture
def admin_headers():
    token = create_access_token({"sub": settings.ADMIN_EMAIL, "role": "admin", "name": "Dana Admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def deleted_images(monkeypatch):
    """Records media deletes instead of calling Cloudinary."""
    calls = []

    def fake_delete(public_id):
        calls.append(public_id)
        return True

    monkeypatch.setattr(media, "delete_image", fake_delete)
    return calls


@pytest.fixture
def category(client, admin_headers):
    res = client.post(
        "/api/admin/categories",
        json={"name": "Web", "slug": "web", "type": "portfolio"},
        headers=admin_headers,
    )
    assert res.status_code == 201
    return res.json()

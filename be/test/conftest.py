import uuid
from types import SimpleNamespace

import pytest

from app import create_app
from common.db import db
from services.edge_cache.base_cache import BaseEdgeCache


class RecordingEdgeCache(BaseEdgeCache):
    """记录每次清除的 URL，fail=True 时模拟 CDN 失败"""

    def __init__(self):
        self.purged = []
        self.fail = False

    def purge_cache(self, urls):
        self.purged.extend(urls)
        return not self.fail


@pytest.fixture
def test_app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "JWT_SECRET_KEY": "test-secret-key-that-is-long-enough-for-hs256",
        "BASE_FOLDER": str(tmp_path),
        "BASE_WEB_URL": "https://notes.example.com",
        "FOLDER_PREFIX": 2,
        "HASH_SALT": "test-salt",
        "SWEEPER_ENABLED": False,
    })
    app.extensions['edge_cache'] = RecordingEdgeCache()
    yield app
    with app.app_context():
        db.drop_all()


@pytest.fixture
def client(test_app):
    return test_app.test_client()


@pytest.fixture
def edge_cache(test_app):
    return test_app.extensions['edge_cache']


@pytest.fixture
def owner():
    return SimpleNamespace(id=1, uid="owner-uid")


@pytest.fixture
def other_owner():
    return SimpleNamespace(id=2, uid="other-uid")


def register_and_login(client, username=None, password="123456"):
    """注册并登录，返回 JWT headers"""
    username = username or f"user_{uuid.uuid4().hex[:6]}"
    client.post("/auth/register", json={"username": username, "password": password})
    res = client.post("/auth/login", json={"username": username, "password": password})
    data = res.get_json()
    assert data["code"] == 0, f"Login failed: {data}"
    return {"Authorization": f"Bearer {data['data']['token']}"}


@pytest.fixture
def auth_headers(client):
    return register_and_login(client)

"""Shared fixtures: an app on a throwaway SQLite file and a record factory."""
from __future__ import annotations

import itertools
from typing import Any

import jwt
import pytest

from qrtrack import create_app
from qrtrack.models import QRRecord, db

SECRET = "test-secret-key-long-enough-for-hs256"

_ids = itertools.count(1)


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'test.db'}",
        "SECRET_KEY": SECRET,
        "JWT_ALG": "HS256",
        "JWT_PUBLIC_KEY": None,
        "USE_REDIS": False,
        "GEOIP_ENABLED": False,
        "BASE_URL": "http://qr.test",
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_record(app):
    def _make(**fields: Any) -> QRRecord:
        fields.setdefault("id", next(_ids))
        fields.setdefault("owner_id", "owner-1")
        fields.setdefault("destination", "https://example.com/landing")
        fields.setdefault("kind", "url")
        record = QRRecord(**fields)
        db.session.add(record)
        db.session.commit()
        return record
    return _make


@pytest.fixture
def reload(app):
    def _reload(record_id) -> QRRecord | None:
        db.session.expire_all()
        return db.session.get(QRRecord, int(record_id))
    return _reload


@pytest.fixture
def auth_headers():
    def _headers(owner_id: str = "owner-1") -> dict[str, str]:
        token = jwt.encode({"sub": owner_id}, SECRET, algorithm="HS256")
        return {"Authorization": f"Bearer {token}"}
    return _headers

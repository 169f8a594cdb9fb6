"""
Pytest configuration and shared fixtures for campaign tests.

The database URL is pointed at a temporary SQLite file before the package is
imported; tables are recreated for every test.
"""

import io
import os
import tempfile
from pathlib import Path

_TEST_DIR = Path(tempfile.mkdtemp(prefix="campaign-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DIR / 'test.db'}"
os.environ["ENV"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-with-at-least-32-characters"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "admin-test-password"

import pytest
from fastapi.testclient import TestClient

from campaign.api.main import app
from campaign.consumers.service import consumer_service
from campaign.influencers.service import influencer_service
from campaign.product_codes.service import product_code_service
from campaign.storage.db import db

ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]


@pytest.fixture(autouse=True)
def fresh_database():
    """Empty tables for every test."""
    db.reset()
    yield


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(client) -> dict[str, str]:
    resp = client.post(
        "/api/v1/auth/admin/login",
        json={"username": "admin", "password": ADMIN_PASSWORD},
    )
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
def influencer():
    """A self-registered influencer with code SARAH1 / password secret1."""
    return influencer_service.register(
        first_name="Sarah",
        last_name="Johnson",
        password="secret1",
        code="sarah1",
        age=27,
        sex="female",
        location="Milan",
    )


@pytest.fixture
def consumer():
    """A consumer named Mike Chen / password hunter22."""
    return consumer_service.register(
        first_name="Mike",
        last_name="Chen",
        password="hunter22",
    )


def csv_bytes(*codes: str, header: bool = True) -> bytes:
    lines = (["code"] if header else []) + list(codes)
    return ("\n".join(lines) + "\n").encode("utf-8")


def xlsx_bytes(*cells) -> bytes:
    from openpyxl import Workbook

    workbook = Workbook()
    sheet = workbook.active
    for cell in cells:
        sheet.append([cell])
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def product_codes():
    """Five unused product codes PROD-1 .. PROD-5."""
    codes = [f"PROD-{i}" for i in range(1, 6)]
    product_code_service.import_file("codes.csv", csv_bytes(*codes))
    return codes

"""
Shared test setup.

Points the app at an in-memory SQLite database before any billow module is
imported, and provides base test cases that build a fresh schema per test.
"""

import os
import sys

ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ROOT_DIR)
sys.path.insert(0, os.path.join(ROOT_DIR, 'backend'))

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_FORMAT", "console")

import unittest  # noqa: E402
from datetime import datetime, timezone  # noqa: E402
from types import SimpleNamespace  # noqa: E402

import httpx  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from billow.billing.plans import seed_default_plans  # noqa: E402
from billow.database import get_db  # noqa: E402
from billow.main import app  # noqa: E402
from billow.models import Base  # noqa: E402


def make_invoice(amount, currency="USD", status="unpaid", invoice_date="", client_id="CLI-1"):
    """Lightweight stand-in for an Invoice row in pure-function tests."""
    return SimpleNamespace(
        amount=amount,
        currency_type=currency,
        status=status,
        invoice_date=invoice_date,
        client_id=client_id,
    )


def make_client(client_id, name):
    return SimpleNamespace(id=client_id, name=name)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class DatabaseTestCase(unittest.IsolatedAsyncioTestCase):
    """Fresh in-memory schema, seeded with the default plans, per test."""

    async def asyncSetUp(self):
        self.engine = create_async_engine(
            "sqlite+aiosqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False)

        async with self.session_factory() as db:
            await seed_default_plans(db)
            await db.commit()

    async def asyncTearDown(self):
        await self.engine.dispose()


class ApiTestCase(DatabaseTestCase):
    """Drives the real app over ASGI with get_db bound to the test database."""

    async def asyncSetUp(self):
        await super().asyncSetUp()

        async def override_get_db():
            async with self.session_factory() as session:
                yield session

        app.dependency_overrides[get_db] = override_get_db
        self.client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")

    async def asyncTearDown(self):
        await self.client.aclose()
        app.dependency_overrides.clear()
        await super().asyncTearDown()

    async def sign_up(self, clerk_id="user_alice", email="alice@example.com", display_name="Alice") -> dict:
        resp = await self.client.post("/api/auth/sync-user", json={
            "clerk_id": clerk_id,
            "email": email,
            "display_name": display_name,
        })
        assert resp.status_code == 200, resp.text
        return resp.json()["user"]

    def auth(self, clerk_id="user_alice") -> dict:
        return {"X-Clerk-ID": clerk_id}

    async def create_client(self, name="Acme", email="billing@acme.test", clerk_id="user_alice") -> dict:
        resp = await self.client.post("/api/clients", json={"name": name, "email": email}, headers=self.auth(clerk_id))
        assert resp.status_code == 201, resp.text
        return resp.json()

    async def create_invoice(self, client_id, amount, status="unpaid", currency="USD",
                             invoice_date="2024-01-15", clerk_id="user_alice") -> dict:
        resp = await self.client.post("/api/invoices", json={
            "client_id": client_id,
            "amount": amount,
            "status": status,
            "currency_type": currency,
            "invoice_date": invoice_date,
            "due_date": invoice_date,
        }, headers=self.auth(clerk_id))
        assert resp.status_code == 201, resp.text
        return resp.json()

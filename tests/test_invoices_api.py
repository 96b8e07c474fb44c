"""
Tests for the invoice endpoints (backend/billow/api/invoices.py) and the
monthly invoice limit (backend/billow/billing/service.py).
"""

import sys
import os
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
import tests.support  # noqa: E402

from billow.billing.service import check_plan_limit, change_subscription  # noqa: E402
from billow.ids import new_client_id, new_invoice_id  # noqa: E402
from billow.models.client import Client  # noqa: E402
from billow.models.invoice import Invoice  # noqa: E402
from billow.services.auth import sync_user  # noqa: E402
from tests.support import ApiTestCase, DatabaseTestCase, utc  # noqa: E402


class TestInvoiceEndpoints(ApiTestCase):

    async def asyncSetUp(self):
        await super().asyncSetUp()
        await self.sign_up()
        self.acme = await self.create_client(name="Acme")

    async def test_create(self):
        invoice = await self.create_invoice(self.acme["id"], 120.5, currency="eur")
        self.assertTrue(invoice["id"].startswith("INV-"))
        self.assertEqual(invoice["client_name"], "Acme")
        self.assertEqual(invoice["currency_type"], "EUR")
        self.assertEqual(invoice["status"], "unpaid")

    async def test_bad_date_rejected(self):
        resp = await self.client.post("/api/invoices", json={
            "client_id": self.acme["id"], "amount": 10, "invoice_date": "15/01/2024",
        }, headers=self.auth())
        self.assertEqual(resp.status_code, 422)

    async def test_unpadded_date_rejected(self):
        resp = await self.client.post("/api/invoices", json={
            "client_id": self.acme["id"], "amount": 10, "invoice_date": "2024-1-5",
        }, headers=self.auth())
        self.assertEqual(resp.status_code, 422)

        resp = await self.client.post("/api/invoices", json={
            "client_id": self.acme["id"], "amount": 10, "invoice_date": "2024-01-05",
        }, headers=self.auth())
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["invoice_date"], "2024-01-05")

    async def test_negative_amount_rejected(self):
        resp = await self.client.post("/api/invoices", json={
            "client_id": self.acme["id"], "amount": -1,
        }, headers=self.auth())
        self.assertEqual(resp.status_code, 422)

    async def test_foreign_client_rejected(self):
        await self.sign_up(clerk_id="user_bob", email="bob@example.com")
        bobs = await self.create_client(name="Initech", clerk_id="user_bob")

        resp = await self.client.post("/api/invoices", json={
            "client_id": bobs["id"], "amount": 10,
        }, headers=self.auth())
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Invalid client selected")

    async def test_client_required(self):
        resp = await self.client.post("/api/invoices", json={"amount": 10}, headers=self.auth())
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Client is required")

    async def test_legacy_client_name(self):
        resp = await self.client.post("/api/invoices", json={
            "client_name": "Acme", "amount": 10,
        }, headers=self.auth())
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["client_id"], self.acme["id"])

        resp = await self.client.post("/api/invoices", json={
            "client_name": "Umbrella", "amount": 20,
        }, headers=self.auth())
        self.assertEqual(resp.status_code, 201)
        umbrella_id = resp.json()["client_id"]
        self.assertNotEqual(umbrella_id, self.acme["id"])

        resp = await self.client.get(f"/api/clients/{umbrella_id}", headers=self.auth())
        self.assertEqual(resp.json()["name"], "Umbrella")
        self.assertEqual(resp.json()["invoice_count"], 1)

    async def test_list_and_limit(self):
        for amount in (10, 20, 30):
            await self.create_invoice(self.acme["id"], amount)

        resp = await self.client.get("/api/invoices", headers=self.auth())
        body = resp.json()
        self.assertEqual(len(body), 3)
        self.assertTrue(all(i["client_name"] == "Acme" for i in body))

        resp = await self.client.get("/api/invoices", params={"limit": 2}, headers=self.auth())
        self.assertEqual(len(resp.json()), 2)

        resp = await self.client.get("/api/invoices", params={"limit": 0}, headers=self.auth())
        self.assertEqual(len(resp.json()), 3)

    async def test_get_other_users_invoice(self):
        invoice = await self.create_invoice(self.acme["id"], 10)
        await self.sign_up(clerk_id="user_bob", email="bob@example.com")

        resp = await self.client.get(f"/api/invoices/{invoice['id']}", headers=self.auth("user_bob"))
        self.assertEqual(resp.status_code, 404)

        resp = await self.client.get(f"/api/invoices/{invoice['id']}", headers=self.auth())
        self.assertEqual(resp.status_code, 200)

    async def test_update_moves_invoice_between_clients(self):
        globex = await self.create_client(name="Globex")
        invoice = await self.create_invoice(self.acme["id"], 100, status="paid")

        resp = await self.client.put(f"/api/invoices/{invoice['id']}", json={
            "client_id": globex["id"], "amount": 80,
        }, headers=self.auth())
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["client_id"], globex["id"])
        self.assertEqual(body["client_name"], "Globex")
        self.assertEqual(body["amount"], 80)
        self.assertEqual(body["status"], "paid")

        acme = (await self.client.get(f"/api/clients/{self.acme['id']}", headers=self.auth())).json()
        self.assertEqual(acme["invoice_count"], 0)
        self.assertEqual(acme["total_invoiced"], 0)

        globex = (await self.client.get(f"/api/clients/{globex['id']}", headers=self.auth())).json()
        self.assertEqual(globex["invoice_count"], 1)
        self.assertEqual(globex["total_paid"], 80)

    async def test_delete(self):
        invoice = await self.create_invoice(self.acme["id"], 100)

        resp = await self.client.delete(f"/api/invoices/{invoice['id']}", headers=self.auth())
        self.assertEqual(resp.json(), {"message": "Invoice deleted successfully"})

        resp = await self.client.delete(f"/api/invoices/{invoice['id']}", headers=self.auth())
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["error"], "Invoice not found")

        acme = (await self.client.get(f"/api/clients/{self.acme['id']}", headers=self.auth())).json()
        self.assertEqual(acme["invoice_count"], 0)


class TestInvoiceLimit(DatabaseTestCase):

    async def asyncSetUp(self):
        await super().asyncSetUp()
        async with self.session_factory() as db:
            self.user, _ = await sync_user(db, "user_carol", "carol@example.com")
            self.client_id = new_client_id()
            db.add(Client(id=self.client_id, user_id=self.user.id, name="Acme", email=""))
            await db.commit()

    async def add_invoices(self, count, created_at):
        async with self.session_factory() as db:
            for _ in range(count):
                db.add(Invoice(
                    id=new_invoice_id(),
                    user_id=self.user.id,
                    client_id=self.client_id,
                    client_name="Acme",
                    amount=1.0,
                    created_at=created_at,
                    updated_at=created_at,
                ))
            await db.commit()

    async def test_starter_monthly_limit(self):
        now = utc(2024, 5, 20, 12)
        await self.add_invoices(49, utc(2024, 5, 2))

        async with self.session_factory() as db:
            self.assertEqual(await check_plan_limit(db, self.user.id, "invoice", now=now), (True, ""))

        await self.add_invoices(1, utc(2024, 5, 3))
        async with self.session_factory() as db:
            allowed, reason = await check_plan_limit(db, self.user.id, "invoice", now=now)
        self.assertFalse(allowed)
        self.assertIn("50", reason)

    async def test_previous_months_do_not_count(self):
        await self.add_invoices(50, utc(2024, 4, 30))
        async with self.session_factory() as db:
            allowed, _ = await check_plan_limit(db, self.user.id, "invoice", now=utc(2024, 5, 1, 9))
        self.assertTrue(allowed)

    async def test_pro_is_unlimited(self):
        await self.add_invoices(60, utc(2024, 5, 2))
        async with self.session_factory() as db:
            await change_subscription(db, self.user.id, "PLN-PRO")
            await db.commit()
            allowed, _ = await check_plan_limit(db, self.user.id, "invoice", now=utc(2024, 5, 20))
        self.assertTrue(allowed)


if __name__ == '__main__':
    unittest.main()

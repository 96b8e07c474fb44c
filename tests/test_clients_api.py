"""
Tests for the client endpoints (backend/billow/api/clients.py) and the
statistics they keep (backend/billow/services/clients.py).
"""

import sys
import os
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
import tests.support  # noqa: E402

from billow.services.clients import compute_client_statistics  # noqa: E402
from tests.support import ApiTestCase, make_invoice  # noqa: E402


class TestComputeClientStatistics(unittest.TestCase):

    def test_empty(self):
        self.assertEqual(compute_client_statistics([]), {
            "total_invoiced": 0.0,
            "total_paid": 0.0,
            "invoice_count": 0,
            "average_invoice": 0.0,
        })

    def test_mixed_statuses(self):
        stats = compute_client_statistics([
            make_invoice(100, status="paid"),
            make_invoice(50, status="unpaid"),
        ])
        self.assertEqual(stats["total_invoiced"], 150)
        self.assertEqual(stats["total_paid"], 100)
        self.assertEqual(stats["invoice_count"], 2)
        self.assertEqual(stats["average_invoice"], 75)


class TestClientEndpoints(ApiTestCase):

    async def asyncSetUp(self):
        await super().asyncSetUp()
        await self.sign_up()

    async def test_create_and_get(self):
        created = await self.create_client(name="Acme", email="ap@acme.test")
        self.assertTrue(created["id"].startswith("CLI-"))
        self.assertEqual(created["invoice_count"], 0)

        resp = await self.client.get(f"/api/clients/{created['id']}", headers=self.auth())
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["name"], "Acme")

    async def test_blank_name_rejected(self):
        resp = await self.client.post("/api/clients", json={"name": ""}, headers=self.auth())
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["error"], "Validation error")

    async def test_statistics_follow_invoices(self):
        client = await self.create_client()
        await self.create_invoice(client["id"], 100, status="paid")
        await self.create_invoice(client["id"], 50, status="unpaid")

        resp = await self.client.get(f"/api/clients/{client['id']}", headers=self.auth())
        body = resp.json()
        self.assertEqual(body["total_invoiced"], 150)
        self.assertEqual(body["total_paid"], 100)
        self.assertEqual(body["invoice_count"], 2)
        self.assertEqual(body["average_invoice"], 75)

    async def test_search_matches_name_or_email(self):
        await self.create_client(name="Acme", email="billing@acme.test")
        await self.create_client(name="Globex", email="ap@globex.test")

        resp = await self.client.get("/api/clients", params={"search": "glob"}, headers=self.auth())
        self.assertEqual([c["name"] for c in resp.json()], ["Globex"])

        resp = await self.client.get("/api/clients", params={"search": "ACME.TEST"}, headers=self.auth())
        self.assertEqual([c["name"] for c in resp.json()], ["Acme"])

        resp = await self.client.get("/api/clients", headers=self.auth())
        self.assertEqual(len(resp.json()), 2)

    async def test_update(self):
        client = await self.create_client()
        resp = await self.client.put(
            f"/api/clients/{client['id']}", json={"name": "Acme Corp", "payment_delay": 30}, headers=self.auth(),
        )
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["name"], "Acme Corp")
        self.assertEqual(body["payment_delay"], 30)
        self.assertEqual(body["email"], "billing@acme.test")

    async def test_delete_blocked_by_invoices(self):
        client = await self.create_client()
        await self.create_invoice(client["id"], 10)

        resp = await self.client.delete(f"/api/clients/{client['id']}", headers=self.auth())
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Cannot delete client with existing invoices")

    async def test_delete(self):
        client = await self.create_client()
        resp = await self.client.delete(f"/api/clients/{client['id']}", headers=self.auth())
        self.assertEqual(resp.json(), {"message": "Client deleted successfully"})

        resp = await self.client.get(f"/api/clients/{client['id']}", headers=self.auth())
        self.assertEqual(resp.status_code, 404)

    async def test_other_users_client_is_not_found(self):
        await self.sign_up(clerk_id="user_bob", email="bob@example.com")
        bobs = await self.create_client(name="Initech", clerk_id="user_bob")

        resp = await self.client.get(f"/api/clients/{bobs['id']}", headers=self.auth())
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["error"], "Client not found")

        resp = await self.client.get("/api/clients", headers=self.auth())
        self.assertEqual(resp.json(), [])

    async def test_revenue_data_is_padded(self):
        client = await self.create_client()
        await self.create_invoice(client["id"], 100, status="paid", invoice_date="2024-01-10")
        await self.create_invoice(client["id"], 200, status="paid", invoice_date="2024-02-10")
        await self.create_invoice(client["id"], 999, status="unpaid", invoice_date="2024-03-10")

        resp = await self.client.get(f"/api/clients/{client['id']}/revenue-data", headers=self.auth())
        body = resp.json()
        self.assertEqual(body["months"], 7)
        self.assertEqual(body["revenue_data"], [200, 100, 0, 0, 0, 0, 0])

        resp = await self.client.get(
            f"/api/clients/{client['id']}/revenue-data", params={"months": 1}, headers=self.auth(),
        )
        self.assertEqual(resp.json()["revenue_data"], [200])

    async def test_starter_client_limit(self):
        for i in range(10):
            await self.create_client(name=f"Client {i}")

        resp = await self.client.post("/api/clients", json={"name": "One too many"}, headers=self.auth())
        self.assertEqual(resp.status_code, 403)
        body = resp.json()
        self.assertEqual(body["error"], "Plan limit reached")
        self.assertTrue(body["upgrade_required"])
        self.assertIn("10", body["message"])

    async def test_requires_identity(self):
        resp = await self.client.get("/api/clients")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["error"], "Authentication required")


if __name__ == '__main__':
    unittest.main()

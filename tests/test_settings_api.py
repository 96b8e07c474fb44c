"""
Tests for the profile and preference endpoints (backend/billow/api/settings.py).
"""

import sys
import os
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
import tests.support  # noqa: E402

from tests.support import ApiTestCase  # noqa: E402


class TestProfile(ApiTestCase):

    async def asyncSetUp(self):
        await super().asyncSetUp()
        await self.sign_up()

    async def test_get_profile(self):
        resp = await self.client.get("/api/settings/profile", headers=self.auth())
        body = resp.json()
        self.assertEqual(body["email"], "alice@example.com")
        self.assertEqual(body["display_name"], "Alice")
        self.assertEqual(body["clerk_id"], "user_alice")

    async def test_update_profile(self):
        resp = await self.client.post("/api/settings/profile", json={
            "display_name": "Alice Liddell",
            "email": "alice@wonderland.test",
        }, headers=self.auth())
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["message"], "Profile updated successfully")
        self.assertEqual(body["user"]["display_name"], "Alice Liddell")
        self.assertEqual(body["user"]["email"], "alice@wonderland.test")

    async def test_blank_fields_are_kept(self):
        resp = await self.client.post("/api/settings/profile", json={"display_name": "", "email": ""}, headers=self.auth())
        body = resp.json()["user"]
        self.assertEqual(body["display_name"], "Alice")
        self.assertEqual(body["email"], "alice@example.com")

    async def test_invalid_email(self):
        resp = await self.client.post("/api/settings/profile", json={"email": "not-an-email"}, headers=self.auth())
        self.assertEqual(resp.status_code, 422)
        body = resp.json()
        self.assertEqual(body["error"], "Validation error")
        self.assertTrue(any("email" in e["field"] for e in body["errors"]))

    async def test_email_taken(self):
        await self.sign_up(clerk_id="user_bob", email="bob@example.com")
        resp = await self.client.post("/api/settings/profile", json={"email": "bob@example.com"}, headers=self.auth())
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Email already in use")


class TestPreferences(ApiTestCase):

    async def asyncSetUp(self):
        await super().asyncSetUp()
        await self.sign_up()

    async def test_defaults(self):
        resp = await self.client.get("/api/settings/preferences", headers=self.auth())
        body = resp.json()
        self.assertEqual(body["theme"], "light")
        self.assertEqual(body["language"], "en")
        self.assertTrue(body["email_notifications"])
        self.assertFalse(body["marketing_emails"])
        self.assertEqual(body["currency"], "USD")
        self.assertEqual(body["timezone"], "UTC")

    async def test_partial_update(self):
        resp = await self.client.post("/api/settings/preferences", json={
            "theme": "dark",
            "marketing_emails": True,
        }, headers=self.auth())
        self.assertEqual(resp.status_code, 200)
        body = resp.json()["preferences"]
        self.assertEqual(body["theme"], "dark")
        self.assertTrue(body["marketing_emails"])
        self.assertEqual(body["language"], "en")
        self.assertTrue(body["weekly_reports"])

        resp = await self.client.get("/api/settings/preferences", headers=self.auth())
        self.assertEqual(resp.json()["theme"], "dark")

    async def test_false_flag_is_applied(self):
        resp = await self.client.post("/api/settings/preferences", json={"security_alerts": False}, headers=self.auth())
        self.assertFalse(resp.json()["preferences"]["security_alerts"])


if __name__ == '__main__':
    unittest.main()

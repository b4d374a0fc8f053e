import unittest

from fastapi.testclient import TestClient

from jobnexus.main import app

from .helpers import auth_headers, register_user


class UsersApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def test_missing_or_bad_token_is_rejected(self):
        self.assertEqual(self.client.get("/api/users/me").status_code, 401)
        response = self.client.get("/api/users/me", headers={"Authorization": "Bearer not-a-token"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Could not validate credentials")

    def test_unregistered_user_gets_403_on_protected_routes(self):
        response = self.client.get("/api/jobs", headers=auth_headers("never-registered"))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["detail"], "User profile not registered")

    def test_get_me_before_registration_is_404(self):
        response = self.client.get("/api/users/me", headers=auth_headers("not-yet-registered"))
        self.assertEqual(response.status_code, 404)

    def test_register_update_and_fetch(self):
        user_id, headers = register_user(self.client, "recruiter", name="Rita", company="Acme")

        response = self.client.put("/api/users/me", json={
            "email": f"{user_id}@example.com",
            "name": "Rita R.",
            "role": "recruiter",
            "company": "Acme GmbH",
        }, headers=headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["name"], "Rita R.")

        me = self.client.get("/api/users/me", headers=headers).json()
        self.assertEqual(me["id"], user_id)
        self.assertEqual(me["company"], "Acme GmbH")

    def test_role_cannot_change(self):
        user_id, headers = register_user(self.client, "applicant")
        response = self.client.put("/api/users/me", json={
            "email": f"{user_id}@example.com",
            "name": "Someone",
            "role": "recruiter",
        }, headers=headers)
        self.assertEqual(response.status_code, 400)

    def test_user_card(self):
        applicant_id, _ = register_user(self.client, "applicant", name="Ana", title="Engineer")
        _, recruiter_headers = register_user(self.client, "recruiter")

        card = self.client.get(f"/api/users/{applicant_id}", headers=recruiter_headers).json()
        self.assertEqual(card, {
            "id": applicant_id,
            "name": "Ana",
            "role": "applicant",
            "title": "Engineer",
            "company": None,
            "avatar_url": None,
        })
        self.assertEqual(self.client.get("/api/users/nobody", headers=recruiter_headers).status_code, 404)

    def test_health(self):
        self.assertEqual(self.client.get("/health").json(), {"status": "healthy"})

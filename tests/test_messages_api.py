import unittest

from fastapi.testclient import TestClient

from jobnexus.main import app

from .helpers import create_job, notifications_of_type, register_user


class ConversationsApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        self.recruiter_id, self.recruiter = register_user(self.client, "recruiter", name="Rita", company="Acme")
        self.applicant_id, self.applicant = register_user(self.client, "applicant", name="Ana")

    def _start(self, headers=None, **body):
        payload = {"participant_id": self.applicant_id, **body}
        return self.client.post("/api/conversations", json=payload, headers=headers or self.recruiter)

    def _send(self, conversation_id, headers, **body):
        return self.client.post(f"/api/conversations/{conversation_id}/messages", json=body, headers=headers)

    def test_start_validation(self):
        self.assertEqual(self._start(participant_id=self.recruiter_id).status_code, 400)
        self.assertEqual(self._start(participant_id="ghost").status_code, 404)

    def test_existing_conversation_is_reused(self):
        first = self._start()
        self.assertEqual(first.status_code, 201)

        again = self.client.post(
            "/api/conversations", json={"participant_id": self.recruiter_id}, headers=self.applicant
        )
        self.assertEqual(again.status_code, 200)
        self.assertEqual(again.json()["id"], first.json()["id"])

    def test_initial_message_is_delivered_into_an_existing_conversation(self):
        conversation_id = self._start().json()["id"]

        again = self._start(initial_message="Offer update")
        self.assertEqual(again.status_code, 200)
        self.assertEqual(again.json()["id"], conversation_id)
        self.assertEqual(again.json()["last_message"], "Offer update")

        messages = self.client.get(f"/api/conversations/{conversation_id}/messages", headers=self.applicant).json()
        self.assertEqual([m["content"] for m in messages], ["Offer update"])
        self.assertEqual(len(notifications_of_type(self.client, self.applicant, "message")), 1)

        unread = self.client.get("/api/conversations/unread-count", headers=self.applicant).json()
        self.assertEqual(unread, {"unread_count": 1})

    def test_initial_message_and_listing(self):
        conversation = self._start(initial_message="Hi Ana, are you available?").json()
        self.assertEqual(conversation["last_message"], "Hi Ana, are you available?")
        self.assertEqual(conversation["participant"]["id"], self.applicant_id)
        self.assertEqual(conversation["unread_count"], 0)

        listed = self.client.get("/api/conversations", headers=self.applicant).json()
        self.assertEqual(len(listed), 1)
        self.assertEqual(listed[0]["participant"]["name"], "Rita")
        self.assertEqual(listed[0]["unread_count"], 1)

        unread = self.client.get("/api/conversations/unread-count", headers=self.applicant).json()
        self.assertEqual(unread, {"unread_count": 1})

    def test_messages_flow_with_polling_and_read_marks(self):
        conversation_id = self._start().json()["id"]

        first = self._send(conversation_id, self.recruiter, content="Hello").json()
        second = self._send(conversation_id, self.applicant, content="Hi!").json()
        third = self._send(conversation_id, self.recruiter, content="", attachment_url="https://res.cloudinary.com/x/offer.pdf",
                           attachment_name="offer.pdf").json()

        self.assertEqual(first["receiver_id"], self.applicant_id)
        self.assertEqual(second["receiver_id"], self.recruiter_id)

        messages = self.client.get(f"/api/conversations/{conversation_id}/messages", headers=self.applicant).json()
        self.assertEqual([m["id"] for m in messages], [first["id"], second["id"], third["id"]])

        newer = self.client.get(
            f"/api/conversations/{conversation_id}/messages?after_id={second['id']}", headers=self.applicant
        ).json()
        self.assertEqual([m["id"] for m in newer], [third["id"]])

        conversation = self.client.get(f"/api/conversations/{conversation_id}", headers=self.applicant).json()
        self.assertEqual(conversation["last_message"], "Sent an attachment: offer.pdf")
        self.assertEqual(conversation["unread_count"], 2)

        response = self.client.put(f"/api/conversations/{conversation_id}/read", headers=self.applicant)
        self.assertEqual(response.json(), {"marked": 2})
        conversation = self.client.get(f"/api/conversations/{conversation_id}", headers=self.applicant).json()
        self.assertEqual(conversation["unread_count"], 0)

        recruiter_view = self.client.get(f"/api/conversations/{conversation_id}", headers=self.recruiter).json()
        self.assertEqual(recruiter_view["unread_count"], 1)

    def test_blank_message_is_rejected(self):
        conversation_id = self._start().json()["id"]
        self.assertEqual(self._send(conversation_id, self.recruiter, content="   ").status_code, 422)

    def test_non_participants_are_forbidden(self):
        conversation_id = self._start().json()["id"]
        _, stranger = register_user(self.client, "applicant")

        self.assertEqual(self.client.get(f"/api/conversations/{conversation_id}", headers=stranger).status_code, 403)
        self.assertEqual(self._send(conversation_id, stranger, content="hi").status_code, 403)
        self.assertEqual(self.client.get("/api/conversations/999999", headers=stranger).status_code, 404)

    def test_message_notifications_use_the_application_job(self):
        job = create_job(self.client, self.recruiter, title="Data Engineer")
        application = self.client.post(f"/api/jobs/{job['id']}/apply", json={}, headers=self.applicant).json()

        conversation = self._start(application_id=application["id"]).json()
        self.assertEqual(conversation["job_id"], job["id"])

        self._send(conversation["id"], self.recruiter, content="Can we talk?")
        self._send(conversation["id"], self.applicant, content="Sure")

        to_applicant = notifications_of_type(self.client, self.applicant, "message")
        self.assertEqual(len(to_applicant), 1)
        self.assertIn("Rita from Acme", to_applicant[0]["message"])
        self.assertIn("Data Engineer", to_applicant[0]["message"])

        to_recruiter = notifications_of_type(self.client, self.recruiter, "candidate_message")
        self.assertEqual(len(to_recruiter), 1)
        self.assertEqual(to_recruiter[0]["related_id"], str(conversation["id"]))

    def test_application_must_belong_to_the_pair(self):
        _, other_recruiter = register_user(self.client, "recruiter")
        job = create_job(self.client, other_recruiter)
        application = self.client.post(f"/api/jobs/{job['id']}/apply", json={}, headers=self.applicant).json()

        self.assertEqual(self._start(application_id=application["id"]).status_code, 400)


class MessageTemplatesApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        _, self.recruiter = register_user(self.client, "recruiter")

    def test_crud(self):
        response = self.client.post(
            "/api/message-templates", json={"name": "Intro", "content": "Hi {name}"}, headers=self.recruiter
        )
        self.assertEqual(response.status_code, 201)
        template = response.json()

        duplicate = self.client.post(
            "/api/message-templates", json={"name": "Intro", "content": "Again"}, headers=self.recruiter
        )
        self.assertEqual(duplicate.status_code, 400)

        response = self.client.put(
            f"/api/message-templates/{template['id']}", json={"content": "Hello {name}"}, headers=self.recruiter
        )
        self.assertEqual(response.json()["content"], "Hello {name}")

        listed = self.client.get("/api/message-templates", headers=self.recruiter).json()
        self.assertEqual([t["name"] for t in listed], ["Intro"])

        response = self.client.delete(f"/api/message-templates/{template['id']}", headers=self.recruiter)
        self.assertEqual(response.json(), {"id": template["id"], "deleted": True})
        self.assertEqual(self.client.get("/api/message-templates", headers=self.recruiter).json(), [])

    def test_blank_fields_and_ownership(self):
        blank = self.client.post("/api/message-templates", json={"name": " ", "content": "x"}, headers=self.recruiter)
        self.assertEqual(blank.status_code, 422)

        template = self.client.post(
            "/api/message-templates", json={"name": "Reject", "content": "Thanks"}, headers=self.recruiter
        ).json()
        _, other = register_user(self.client, "recruiter")
        response = self.client.put(f"/api/message-templates/{template['id']}", json={"name": "Mine"}, headers=other)
        self.assertEqual(response.status_code, 404)

        _, applicant = register_user(self.client, "applicant")
        self.assertEqual(self.client.get("/api/message-templates", headers=applicant).status_code, 403)

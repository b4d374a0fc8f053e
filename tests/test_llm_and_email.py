import unittest
import uuid
from unittest.mock import patch

from fastapi import BackgroundTasks

from jobnexus.config import get_settings
from jobnexus.database import async_session_maker
from jobnexus.models import User, UserRole
from jobnexus.services.email import absolute_url, render_notification_email, send_notification_email
from jobnexus.services.llm import LLMResponseError, extract_json_object
from jobnexus.services.notification_service import notify, status_change_notification


class ExtractJsonTests(unittest.TestCase):
    def test_plain_and_fenced_json(self):
        self.assertEqual(extract_json_object('{"a": 1}'), {"a": 1})
        self.assertEqual(extract_json_object('```json\n{"a": {"b": [1, 2]}}\n```'), {"a": {"b": [1, 2]}})

    def test_json_surrounded_by_prose(self):
        text = 'Here is the analysis:\n{"overallScore": 71}\nLet me know if you need more.'
        self.assertEqual(extract_json_object(text), {"overallScore": 71})

    def test_unusable_replies(self):
        for text in (None, "", "no json here", "{not: valid}"):
            with self.assertRaises(LLMResponseError):
                extract_json_object(text)


class EmailRenderingTests(unittest.TestCase):
    def test_relative_links_become_absolute(self):
        base = get_settings().frontend_url.rstrip("/")
        self.assertEqual(absolute_url("/applicant/jobs/3"), f"{base}/applicant/jobs/3")
        self.assertEqual(absolute_url("https://example.com/x"), "https://example.com/x")

    def test_template_lists_actions(self):
        html = render_notification_email(
            "Ana", "Interview Invitation", "You've been invited <b>now</b>.",
            [{"label": "View Details", "url": "/applicant/interviews/4"}],
        )
        self.assertIn("Hi Ana,", html)
        self.assertIn("View Details", html)
        self.assertIn(absolute_url("/applicant/interviews/4"), html)
        # message text is escaped
        self.assertIn("&lt;b&gt;now&lt;/b&gt;", html)


class SendEmailTests(unittest.IsolatedAsyncioTestCase):
    async def test_failures_are_swallowed(self):
        with patch("jobnexus.services.email.FastMail.send_message", side_effect=ConnectionError("smtp down")):
            sent = await send_notification_email("ana@example.com", "Ana", "Hello", "Body", [])
        self.assertFalse(sent)


class NotifyTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.user_id = f"applicant-{uuid.uuid4().hex[:12]}"
        async with async_session_maker() as db:
            db.add(User(id=self.user_id, email=f"{self.user_id}@example.com", name="Ana", role=UserRole.APPLICANT))
            await db.commit()

    def _payload(self):
        return status_change_notification(
            user_id=self.user_id, application_id=1, job_title="Engineer", company_name="Acme", status="hired",
        )

    async def test_stores_notification_without_email_by_default(self):
        tasks = BackgroundTasks()
        async with async_session_maker() as db:
            notification = await notify(db, self._payload(), tasks)
            await db.commit()

        self.assertIsNotNone(notification.id)
        self.assertFalse(notification.is_read)
        self.assertEqual(notification.actions[0]["label"], "View Application")
        self.assertEqual(tasks.tasks, [])

    async def test_schedules_email_when_enabled(self):
        settings = get_settings()
        tasks = BackgroundTasks()
        with patch.object(settings, "email_notifications", True), \
                patch.object(settings, "mail_username", "mailer"), \
                patch.object(settings, "mail_password", "secret"):
            async with async_session_maker() as db:
                await notify(db, self._payload(), tasks)
                await db.commit()

        self.assertEqual(len(tasks.tasks), 1)
        task = tasks.tasks[0]
        self.assertEqual(task.func, send_notification_email)
        self.assertEqual(task.args[0], f"{self.user_id}@example.com")
        self.assertEqual(task.args[2], "Offer Extended")

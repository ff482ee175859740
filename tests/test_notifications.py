import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.services.notification_dispatcher import NotificationDispatcher  # noqa: E402
from app.services.notification_registry import NotificationRegistry  # noqa: E402
from fakes import RecordingTransport  # noqa: E402

QUESTIONS = ["Tell us about <scaling> work?", "Why this role?"]


class NotificationDispatcherTests(unittest.IsolatedAsyncioTestCase):
    async def test_interview_invite_content(self):
        transport = RecordingTransport()
        dispatcher = NotificationDispatcher(transport, sender="hr@company.com")
        sent = await dispatcher.send_interview_invite(
            "Jane <Doe>", "jane@example.com", "Backend Engineer", "Tomorrow at 2:00 PM", QUESTIONS
        )

        self.assertTrue(sent)
        email = transport.sent[0]
        self.assertEqual(email.to, "jane@example.com")
        self.assertEqual(email.sender, "hr@company.com")
        self.assertEqual(email.subject, "Interview Invitation - Backend Engineer Position")
        self.assertIn("Tomorrow at 2:00 PM", email.text)
        self.assertIn("1. Tell us about <scaling> work?", email.text)
        self.assertIn("2. Why this role?", email.text)
        self.assertIn("Jane &lt;Doe&gt;", email.html)
        self.assertIn("<li>Tell us about &lt;scaling&gt; work?</li>", email.html)

    async def test_rejection_content(self):
        transport = RecordingTransport()
        dispatcher = NotificationDispatcher(transport, sender="hr@company.com")
        sent = await dispatcher.send_rejection("Sam", "sam@example.com", "Data Analyst")

        self.assertTrue(sent)
        self.assertEqual(transport.sent[0].subject, "Thank you for your application - Data Analyst Position")
        self.assertIn("Thank you Sam", transport.sent[0].text)

    async def test_undelivered_returns_false(self):
        dispatcher = NotificationDispatcher(RecordingTransport(delivered=False), sender="hr@company.com")
        self.assertFalse(await dispatcher.send_rejection("Sam", "sam@example.com", "Data Analyst"))

    async def test_transport_error_is_contained(self):
        transport = RecordingTransport(error=ConnectionError("smtp down"))
        dispatcher = NotificationDispatcher(transport, sender="hr@company.com")
        sent = await dispatcher.send_interview_invite("Sam", "sam@example.com", "Analyst", "Soon", [])

        self.assertFalse(sent)
        self.assertEqual(len(transport.sent), 1)


class NotificationRegistryTests(unittest.TestCase):
    def test_score_tiers(self):
        registry = NotificationRegistry()
        cases = [
            (95, "Exceptional Candidate!", "high_score"),
            (80, "Strong Candidate", "high_score"),
            (70, "Qualified Candidate", "candidate_applied"),
            (69, "New Application", "candidate_applied"),
        ]
        for score, title, kind in cases:
            with self.subTest(score=score):
                item = registry.create_candidate_notification("Jane", "Engineer", score)
                self.assertEqual(item.title, title)
                self.assertEqual(item.type, kind)
                self.assertEqual(item.match_score, score)
                self.assertFalse(item.read)

    def test_bounded_and_newest_first(self):
        registry = NotificationRegistry(max_items=3)
        for index in range(5):
            registry.add(type="system", title=f"n{index}", message="m")
        self.assertEqual([item.title for item in registry.recent()], ["n4", "n3", "n2"])


if __name__ == "__main__":
    unittest.main()

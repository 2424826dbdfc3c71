import json
import unittest
from unittest.mock import patch

import httpx

from backend.errors import EscalationError
from backend.escalation import escalate_to_support, escalation_body, escalation_subject, new_message_id


class TestEscalationHelpers(unittest.TestCase):
    def test_message_id_format(self):
        self.assertRegex(new_message_id(1700000000000), r"^ai-escalation-1700000000000-[0-9a-f]{6}$")
        self.assertRegex(new_message_id(), r"^ai-escalation-\d{13}-[0-9a-f]{6}$")

    def test_subject(self):
        self.assertEqual(escalation_subject("refund"), "AI Support Request - refund")
        self.assertEqual(escalation_subject(None), "AI Support Request")

    def test_body_defaults(self):
        body = escalation_body("Where is my order?", None, None, "id-1")
        self.assertIn("User message: Where is my order?", body)
        self.assertIn("AI reply: N/A", body)
        self.assertIn("Confidence: unknown", body)
        self.assertIn("Message ID: id-1", body)


class TestEscalateToSupport(unittest.TestCase):
    def test_stored_without_webhook(self):
        with patch("backend.config.SUPPORT_WEBHOOK_URL", None), \
                patch("backend.escalation.db_insert_escalation", return_value=True) as store:
            message_id = escalate_to_support("Need a human", ai_reply="1. Try again", topic="booking", confidence="low")
        self.assertTrue(message_id.startswith("ai-escalation-"))
        row = store.call_args.args[0]
        self.assertEqual(row["message_id"], message_id)
        self.assertEqual(row["subject"], "AI Support Request - booking")
        self.assertEqual(row["customer_email"], "guest")
        self.assertEqual(row["confidence"], "low")
        self.assertIn("Need a human", row["message"])

    def test_webhook_receives_escalation(self):
        received = []

        def handler(request):
            received.append(json.loads(request.content))
            return httpx.Response(204)

        with patch("backend.config.SUPPORT_WEBHOOK_URL", "https://hooks.example.com/support"), \
                patch("backend.escalation.db_insert_escalation", return_value=False):
            with httpx.Client(transport=httpx.MockTransport(handler)) as client:
                message_id = escalate_to_support("Help", customer_email="c@example.com", http_client=client)
        self.assertEqual(len(received), 1)
        self.assertEqual(received[0]["message_id"], message_id)
        self.assertEqual(received[0]["customer_email"], "c@example.com")

    def test_webhook_failure_raises(self):
        with patch("backend.config.SUPPORT_WEBHOOK_URL", "https://hooks.example.com/support"), \
                patch("backend.escalation.db_insert_escalation", return_value=False):
            with httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(500))) as client:
                with self.assertRaises(EscalationError):
                    escalate_to_support("Help", http_client=client)


if __name__ == "__main__":
    unittest.main()

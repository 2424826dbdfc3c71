import unittest

from backend.reply_fallback import NOT_SURE_LINE, synthesize_fallback
from backend.reply_models import ReplyMetadata


class TestFallback(unittest.TestCase):
    def test_low_confidence_gets_three_steps(self):
        text, uncertain = synthesize_fallback(ReplyMetadata(confidence="low"), "ordering")
        lines = text.split("\n")
        self.assertEqual(len(lines), 3)
        self.assertTrue(lines[0].startswith("1. " + NOT_SURE_LINE))
        self.assertTrue(lines[1].startswith("2. "))
        self.assertIn("rephrasing", lines[1])
        self.assertIn("Request human support", lines[2])
        self.assertTrue(uncertain)

    def test_summary_used_as_first_step(self):
        text, uncertain = synthesize_fallback(ReplyMetadata(summary="Refunds take 5 days", confidence="medium"), "refund")
        self.assertTrue(text.startswith("1. **Summary:** Refunds take 5 days"))
        self.assertTrue(uncertain)

    def test_admin_developer_step(self):
        text, _ = synthesize_fallback(ReplyMetadata(confidence="low"), "admin", developer_email="dev@example.com")
        self.assertIn("\n4. ", text)
        self.assertIn("dev@example.com", text)

    def test_admin_without_developer_email(self):
        text, _ = synthesize_fallback(ReplyMetadata(confidence="low"), "admin")
        self.assertNotIn("4. ", text)

    def test_developer_step_only_for_admin(self):
        text, _ = synthesize_fallback(ReplyMetadata(confidence="low"), "booking", developer_email="dev@example.com")
        self.assertNotIn("dev@example.com", text)

    def test_high_confidence_summary_only(self):
        text, uncertain = synthesize_fallback(ReplyMetadata(summary="All set", confidence="high"), "business")
        self.assertEqual(text, "**Summary:** All set")
        self.assertFalse(uncertain)


if __name__ == "__main__":
    unittest.main()

import unittest

from backend.reply_format import auto_number, markdown_to_html, render_inline


class TestAutoNumber(unittest.TestCase):
    def test_short_lines_get_numbered(self):
        out = auto_number("Open your account page\nSelect the order\nPress cancel")
        self.assertEqual(out, "1. Open your account page\n\n2. Select the order\n\n3. Press cancel")

    def test_single_line_unchanged(self):
        self.assertEqual(auto_number("Just one answer."), "Just one answer.")

    def test_too_many_lines_unchanged(self):
        text = "\n".join(f"line {n}" for n in range(11))
        self.assertEqual(auto_number(text), text)

    def test_long_line_unchanged(self):
        text = "short\n" + "x" * 240
        self.assertEqual(auto_number(text), text)

    def test_already_numbered_unchanged(self):
        text = "Intro\n1. first\n2. second"
        self.assertEqual(auto_number(text), text)

    def test_code_fence_unchanged(self):
        text = "Run:\n```\nls\n```"
        self.assertEqual(auto_number(text), text)


class TestMarkdownToHtml(unittest.TestCase):
    def test_escape_before_bold(self):
        html = markdown_to_html("<b>x</b> **bold**")
        self.assertIn("&lt;b&gt;x&lt;/b&gt; <strong>bold</strong>", html)
        self.assertEqual(html, "<p>&lt;b&gt;x&lt;/b&gt; <strong>bold</strong></p>")

    def test_bold_cannot_smuggle_markup(self):
        self.assertEqual(render_inline("**<script>**"), "<strong>&lt;script&gt;</strong>")

    def test_nested_lists(self):
        html = markdown_to_html("1. a\n  1. a1\n  2. a2\n2. b")
        self.assertEqual(html, "<ol><li>a</li><ol><li>a1</li><li>a2</li></ol><li>b</li></ol>")

    def test_dedent_without_matching_level_reopens(self):
        html = markdown_to_html("    1. deep\n  1. mid")
        self.assertEqual(html, "<ol><li>deep</li></ol><ol><li>mid</li></ol>")

    def test_prose_closes_lists(self):
        html = markdown_to_html("1. a\n  1. b\nDone")
        self.assertEqual(html, "<ol><li>a</li><ol><li>b</li></ol></ol><p>Done</p>")

    def test_headings_and_blank_lines(self):
        html = markdown_to_html("## Refunds\n\nAllow 5 days")
        self.assertEqual(html, "<h2>Refunds</h2><p></p><p>Allow 5 days</p>")

    def test_fenced_code_block(self):
        html = markdown_to_html("Run:\n```\n<x> & y\n```")
        self.assertEqual(html, "<p>Run:</p><pre><code>&lt;x&gt; &amp; y</code></pre>")

    def test_balanced_ol_tags(self):
        html = markdown_to_html("1. a\n      1. b\n   1. c\n1. d\ntext\n  1. e")
        self.assertEqual(html.count("<ol>"), html.count("</ol>"))

    def test_empty(self):
        self.assertEqual(markdown_to_html(""), "")


if __name__ == "__main__":
    unittest.main()

import unittest

from backend.list_tree import clean_inline, normalize_lists, parse_list_line, parse_list_tree, render_tree, scan_lists


class TestListLines(unittest.TestCase):
    def test_parse_list_line(self):
        self.assertEqual(parse_list_line("- item"), (0, "item"))
        self.assertEqual(parse_list_line("  3) step  "), (2, "step"))
        self.assertEqual(parse_list_line("\t• tabbed"), (4, "tabbed"))
        self.assertIsNone(parse_list_line("plain sentence"))
        self.assertIsNone(parse_list_line("**bold** start"))

    def test_clean_inline_keeps_bold(self):
        self.assertEqual(clean_inline("this is *very* **important**"), "this is very **important**")
        self.assertEqual(clean_inline("price * quantity"), "price quantity")


class TestParseListTree(unittest.TestCase):
    def test_nested_children_owned_by_item(self):
        tree = parse_list_tree(["1. a", "  1. a1", "  2. a2", "2. b"])
        self.assertEqual(len(tree), 1)
        root = tree[0]
        self.assertEqual([it.text for it in root.items], ["a", "b"])
        self.assertEqual(len(root.items[0].children), 1)
        child = root.items[0].children[0]
        self.assertEqual(child.indent_level, 2)
        self.assertEqual([it.text for it in child.items], ["a1", "a2"])
        self.assertEqual(root.items[1].children, [])

    def test_dedent_below_every_node_starts_new_root(self):
        tree = parse_list_tree(["    - deep", "- shallow"])
        self.assertEqual([n.indent_level for n in tree], [4, 0])

    def test_blank_lines_keep_list_open(self):
        tree = parse_list_tree(["- a", "", "- b"])
        self.assertEqual(len(tree), 1)
        self.assertEqual(len(tree[0].items), 2)

    def test_prose_starts_new_list(self):
        tree = parse_list_tree(["- a", "Then:", "- b"])
        self.assertEqual(len(tree), 2)

    def test_indented_prose_continues_item(self):
        tree = parse_list_tree(["1. Open the order", "   You will see a Cancel button.", "2. Press Cancel"])
        self.assertEqual(len(tree), 1)
        self.assertEqual([it.text for it in tree[0].items],
                         ["Open the order You will see a Cancel button.", "Press Cancel"])

    def test_scan_records_root_starts(self):
        scan = scan_lists(["- a", "", "Then:", "- b", "  more", "- c"])
        self.assertEqual(scan.starts, [0, 3])
        self.assertEqual(scan.continued, {4})

    def test_render_tree_numbers_each_level(self):
        tree = parse_list_tree(["* a", "    - x", "    - y", "* b"])
        self.assertEqual(render_tree(tree), ["1. a", "  1. x", "  2. y", "2. b"])


class TestNormalizeLists(unittest.TestCase):
    def test_bullets_become_numbered(self):
        self.assertEqual(normalize_lists("* a\n* b\n* c"), "1. a\n2. b\n3. c")

    def test_mixed_markers(self):
        self.assertEqual(normalize_lists("- a\n• b\n7) c"), "1. a\n2. b\n3. c")

    def test_nested_renumbering(self):
        out = normalize_lists("3. a\n   * a1\n   * a2\n9. b")
        self.assertEqual(out, "1. a\n  1. a1\n  2. a2\n2. b")

    def test_prose_stays_between_lists(self):
        out = normalize_lists("Steps:\n- a\n- b\nThen:\n- c\n- d")
        self.assertEqual(out, "Steps:\n1. a\n2. b\nThen:\n1. c\n2. d")

    def test_blank_line_split_list_not_duplicated(self):
        self.assertEqual(normalize_lists("1. a\n\n2. b"), "1. a\n2. b")

    def test_repeated_item_stays_below_prose(self):
        out = normalize_lists("- Open settings\n- Click save\n\nIf it still fails:\n\n- Click save")
        self.assertEqual(out, "1. Open settings\n2. Click save\n\nIf it still fails:\n\n1. Click save")

    def test_continuation_line_keeps_numbering(self):
        out = normalize_lists("1. Open the order\n   You will see a Cancel button.\n2. Press Cancel")
        self.assertEqual(out, "1. Open the order You will see a Cancel button.\n2. Press Cancel")

    def test_continuation_after_blank_line(self):
        out = normalize_lists("- a\n\n  details for a\n- b")
        self.assertEqual(out, "1. a details for a\n2. b")

    def test_stray_asterisks_cleaned_in_prose(self):
        out = normalize_lists("Please *do not* share it.\n**Note:** keep the receipt.")
        self.assertEqual(out, "Please do not share it.\n**Note:** keep the receipt.")

    def test_fenced_code_untouched(self):
        out = normalize_lists("```\n* not a list\n```\n* real")
        self.assertEqual(out, "```\n* not a list\n```\n1. real")

    def test_blank_runs_collapse(self):
        self.assertEqual(normalize_lists("a\n\n\n\nb"), "a\n\nb")

    def test_empty(self):
        self.assertEqual(normalize_lists(""), "")
        self.assertEqual(normalize_lists(None), "")


if __name__ == "__main__":
    unittest.main()

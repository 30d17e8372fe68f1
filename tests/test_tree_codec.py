import os
import sys
import unittest

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from forestminer.subtree_mining.errors import InvalidPosition, MalformedEncoding  # noqa: E402
from forestminer.subtree_mining.scope import Scope  # noqa: E402
from forestminer.subtree_mining.tree_codec import EncodingConfig, TreeCodec  # noqa: E402


class TreeCodecParseTests(unittest.TestCase):
    def setUp(self):
        self.codec = TreeCodec()

    def test_parse_scopes_and_children(self):
        parsed = self.codec.parse("A B -1 C -1")
        self.assertEqual(parsed.labels, ["A", "B", "C"])
        self.assertEqual(parsed.parents, [-1, 0, 0])
        self.assertEqual(parsed.children, [[1, 2], [], []])
        self.assertEqual(parsed.scopes, [Scope(0, 2), Scope(1, 1), Scope(2, 2)])
        self.assertEqual(parsed.close_index, [None, 2, 4])

    def test_explicit_root_close_is_accepted(self):
        parsed = self.codec.parse("A B D -1 -1 -1")
        self.assertEqual(parsed.scopes, [Scope(0, 2), Scope(1, 2), Scope(2, 2)])
        self.assertEqual(parsed.close_index[0], 5)

    def test_extra_whitespace(self):
        self.assertEqual(self.codec.parse("  A   B -1\tC -1 ").labels, ["A", "B", "C"])

    def test_malformed_encodings(self):
        for bad in ["", "   ", "-1", "A -1 -1", "A -1 B", "A B", "A B C -1"]:
            with self.subTest(tree=bad):
                with self.assertRaises(MalformedEncoding):
                    self.codec.parse(bad)
        with self.assertRaises(MalformedEncoding):
            self.codec.parse(None)

    def test_compute_scopes(self):
        tree = "A B -1 C D -1 E -1 -1"
        scopes = self.codec.compute_scopes(tree)
        self.assertEqual(scopes[0], Scope(0, 4))
        self.assertEqual(scopes[2], Scope(2, 4))
        # 叶子的上下界相同
        for leaf in (1, 3, 4):
            self.assertEqual(scopes[leaf].lower_bound, scopes[leaf].upper_bound)
        self.assertEqual(self.codec.compute_scopes("A"), [Scope(0, 0)])

    def test_rightmost_path_and_descendants(self):
        tree = "A B -1 C D -1 -1"
        self.assertEqual(self.codec.rightmost_path(tree), [0, 2, 3])
        self.assertEqual(self.codec.count_descendants(tree, 0), 3)
        self.assertEqual(self.codec.count_descendants(tree, 2), 1)
        self.assertEqual(self.codec.count_descendants(tree, 1), 0)
        self.assertEqual(self.codec.rightmost_path("A"), [0])


class TreeCodecBuildTests(unittest.TestCase):
    def setUp(self):
        self.codec = TreeCodec()

    def test_add_node_to_tree(self):
        self.assertEqual(self.codec.add_node_to_tree("A B -1", "C", 0), "A B -1 C -1")
        self.assertEqual(self.codec.add_node_to_tree("A B -1", "D", 1), "A B D -1 -1")
        self.assertEqual(self.codec.add_node_to_tree("A", "B", 0), "A B -1")
        self.assertEqual(self.codec.add_node_to_tree("", "A", -1), "A")
        self.assertEqual(self.codec.add_node_to_tree("A B -1 -1", "C", 0), "A B -1 C -1 -1")

    def test_add_node_rejects_bad_position_and_label(self):
        with self.assertRaises(InvalidPosition):
            self.codec.add_node_to_tree("A B -1", "C", 2)
        with self.assertRaises(InvalidPosition):
            self.codec.add_node_to_tree("A B -1", "C", -1)
        with self.assertRaises(InvalidPosition):
            self.codec.add_node_to_tree("", "C", 0)
        with self.assertRaises(MalformedEncoding):
            self.codec.add_node_to_tree("A", "-1", 0)
        with self.assertRaises(MalformedEncoding):
            self.codec.add_node_to_tree("A", "X Y", 0)
        with self.assertRaises(MalformedEncoding):
            self.codec.add_node_to_tree("A", "", 0)

    def test_invalid_position_is_a_malformed_encoding(self):
        self.assertTrue(issubclass(InvalidPosition, MalformedEncoding))

    def test_find_number_of_children_of_node(self):
        self.assertEqual(self.codec.find_number_of_children_of_node("A B -1 C -1", 0), 2)
        self.assertEqual(self.codec.find_number_of_children_of_node("A B -1 C -1", 1), 0)
        self.assertEqual(self.codec.find_number_of_children_of_node("A B D -1 E -1 -1 C -1", 1), 2)
        self.assertEqual(self.codec.find_number_of_children_of_node("A B D -1 E -1 -1 C -1", 0), 2)
        with self.assertRaises(InvalidPosition):
            self.codec.find_number_of_children_of_node("A", 1)

    def test_add_children_to_node(self):
        self.assertEqual(self.codec.add_children_to_node("A", ["B", "C D -1"]), "A B -1 C D -1 -1")
        self.assertEqual(self.codec.add_children_to_node("A", []), "A")
        self.assertEqual(self.codec.add_children_to_node("A", ["B C -1 -1"]), "A B C -1 -1")

    def test_nested_round_trip(self):
        tree = "A B -1 C D -1 E -1 -1"
        nested = self.codec.to_nested(tree)
        self.assertEqual(nested["label"], "A")
        self.assertEqual([c["label"] for c in nested["children"]], ["B", "C"])
        self.assertEqual(self.codec.from_nested(nested), tree)
        self.assertEqual(self.codec.from_nested({"name": "X", "children": [{"name": "Y"}]}), "X Y -1")
        with self.assertRaises(MalformedEncoding):
            self.codec.from_nested({"children": []})

    def test_custom_tokens(self):
        codec = TreeCodec(EncodingConfig(separator=",", ascend_token="^"))
        self.assertEqual(codec.add_node_to_tree("A,B,^", "C", 0), "A,B,^,C,^")
        self.assertEqual(codec.parse("A,B,^,C,^").labels, ["A", "B", "C"])
        # 默认配置下 "-1" 是回溯标记，自定义配置下只是普通标签
        self.assertEqual(codec.add_node_to_tree("A", "-1", 0), "A,-1,^")
        self.assertTrue(codec.contains_subtree("R,A,B,^,C,^,^", "A,C,^"))
        with self.assertRaises(ValueError):
            TreeCodec(EncodingConfig(separator="", ascend_token="^"))


class ContainsSubtreeTests(unittest.TestCase):
    def setUp(self):
        self.codec = TreeCodec()

    def test_direct_matches(self):
        self.assertTrue(self.codec.contains_subtree("A B -1 C -1", "A C -1"))
        self.assertTrue(self.codec.contains_subtree("A B -1 C -1", "A B -1 C -1"))
        self.assertTrue(self.codec.contains_subtree("X A B -1 C -1 -1", "A B -1 C -1"))
        self.assertTrue(self.codec.contains_subtree("A B -1", "B"))
        self.assertTrue(self.codec.contains_subtree("A B -1 A C -1 -1", "A C -1"))

    def test_embedded_only_is_rejected(self):
        self.assertFalse(self.codec.contains_subtree("A B D -1 -1", "A D -1"))
        self.assertFalse(self.codec.contains_subtree("A B -1 A C -1 -1", "A B -1 C -1"))

    def test_sibling_order_matters(self):
        self.assertFalse(self.codec.contains_subtree("A B -1 C -1", "A C -1 B -1"))

    def test_skips_sibling_that_does_not_match_deeper(self):
        # 第一个 B 的子树不含 D，需要跳过它匹配第二个 B
        self.assertTrue(self.codec.contains_subtree("A B C -1 -1 B D -1 -1", "A B D -1 -1"))
        self.assertTrue(self.codec.contains_subtree("A B C -1 -1 B D -1 -1 E -1", "A B D -1 -1 E -1"))
        self.assertFalse(self.codec.contains_subtree("A B D -1 -1 B C -1 -1", "A B C -1 -1 B D -1 -1"))

    def test_pattern_larger_than_tree(self):
        self.assertFalse(self.codec.contains_subtree("A", "A B -1"))

    def test_deep_chain(self):
        n = 1500
        labels = [f"L{i}" for i in range(n)]
        chain = " ".join(labels) + " -1" * (n - 1)
        self.assertEqual(self.codec.node_count(chain), n)
        self.assertTrue(self.codec.contains_subtree(chain, chain))
        lower_half = " ".join(labels[n // 2:]) + " -1" * (n - n // 2 - 1)
        self.assertTrue(self.codec.contains_subtree(chain, lower_half))
        wrong_leaf = " ".join(labels[:-1] + ["X"]) + " -1" * (n - 1)
        self.assertFalse(self.codec.contains_subtree(chain, wrong_leaf))
        self.assertEqual(self.codec.from_nested(self.codec.to_nested(chain)), chain)

    def test_attach_then_find_round_trip(self):
        for tree in ["A", "A B -1 C -1", "A B D -1 E -1 -1 C F -1 -1"]:
            for pos in range(self.codec.node_count(tree)):
                with self.subTest(tree=tree, pos=pos):
                    before = self.codec.find_number_of_children_of_node(tree, pos)
                    grown = self.codec.add_node_to_tree(tree, "Z", pos)
                    self.assertTrue(self.codec.contains_subtree(grown, "Z"))
                    parent_label = self.codec.parse(tree).labels[pos]
                    self.assertTrue(self.codec.contains_subtree(grown, f"{parent_label} Z -1"))
                    self.assertEqual(self.codec.find_number_of_children_of_node(grown, pos), before + 1)
                    self.assertTrue(self.codec.contains_subtree(grown, tree))


if __name__ == "__main__":
    unittest.main()

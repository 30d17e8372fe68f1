"""随机森林（树集合）生成：用于性能对比与性质测试。结果只依赖 seed。"""
from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from forestminer.subtree_mining.tree_codec import TreeCodec


class ForestGenerator:
    def __init__(
        self,
        *,
        labels: Sequence[str] = ("A", "B", "C", "D", "E"),
        max_nodes: int = 12,
        max_depth: int = 4,
        max_children: int = 3,
        seed: Optional[int] = None,
        codec: Optional[TreeCodec] = None,
    ) -> None:
        if not labels:
            raise ValueError("labels must not be empty")
        if max_nodes < 1 or max_depth < 0 or max_children < 0:
            raise ValueError(f"invalid generator bounds: max_nodes={max_nodes}, max_depth={max_depth}, max_children={max_children}")
        self.codec = codec or TreeCodec()
        for lb in labels:
            if not self.codec.is_valid_label(lb):
                raise ValueError(f"illegal label for the configured encoding: {lb!r}")
        self.labels = list(labels)
        self.max_nodes = int(max_nodes)
        self.max_depth = int(max_depth)
        self.max_children = int(max_children)
        self.rng = np.random.default_rng(seed)

    def _label(self) -> str:
        return self.labels[int(self.rng.integers(len(self.labels)))]

    def random_tree(self) -> str:
        size = int(self.rng.integers(1, self.max_nodes + 1))
        tree_labels = [self._label()]
        children: List[List[int]] = [[]]
        depth = [0]
        for _ in range(size - 1):
            open_nodes = [n for n in range(len(tree_labels))
                          if depth[n] < self.max_depth and len(children[n]) < self.max_children]
            if not open_nodes:
                break
            parent = open_nodes[int(self.rng.integers(len(open_nodes)))]
            node = len(tree_labels)
            tree_labels.append(self._label())
            children.append([])
            depth.append(depth[parent] + 1)
            children[parent].append(node)

        # 自底向上拼装编码；节点编号递增，逆序遍历即可保证孩子先于父节点完成
        encodings: List[Optional[str]] = [None] * len(tree_labels)
        for node in range(len(tree_labels) - 1, -1, -1):
            encodings[node] = self.codec.add_children_to_node(
                tree_labels[node], [encodings[c] for c in children[node]]
            )
        return encodings[0]

    def random_forest(self, num_trees: int) -> List[str]:
        return [self.random_tree() for _ in range(int(num_trees))]

"""
F1 / F2 候选初始化：单次扫描森林。

- F1：根类（空前缀），每个标签一个元素 (label, -1)，出现列表为该标签的所有节点。
- F2：对每个频繁标签 x 建一个前缀为 "x" 的种子类；树中每一对 (祖先 x, 后代 y)
  都记为元素 (y, 0) 的一个出现。这里包含间接后代，嵌入出现由最终过滤剔除。
"""
from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from forestminer.subtree_mining.equivalence_class import EquivalenceClass
from forestminer.subtree_mining.occurrences import (
    LabelOccurrence,
    Occurrence,
    OccurrenceList,
    OccurrenceMode,
    VectorOccurrence,
)
from forestminer.subtree_mining.scope import Scope
from forestminer.subtree_mining.tree_codec import ParsedTree, TreeCodec


class CandidateInitializer:
    def __init__(self, codec: TreeCodec, mode: OccurrenceMode, min_support: int) -> None:
        self.codec = codec
        self.mode = mode
        self.min_support = int(min_support)

    def _single(self, tree_index: int, scope: Scope) -> Occurrence:
        if self.mode is OccurrenceMode.LABEL_TRACKING:
            return LabelOccurrence(tree_index, scope, ())
        return VectorOccurrence(tree_index, (scope,))

    def _pair(self, tree_index: int, ancestor: Scope, descendant: Scope) -> Occurrence:
        if self.mode is OccurrenceMode.LABEL_TRACKING:
            return LabelOccurrence(tree_index, descendant, (ancestor.lower_bound,))
        return VectorOccurrence(tree_index, (ancestor, descendant))

    def build(self, forest: Sequence[ParsedTree]) -> Tuple[EquivalenceClass, List[EquivalenceClass]]:
        """返回 (F1 根类, F2 种子类列表)；两者都已按 min_support 剪枝。"""
        f1_lists: Dict[str, OccurrenceList] = {}
        f2_lists: Dict[Tuple[str, str], OccurrenceList] = {}
        for tree_index, tree in enumerate(forest):
            for pos, label in enumerate(tree.labels):
                scope = tree.scopes[pos]
                f1_lists.setdefault(label, OccurrenceList(self.mode)).add(self._single(tree_index, scope))
                # 先序编号 (lower, upper] 恰为全部后代
                for desc in range(scope.lower_bound + 1, scope.upper_bound + 1):
                    key = (label, tree.labels[desc])
                    f2_lists.setdefault(key, OccurrenceList(self.mode)).add(
                        self._pair(tree_index, scope, tree.scopes[desc])
                    )

        root = EquivalenceClass("", self.mode, self.codec)
        for label in sorted(f1_lists):
            root.add_element(label, -1, f1_lists[label])
        root.discard_infrequent(self.min_support)
        frequent = sorted(label for label, _ in root.elements)

        seeds: List[EquivalenceClass] = []
        for prefix_label in frequent:
            seed = EquivalenceClass(prefix_label, self.mode, self.codec)
            for label in frequent:
                occ = f2_lists.get((prefix_label, label))
                if occ is not None:
                    seed.add_element(label, 0, occ)
            seed.discard_infrequent(self.min_support)
            if seed:
                seeds.append(seed)
        return root, seeds

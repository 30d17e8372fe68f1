from __future__ import annotations

from typing import Dict, List, Tuple

from forestminer.subtree_mining.errors import MinerInvariantError
from forestminer.subtree_mining.occurrences import OccurrenceList, OccurrenceMode
from forestminer.subtree_mining.tree_codec import TreeCodec

Element = Tuple[str, int]


class EquivalenceClass:
    """共享同一前缀的所有单节点扩展。

    - prefix：前缀编码；根类为空串，元素挂接位置为 -1。
    - elements：(label, attach_position)，按 (label, position) 有序。
    - 每个元素对应的完整模式编码 -> 出现列表。
    """

    def __init__(self, prefix: str, mode: OccurrenceMode, codec: TreeCodec) -> None:
        self.prefix = prefix
        self.mode = mode
        self.codec = codec
        self._patterns: Dict[Element, str] = {}
        self._occurrences: Dict[str, OccurrenceList] = {}

    @property
    def elements(self) -> List[Element]:
        return sorted(self._patterns)

    def pattern_of(self, label: str, attach_position: int) -> str:
        pattern = self._patterns.get((label, attach_position))
        if pattern is None:
            pattern = self.codec.add_node_to_tree(self.prefix, label, attach_position)
        return pattern

    def add_element(self, label: str, attach_position: int, occurrences: OccurrenceList) -> str:
        element = (label, attach_position)
        if element in self._patterns:
            raise MinerInvariantError(f"element {element} added twice to class {self.prefix!r}")
        if occurrences.mode is not self.mode:
            raise MinerInvariantError(
                f"{occurrences.mode.value} list added to a {self.mode.value} class {self.prefix!r}"
            )
        pattern = self.codec.add_node_to_tree(self.prefix, label, attach_position)
        self._patterns[element] = pattern
        self._occurrences[pattern] = occurrences
        return pattern

    def occurrences_of(self, label: str, attach_position: int) -> OccurrenceList:
        pattern = self._patterns.get((label, attach_position))
        occ = self._occurrences.get(pattern) if pattern is not None else None
        if occ is None:
            raise MinerInvariantError(
                f"no occurrence list for element ({label!r}, {attach_position}) of class {self.prefix!r}"
            )
        return occ

    def items(self) -> List[Tuple[Element, str, OccurrenceList]]:
        return [(el, self._patterns[el], self.occurrences_of(*el)) for el in self.elements]

    def discard_infrequent(self, min_support: int) -> int:
        """原地丢弃支持度不足的元素，返回丢弃数量。"""
        dropped = [el for el in self._patterns if self._occurrences[self._patterns[el]].support() < min_support]
        for el in dropped:
            pattern = self._patterns.pop(el)
            del self._occurrences[pattern]
        return len(dropped)

    def __len__(self) -> int:
        return len(self._patterns)

    def __bool__(self) -> bool:
        return bool(self._patterns)

    def __repr__(self) -> str:
        return f"EquivalenceClass(prefix={self.prefix!r}, elements={self.elements})"

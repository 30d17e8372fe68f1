"""
模式出现记录与出现列表，以及两种连接（in-scope / out-scope）。

两种表示由 OccurrenceMode 标记，一次挖掘只选一种，并显式传入每次连接：
- LABEL_TRACKING：(tree_index, scope, match_label)，match_label 为前缀节点在宿主树中的先序编号元组；
  同一棵树内的每个出现都单独保留。
- SCOPE_VECTOR：(tree_index, scopes)，只记录模式最右路径上各节点的 scope（根 -> 尖端）。

支持度一律按出现的不同树计数（support()）；len() 是原始记录数。
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple, Union

from forestminer.subtree_mining.errors import MinerInvariantError
from forestminer.subtree_mining.scope import Scope


class OccurrenceMode(Enum):
    LABEL_TRACKING = "label_tracking"
    SCOPE_VECTOR = "scope_vector"

    @classmethod
    def from_flag(cls, count_multiple_occurrences: bool) -> "OccurrenceMode":
        return cls.LABEL_TRACKING if count_multiple_occurrences else cls.SCOPE_VECTOR


@dataclass(frozen=True, order=True)
class LabelOccurrence:
    tree_index: int
    scope: Scope
    match_label: Tuple[int, ...] = ()

    @property
    def terminal_scope(self) -> Scope:
        return self.scope


@dataclass(frozen=True, order=True)
class VectorOccurrence:
    tree_index: int
    scopes: Tuple[Scope, ...]

    @property
    def terminal_scope(self) -> Scope:
        return self.scopes[-1]


Occurrence = Union[LabelOccurrence, VectorOccurrence]

_RECORD_TYPES = {
    OccurrenceMode.LABEL_TRACKING: LabelOccurrence,
    OccurrenceMode.SCOPE_VECTOR: VectorOccurrence,
}


class OccurrenceList:
    """某一个确定模式的出现记录有序集合（无重复）。"""

    def __init__(self, mode: OccurrenceMode, records: Iterable[Occurrence] = ()) -> None:
        self.mode = mode
        self._record_type = _RECORD_TYPES[mode]
        self._records: Set[Occurrence] = set()
        self._ordered: Optional[List[Occurrence]] = None
        for rec in records:
            self.add(rec)

    def add(self, record: Occurrence) -> bool:
        if type(record) is not self._record_type:
            raise MinerInvariantError(
                f"{type(record).__name__} added to a {self.mode.value} occurrence list"
            )
        if record in self._records:
            return False
        self._records.add(record)
        self._ordered = None
        return True

    def records(self) -> List[Occurrence]:
        if self._ordered is None:
            self._ordered = sorted(self._records)
        return self._ordered

    def __iter__(self) -> Iterator[Occurrence]:
        return iter(self.records())

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)

    def __contains__(self, record: object) -> bool:
        return record in self._records

    def tree_indices(self) -> Set[int]:
        return {rec.tree_index for rec in self._records}

    def support(self) -> int:
        return len(self.tree_indices())

    def by_tree(self) -> Dict[int, List[Occurrence]]:
        grouped: Dict[int, List[Occurrence]] = {}
        for rec in self.records():
            grouped.setdefault(rec.tree_index, []).append(rec)
        return grouped

    def filtered(self, keep_tree: Callable[[int], bool]) -> "OccurrenceList":
        return OccurrenceList(self.mode, (rec for rec in self.records() if keep_tree(rec.tree_index)))

    def __repr__(self) -> str:
        return f"OccurrenceList(mode={self.mode.value}, records={len(self)}, support={self.support()})"


def _check_modes(mode: OccurrenceMode, *lists: OccurrenceList) -> None:
    for occ in lists:
        if occ.mode is not mode:
            raise MinerInvariantError(f"join in {mode.value} mode got a {occ.mode.value} occurrence list")


def _group_by_match_label(records: Sequence[LabelOccurrence]) -> Dict[Tuple[int, ...], List[LabelOccurrence]]:
    grouped: Dict[Tuple[int, ...], List[LabelOccurrence]] = {}
    for rec in records:
        grouped.setdefault(rec.match_label, []).append(rec)
    return grouped


def attach_depth(attach_position: int, rightmost_path: Sequence[int]) -> int:
    """在前缀最右路径上线性查找挂接位置，返回其深度下标；找不到即为不变量错误。"""
    for depth, position in enumerate(rightmost_path):
        if position == attach_position:
            return depth
    raise MinerInvariantError(
        f"attach position {attach_position} is not on the rightmost path {list(rightmost_path)}"
    )


# ---------- in-scope：把 y 挂为 x 的孩子 ----------
def in_scope_join(mode: OccurrenceMode, x_list: OccurrenceList, y_list: OccurrenceList) -> OccurrenceList:
    _check_modes(mode, x_list, y_list)
    out = OccurrenceList(mode)
    y_by_tree = y_list.by_tree()
    for tree_index, xs in x_list.by_tree().items():
        ys = y_by_tree.get(tree_index)
        if not ys:
            continue
        if mode is OccurrenceMode.LABEL_TRACKING:
            y_by_label = _group_by_match_label(ys)
            for x in xs:
                for y in y_by_label.get(x.match_label, ()):
                    if x.scope.contains(y.scope):
                        out.add(LabelOccurrence(tree_index, y.scope, x.match_label + (x.scope.lower_bound,)))
        else:
            terminals = [x.terminal_scope for x in xs]
            for x in xs:
                sx = x.terminal_scope
                for y in ys:
                    sy = y.terminal_scope
                    if not sx.contains(sy):
                        continue
                    # 只保留最近的包含者：中间若夹着另一个 x 的 scope 则丢弃
                    if any(sx.contains(z) and z.contains(sy) for z in terminals):
                        continue
                    out.add(VectorOccurrence(tree_index, x.scopes + (sy,)))
    return out


# ---------- out-scope：把 y 挂为 attach_position 节点的后续孩子 ----------
def out_scope_join(
    mode: OccurrenceMode,
    x_list: OccurrenceList,
    y_list: OccurrenceList,
    attach_position: int,
    rightmost_path: Sequence[int],
) -> OccurrenceList:
    _check_modes(mode, x_list, y_list)
    depth = attach_depth(attach_position, rightmost_path)
    out = OccurrenceList(mode)
    y_by_tree = y_list.by_tree()
    for tree_index, xs in x_list.by_tree().items():
        ys = y_by_tree.get(tree_index)
        if not ys:
            continue
        if mode is OccurrenceMode.LABEL_TRACKING:
            y_by_label = _group_by_match_label(ys)
            for x in xs:
                for y in y_by_label.get(x.match_label, ()):
                    if x.scope.is_strictly_less_than(y.scope):
                        out.add(LabelOccurrence(tree_index, y.scope, x.match_label + (x.scope.lower_bound,)))
        else:
            for x in xs:
                if len(x.scopes) < depth + 2:
                    raise MinerInvariantError(
                        f"scope vector of length {len(x.scopes)} too short for attach depth {depth}"
                    )
                anchor = x.scopes[depth]
                left = x.scopes[depth + 1]
                for y in ys:
                    sy = y.terminal_scope
                    if anchor.contains(sy) and left.is_strictly_less_than(sy):
                        out.add(VectorOccurrence(tree_index, x.scopes[:depth + 1] + (sy,)))
    return out

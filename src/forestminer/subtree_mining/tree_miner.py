"""
TreeMiner 风格的频繁诱导（非嵌入）有序子树挖掘。

流程：
1) 单次扫描森林得到 F1 根类与 F2 种子类；
2) 用显式工作栈对等价类做深度优先扩展（in-scope / out-scope 连接）；
3) 对所有已确认类中的每个模式回到原始森林做直接包含校验，剔除仅以嵌入方式出现的匹配；
4) 输出排序去重后的模式列表与 树 x 模式 的 0/1 刻画矩阵。
"""
from __future__ import annotations

import logging
import math
import numbers
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

import numpy as np

from forestminer.subtree_mining.equivalence_class import EquivalenceClass
from forestminer.subtree_mining.errors import MalformedEncoding, MiningInterrupted, UnsupportedMinSupport
from forestminer.subtree_mining.initializer import CandidateInitializer
from forestminer.subtree_mining.occurrences import OccurrenceList, OccurrenceMode, in_scope_join, out_scope_join
from forestminer.subtree_mining.tree_codec import TreeCodec


@dataclass
class MiningResult:
    patterns: List[str]
    characterization: np.ndarray
    supports: Dict[str, int]
    mode: OccurrenceMode
    min_support: int
    stats: Dict[str, Any] = field(default_factory=dict)

    def as_tuple(self) -> Tuple[List[str], np.ndarray]:
        return self.patterns, self.characterization


class TreeMiner:
    """等价类增长挖掘器。

    重要参数：
    - min_support: int(>=1) 表示最少覆盖树数；float(0~1] 表示覆盖比例（向上取整）。
    - count_multiple_occurrences: True 使用 LABEL_TRACKING 出现列表，False 使用 SCOPE_VECTOR；一次运行内不变。
    - time_budget_seconds / max_expansions / should_continue: 任一触发即抛 MiningInterrupted，不返回部分结果。
    - max_pattern_nodes: 模式节点数上限（None 表示不限）。
    - debug_log_every: 每 N 次扩展打一条进度日志。
    """

    def __init__(
        self,
        forest: Sequence[str],
        *,
        min_support: float | int = 1,
        count_multiple_occurrences: bool = True,
        codec: Optional[TreeCodec] = None,
        time_budget_seconds: Optional[float] = None,
        max_expansions: Optional[int] = None,
        max_pattern_nodes: Optional[int] = None,
        should_continue: Optional[Callable[[], bool]] = None,
        debug_log_every: int = 10000,
        log: Optional[logging.Logger] = None,
        log_level: int = logging.INFO,
    ) -> None:
        self.forest = list(forest)
        self.codec = codec or TreeCodec()
        self.mode = OccurrenceMode.from_flag(bool(count_multiple_occurrences))
        self.min_support_param = min_support
        self.time_budget_seconds = time_budget_seconds
        self.max_expansions = max_expansions
        self.max_pattern_nodes = max_pattern_nodes
        self.should_continue = should_continue
        self.debug_log_every = int(debug_log_every)
        self.logger = log or logging.getLogger(self.__class__.__name__)
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
            handler.setFormatter(fmt)
            self.logger.addHandler(handler)
        self.logger.setLevel(log_level)

        # 先校验参数与输入，畸形编码在挖掘开始前失败
        self.min_support = self._min_sup_abs()
        for idx, tree in enumerate(self.forest):
            if not isinstance(tree, str):
                raise MalformedEncoding(f"tree #{idx} is not a string encoding: {tree!r}")
        self._parsed = [self.codec.parse(tree) for tree in self.forest]

        self._direct_cache: Dict[Tuple[str, int], bool] = {}
        self._start_time = 0.0
        self._expansions = 0
        self._joins = 0

    def _min_sup_abs(self) -> int:
        ms = self.min_support_param
        if isinstance(ms, bool) or not isinstance(ms, numbers.Real):
            raise UnsupportedMinSupport(f"min_support must be an int or a float ratio, got {ms!r}")
        if isinstance(ms, numbers.Integral):
            if ms <= 0:
                raise UnsupportedMinSupport(f"min_support must be >= 1, got {ms}")
            return int(ms)
        if not 0.0 < float(ms) <= 1.0:
            raise UnsupportedMinSupport(f"min_support ratio must be in (0, 1], got {ms}")
        return max(1, int(math.ceil(len(self.forest) * float(ms))))

    # ------------------------- 预算 / 取消 -------------------------
    def _check_budget(self) -> None:
        if self.time_budget_seconds is not None and (time.time() - self._start_time) >= self.time_budget_seconds:
            raise MiningInterrupted(
                f"time budget of {self.time_budget_seconds}s exhausted after {self._expansions} expansions"
            )
        if self.max_expansions is not None and self._expansions >= self.max_expansions:
            raise MiningInterrupted(f"expansion limit reached: {self._expansions}")
        if self.should_continue is not None and not self.should_continue():
            raise MiningInterrupted(f"mining cancelled by caller after {self._expansions} expansions")

    # ------------------------- 直接包含（带缓存） -------------------------
    def _contains_directly(self, tree_index: int, pattern: str) -> bool:
        key = (pattern, tree_index)
        hit = self._direct_cache.get(key)
        if hit is None:
            hit = self.codec.contains_subtree(self.forest[tree_index], pattern)
            self._direct_cache[key] = hit
        return hit

    def _occurs_directly(self, pattern: str, occurrences: OccurrenceList) -> bool:
        return any(self._contains_directly(t, pattern) for t in sorted(occurrences.tree_indices()))

    def _too_large(self, node_count: int) -> bool:
        return self.max_pattern_nodes is not None and node_count > self.max_pattern_nodes

    # ------------------------- 单个等价类的扩展 -------------------------
    def _grow(self, cls: EquivalenceClass) -> List[EquivalenceClass]:
        prefix = cls.prefix
        rightmost = self.codec.rightmost_path(prefix)
        elements = cls.elements
        grown_classes: List[EquivalenceClass] = []
        for x, i in elements:
            self._check_budget()
            self._expansions += 1
            if self.debug_log_every > 0 and self._expansions % self.debug_log_every == 0:
                self.logger.info(f"treeminer-debug: expansions={self._expansions} joins={self._joins} prefix={prefix!r}")
            x_list = cls.occurrences_of(x, i)
            candidate = cls.pattern_of(x, i)
            # 仅以嵌入方式出现的前缀不再扩展
            if not self._occurs_directly(candidate, x_list):
                continue
            # x 在新前缀中的先序编号
            new_position = i + 1 + self.codec.count_descendants(prefix, i)
            grown = EquivalenceClass(candidate, self.mode, self.codec)
            for y, j in elements:
                if i < j:
                    continue
                y_list = cls.occurrences_of(y, j)
                if i == j:
                    joined = in_scope_join(self.mode, x_list, y_list)
                    self._joins += 1
                    if joined.support() >= self.min_support:
                        grown.add_element(y, new_position, joined)
                joined = out_scope_join(self.mode, x_list, y_list, j, rightmost)
                self._joins += 1
                if joined.support() >= self.min_support:
                    grown.add_element(y, j, joined)
            if grown:
                grown_classes.append(grown)
        return grown_classes

    # ------------------------- 过滤与刻画矩阵 -------------------------
    def _extract(self, arena: Sequence[EquivalenceClass]) -> Dict[str, Set[int]]:
        columns: Dict[str, Set[int]] = {}
        for cls in arena:
            for (label, pos), pattern, occ in cls.items():
                if self._too_large(self.codec.node_count(pattern)):
                    continue
                direct = occ.filtered(lambda t, p=pattern: self._contains_directly(t, p))
                trees = direct.tree_indices()
                if len(trees) < self.min_support:
                    continue
                columns.setdefault(pattern, set()).update(trees)
        return columns

    def _characterize(self, patterns: Sequence[str], columns: Dict[str, Set[int]]) -> np.ndarray:
        matrix = np.zeros((len(self.forest), len(patterns)), dtype=np.int8)
        for col, pattern in enumerate(patterns):
            for t in columns[pattern]:
                matrix[t, col] = 1
        return matrix

    # ------------------------- 主入口 -------------------------
    def run(self) -> MiningResult:
        t0 = time.time()
        self._start_time = t0
        self._expansions = 0
        self._joins = 0
        self.logger.info(
            f"treeminer start: trees={len(self.forest)}, min_support={self.min_support}, mode={self.mode.value}"
        )

        root, seeds = CandidateInitializer(self.codec, self.mode, self.min_support).build(self._parsed)
        self.logger.info(f"candidates: frequent labels={len(root)}, F2 seed classes={len(seeds)}")

        # arena 记录所有已确认类；工作栈后进先出，保持与递归相同的深度优先次序
        arena: List[EquivalenceClass] = [root] + seeds
        worklist: List[EquivalenceClass] = list(reversed(seeds))
        while worklist:
            self._check_budget()
            cls = worklist.pop()
            if self._too_large(self.codec.node_count(cls.prefix) + 2):
                continue
            children = self._grow(cls)
            arena.extend(children)
            worklist.extend(reversed(children))
        t1 = time.time()

        columns = self._extract(arena)
        patterns = sorted(columns)
        supports = {p: len(columns[p]) for p in patterns}
        matrix = self._characterize(patterns, columns)
        t2 = time.time()

        stats = {
            "classes": len(arena),
            "expansions": self._expansions,
            "joins": self._joins,
            "timing_sec": {"mining": t1 - t0, "filter": t2 - t1, "total": t2 - t0},
        }
        self.logger.info(
            f"treeminer done: patterns={len(patterns)}, classes={len(arena)}, "
            f"expansions={self._expansions}, elapsed={t2 - t0:.3f}s"
        )
        return MiningResult(
            patterns=patterns,
            characterization=matrix,
            supports=supports,
            mode=self.mode,
            min_support=self.min_support,
            stats=stats,
        )


def parse_min_support(text: str) -> float | int:
    """命令行 / CONFIG 中的支持度字符串："2" -> 2（绝对值），"0.5" -> 0.5（比例）。"""
    s = str(text).strip()
    try:
        return float(s) if "." in s else int(s)
    except ValueError as e:
        raise UnsupportedMinSupport(f"min_support must look like '2' or '0.5', got {text!r}") from e


def mine(
    forest: Sequence[str],
    min_support: float | int,
    count_multiple_occurrences: bool,
    **kwargs: Any,
) -> Tuple[List[str], np.ndarray]:
    """返回 (排序去重的模式列表, 刻画矩阵)；其余关键字参数透传给 TreeMiner。"""
    miner = TreeMiner(
        forest,
        min_support=min_support,
        count_multiple_occurrences=count_multiple_occurrences,
        **kwargs,
    )
    return miner.run().as_tuple()

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class Scope:
    """节点子树覆盖的先序编号区间 [lower_bound, upper_bound]；叶子 lower == upper。

    排序：先 lower_bound，再 upper_bound（dataclass 按字段顺序比较）。
    """

    lower_bound: int
    upper_bound: int

    def contains(self, other: "Scope") -> bool:
        # 严格包含：边界完全相同不算
        if self == other:
            return False
        return self.lower_bound <= other.lower_bound and other.upper_bound <= self.upper_bound

    def is_strictly_less_than(self, other: "Scope") -> bool:
        return self.upper_bound < other.lower_bound

    def __str__(self) -> str:
        return f"({self.lower_bound}, {self.upper_bound})"

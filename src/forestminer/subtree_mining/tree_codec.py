"""
树编码（先序 + 回溯标记）的解析与构造。

编码约定：
- 先序遍历输出节点标签；每个节点的子树结束时输出一个回溯标记（默认 "-1"）。
- 根节点的闭合回溯标记可以省略（挖掘得到的模式都省略它）。
- 分隔符与回溯标记由 EncodingConfig 给出，不使用全局常量，不同配置的编解码器可以并存。

示例："A B -1 C -1" 表示根 A，孩子依次为 B、C。
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from forestminer.subtree_mining.errors import InvalidPosition, MalformedEncoding
from forestminer.subtree_mining.scope import Scope


@dataclass(frozen=True)
class EncodingConfig:
    separator: str = " "
    ascend_token: str = "-1"


DEFAULT_ENCODING = EncodingConfig()


class ParsedTree:
    """一次解析的结果；所有数组按节点先序编号索引。"""

    __slots__ = ("encoding", "tokens", "labels", "parents", "children", "scopes", "token_index", "close_index")

    def __init__(self, encoding: str, tokens: List[str]) -> None:
        self.encoding = encoding
        self.tokens = tokens
        self.labels: List[str] = []
        self.parents: List[int] = []
        self.children: List[List[int]] = []
        self.scopes: List[Scope] = []
        # 标签 token 在 tokens 中的下标
        self.token_index: List[int] = []
        # 闭合该节点的回溯 token 下标；根节点闭合被省略时为 None
        self.close_index: List[Optional[int]] = []

    def __len__(self) -> int:
        return len(self.labels)


class TreeCodec:
    def __init__(self, config: Optional[EncodingConfig] = None, *, cache_size: int = 100000) -> None:
        self.config = config or DEFAULT_ENCODING
        if not self.config.separator:
            raise ValueError("separator must be a non-empty string")
        if not self.config.ascend_token or self.config.separator in self.config.ascend_token:
            raise ValueError(f"invalid ascend token: {self.config.ascend_token!r}")
        self.cache_size = int(cache_size)
        self._cache: Dict[str, ParsedTree] = {}

    # ---------- token 级工具 ----------
    def tokenize(self, tree: str) -> List[str]:
        if tree is None:
            raise MalformedEncoding("tree encoding is None")
        if not isinstance(tree, str):
            raise MalformedEncoding(f"tree encoding must be a string, got {type(tree).__name__}")
        sep = self.config.separator
        if sep.isspace():
            return tree.split()
        return [tok.strip() for tok in tree.split(sep) if tok.strip()]

    def join(self, tokens: Sequence[str]) -> str:
        return self.config.separator.join(tokens)

    def is_valid_label(self, label: Any) -> bool:
        if not isinstance(label, str) or not label:
            return False
        if label == self.config.ascend_token:
            return False
        if self.config.separator.isspace():
            return not any(ch.isspace() for ch in label)
        return self.config.separator not in label

    def _check_label(self, label: Any) -> None:
        if not self.is_valid_label(label):
            raise MalformedEncoding(f"illegal node label: {label!r}")

    # ---------- 解析 ----------
    def parse(self, tree: str) -> ParsedTree:
        cached = self._cache.get(tree) if isinstance(tree, str) else None
        if cached is not None:
            return cached
        tokens = self.tokenize(tree)
        if not tokens:
            raise MalformedEncoding(f"empty tree encoding: {tree!r}")
        up = self.config.ascend_token
        parsed = ParsedTree(tree, tokens)
        uppers: List[int] = []
        stack: List[int] = []
        for k, tok in enumerate(tokens):
            if tok == up:
                if not stack:
                    raise MalformedEncoding(f"unbalanced ascend token at index {k} in {tree!r}")
                node = stack.pop()
                uppers[node] = len(parsed.labels) - 1
                parsed.close_index[node] = k
                continue
            if not stack and parsed.labels:
                raise MalformedEncoding(f"more than one root in {tree!r} (token index {k})")
            pos = len(parsed.labels)
            parent = stack[-1] if stack else -1
            parsed.labels.append(tok)
            parsed.parents.append(parent)
            parsed.children.append([])
            parsed.token_index.append(k)
            parsed.close_index.append(None)
            uppers.append(pos)
            if parent >= 0:
                parsed.children[parent].append(pos)
            stack.append(pos)
        if len(stack) > 1:
            raise MalformedEncoding(f"unclosed node(s) at positions {stack[1:]} in {tree!r}")
        if stack:
            uppers[stack[0]] = len(parsed.labels) - 1
        parsed.scopes = [Scope(pos, uppers[pos]) for pos in range(len(parsed.labels))]

        if len(self._cache) >= self.cache_size:
            self._cache.clear()
        self._cache[tree] = parsed
        return parsed

    def _check_position(self, parsed: ParsedTree, position: int) -> None:
        if isinstance(position, bool) or not isinstance(position, int) or not 0 <= position < len(parsed):
            raise InvalidPosition(f"no node at position {position!r} in {parsed.encoding!r} ({len(parsed)} nodes)")

    def node_count(self, tree: str) -> int:
        return len(self.parse(tree))

    def labels(self, tree: str) -> List[str]:
        return list(self.parse(tree).labels)

    def compute_scopes(self, tree: str) -> List[Scope]:
        return list(self.parse(tree).scopes)

    def count_descendants(self, tree: str, position: int) -> int:
        parsed = self.parse(tree)
        self._check_position(parsed, position)
        scope = parsed.scopes[position]
        return scope.upper_bound - scope.lower_bound

    def rightmost_path(self, tree: str) -> List[int]:
        """根到最后一个先序节点的路径（先序编号）。"""
        parsed = self.parse(tree)
        path = [0]
        while parsed.children[path[-1]]:
            path.append(parsed.children[path[-1]][-1])
        return path

    # ---------- 构造 ----------
    def add_node_to_tree(self, tree: str, label: str, attach_position: int) -> str:
        """在 attach_position 节点下追加一个叶子（作为最后一个孩子），返回新编码。

        空树 + attach_position == -1 时返回单节点树，用于根类的扩展。
        """
        self._check_label(label)
        if tree is None or (isinstance(tree, str) and not self.tokenize(tree)):
            if attach_position != -1:
                raise InvalidPosition(f"cannot attach {label!r} at position {attach_position!r} of an empty tree")
            return label
        parsed = self.parse(tree)
        self._check_position(parsed, attach_position)
        tokens = list(parsed.tokens)
        close = parsed.close_index[attach_position]
        insert_at = len(tokens) if close is None else close
        tokens[insert_at:insert_at] = [label, self.config.ascend_token]
        return self.join(tokens)

    def add_children_to_node(self, label: str, children: Sequence[str]) -> str:
        """以 label 为根、children（各自为完整编码）为有序子树，拼出新编码。"""
        self._check_label(label)
        tokens = [label]
        for child in children:
            parsed = self.parse(child)
            tokens.extend(parsed.tokens)
            if parsed.close_index[0] is None:
                tokens.append(self.config.ascend_token)
        return self.join(tokens)

    def find_number_of_children_of_node(self, tree: str, position: int) -> int:
        parsed = self.parse(tree)
        self._check_position(parsed, position)
        up = self.config.ascend_token
        depth = 0
        count = 0
        for tok in parsed.tokens[parsed.token_index[position] + 1:]:
            if tok == up:
                depth -= 1
                if depth < 0:
                    break
            else:
                if depth == 0:
                    count += 1
                depth += 1
        return count

    # ---------- 直接包含判定 ----------
    def contains_subtree(self, tree: str, subtree: str) -> bool:
        """subtree 是否作为诱导（非嵌入）有序子树直接出现在 tree 中。

        模式根可映射到宿主任一节点；模式中每个孩子必须映射到其父节点像的孩子，
        兄弟次序保持，允许跳过无关兄弟，不允许祖先-后代放松。
        """
        host = self.parse(tree)
        pattern = self.parse(subtree)
        if len(pattern) > len(host):
            return False
        # matched[p][h] == 1 表示以 p 为根的模式子树诱导匹配以 h 为根的宿主子树；
        # 孩子的先序编号总大于父节点，按逆先序自底向上填表，不依赖递归深度
        matched = [bytearray(len(host)) for _ in range(len(pattern))]
        for h in range(len(host) - 1, -1, -1):
            host_children = host.children[h]
            for p in range(len(pattern) - 1, -1, -1):
                if pattern.labels[p] != host.labels[h]:
                    continue
                # 模式孩子依次贪心匹配宿主孩子序列的子序列
                k = 0
                ok = True
                for pc in pattern.children[p]:
                    row = matched[pc]
                    while k < len(host_children) and not row[host_children[k]]:
                        k += 1
                    if k == len(host_children):
                        ok = False
                        break
                    k += 1
                if ok:
                    if p == 0:
                        return True
                    matched[p][h] = 1
        return False

    # ---------- 嵌套结构互转 ----------
    def to_nested(self, tree: str) -> Dict[str, Any]:
        parsed = self.parse(tree)
        nodes = [{"label": lb, "children": []} for lb in parsed.labels]
        for pos, parent in enumerate(parsed.parents):
            if parent >= 0:
                nodes[parent]["children"].append(nodes[pos])
        return nodes[0]

    def from_nested(self, node: Dict[str, Any]) -> str:
        """{"label": ..., "children": [...]}（也接受 "name" 作为标签键）转为编码。"""
        up = self.config.ascend_token
        tokens: List[str] = []
        # 显式栈：None 表示输出一个回溯标记
        stack: List[Any] = [node]
        while stack:
            nd = stack.pop()
            if nd is None:
                tokens.append(up)
                continue
            if not isinstance(nd, dict):
                raise MalformedEncoding(f"nested node must be a dict, got {nd!r}")
            label = nd.get("label", nd.get("name"))
            if label is None:
                raise MalformedEncoding(f"nested node without label: {nd!r}")
            label = str(label)
            self._check_label(label)
            tokens.append(label)
            if len(tokens) > 1:
                stack.append(None)
            for child in reversed(nd.get("children") or []):
                stack.append(child)
        return self.join(tokens)

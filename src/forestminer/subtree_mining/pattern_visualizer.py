#!/usr/bin/env python3
"""
模式可视化：把频繁子树模式渲染为 PNG。

- 使用 networkx + matplotlib；有 Graphviz 时走 pydot 的 dot 布局，否则用分层树布局
- 节点为圆，根节点蓝色描边；标题显示模式编码与支持度
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Tuple

from forestminer.subtree_mining.tree_codec import TreeCodec

FIG_BASE_SIZE = (4, 4)
FIG_DPI = 150
COLOR_ROOT = "#e0f2ff"
COLOR_ROOT_BORDER = "#007bff"
COLOR_NODE = "#e0ffe0"
COLOR_BORDER = "#333333"


class PatternVisualizer:
    def __init__(self, codec: Optional[TreeCodec] = None) -> None:
        self.codec = codec or TreeCodec()
        self.LAYOUT_RANKDIR = "TB"
        self.LEVEL_GAP = 1.0
        self.SIBLING_GAP = 1.0

    def _ensure_libs(self):
        try:
            import networkx as nx
            import matplotlib
            matplotlib.use("Agg")
            import matplotlib.pyplot as plt
        except Exception as e:
            raise RuntimeError(
                "缺少依赖：需要 networkx 与 matplotlib。请执行\n"
                "  pip install --user networkx matplotlib\n"
                f"导入错误：{type(e).__name__}: {e}"
            )

    def build_graph(self, pattern: str):
        import networkx as nx
        parsed = self.codec.parse(pattern)
        G = nx.DiGraph()
        G.graph["graph"] = {"rankdir": self.LAYOUT_RANKDIR}
        for pos, label in enumerate(parsed.labels):
            G.add_node(pos, label=label, depth=0 if parsed.parents[pos] < 0 else None)
        for pos, parent in enumerate(parsed.parents):
            if parent >= 0:
                G.add_edge(parent, pos)
                G.nodes[pos]["depth"] = G.nodes[parent]["depth"] + 1
        return G

    def _tree_layout(self, G) -> Dict[int, Tuple[float, float]]:
        # 节点编号即先序编号：叶子按先序依次占一列，父节点（逆序处理）居于首末孩子中间
        order = sorted(G.nodes)
        xs: Dict[int, float] = {}
        next_x = 0.0
        for n in order:
            if G.out_degree(n) == 0:
                xs[n] = next_x
                next_x += self.SIBLING_GAP
        for n in reversed(order):
            kids = sorted(G.successors(n))
            if kids:
                xs[n] = (xs[kids[0]] + xs[kids[-1]]) / 2.0
        return {n: (xs[n], -G.nodes[n]["depth"] * self.LEVEL_GAP) for n in order}

    def _draw(self, G, out_png: Path, *, title: Optional[str] = None, figsize=None, font_size: int = 10) -> None:
        import networkx as nx
        import matplotlib.pyplot as plt

        try:
            pos = nx.drawing.nx_pydot.graphviz_layout(G, prog="dot")
        except Exception:
            pos = self._tree_layout(G)

        colors = [COLOR_ROOT if n == 0 else COLOR_NODE for n in G.nodes]
        borders = [COLOR_ROOT_BORDER if n == 0 else COLOR_BORDER for n in G.nodes]
        labels = {n: d.get("label", "") for n, d in G.nodes(data=True)}

        fig, ax = plt.subplots(figsize=figsize or FIG_BASE_SIZE)
        ax.axis("off")
        nx.draw_networkx_edges(G, pos, ax=ax, arrows=False, width=1.2, edge_color="#777777")
        nx.draw_networkx_nodes(G, pos, nodelist=list(G.nodes), node_color=colors, edgecolors=borders, linewidths=1.5, node_size=900, ax=ax)
        nx.draw_networkx_labels(G, pos, labels=labels, font_size=font_size, ax=ax)
        if title:
            if len(title) > 80: title = title[:77] + "..."
            ax.set_title(title, fontsize=9)
        ax.margins(0.2)
        fig.tight_layout()
        out_png.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(out_png, format="png", dpi=FIG_DPI)
        plt.close(fig)

    def render_pattern(self, pattern: str, out_png: str | Path, *, support: Optional[int] = None, figsize=None) -> str:
        self._ensure_libs()
        G = self.build_graph(pattern)
        title = pattern if support is None else f"{pattern}  (support={support})"
        self._draw(G, Path(out_png), title=title, figsize=figsize)
        return str(out_png)

    def render_result(self, result, out_dir: str | Path, *, top_k: Optional[int] = None) -> List[str]:
        """按支持度降序渲染前 top_k 个模式，文件名 pattern_<序号>.png。"""
        self._ensure_libs()
        ranked = sorted(result.patterns, key=lambda p: (-result.supports.get(p, 0), p))
        if top_k is not None:
            ranked = ranked[:max(0, int(top_k))]
        out_dir = Path(out_dir)
        paths = []
        for rank, pattern in enumerate(ranked):
            paths.append(self.render_pattern(pattern, out_dir / f"pattern_{rank:03d}.png", support=result.supports.get(pattern)))
        return paths

#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
TreeMiner（诱导有序子树）一键运行脚本。
- 目的：开箱即用，直接 `python scripts/run_treeminer_demo.py` 即按 CONFIG 中的小森林运行并打印结果。
- 特点：超参集中在 CONFIG；支持命令行覆盖；可选写出 JSON/CSV 结果与模式 PNG。
- 森林文件：JSON 列表，元素为编码字符串（"A B -1 C -1"）或嵌套 {"label", "children"}。
"""
import os
import sys
import json
import argparse
import logging

# 路径定位
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SRC_DIR = os.path.join(REPO_ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from forestminer.subtree_mining.errors import TreeMinerError  # noqa: E402
from forestminer.subtree_mining.tree_codec import EncodingConfig, TreeCodec  # noqa: E402
from forestminer.subtree_mining.tree_miner import TreeMiner, parse_min_support  # noqa: E402

# 集中管理的默认超参
CONFIG = {
    # 内置演示森林（forest_file 为空时使用）
    "forest": ["A B -1 C -1", "A", "A C -1", "A B D -1 -1"],
    "forest_file": "",
    # 支持度：绝对值或比例（字符串形式，内部会解析）
    "min_support": "1",  # "1" 或 "0.5"
    # False 时使用 scope-vector 出现列表
    "count_multiple_occurrences": True,
    # 搜索上限（None 表示不限）
    "max_pattern_nodes": None,
    "time_budget_seconds": None,
    # 编码 token
    "separator": " ",
    "ascend_token": "-1",
    # 输出：为空则只打印
    "out_dir": "",
    "render_dir": "",
    "top_k": 20,
}


def load_forest(path: str, codec: TreeCodec):
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"forest file must hold a JSON list: {path}")
    return [item if isinstance(item, str) else codec.from_nested(item) for item in data]


def main(argv=None):
    parser = argparse.ArgumentParser(description="Mine frequent induced ordered subtrees (one-click demo)")
    parser.add_argument("--forest-file", default=CONFIG["forest_file"])
    parser.add_argument("--min-support", default=CONFIG["min_support"], type=str)
    parser.add_argument("--distinct", action="store_true", default=not CONFIG["count_multiple_occurrences"],
                        help="use scope-vector occurrence lists")
    parser.add_argument("--max-pattern-nodes", default=CONFIG["max_pattern_nodes"], type=int)
    parser.add_argument("--time-budget-seconds", default=CONFIG["time_budget_seconds"], type=float)
    parser.add_argument("--separator", default=CONFIG["separator"])
    parser.add_argument("--ascend-token", default=CONFIG["ascend_token"])
    parser.add_argument("--out-dir", default=CONFIG["out_dir"])
    parser.add_argument("--render-dir", default=CONFIG["render_dir"])
    parser.add_argument("--top-k", default=CONFIG["top_k"], type=int)
    parser.add_argument("--quiet", action="store_true")
    args = parser.parse_args(argv)

    codec = TreeCodec(EncodingConfig(separator=args.separator, ascend_token=args.ascend_token))
    try:
        forest = load_forest(args.forest_file, codec) if args.forest_file else list(CONFIG["forest"])
        miner = TreeMiner(
            forest,
            min_support=parse_min_support(args.min_support),
            count_multiple_occurrences=not args.distinct,
            codec=codec,
            time_budget_seconds=args.time_budget_seconds,
            max_pattern_nodes=args.max_pattern_nodes,
            log_level=logging.WARNING if args.quiet else logging.INFO,
        )
        result = miner.run()
    except (TreeMinerError, ValueError, OSError) as e:
        print(f"error: {type(e).__name__}: {e}", file=sys.stderr)
        return 2

    print(f"total patterns: {len(result.patterns)} (mode={result.mode.value}, min_support={result.min_support})")
    K = max(0, int(args.top_k))
    for i, p in enumerate(result.patterns[:K]):
        fanout = codec.find_number_of_children_of_node(p, 0)
        print(f"[{i}] support={result.supports[p]} nodes={codec.node_count(p)} root_children={fanout}  {p}")
    print("characterization (rows = trees, cols = patterns):")
    for t, row in enumerate(result.characterization.tolist()):
        print(f"  tree {t}: {row}")

    if args.out_dir:
        from forestminer.subtree_mining.result_writer import ResultWriter
        writer = ResultWriter(args.out_dir, codec=codec)
        params = {
            "time_budget_seconds": args.time_budget_seconds,
            "max_pattern_nodes": args.max_pattern_nodes,
        }
        print(f"results saved to: {writer.write_json(result, forest, params=params)}")
        print(f"characterization saved to: {writer.write_characterization_csv(result)}")
    if args.render_dir:
        from forestminer.subtree_mining.pattern_visualizer import PatternVisualizer
        paths = PatternVisualizer(codec).render_result(result, args.render_dir, top_k=K)
        print(f"rendered {len(paths)} pattern(s) to: {args.render_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

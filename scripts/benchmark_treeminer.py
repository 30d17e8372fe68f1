#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
两种出现列表表示的性能对比：随机生成森林，分别以 label-tracking 与 scope-vector 模式挖掘，
记录耗时/模式数，并检查两者结果是否一致。汇总用 pandas 打印，可选写出 CSV。
"""
import os
import sys
import time
import argparse
import logging

from tqdm import tqdm

REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SRC_DIR = os.path.join(REPO_ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402

from forestminer.subtree_mining.forest_generator import ForestGenerator  # noqa: E402
from forestminer.subtree_mining.tree_miner import TreeMiner, parse_min_support  # noqa: E402

CONFIG = {
    # 每轮森林规模
    "trees": 50,
    "max_nodes": 10,
    "max_depth": 3,
    "max_children": 3,
    "labels": "A,B,C,D,E",
    # 轮数与起始随机种子
    "rounds": 10,
    "seed": 0,
    "min_support": "0.1",
    # 单次挖掘的时间上限（秒）
    "time_budget_seconds": 120.0,
    "csv": "",
}


def run_once(forest, min_support, count_multiple_occurrences, time_budget_seconds, logger):
    miner = TreeMiner(
        forest,
        min_support=min_support,
        count_multiple_occurrences=count_multiple_occurrences,
        time_budget_seconds=time_budget_seconds,
        log=logger,
        log_level=logging.WARNING,
    )
    t0 = time.time()
    result = miner.run()
    return result, time.time() - t0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Benchmark label-tracking vs scope-vector occurrence lists")
    parser.add_argument("--trees", default=CONFIG["trees"], type=int)
    parser.add_argument("--max-nodes", default=CONFIG["max_nodes"], type=int)
    parser.add_argument("--max-depth", default=CONFIG["max_depth"], type=int)
    parser.add_argument("--max-children", default=CONFIG["max_children"], type=int)
    parser.add_argument("--labels", default=CONFIG["labels"])
    parser.add_argument("--rounds", default=CONFIG["rounds"], type=int)
    parser.add_argument("--seed", default=CONFIG["seed"], type=int)
    parser.add_argument("--min-support", default=CONFIG["min_support"], type=str)
    parser.add_argument("--time-budget-seconds", default=CONFIG["time_budget_seconds"], type=float)
    parser.add_argument("--csv", default=CONFIG["csv"])
    args = parser.parse_args(argv)

    labels = [lb.strip() for lb in args.labels.split(",") if lb.strip()]
    min_support = parse_min_support(args.min_support)
    logger = logging.getLogger("TreeMinerBenchmark")

    rows = []
    for r in tqdm(range(args.rounds), desc="Benchmark rounds"):
        gen = ForestGenerator(
            labels=labels,
            max_nodes=args.max_nodes,
            max_depth=args.max_depth,
            max_children=args.max_children,
            seed=args.seed + r,
        )
        forest = gen.random_forest(args.trees)
        labeled, t_label = run_once(forest, min_support, True, args.time_budget_seconds, logger)
        vector, t_vector = run_once(forest, min_support, False, args.time_budget_seconds, logger)
        agree = labeled.patterns == vector.patterns and np.array_equal(
            labeled.characterization, vector.characterization
        )
        rows.append({
            "round": r,
            "seed": args.seed + r,
            "nodes_total": sum(gen.codec.node_count(t) for t in forest),
            "patterns_label_tracking": len(labeled.patterns),
            "patterns_scope_vector": len(vector.patterns),
            "runtime_label_tracking": t_label,
            "runtime_scope_vector": t_vector,
            "classes_label_tracking": labeled.stats.get("classes"),
            "classes_scope_vector": vector.stats.get("classes"),
            "agree": bool(agree),
        })

    df = pd.DataFrame(rows)
    print(df.to_string(index=False))
    print(df[["runtime_label_tracking", "runtime_scope_vector"]].describe())
    disagreements = int((~df["agree"]).sum()) if len(df) else 0
    print(f"rounds={len(df)} disagreements={disagreements}")
    if args.csv:
        df.to_csv(args.csv, index=False)
        print(f"benchmark saved to: {args.csv}")
    return 1 if disagreements else 0


if __name__ == "__main__":
    sys.exit(main())

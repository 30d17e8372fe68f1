from __future__ import annotations

import json
import os
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from forestminer.subtree_mining.occurrences import OccurrenceMode
from forestminer.subtree_mining.tree_codec import TreeCodec
from forestminer.subtree_mining.tree_miner import MiningResult


def characterization_frame(result: MiningResult, tree_ids: Optional[Sequence[Any]] = None) -> pd.DataFrame:
    """刻画矩阵转 DataFrame：行 = 树（默认 0..n-1），列 = 模式（与 result.patterns 同序）。"""
    index = list(tree_ids) if tree_ids is not None else list(range(result.characterization.shape[0]))
    if len(index) != result.characterization.shape[0]:
        raise ValueError(f"tree_ids has {len(index)} entries, matrix has {result.characterization.shape[0]} rows")
    df = pd.DataFrame(result.characterization, index=index, columns=list(result.patterns))
    df.index.name = "tree"
    return df


class ResultWriter:
    """
    挖掘结果落盘：JSON 结果文档 + CSV 刻画矩阵。
    JSON 中 characterization 的每一行、以及 labels 数组保持单行，其余缩进多行。
    """

    def __init__(self, out_dir: str, *, codec: Optional[TreeCodec] = None) -> None:
        self.out_dir = out_dir
        self.codec = codec or TreeCodec()
        os.makedirs(out_dir, exist_ok=True)

    def build_result(
        self,
        result: MiningResult,
        forest: Sequence[str],
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        patterns = [
            {
                "pattern": p,
                "support": result.supports.get(p),
                "nodes": self.codec.node_count(p),
                "labels": self.codec.labels(p),
            }
            for p in result.patterns
        ]
        base_params = {
            "min_support": result.min_support,
            "count_multiple_occurrences": result.mode is OccurrenceMode.LABEL_TRACKING,
            "mode": result.mode.value,
        }
        base_params.update(params or {})
        return {
            "created_at": datetime.now().isoformat(),
            "params": base_params,
            "forest": {
                "trees": len(forest),
                "nodes_total": sum(self.codec.node_count(t) for t in forest),
            },
            "stats": {k: v for k, v in result.stats.items() if k != "timing_sec"},
            "timing_sec": dict(result.stats.get("timing_sec", {})),
            "pattern_count": len(result.patterns),
            "patterns": patterns,
            "characterization": result.characterization.tolist(),
        }

    @staticmethod
    def _dump_pretty_mixed(o, fp, level: int = 0, indent: int = 2, inline_keys=("labels",), row_keys=("characterization",), parent_key: Optional[str] = None) -> None:
        pad = " " * (indent * level)
        if isinstance(o, dict):
            items = list(o.items())
            if not items:
                fp.write("{}")
                return
            fp.write("{\n")
            for idx, (k, v) in enumerate(items):
                fp.write(" " * (indent * (level + 1)))
                fp.write(json.dumps(k, ensure_ascii=False))
                fp.write(": ")
                if isinstance(v, list) and k in inline_keys:
                    fp.write(json.dumps(v, ensure_ascii=False, separators=(",", ":")))
                else:
                    ResultWriter._dump_pretty_mixed(v, fp, level + 1, indent, inline_keys, row_keys, k)
                fp.write(",\n" if idx != len(items) - 1 else "\n")
            fp.write(pad + "}")
        elif isinstance(o, list):
            if not o:
                fp.write("[]")
                return
            fp.write("[\n")
            for i, it in enumerate(o):
                fp.write(" " * (indent * (level + 1)))
                if parent_key in row_keys and isinstance(it, list):
                    # 矩阵一行一行写
                    fp.write(json.dumps(it, ensure_ascii=False, separators=(",", ":")))
                else:
                    ResultWriter._dump_pretty_mixed(it, fp, level + 1, indent, inline_keys, row_keys, parent_key)
                fp.write(",\n" if i != len(o) - 1 else "\n")
            fp.write(pad + "]")
        else:
            fp.write(json.dumps(o, ensure_ascii=False))

    def write_json(
        self,
        result: MiningResult,
        forest: Sequence[str],
        *,
        name: str = "treeminer_result.json",
        params: Optional[Dict[str, Any]] = None,
    ) -> str:
        result_obj = self.build_result(result, forest, params)
        out_path = os.path.join(self.out_dir, name)
        with open(out_path, "w", encoding="utf-8") as f:
            self._dump_pretty_mixed(result_obj, f, level=0, indent=2)
            f.write("\n")
        return out_path

    def write_characterization_csv(
        self,
        result: MiningResult,
        *,
        name: str = "characterization.csv",
        tree_ids: Optional[Sequence[Any]] = None,
    ) -> str:
        out_path = os.path.join(self.out_dir, name)
        characterization_frame(result, tree_ids).to_csv(out_path, encoding="utf-8")
        return out_path


def load_result_json(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def patterns_from_result(obj: Dict[str, Any]) -> List[str]:
    return [item["pattern"] for item in obj.get("patterns", [])]

from __future__ import annotations

from pathlib import Path


def write_graph_dot(dot: str, out_dir: str, filename: str = "graph.dot") -> str:
    p = Path(out_dir)
    p.mkdir(parents=True, exist_ok=True)

    out_path = p / filename
    with out_path.open("w", encoding="utf-8") as f:
        f.write(dot)
        f.write("\n")

    return str(out_path)

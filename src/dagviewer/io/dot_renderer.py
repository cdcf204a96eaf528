from __future__ import annotations

from typing import List

from dagviewer.core.dto import TransactionHash
from dagviewer.core.models import Graph, GraphNode


def _node_id(tx: TransactionHash) -> str:
    return f"node_{tx}"


def _escape(s: str) -> str:
    return s.replace("\\", "\\\\").replace('"', '\\"')


def _node_line(n: GraphNode) -> str:
    label = [str(n.tx), _escape(n.did), f"LC={n.clock}"]
    if n.notes:
        label.append(",".join(n.notes))
    text = "\\n".join(label)
    return f'\t{_node_id(n.tx)} [label="{text}"]'


def render_dot(graph: Graph) -> str:
    """
    Graphviz digraph of the analyzed transactions.

    Nodes are sorted by transaction hash and edges by (child, parent), so the
    same graph always renders to the same text.
    """
    lines: List[str] = ["digraph {"]
    for tx in sorted(graph.nodes):
        lines.append(_node_line(graph.nodes[tx]))
    for child, parent in graph.sorted_edges():
        lines.append(f"\t{_node_id(child)} -> {_node_id(parent)}")
    lines.append("}")
    return "\n".join(lines)

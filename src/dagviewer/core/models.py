from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from dagviewer.core.dto import TransactionHash



# Configuration model

@dataclass(frozen=True)
class AnalyzeConfig:
    """
    User input / run configuration for an analysis.
    """

    seeds: Tuple[str, ...]

    # optional knobs (keep defaults sane)
    max_workers: int = 1                        # 1 = sequential traversal
    timeout_sec: Optional[float] = None         # None/0 = no deadline
    cancel: Optional[threading.Event] = None



# Graph models

NOTE_CREATED = "created"
NOTE_UPDATE = "update"
NOTE_DEACTIVATED = "deactivated"


@dataclass(frozen=True)
class GraphNode:

    tx: TransactionHash
    did: str
    clock: int
    notes: Tuple[str, ...] = ()


@dataclass
class Graph:

    nodes: Dict[TransactionHash, GraphNode] = field(default_factory=dict)
    # child -> parents
    edges: Dict[TransactionHash, Set[TransactionHash]] = field(default_factory=dict)

    def add_node(self, node: GraphNode) -> GraphNode:
        # first insert wins
        return self.nodes.setdefault(node.tx, node)

    def add_edge(self, child: TransactionHash, parent: TransactionHash) -> None:
        self.edges.setdefault(child, set()).add(parent)

    def edge_count(self) -> int:
        return sum(len(parents) for parents in self.edges.values())

    def sorted_edges(self) -> List[Tuple[TransactionHash, TransactionHash]]:
        return sorted(
            (child, parent)
            for child, parents in self.edges.items()
            for parent in parents
        )

"""
Link graph built during traversal and the PageRank pass over it.

Parameters: damping 0.85, L1 convergence epsilon 1e-6, at most 100 iterations.
Dangling nodes spread their rank uniformly over all nodes. Only the relative
order of scores is meaningful across versions, not their exact values.
"""
from __future__ import annotations

from functools import cmp_to_key
from typing import Dict, List, Optional, Set, Tuple

from site_crawl.crawler.models import CrawlResult, PageStatus

__all__ = ("LinkGraph", "compute_scores", "apply_scores", "RANKING_IMPLEMENTATION")

DAMPING = 0.85
EPSILON = 1e-6
MAX_ITERATIONS = 100
RANKING_IMPLEMENTATION = "site_crawl.crawler.ranking.compute_scores (pagerank, d=0.85)"


class LinkGraph:
    """Directed graph over canonical URLs; duplicate edges collapse to one."""

    def __init__(self) -> None:
        self.nodes: Set[str] = set()
        self.edges: Dict[str, Set[str]] = {}

    def add_node(self, node: str) -> None:
        if node:
            self.nodes.add(node)

    def add_edge(self, src: str, dst: str) -> None:
        if not src or not dst:
            return
        self.add_node(src)
        self.add_node(dst)
        self.edges.setdefault(src, set()).add(dst)

    def edge_count(self) -> int:
        return sum(len(targets) for targets in self.edges.values())

    def __len__(self) -> int:
        return len(self.nodes)


def compute_scores(
    graph: Optional[LinkGraph],
    *,
    damping: float = DAMPING,
    epsilon: float = EPSILON,
    max_iterations: int = MAX_ITERATIONS,
) -> Tuple[Dict[str, float], List[str]]:
    """Return ``(scores, order)``: scores sum to 1, order is score-desc then URL-asc."""
    if graph is None or not graph.nodes:
        return {}, []

    nodes = sorted(graph.nodes)
    n = len(nodes)
    if graph.edge_count() == 0:
        uniform = 1.0 / n
        return {node: uniform for node in nodes}, nodes

    rank = {node: 1.0 / n for node in nodes}
    dangling = [node for node in nodes if not graph.edges.get(node)]
    for _ in range(max_iterations):
        dangling_mass = sum(rank[node] for node in dangling)
        base = (1.0 - damping) / n + damping * dangling_mass / n
        nxt = {node: base for node in nodes}
        for src, targets in graph.edges.items():
            if not targets:
                continue
            share = damping * rank[src] / len(targets)
            for dst in targets:
                nxt[dst] += share
        delta = sum(abs(nxt[node] - rank[node]) for node in nodes)
        rank = nxt
        if delta < epsilon:
            break

    total = sum(rank.values())
    scores = {node: value / total for node, value in rank.items()}
    order = sorted(nodes, key=lambda node: (-scores[node], node))
    return scores, order


def apply_scores(result: CrawlResult, graph: Optional[LinkGraph]) -> None:
    """Attach scores to ``ok`` pages and reorder ``result.pages`` by rank."""
    result.ranking = RANKING_IMPLEMENTATION
    scores, order = compute_scores(graph)
    position = {url: idx for idx, url in enumerate(order)}

    for page in result.pages:
        if page.status is PageStatus.OK:
            page.score = scores.get(page.key)

    def compare(left, right) -> int:
        l_score = -1.0 if left.score is None else left.score
        r_score = -1.0 if right.score is None else right.score
        if l_score != r_score:
            return -1 if l_score > r_score else 1
        # graph order only breaks ties between two graph nodes
        l_pos, r_pos = position.get(left.key), position.get(right.key)
        if l_pos is not None and r_pos is not None and l_pos != r_pos:
            return -1 if l_pos < r_pos else 1
        return (left.key > right.key) - (left.key < right.key)

    result.pages.sort(key=cmp_to_key(compare))

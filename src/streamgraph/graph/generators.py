"""
Random turnstile streams with known final graphs.

Every generator returns a GeneratedStream: the update sequence plus the
networkx graph of the edges still live at the end, so results can be
checked against exact networkx algorithms.

  - uniform_stream: m edges chosen uniformly among all pairs
  - bernoulli_stream: G(n, p) via networkx's fast_gnp_random_graph
  - partite_stream: G(n, p) restricted to pairs across k random parts

``copies`` inserts each chosen edge up to that many times (multi-edges),
``noise`` adds insert/delete pairs of random edges that cancel out, with
each deletion placed after its insertion.
"""

from dataclasses import dataclass, field
from typing import Optional

import networkx as nx
import numpy as np

from ..hashing.families import derive_rng, derive_seed
from .edges import Edge, Sign, Update
from .stream import EdgeStream


@dataclass
class GeneratedStream:
    vertex_count: int
    updates: list[Update] = field(default_factory=list)
    graph: nx.Graph = field(default_factory=nx.Graph)
    parts: Optional[list[int]] = None

    def stream(self, **kwargs) -> EdgeStream:
        return EdgeStream.from_updates(self.vertex_count, self.updates, **kwargs)

    @property
    def deletions(self) -> int:
        return sum(1 for u in self.updates if not u.is_insert)


def _build(
    n: int,
    pairs: list[tuple[int, int]],
    rng: np.random.Generator,
    noise: int,
    copies: int,
) -> GeneratedStream:
    if copies < 1:
        raise ValueError(f"copies must be at least 1, got {copies}")
    if noise and n < 2:
        raise ValueError("Noise needs at least two vertices")

    updates: list[Update] = []
    for u, v in pairs:
        for _ in range(int(rng.integers(1, copies + 1))):
            updates.append(Update(Edge(u, v), Sign.INSERT))
    order = rng.permutation(len(updates))
    updates = [updates[i] for i in order]

    for _ in range(noise):
        u, v = (int(x) for x in rng.choice(n, size=2, replace=False))
        edge = Edge(u, v)
        i = int(rng.integers(0, len(updates) + 1))
        updates.insert(i, Update(edge, Sign.INSERT))
        j = int(rng.integers(i + 1, len(updates) + 1))
        updates.insert(j, Update(edge, Sign.DELETE))

    G = nx.Graph()
    G.add_nodes_from(range(n))
    G.add_edges_from(pairs)
    return GeneratedStream(n, updates, G)


def uniform_stream(
    n: int, m: int, noise: int = 0, copies: int = 1, seed: int = 42
) -> GeneratedStream:
    """Stream whose live graph has ``m`` distinct edges drawn uniformly."""
    total = n * (n - 1) // 2
    if not 0 <= m <= total:
        raise ValueError(f"Cannot pick {m} edges among {total} pairs")
    rng = derive_rng(seed, "uniform")
    chosen = rng.choice(total, size=m, replace=False) if m else []
    pairs = [Edge.from_index(int(i)).endpoints for i in chosen]
    return _build(n, pairs, rng, noise, copies)


def bernoulli_stream(
    n: int, p: float, noise: int = 0, copies: int = 1, seed: int = 42
) -> GeneratedStream:
    """Stream whose live graph is G(n, p)."""
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"Edge probability must lie in [0, 1], got {p}")
    G = nx.fast_gnp_random_graph(n, p, seed=derive_seed(seed, "gnp") % (2**32))
    return _build(n, list(G.edges()), derive_rng(seed, "bernoulli"), noise, copies)


def partite_stream(
    n: int, p: float, parts: int = 2, noise: int = 0, copies: int = 1, seed: int = 42
) -> GeneratedStream:
    """Stream whose live graph only has edges between different random parts."""
    if parts < 1:
        raise ValueError(f"Need at least one part, got {parts}")
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"Edge probability must lie in [0, 1], got {p}")
    rng = derive_rng(seed, "partite")
    label = [int(x) for x in rng.integers(0, parts, size=n)]
    pairs = [
        (u, v)
        for u in range(n)
        for v in range(u + 1, n)
        if label[u] != label[v] and rng.random() < p
    ]
    generated = _build(n, pairs, rng, noise, copies)
    generated.parts = label
    return generated

"""
Query results.

Every algorithm answers with one of three shapes:
  - ExactResult: a value that is certain (given a verified witness)
  - ProbabilisticResult: an estimate with confidence, error bound and variance
  - StructureResult / ForestResult: a reconstructed edge set

Results are plain dataclasses; querying a sketch twice yields equal results.
"""

from dataclasses import dataclass, field
from enum import Enum
from statistics import NormalDist
from typing import Any, Optional

import networkx as nx

from .graph.edges import Edge


class ResultKind(str, Enum):
    EXACT = "exact"
    PROBABILISTIC = "probabilistic"
    STRUCTURE = "structure"


@dataclass
class QueryResult:
    """Common base for all query results."""
    value: Any = None
    details: dict = field(default_factory=dict)

    kind = ResultKind.EXACT

    @property
    def is_exact(self) -> bool:
        return self.kind is ResultKind.EXACT


@dataclass
class ExactResult(QueryResult):
    """A value that holds with certainty."""
    kind = ResultKind.EXACT


@dataclass
class ProbabilisticResult(QueryResult):
    """
    An estimate with a stated guarantee.

    ``confidence`` is the probability that the true value lies within
    ``error_bound`` of ``value`` (for booleans, that the answer is correct).
    """
    confidence: float = 1.0
    error_bound: float = 0.0
    variance: Optional[float] = None

    kind = ResultKind.PROBABILISTIC

    @property
    def interval(self) -> tuple[float, float]:
        return (self.value - self.error_bound, self.value + self.error_bound)

    def contains(self, truth: float) -> bool:
        low, high = self.interval
        return low <= truth <= high


@dataclass
class StructureResult(QueryResult):
    """A reconstructed sub-structure: an edge set over ``vertex_count`` vertices."""
    edges: list[Edge] = field(default_factory=list)
    vertex_count: int = 0
    confidence: float = 1.0

    kind = ResultKind.STRUCTURE

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    def to_networkx(self) -> nx.Graph:
        G = nx.Graph()
        G.add_nodes_from(range(self.vertex_count))
        for e in self.edges:
            if e.weight is None:
                G.add_edge(e.u, e.v)
            else:
                G.add_edge(e.u, e.v, weight=e.weight)
        return G


@dataclass
class ForestResult(StructureResult):
    """
    A spanning forest recovered from a connectivity sketch.

    ``complete`` is False when the reconstruction ran out of rounds with
    some component still showing outgoing edges in its sketch.
    """
    components: list[list[int]] = field(default_factory=list)
    complete: bool = True
    rounds_used: int = 0

    @property
    def component_count(self) -> int:
        return len(self.components)

    @property
    def trees(self) -> list[list[Edge]]:
        """Forest edges grouped by component, in component order."""
        owner = {}
        for i, members in enumerate(self.components):
            for v in members:
                owner[v] = i
        grouped: list[list[Edge]] = [[] for _ in self.components]
        for e in self.edges:
            grouped[owner[e.u]].append(e)
        return grouped

    def connected(self, a: int, b: int) -> bool:
        for members in self.components:
            if a in members:
                return b in members
        return False


def normal_error_bound(std: float, confidence: float) -> float:
    """Half-width of the two-sided normal interval holding ``confidence`` mass."""
    if std <= 0:
        return 0.0
    return NormalDist().inv_cdf(0.5 + confidence / 2) * std

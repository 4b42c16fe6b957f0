"""
Sketch configuration and sizing.

Constructors take plain keyword arguments with defaults. SketchConfig
bundles the ones that must agree across the many sketches an algorithm
builds, and SketchLayout turns a vertex count into concrete array shapes
and checks them against the declared space budget before anything is
allocated.
"""

import math
from dataclasses import dataclass, replace
from typing import Optional

from .errors import CapacityError
from .graph.edges import universe_size

DEFAULT_SEED = 42
DEFAULT_BUCKETS = 8
# Edge indices stay below 2^39, so index sums cannot overflow int64
MAX_VERTICES = 1 << 20
# Counters per cell: count, index sum, fingerprint
COUNTERS_PER_CELL = 3


@dataclass(frozen=True)
class SketchConfig:
    """Parameters shared by every sketch an algorithm builds."""
    seed: int = DEFAULT_SEED
    rounds: Optional[int] = None
    buckets: int = DEFAULT_BUCKETS
    space_budget: Optional[int] = None

    def with_seed(self, seed: int) -> "SketchConfig":
        return replace(self, seed=seed)

    def layout(self, vertex_count: int) -> "SketchLayout":
        return SketchLayout.for_vertices(
            vertex_count,
            rounds=self.rounds,
            buckets=self.buckets,
            space_budget=self.space_budget,
        )

    def sketch_kwargs(self) -> dict:
        return {
            "seed": self.seed,
            "rounds": self.rounds,
            "buckets": self.buckets,
            "space_budget": self.space_budget,
        }


def default_rounds(vertex_count: int) -> int:
    """Borůvka phases: ceil(log2 n) halvings plus slack for failed samples."""
    return max(1, math.ceil(math.log2(max(vertex_count, 2)))) + 3


def level_count(universe: int) -> int:
    """Subsampling levels so the deepest level keeps about one coordinate."""
    return max(1, math.ceil(math.log2(max(universe, 2)))) + 1


@dataclass(frozen=True)
class SketchLayout:
    """Resolved array shape of a connectivity sketch."""
    vertex_count: int
    universe: int
    rounds: int
    levels: int
    buckets: int

    @property
    def shape(self) -> tuple[int, int, int, int]:
        return (self.vertex_count, self.rounds, self.levels, self.buckets)

    @property
    def cells(self) -> int:
        return self.vertex_count * self.rounds * self.levels * self.buckets

    @property
    def counters(self) -> int:
        return self.cells * COUNTERS_PER_CELL

    @property
    def memory_bytes(self) -> int:
        return self.counters * 8

    @classmethod
    def for_vertices(
        cls,
        vertex_count: int,
        rounds: Optional[int] = None,
        buckets: int = DEFAULT_BUCKETS,
        space_budget: Optional[int] = None,
    ) -> "SketchLayout":
        if vertex_count < 0:
            raise CapacityError(f"vertex_count must be non-negative, got {vertex_count}")
        if vertex_count > MAX_VERTICES:
            raise CapacityError(
                f"{vertex_count} vertices exceeds the supported maximum of {MAX_VERTICES}"
            )
        if buckets < 1:
            raise CapacityError(f"buckets must be positive, got {buckets}")
        universe = universe_size(vertex_count)
        layout = cls(
            vertex_count=vertex_count,
            universe=universe,
            rounds=rounds if rounds is not None else default_rounds(vertex_count),
            levels=level_count(universe),
            buckets=buckets,
        )
        if layout.rounds < 1:
            raise CapacityError(f"rounds must be positive, got {layout.rounds}")
        if space_budget is not None and layout.counters > space_budget:
            raise CapacityError(
                f"Sketch for {vertex_count} vertices needs {layout.counters} counters, "
                f"budget is {space_budget}"
            )
        return layout

"""
Partition / build / merge.

The only concurrency pattern: split one update sequence into independent
sub-streams, let each worker build its own sketch over its partition,
then merge the partial sketches. Linear sketches merge associatively and
commutatively, so the result equals the sketch of the whole stream
whatever the split, the worker count or the completion order.

Workers never share a sketch. ``merge`` returns a new instance, and the
partials are dropped once merged.
"""

import logging
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from functools import reduce
from typing import Callable, Iterable, Optional, Sequence

from .algorithms.base import StreamingAlgorithm
from .graph.edges import Update

logger = logging.getLogger(__name__)

PARTITIONS = ("vertex", "round_robin", "contiguous")


def partition(
    updates: Iterable,
    parts: int,
    by: str = "vertex",
    vertex_count: Optional[int] = None,
) -> list[list[Update]]:
    """
    Split updates into ``parts`` lists.

    ``vertex`` groups by the range of the smaller endpoint (needs
    ``vertex_count``), ``round_robin`` deals updates out in turn and
    ``contiguous`` cuts the sequence into consecutive time ranges.
    """
    if parts < 1:
        raise ValueError(f"parts must be positive, got {parts}")
    if by not in PARTITIONS:
        raise ValueError(f"Unknown partitioning {by!r}; expected one of {PARTITIONS}")

    items = [Update.coerce(u) for u in updates]
    buckets: list[list[Update]] = [[] for _ in range(parts)]
    if by == "vertex":
        if not vertex_count:
            vertex_count = max((u.edge.v for u in items), default=0) + 1
        for u in items:
            buckets[min(parts - 1, u.edge.u * parts // vertex_count)].append(u)
    elif by == "round_robin":
        for i, u in enumerate(items):
            buckets[i % parts].append(u)
    else:
        size = -(-len(items) // parts) if items else 0
        for i in range(parts):
            buckets[i] = items[i * size:(i + 1) * size]
    return buckets


def build_partial(factory: Callable, updates: Sequence[Update]):
    """Build one sketch (or streaming algorithm) over one partition."""
    sketch = factory()
    if isinstance(sketch, StreamingAlgorithm):
        for u in updates:
            sketch.process(u)
        sketch.finish()
    else:
        for u in updates:
            sketch.update(u)
    return sketch


def build_partials(
    factory: Callable,
    partitions: Sequence[Sequence[Update]],
    workers: Optional[int] = None,
    processes: bool = False,
) -> list:
    """
    Build one partial per partition concurrently.

    With ``processes=True`` the factory and the sketches must be
    picklable; ``functools.partial`` over a sketch class is.
    """
    executor_cls = ProcessPoolExecutor if processes else ThreadPoolExecutor
    with executor_cls(max_workers=workers) as pool:
        futures = [pool.submit(build_partial, factory, part) for part in partitions]
        partials = [f.result() for f in futures]
    logger.debug(
        "Built %d partials with %s", len(partials), executor_cls.__name__
    )
    return partials


def merge_all(sketches: Sequence):
    """Fold ``merge`` over the partials; raises IncompatibleMergeError on mismatch."""
    if not sketches:
        raise ValueError("Nothing to merge")
    return reduce(lambda a, b: a.merge(b), sketches)


def parallel_build(
    factory: Callable,
    updates: Iterable,
    parts: int = 4,
    by: str = "vertex",
    vertex_count: Optional[int] = None,
    workers: Optional[int] = None,
    processes: bool = False,
):
    """Partition, build concurrently, merge."""
    chunks = partition(updates, parts, by=by, vertex_count=vertex_count)
    return merge_all(build_partials(factory, chunks, workers=workers, processes=processes))

"""
Edge and update types.

Vertices are plain integers drawn from ``[0, n)``. An edge is an unordered
pair of distinct vertices, always stored with ``u < v``, so that the same
edge inserted as ``(3, 1)`` and deleted as ``(1, 3)`` addresses the same
coordinate of every sketch. Each edge maps to a dense index in
``[0, n(n-1)/2)`` used as the coordinate of the edge universe.
"""

import math
import operator
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional, Union

from ..errors import InputError

Vertex = int


class Sign(IntEnum):
    """Direction of an update in the turnstile model."""
    INSERT = 1
    DELETE = -1

    @classmethod
    def coerce(cls, value) -> "Sign":
        if isinstance(value, Sign):
            return value
        if isinstance(value, bool):
            return cls.INSERT if value else cls.DELETE
        if isinstance(value, str):
            token = value.strip().lower()
            if token in ("+", "i", "ins", "insert", "add"):
                return cls.INSERT
            if token in ("-", "d", "del", "delete", "remove"):
                return cls.DELETE
            raise InputError(f"Unknown update sign: {value!r}")
        if value in (1, -1):
            return cls(int(value))
        raise InputError(f"Unknown update sign: {value!r}")


def universe_size(vertex_count: int) -> int:
    """Number of distinct edges on ``vertex_count`` vertices."""
    return vertex_count * (vertex_count - 1) // 2


@dataclass(frozen=True, order=True)
class Edge:
    """An undirected edge between two distinct vertices (u < v)."""
    u: Vertex
    v: Vertex
    weight: Optional[float] = field(default=None, compare=False)

    def __post_init__(self):
        try:
            u, v = operator.index(self.u), operator.index(self.v)
        except TypeError:
            raise InputError(
                f"Vertex ids must be integers, got ({self.u!r}, {self.v!r})"
            ) from None
        if isinstance(self.u, bool) or isinstance(self.v, bool):
            raise InputError(f"Vertex ids must be integers, got ({u!r}, {v!r})")
        object.__setattr__(self, "u", u)
        object.__setattr__(self, "v", v)
        if u < 0 or v < 0:
            raise InputError(f"Negative vertex id in edge ({u}, {v})")
        if u == v:
            raise InputError(f"Self-loop on vertex {u}")
        if u > v:
            object.__setattr__(self, "u", v)
            object.__setattr__(self, "v", u)

    @property
    def index(self) -> int:
        """Dense index of the edge in the edge universe."""
        return self.v * (self.v - 1) // 2 + self.u

    @classmethod
    def from_index(cls, index: int) -> "Edge":
        """Inverse of ``Edge.index``."""
        if index < 0:
            raise InputError(f"Edge index must be non-negative, got {index}")
        v = (1 + math.isqrt(1 + 8 * index)) // 2
        u = index - v * (v - 1) // 2
        return cls(u, v)

    @property
    def endpoints(self) -> tuple[Vertex, Vertex]:
        return (self.u, self.v)

    def other(self, vertex: Vertex) -> Vertex:
        if vertex == self.u:
            return self.v
        if vertex == self.v:
            return self.u
        raise ValueError(f"Vertex {vertex} is not incident to {self}")

    def check_range(self, vertex_count: int) -> "Edge":
        """Raise InputError if either endpoint is outside ``[0, vertex_count)``."""
        if self.v >= vertex_count:
            raise InputError(
                f"Vertex id {self.v} out of range for {vertex_count} vertices"
            )
        return self

    def __iter__(self):
        yield self.u
        yield self.v


@dataclass(frozen=True)
class Update:
    """A single edge-update event ``(edge, sign)``."""
    edge: Edge
    sign: Sign = Sign.INSERT

    @property
    def delta(self) -> int:
        return int(self.sign)

    @property
    def is_insert(self) -> bool:
        return self.sign is Sign.INSERT

    @classmethod
    def coerce(cls, item: Union["Update", Edge, tuple]) -> "Update":
        """
        Build an Update from the shapes accepted by streams.

        Accepts an ``Update``, an ``Edge`` (an insertion), or tuples
        ``(u, v)``, ``(u, v, sign)`` and ``(u, v, sign, weight)``.
        """
        if isinstance(item, Update):
            return item
        if isinstance(item, Edge):
            return cls(item, Sign.INSERT)
        try:
            parts = tuple(item)
        except TypeError:
            raise InputError(f"Cannot interpret {item!r} as an edge update") from None

        if len(parts) == 2:
            u, v = parts
            return cls(Edge(_vertex(u), _vertex(v)), Sign.INSERT)
        if len(parts) == 3:
            u, v, sign = parts
            return cls(Edge(_vertex(u), _vertex(v)), Sign.coerce(sign))
        if len(parts) == 4:
            u, v, sign, weight = parts
            weight = None if weight is None else float(weight)
            return cls(Edge(_vertex(u), _vertex(v), weight), Sign.coerce(sign))
        raise InputError(f"Cannot interpret {item!r} as an edge update")


def _vertex(value) -> Vertex:
    # numpy integers and integral floats are accepted, anything else is not
    if isinstance(value, bool):
        raise InputError(f"Invalid vertex id: {value!r}")
    try:
        as_int = int(value)
    except (TypeError, ValueError):
        raise InputError(f"Invalid vertex id: {value!r}") from None
    if as_int != value:
        raise InputError(f"Invalid vertex id: {value!r}")
    return as_int

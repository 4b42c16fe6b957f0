"""
Base contract for linear sketches.

A linear sketch is a fixed-size accumulator whose state is a linear
function of the update vector. Two sketches built with the same
parameters and seed over any two parts of a stream merge into exactly the
sketch of the whole stream, and the order of updates never matters.
"""

from abc import ABC, abstractmethod
from enum import Enum

import numpy as np

from ..errors import IncompatibleMergeError


class SketchState(str, Enum):
    EMPTY = "empty"
    ACCUMULATING = "accumulating"
    QUERIED = "queried"


class LinearSketch(ABC):
    """
    Common behaviour for mergeable sketches.

    Subclasses hold their state in numpy arrays named by ``_arrays()``
    and describe their randomness and shape in ``params()``; equality,
    copying and compatibility checks are derived from these two.
    """

    def __init__(self):
        self.state = SketchState.EMPTY
        self.updates = 0

    @abstractmethod
    def params(self) -> tuple:
        """Everything two sketches must share to be merged."""

    @abstractmethod
    def _arrays(self) -> dict[str, np.ndarray]:
        """Named state arrays."""

    @abstractmethod
    def merge(self, other: "LinearSketch") -> "LinearSketch":
        """Coordinatewise combination into a new sketch."""

    def _touch(self):
        self.updates += 1
        self.state = SketchState.ACCUMULATING

    def _mark_queried(self):
        self.state = SketchState.QUERIED

    def check_compatible(self, other: "LinearSketch"):
        if type(other) is not type(self):
            raise IncompatibleMergeError(
                f"Cannot merge {type(other).__name__} into {type(self).__name__}"
            )
        if other.params() != self.params():
            raise IncompatibleMergeError(
                f"Sketch parameters differ: {self.params()} vs {other.params()}"
            )

    def copy(self) -> "LinearSketch":
        clone = object.__new__(type(self))
        clone.__dict__.update(self.__dict__)
        for name, array in self._arrays().items():
            setattr(clone, name, array.copy())
        return clone

    def is_zero(self) -> bool:
        """True when every counter is zero (no surviving coordinates)."""
        return all(not array.any() for array in self._arrays().values())

    def __add__(self, other: "LinearSketch") -> "LinearSketch":
        return self.merge(other)

    def __eq__(self, other) -> bool:
        if type(other) is not type(self) or other.params() != self.params():
            return False
        mine, theirs = self._arrays(), other._arrays()
        return all(np.array_equal(mine[k], theirs[k]) for k in mine)

    __hash__ = None

    @property
    def memory_bytes(self) -> int:
        return sum(a.nbytes for a in self._arrays().values())

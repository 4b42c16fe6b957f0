"""
Shared driver for streaming algorithms.

An algorithm is fed one Update at a time through ``process`` or a whole
stream through ``consume``. Consumption may stop after any update
(``max_updates``); the accumulated state is then consistent with the
prefix seen so far. Algorithms whose guarantee needs the full stream
refuse to answer until the stream is exhausted, unless the caller asks
for a partial, anytime answer.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Union

from ..errors import InputError, InsufficientDataError
from ..graph.edges import Update
from ..graph.stream import EdgeStream
from ..results import QueryResult

logger = logging.getLogger(__name__)


class StreamingAlgorithm(ABC):
    """Base class: update dispatch, stream consumption and the query guard."""

    requires_full_stream = True
    insertion_only = False

    def __init__(self, vertex_count: int):
        if vertex_count < 0:
            raise InputError(f"vertex_count must be non-negative, got {vertex_count}")
        self.vertex_count = vertex_count
        self.processed = 0
        self.exhausted = False

    @abstractmethod
    def _apply(self, update: Update):
        """Fold one validated update into the algorithm's state."""

    @abstractmethod
    def _query(self) -> QueryResult:
        """Build the result from the current state."""

    def process(self, update: Union[Update, tuple]):
        update = Update.coerce(update)
        update.edge.check_range(self.vertex_count)
        if self.insertion_only and not update.is_insert:
            raise InputError(
                f"{type(self).__name__} is insertion-only; got a deletion of "
                f"({update.edge.u}, {update.edge.v})"
            )
        self._apply(update)
        self.processed += 1

    def consume(
        self,
        stream: Union[EdgeStream, Iterable],
        max_updates: Optional[int] = None,
    ) -> "StreamingAlgorithm":
        """
        Process updates until the stream ends or ``max_updates`` were taken.

        Passing the same EdgeStream again resumes where the last call stopped.
        """
        if not isinstance(stream, EdgeStream):
            stream = EdgeStream(self.vertex_count, stream)
        if stream.vertex_count > self.vertex_count:
            raise InputError(
                f"Stream declares {stream.vertex_count} vertices, "
                f"algorithm was built for {self.vertex_count}"
            )

        taken = 0
        while max_updates is None or taken < max_updates:
            update = stream.next()
            if update is None:
                self.exhausted = True
                break
            self.process(update)
            taken += 1

        logger.debug(
            "%s consumed %d updates (exhausted=%s)", type(self).__name__, taken, self.exhausted
        )
        return self

    def finish(self) -> "StreamingAlgorithm":
        """Declare the end of the stream when feeding updates through ``process``."""
        self.exhausted = True
        return self

    def query(self, allow_partial: bool = False) -> QueryResult:
        if self.requires_full_stream and not self.exhausted and not allow_partial:
            raise InsufficientDataError(
                f"{type(self).__name__} needs the whole stream; "
                f"{self.processed} updates seen and the stream is not exhausted"
            )
        return self._query()

"""
Error taxonomy.

Malformed input is rejected where the stream is produced, capacity
problems are raised before a sketch allocates state, and merges of
sketches built with different randomness are refused. Wrong answers
caused by unlucky randomness are not errors; they are reported through
the success probability attached to each result.
"""


class StreamGraphError(Exception):
    """Base class for every error raised by streamgraph."""


class InputError(StreamGraphError, ValueError):
    """Malformed edge, out-of-range vertex id, self-loop or bad sign."""


class CapacityError(StreamGraphError):
    """A sketch layout does not fit the declared vertex count or space budget."""


class IncompatibleMergeError(StreamGraphError):
    """Two sketches built with different seeds or parameters were merged."""


class InsufficientDataError(StreamGraphError):
    """A full-stream query was issued before the stream was exhausted."""


class ReplayError(StreamGraphError):
    """A second pass was requested from a stream whose source cannot replay."""

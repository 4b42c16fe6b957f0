"""
StreamGraph — Streaming Graph Algorithms in Sublinear Space.

Observes a graph only as a stream of edge insertions and deletions and
answers connectivity, bipartiteness, cut, matching, colouring and
counting queries from linear sketches and bounded samples, implemented
on top of NumPy and NetworkX.

License: MIT
"""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

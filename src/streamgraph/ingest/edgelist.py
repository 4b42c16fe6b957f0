"""
Edge-list reader.

Reads whitespace (or ``delimiter``) separated edge lists as distributed
by SNAP and similar collections and turns them into an EdgeStream.

Accepted lines:
  - ``u v`` and ``u v weight``
  - ``+ u v`` / ``- u v`` for turnstile files (a leading sign column)
  - ``#`` and ``%`` comment lines; a SNAP header ``# Nodes: N Edges: M``
    fixes the vertex count

Vertex tokens are non-negative integers unless ``relabel=True``, in which
case any token is mapped to a dense id in order of first appearance.
Malformed lines raise InputError naming the source and line number.
"""

import logging
import re
from pathlib import Path
from typing import Iterator, Optional, Union

from ..errors import InputError
from ..graph.edges import Sign
from ..graph.stream import EdgeStream

logger = logging.getLogger(__name__)

_COMMENT = ("#", "%")
_NODES_HEADER = re.compile(r"Nodes:\s*(\d+)", re.IGNORECASE)
# The sign is a column of its own, so "-1 2" stays a (negative) vertex id
_SIGNED = re.compile(r"^([+-])\s+(.*)$")


class EdgeListReader:
    """
    Parse an edge list from a file or a string.

    The file is re-read on every pass, so streams built from a path are
    replayable.
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        text: Optional[str] = None,
        vertex_count: Optional[int] = None,
        relabel: bool = False,
        delimiter: Optional[str] = None,
    ):
        if (path is None) == (text is None):
            raise ValueError("Give exactly one of path or text")
        self.path = Path(path) if path is not None else None
        self.text = text
        self.declared_vertices = vertex_count
        self.relabel = relabel
        self.delimiter = delimiter
        self._signed = _SIGNED if delimiter is None else re.compile(
            rf"^([+-])\s*(?:{re.escape(delimiter)}|\s)\s*(.*)$"
        )
        self.labels: dict[str, int] = {}
        self.header_vertices: Optional[int] = None

    @property
    def name(self) -> str:
        return str(self.path) if self.path is not None else "<text>"

    def _lines(self) -> Iterator[tuple[int, str]]:
        if self.path is not None:
            with open(self.path, encoding="utf-8") as fh:
                for lineno, line in enumerate(fh, start=1):
                    yield lineno, line
        else:
            for lineno, line in enumerate(self.text.splitlines(), start=1):
                yield lineno, line

    def _fail(self, lineno: int, message: str) -> InputError:
        return InputError(f"{self.name}:{lineno}: {message}")

    def _vertex(self, token: str, lineno: int) -> int:
        if self.relabel:
            if token not in self.labels:
                self.labels[token] = len(self.labels)
            return self.labels[token]
        try:
            value = int(token)
        except ValueError:
            raise self._fail(lineno, f"vertex {token!r} is not an integer") from None
        if value < 0:
            raise self._fail(lineno, f"vertex {value} is negative")
        return value

    def records(self, vertex_count: Optional[int] = None) -> Iterator[tuple]:
        """
        Yield ``(u, v, sign, weight)`` per data line.

        With ``vertex_count`` set, ids outside ``[0, vertex_count)`` and
        self-loops raise InputError at their line.
        """
        for lineno, raw in self._lines():
            line = raw.strip()
            if not line:
                continue
            if line.startswith(_COMMENT):
                m = _NODES_HEADER.search(line)
                if m and self.header_vertices is None:
                    self.header_vertices = int(m.group(1))
                continue

            sign = Sign.INSERT
            m = self._signed.match(line)
            if m:
                sign = Sign.coerce(m.group(1))
                line = m.group(2)

            fields = line.split(self.delimiter)
            if len(fields) not in (2, 3):
                raise self._fail(lineno, f"expected 'u v [weight]', got {raw.strip()!r}")
            u = self._vertex(fields[0], lineno)
            v = self._vertex(fields[1], lineno)
            weight = None
            if len(fields) == 3:
                try:
                    weight = float(fields[2])
                except ValueError:
                    raise self._fail(lineno, f"weight {fields[2]!r} is not a number") from None

            if u == v:
                raise self._fail(lineno, f"self-loop on vertex {u}")
            if vertex_count is not None and max(u, v) >= vertex_count:
                raise self._fail(
                    lineno, f"vertex {max(u, v)} outside [0, {vertex_count})"
                )
            yield (u, v, sign, weight)

    def scan(self) -> int:
        """
        Resolve the vertex count: explicit argument, then the SNAP header,
        then one pass over the data.
        """
        if self.declared_vertices is not None:
            return self.declared_vertices
        # the header precedes the data, so a partial pass is enough to find it
        highest = -1
        for u, v, _, _ in self.records():
            if self.header_vertices is not None and not self.relabel:
                return self.header_vertices
            highest = max(highest, u, v)
        if self.header_vertices is not None and not self.relabel:
            return self.header_vertices
        count = len(self.labels) if self.relabel else highest + 1
        logger.debug("Scanned %s: %d vertices", self.name, count)
        return count

    def stream(self, **kwargs) -> EdgeStream:
        n = self.scan()
        if self.relabel:
            # labels are fixed by the scan; later passes reuse them
            n = max(n, len(self.labels))
        return EdgeStream(n, lambda: self.records(n), name=self.name, **kwargs)


def read_edgelist(path: Union[str, Path], **kwargs) -> EdgeStream:
    """Shortcut for ``EdgeListReader(path, ...).stream()``."""
    stream_kwargs = {k: kwargs.pop(k) for k in ("underflow", "replayable") if k in kwargs}
    return EdgeListReader(path, **kwargs).stream(**stream_kwargs)

"""
StreamGraph CLI — run streaming algorithms over edge-list files.

Commands:
  connectivity — connected components / spanning forest
  bipartite    — bipartiteness test with odd-cycle witness
  triangles    — triangle-count estimate
  matching     — greedy matching size (insertion-only files)
  sparsify     — cut sparsifier
  demo         — run everything on generated streams
"""

import json
import logging

import click

from . import __version__
from .algorithms.bipartite import BipartitenessTester
from .algorithms.connectivity import StreamingConnectivity
from .algorithms.matching import GreedyMatching
from .algorithms.sparsifier import CutSparsifier
from .errors import StreamGraphError
from .graph.generators import bernoulli_stream, partite_stream
from .ingest.edgelist import EdgeListReader
from .results import QueryResult
from .sampling.triangles import TriangleEstimator


def _load(ctx: click.Context, file: str):
    reader = EdgeListReader(
        file, vertex_count=ctx.obj["nodes"], relabel=ctx.obj["relabel"]
    )
    try:
        return reader.stream()
    except StreamGraphError as e:
        raise click.ClickException(str(e)) from e


def _report(ctx: click.Context, result: QueryResult, summary: str):
    if ctx.obj["json"]:
        payload = {"kind": result.kind.value, "value": result.value, "details": result.details}
        for attr in ("confidence", "error_bound", "variance", "complete"):
            if hasattr(result, attr):
                payload[attr] = getattr(result, attr)
        click.echo(json.dumps(payload, indent=2, default=str))
    else:
        click.echo(summary)


def _run(algorithm, stream):
    try:
        return algorithm.consume(stream).query()
    except StreamGraphError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(version=__version__, prog_name="streamgraph")
@click.option("--seed", default=42, show_default=True, help="Random seed for all sketches")
@click.option("--nodes", "-n", type=int, default=None, help="Vertex count (default: from file)")
@click.option("--relabel", is_flag=True, help="Map arbitrary vertex labels to 0..n-1")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.pass_context
def cli(ctx, seed, nodes, relabel, as_json, verbose):
    """StreamGraph — streaming graph algorithms in sublinear space."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    ctx.obj = {"seed": seed, "nodes": nodes, "relabel": relabel, "json": as_json}


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def connectivity(ctx, file):
    """Count connected components of the live graph."""
    stream = _load(ctx, file)
    result = _run(StreamingConnectivity(stream.vertex_count, seed=ctx.obj["seed"]), stream)
    status = "" if result.complete else " (reconstruction incomplete)"
    _report(ctx, result, (
        f"Vertices: {stream.vertex_count}\n"
        f"Components: {result.component_count}{status}\n"
        f"Forest edges: {result.edge_count}"
    ))


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def bipartite(ctx, file):
    """Test whether the live graph is bipartite."""
    stream = _load(ctx, file)
    result = _run(BipartitenessTester(stream.vertex_count, seed=ctx.obj["seed"]), stream)
    if result.value:
        summary = f"Bipartite: yes (confidence {result.confidence:.4f})"
    else:
        walk = result.details["witness"]
        summary = f"Bipartite: no\nOdd closed walk ({len(walk)} edges): " + " ".join(
            f"{e.u}-{e.v}" for e in walk
        )
    _report(ctx, result, summary)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--capacity", "-m", default=1000, show_default=True, help="Reservoir size")
@click.option("--repetitions", "-r", default=8, show_default=True)
@click.pass_context
def triangles(ctx, file, capacity, repetitions):
    """Estimate the number of triangles."""
    stream = _load(ctx, file)
    estimator = TriangleEstimator(
        stream.vertex_count, capacity=capacity, repetitions=repetitions, seed=ctx.obj["seed"]
    )
    result = _run(estimator, stream)
    _report(ctx, result, (
        f"Triangles: {result.value:.1f} +- {result.error_bound:.1f} "
        f"({result.confidence:.0%} confidence)"
    ))


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def matching(ctx, file):
    """Greedy maximal matching: the maximum matching is at most twice its size."""
    stream = _load(ctx, file)
    result = _run(GreedyMatching(stream.vertex_count), stream)
    _report(ctx, result, (
        f"Matching size: {result.value}\n"
        f"Maximum matching in [{result.details['lower_bound']}, {result.details['upper_bound']}]"
    ))


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--epsilon", "-e", default=0.5, show_default=True)
@click.option("--k", "connectivity_k", type=int, default=None,
              help="Certificate connectivity (default from epsilon)")
@click.option("--output", "-o", default=None, help="Write the weighted edge list here")
@click.option("--space-budget", type=int, default=None,
              help="Maximum counters across all sketches")
@click.pass_context
def sparsify(ctx, file, epsilon, connectivity_k, output, space_budget):
    """Build a cut sparsifier of the live graph."""
    stream = _load(ctx, file)
    try:
        sparsifier = CutSparsifier(
            stream.vertex_count, epsilon=epsilon, seed=ctx.obj["seed"],
            connectivity=connectivity_k, space_budget=space_budget,
        )
    except StreamGraphError as e:
        raise click.ClickException(str(e)) from e
    result = _run(sparsifier, stream)
    if output:
        with open(output, "w") as f:
            for e in result.edges:
                f.write(f"{e.u} {e.v} {e.weight:g}\n")
    _report(ctx, result, (
        f"Sparsifier edges: {result.edge_count} (k={result.details['k']})"
        + (f"\nSaved to {output}" if output else "")
    ))


@cli.command()
@click.option("--nodes", "demo_nodes", default=60, show_default=True)
@click.option("--p", "density", default=0.08, show_default=True)
@click.pass_context
def demo(ctx, demo_nodes, density):
    """Run every algorithm on generated turnstile streams."""
    seed = ctx.obj["seed"]
    click.echo("=" * 60)
    click.echo("  StreamGraph Demo — streaming graph algorithms")
    click.echo("=" * 60)

    gen = bernoulli_stream(demo_nodes, density, noise=demo_nodes, seed=seed)
    click.echo(f"\n[1/4] G({demo_nodes}, {density}) with {gen.deletions} cancelled insertions")
    click.echo(f"  Live edges: {gen.graph.number_of_edges()}, stream length: {len(gen.updates)}")

    forest = StreamingConnectivity(demo_nodes, seed=seed).consume(gen.stream()).query()
    click.echo("\n[2/4] Connectivity sketch")
    click.echo(f"  Components: {forest.component_count} (complete={forest.complete})")

    tester = BipartitenessTester(demo_nodes, seed=seed)
    answer = tester.consume(partite_stream(demo_nodes, density, parts=2, seed=seed).stream()).query()
    click.echo("\n[3/4] Bipartiteness on a random bipartite graph")
    click.echo(f"  Bipartite: {answer.value}")

    inserts = [(u.edge.u, u.edge.v) for u in gen.updates if u.is_insert]
    estimate = TriangleEstimator(demo_nodes, capacity=max(10, len(inserts) // 2), seed=seed)
    tri = estimate.consume(inserts).query()
    click.echo("\n[4/4] Triangle estimate over the insertions")
    click.echo(f"  Triangles: {tri.value:.1f} +- {tri.error_bound:.1f}")

    click.echo("\nDone.")

"""CLI for neighbor-rank."""

import json
import logging
import os
from pathlib import Path

import click

from .graph.memory_storage import MemoryGraphStorage, read_graph_file
from .graph.neo4j_storage import Neo4jStorage
from .rank.config import LIMIT_POLICIES, RankConfig
from .rank.errors import RankError


def _open_storage(
    graph_file: Path | None,
    uri: str,
    user: str,
    password: str,
    database: str | None,
) -> Neo4jStorage | MemoryGraphStorage:
    if graph_file is not None:
        return MemoryGraphStorage.from_file(graph_file)
    return Neo4jStorage(uri=uri, user=user, password=password, database=database)


def neo4j_options(func):
    """Shared Neo4j connection options."""
    func = click.option(
        "--database",
        default=lambda: os.environ.get("NEO4J_DATABASE") or None,
        help="Neo4j database (graph) name",
    )(func)
    func = click.option(
        "--password",
        default=lambda: os.environ.get("NEO4J_PASSWORD", "neo4j"),
        help="Neo4j password",
    )(func)
    func = click.option(
        "--user",
        default=lambda: os.environ.get("NEO4J_USER", "neo4j"),
        help="Neo4j username",
    )(func)
    func = click.option(
        "--uri",
        default=lambda: os.environ.get("NEO4J_URI", "bolt://localhost:7687"),
        help="Neo4j URI",
    )(func)
    return func


@click.group()
@click.option(
    "--log-level",
    default=lambda: os.environ.get("NEIGHBOR_RANK_LOG_LEVEL", "WARNING"),
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging verbosity",
)
def cli(log_level: str):
    """Neighbor Rank - personalized multi-hop ranking over a property graph."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command("rank")
@click.option(
    "--request",
    "-r",
    "request_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file holding the rank request",
)
@click.option("--source", "-s", type=str, help="Source vertex id")
@click.option("--alpha", "-a", type=float, help="Retention factor in [0, 1]")
@click.option(
    "--step",
    "steps",
    multiple=True,
    help='Step as JSON, repeatable, e.g. \'{"direction": "OUT", "number": 10}\'',
)
@click.option("--capacity", type=int, help="Visited vertex budget (-1 unbounded)")
@click.option("--limit", "-n", type=int, help="Result size limit (-1 unbounded)")
@click.option(
    "--graph-file",
    "-g",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Rank over a YAML/JSON graph file instead of Neo4j",
)
@click.option("--workers", type=int, default=None, help="Neighbor fetch threads")
@click.option(
    "--limit-policy",
    type=click.Choice(list(LIMIT_POLICIES)),
    default=None,
    help="Where the result limit is applied",
)
@click.option("--raw", is_flag=True, help="Print only the JSON array of hops")
@neo4j_options
def rank(
    request_file: Path | None,
    source: str | None,
    alpha: float | None,
    steps: tuple[str, ...],
    capacity: int | None,
    limit: int | None,
    graph_file: Path | None,
    workers: int | None,
    limit_policy: str | None,
    raw: bool,
    uri: str,
    user: str,
    password: str,
    database: str | None,
):
    """Rank vertices reachable from a source vertex."""
    from dataclasses import replace

    from .rank.assembler import ranks_to_json
    from .rank.pipeline import neighbor_rank

    payload: dict = {}
    if request_file is not None:
        try:
            payload = json.loads(request_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise click.ClickException(f"Invalid request file: {exc}") from exc
        if not isinstance(payload, dict):
            raise click.ClickException("Request file must contain a JSON object")

    if source is not None:
        payload["source"] = source
    if alpha is not None:
        payload["alpha"] = alpha
    if steps:
        try:
            payload["steps"] = [json.loads(step) for step in steps]
        except json.JSONDecodeError as exc:
            raise click.ClickException(f"Invalid --step JSON: {exc}") from exc
    if capacity is not None:
        payload["capacity"] = capacity
    if limit is not None:
        payload["limit"] = limit

    try:
        config = RankConfig.from_env()
        if workers is not None:
            config = replace(config, workers=workers)
        if limit_policy is not None:
            config = replace(config, limit_policy=limit_policy)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    db = _open_storage(graph_file, uri, user, password, database)
    try:
        result = neighbor_rank(payload, storage=db, config=config)
    except RankError as exc:
        raise click.ClickException(str(exc)) from exc
    finally:
        db.close()

    if raw:
        click.echo(ranks_to_json(result["ranks"]))
        return

    click.echo(
        f"Source: {result['source']}  hops={result['hops']}/{result['steps']}  "
        f"state={result['state']}  visited={result['visited']}"
    )
    for hop, layer in enumerate(result["ranks"], start=1):
        click.echo(f"\nHop {hop} ({len(layer)} vertices):")
        if not layer:
            click.echo("  (none)")
        for vertex_id, score in layer.items():
            click.echo(f"  [{score:.6f}] {vertex_id}")


@cli.command("load")
@click.argument(
    "graph_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option("--clear", is_flag=True, help="Wipe the database before loading")
@neo4j_options
def load(
    graph_file: Path,
    clear: bool,
    uri: str,
    user: str,
    password: str,
    database: str | None,
):
    """Import a YAML/JSON graph file into Neo4j."""
    payload = read_graph_file(graph_file)
    storage = Neo4jStorage(uri=uri, user=user, password=password, database=database)
    try:
        counts = storage.load_graph(payload, clear_first=clear)
    finally:
        storage.close()
    click.echo(f"Loaded {counts['vertices']} vertices and {counts['edges']} edges")


@cli.command("labels")
@click.option(
    "--graph-file",
    "-g",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Read labels from a YAML/JSON graph file instead of Neo4j",
)
@neo4j_options
def labels(
    graph_file: Path | None, uri: str, user: str, password: str, database: str | None
):
    """List edge labels available to step filters."""
    db = _open_storage(graph_file, uri, user, password, database)
    try:
        found = db.edge_labels()
    finally:
        db.close()
    if not found:
        click.echo("No edge labels.")
        return
    for label in found:
        click.echo(label.name)


@cli.command("serve")
@click.option(
    "--graph-file",
    "-g",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Serve a YAML/JSON graph file instead of Neo4j",
)
@neo4j_options
def serve(
    graph_file: Path | None, uri: str, user: str, password: str, database: str | None
):
    """Run the MCP server over stdio."""
    import asyncio

    from .mcp import server as mcp_server

    mcp_server.init_server(
        neo4j_uri=uri,
        neo4j_user=user,
        neo4j_password=password,
        neo4j_database=database,
        graph_file=str(graph_file) if graph_file else None,
    )
    asyncio.run(mcp_server.mcp.run_stdio_async())


def main():
    cli()


if __name__ == "__main__":
    main()

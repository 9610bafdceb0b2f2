"""issuerank search / similar commands."""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from issuerank.cli.utils import build_index, fail, load_records
from issuerank.config.models import IssueRankConfig
from issuerank.core.errors import EncoderNotReady
from issuerank.search.engine import InMemoryRecordStore, RelevanceEngine, ranked_ids

_RECORDS_OPTION = click.option(
    "--records",
    "records_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file with a list of issues",
)


@click.command()
@click.argument("query")
@_RECORDS_OPTION
@click.option("--id", "ids", multiple=True, type=int, help="Only score these record ids (repeatable)")
@click.option("--no-vectors", is_flag=True, help="Skip the embedding signal")
@click.option("--limit", type=click.IntRange(min=1), default=None, help="Show at most N results")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def search_command(
    ctx: click.Context,
    query: str,
    records_path: Path,
    ids: tuple[int, ...],
    no_vectors: bool,
    limit: int | None,
    as_json: bool,
) -> None:
    """Rank issues in a JSON file against QUERY."""
    config: IssueRankConfig = ctx.obj["config"]
    records = load_records(records_path)
    store = InMemoryRecordStore(records)

    index = None if no_vectors else build_index(config.embedding, required=False)
    engine = RelevanceEngine(store, index, config.scoring)
    if index is not None:
        try:
            engine.index_records(records)
        except EncoderNotReady as e:
            raise fail(e) from e

    results = engine.search(query, list(ids) if ids else [r.id for r in records])
    order = ranked_ids(results)
    if limit is not None:
        order = order[:limit]

    if as_json:
        click.echo(json.dumps([{"id": rid, **results[rid].to_dict()} for rid in order], indent=2))
        return

    if not order:
        click.echo("No matching issues.")
        return

    table = Table(title=f"Results for '{query}'" if query.strip() else "All issues")
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Score", justify="right")
    table.add_column("Matched")
    for rid in order:
        record = store.get_record(rid)
        if record is None:
            continue
        result = results[rid]
        matched = sorted(
            set(result.evidence.title_matches)
            | set(result.evidence.body_matches)
            | {m.original for m in result.evidence.fuzzy_matches}
        )
        table.add_row(str(record.number), record.title, result.display_score, ", ".join(matched))
    Console().print(table)


@click.command()
@click.argument("query")
@_RECORDS_OPTION
@click.option("-k", "top_k", type=click.IntRange(min=1), default=5, help="Number of results")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def similar_command(
    ctx: click.Context,
    query: str,
    records_path: Path,
    top_k: int,
    as_json: bool,
) -> None:
    """Show the issues semantically closest to QUERY."""
    config: IssueRankConfig = ctx.obj["config"]
    records = load_records(records_path)
    by_id = {r.id: r for r in records}

    index = build_index(config.embedding, required=True)
    assert index is not None
    engine = RelevanceEngine(InMemoryRecordStore(records), index, config.scoring)
    try:
        engine.index_records(records)
        hits = index.top_k(query, top_k)
    except EncoderNotReady as e:
        raise fail(e) from e

    if as_json:
        click.echo(json.dumps([{"id": rid, "score": round(score, 3)} for rid, score in hits], indent=2))
        return

    for rid, score in hits:
        record = by_id[rid]
        click.echo(f"{score:.3f}  #{record.number}  {record.title}")

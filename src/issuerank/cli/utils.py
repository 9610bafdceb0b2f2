"""CLI utilities."""

import json
from pathlib import Path

import click

from issuerank.config.models import EmbeddingConfig
from issuerank.core.errors import IssueRankError
from issuerank.core.logging import get_log_file_path
from issuerank.search.embedding import EmbeddingIndex
from issuerank.search.models import Record


def load_records(path: Path) -> list[Record]:
    """Load a JSON list of issue objects.

    Raises:
        click.ClickException: If the file is not a JSON list of issues
    """
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise click.ClickException(f"'{path}' is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise click.ClickException(f"'{path}' must contain a JSON list of issues")

    records: list[Record] = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise click.ClickException(f"Issue #{i} in '{path}' is not an object")
        try:
            records.append(Record.from_mapping(item))
        except (KeyError, TypeError, ValueError) as e:
            raise click.ClickException(f"Issue #{i} in '{path}' is invalid: {e}") from e
    return records


def build_index(config: EmbeddingConfig, *, required: bool) -> EmbeddingIndex | None:
    """Load the encoder and wait for it.

    Returns None when embeddings are unavailable and not ``required``.

    Raises:
        click.ClickException: If ``required`` and the encoder fails to load
    """
    if not config.enabled:
        if required:
            raise click.ClickException("Embeddings are disabled (embedding.enabled = false)")
        return None

    index = EmbeddingIndex.from_config(config)
    index.encoder.start()
    if index.encoder.wait_ready(config.init_timeout_sec):
        return index

    reason = index.encoder.error or f"not ready after {config.init_timeout_sec:g}s"
    if required:
        raise click.ClickException(f"Embedding encoder unavailable: {reason}")
    click.echo(f"Warning: embeddings unavailable ({reason}); scoring without them.", err=True)
    return None


def fail(error: IssueRankError) -> click.ClickException:
    """Turn a domain error into a CLI error, pointing at the log file if one is configured."""
    message = error.message
    log_file = get_log_file_path()
    if log_file is not None:
        message = f"{message} (details in {log_file})"
    return click.ClickException(message)

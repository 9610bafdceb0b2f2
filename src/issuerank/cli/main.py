"""issuerank CLI - issuerank command."""

from pathlib import Path

import click

from issuerank.cli.search import search_command, similar_command
from issuerank.config.loader import load_config
from issuerank.core.errors import ConfigError
from issuerank.core.logging import configure_logging, set_request_id


@click.group()
@click.version_option(version="0.1.0", prog_name="issuerank")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="YAML config file",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None) -> None:
    """issuerank - hybrid relevance ranking for issue trackers."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(e.message) from e

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = config
    if verbose:
        configure_logging(level="DEBUG")
    else:
        configure_logging(config=config.logging)
    set_request_id()


cli.add_command(search_command, name="search")
cli.add_command(similar_command, name="similar")


if __name__ == "__main__":
    cli()

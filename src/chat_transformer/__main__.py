"""CLI entry point for chat-transformer.

Allows running the transformer as a module:
    python -m chat_transformer convert -i ./raw -o ./expanded
"""

import sys
from datetime import datetime
from pathlib import Path
from typing import Any

import click

from chat_transformer import __version__
from chat_transformer.config import Config, load_config
from chat_transformer.logging import setup_logging
from chat_transformer.search_index import TypesenseIndexer
from chat_transformer.sources import BatchReadError
from chat_transformer.transformer import connect_search_index, run_transformation


def format_timestamp(ts: int) -> str:
    """Format timestamp for display."""
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M:%S")


def print_conversation(hit: dict[str, Any]) -> None:
    """Print a conversation search hit."""
    doc = hit["document"]

    click.echo(f"\033[36m[{format_timestamp(doc['updated_ts'])}]\033[0m \033[1m{doc['title']}\033[0m")
    click.echo(f"Platform: \033[32m{doc['platform']}\033[0m | Messages: {doc['message_count']}")
    click.echo(f"Topics: {', '.join(doc.get('topics', []))}")
    click.echo(f"File: {doc.get('file_path', '')}")
    click.echo("-" * 40)


@click.group()
@click.version_option(__version__, prog_name="chat-transformer")
def cli() -> None:
    """Transform ChatGPT and Claude exports into linear, indexed conversations."""


@cli.command()
@click.option("--input", "-i", "input_path", type=click.Path(path_type=Path), help="Input folder with unpacked exports")
@click.option("--output", "-o", "output_path", type=click.Path(path_type=Path), help="Output folder")
@click.option("--claude", "-c", "claude_only", is_flag=True, help="Process only Claude conversations")
@click.option("--chatgpt", "-g", "chatgpt_only", is_flag=True, help="Process only ChatGPT conversations")
@click.option("--workers", "-w", type=click.IntRange(min=1), help="Number of conversion workers")
@click.option("--config", "config_path", type=click.Path(exists=True, path_type=Path), help="YAML config file")
@click.option("--typesense", is_flag=True, help="Also index conversations in Typesense")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level (default from config, else INFO)",
)
def convert(
    input_path: Path | None,
    output_path: Path | None,
    claude_only: bool,
    chatgpt_only: bool,
    workers: int | None,
    config_path: Path | None,
    typesense: bool,
    log_level: str | None,
) -> None:
    """Convert exports found in the input folder."""
    if claude_only and chatgpt_only:
        raise click.UsageError("Cannot specify both --claude and --chatgpt. Choose one platform to process.")

    config = load_config(config_path)
    if input_path is not None:
        config.input_path = input_path
    if output_path is not None:
        config.output_path = output_path
    if workers is not None:
        config.pipeline.workers = workers
    if typesense:
        config.typesense.enabled = True
    if log_level is not None:
        config.log_level = log_level.upper()

    config.input_path = config.input_path.resolve()
    config.output_path = config.output_path.resolve()
    try:
        setup_logging("transformer", log_dir=config.output_path / "logs", level=config.log_level)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="log_level") from e

    platforms = None
    if claude_only:
        platforms = ["claude"]
    elif chatgpt_only:
        platforms = ["chatgpt"]

    click.echo("Chat Export Transformer")
    click.echo(f"Input folder:   {config.input_path}")
    click.echo(f"Output folder:  {config.output_path}")
    click.echo(f"Platform mode:  {platforms[0] if platforms else 'all platforms'}")
    click.echo(f"Workers:        {config.pipeline.workers}")

    try:
        report = run_transformation(config, platforms, connect_search_index(config))
    except BatchReadError as e:
        click.echo(f"Transformation failed: {e}", err=True)
        sys.exit(1)

    click.echo(
        f"\nProcessed: {report.processed}  Failed: {report.failed}  Warnings: {report.warnings}"
    )


@cli.command()
@click.argument("query")
@click.option("--platform", type=click.Choice(["claude", "chatgpt"]), help="Filter by platform")
@click.option("--topic", help="Filter by topic")
@click.option("--limit", "-n", default=10, help="Number of results")
@click.option("--config", "config_path", type=click.Path(exists=True, path_type=Path), help="YAML config file")
def search(query: str, platform: str | None, topic: str | None, limit: int, config_path: Path | None) -> None:
    """Search converted conversations in Typesense."""
    config: Config = load_config(config_path)
    indexer = TypesenseIndexer(config.typesense)

    filters = {}
    if platform:
        filters["platform"] = platform
    if topic:
        filters["topic"] = topic

    try:
        results = indexer.search_conversations(query, per_page=limit, filters=filters)
    except Exception as e:
        click.echo(f"Error searching conversations: {e}", err=True)
        sys.exit(1)

    found = results.get("found", 0)
    hits = results.get("hits", [])

    click.echo(f"Found {found} conversations (showing {len(hits)}):\n")

    for hit in hits:
        print_conversation(hit)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()

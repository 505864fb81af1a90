"""CLI entry point for runapi."""

import json
from pathlib import Path

import click

from runapi.config import Config, create_default_config, load_config
from runapi.errors import DocumentValidationError, RunApiError
from runapi.generator.diff import compare_docs
from runapi.generator.docs import DocGenerator, load_documents
from runapi.logging import configure_logging
from runapi.showdoc.pusher import Pusher


def _load(config_path: Path | None) -> Config:
    try:
        config = load_config(Path.cwd(), config_path)
    except RunApiError as e:
        raise click.ClickException(str(e)) from e
    for label, directory in (("root scan directory", config.scan.dir), ("doc scan directory", config.scan.scan)):
        if not Path(directory).is_dir():
            raise click.ClickException(f"{label} does not exist: {directory}")
    return config


def _echo_config(config: Config) -> None:
    click.echo(f"Root scan directory: {config.scan.dir}")
    click.echo(f"Doc scan directory: {config.scan.scan}")
    if config.scan.extra_dirs:
        click.echo(f"Extra directories: {', '.join(config.scan.extra_dirs)}")
    click.echo(f"Output file: {config.output.file}")


def _fail(e: RunApiError) -> click.ClickException:
    if isinstance(e, DocumentValidationError):
        return click.ClickException(f"{e}\nfix the issues above and retry")
    return click.ClickException(str(e))


config_option = click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(path_type=Path),
    help="Config file layered over runapi.json in the current directory.",
)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default="console",
    show_default=True,
    help="Log line format on stderr; json emits one serialized record per line.",
)
def main(verbose: bool, log_format: str):
    """runapi: API documents from Go doc comments, published to ShowDoc."""
    configure_logging(level="DEBUG" if verbose else "INFO", format=log_format)


@main.command()
@config_option
def generate(config_path: Path | None):
    """Generate the JSON document file."""
    config = _load(config_path)
    _echo_config(config)
    try:
        changed = DocGenerator(config).generate_documents()
    except RunApiError as e:
        raise _fail(e) from e
    click.echo("Document updated." if changed else "Document unchanged.")


@main.command()
@config_option
def push(config_path: Path | None):
    """Push the existing document file to ShowDoc."""
    config = _load(config_path)
    if not config.showdoc.enabled:
        raise click.ClickException("ShowDoc push is disabled, set showdoc.enabled to true")
    try:
        docs = DocGenerator(config).load_existing_documents()
        result = Pusher(config.showdoc).push_documents(docs)
    except RunApiError as e:
        raise _fail(e) from e
    click.echo(f"Pushed {len(result.pushed)} documents, {len(result.failed)} failed.")


@main.command()
@config_option
def genpush(config_path: Path | None):
    """Regenerate the document and push only what changed."""
    config = _load(config_path)
    _echo_config(config)
    generator = DocGenerator(config)
    try:
        new_docs, content = generator.get_generated_documents()
        old_docs = generator.load_existing_documents() if generator.output.exists() else []
        diff = compare_docs(old_docs, new_docs)
        if not diff.has_changes():
            click.echo("No document changes, nothing to generate or push.")
            return

        click.echo(f"Document changes: {diff.summary()}")
        generator.write(content)
        click.echo(f"Document written to {generator.output}")

        if not config.showdoc.enabled:
            click.echo("ShowDoc push is disabled, only the local document was updated.")
            return
        result = Pusher(config.showdoc).push_changed_documents(diff)
    except RunApiError as e:
        raise _fail(e) from e
    click.echo(f"Pushed {len(result.pushed)} documents, {len(result.failed)} failed.")


@main.command()
@click.argument("old_path", type=click.Path(exists=True, path_type=Path))
@click.argument("new_path", type=click.Path(exists=True, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Print the full diff as JSON.")
def diff(old_path: Path, new_path: Path, as_json: bool):
    """Compare two generated document files."""
    try:
        result = compare_docs(load_documents(old_path), load_documents(new_path))
    except RunApiError as e:
        raise _fail(e) from e
    if as_json:
        click.echo(json.dumps(result.to_json_dict(), indent=2, ensure_ascii=False))
        return
    click.echo(result.summary())
    for doc in result.added:
        click.echo(f"  + {doc.method} {doc.route}  {doc.title}")
    for doc in result.removed:
        click.echo(f"  - {doc.method} {doc.route}  {doc.title}")
    for change in result.changed:
        click.echo(f"  ~ {change.new.method} {change.new.route}  {change.new.title}")


@main.command()
def init():
    """Create a default runapi.json in the current directory."""
    path = Path.cwd() / "runapi.json"
    if path.exists():
        click.echo(f"Config file already exists: {path}")
        return
    create_default_config(path)
    click.echo(f"Created default config file: {path}")

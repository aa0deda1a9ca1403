"""
Command-line interface for orgfeed.

CLI Structure:
    orgfeed [--config PATH] [--env PATH] [--log-level LEVEL] COMMAND

    orgfeed compile [FILES...] [--show-rules]
    orgfeed tag ENTRIES_FILE [FILES...]
    orgfeed export-opml [FILES...] [-o OUT]
    orgfeed import-opml OPML_FILE [-o OUT] [--heading TEXT]

FILES default to the outline.files configured in config.yaml.
"""
import click
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from orgfeed import __version__
from orgfeed.compiler import compile_outlines
from orgfeed.config import ConfigurationError
from orgfeed.feed_engine import FeedEngineAdapter, InMemoryFeedStore
from orgfeed.logging_config import get_logger, init_logging
from orgfeed.models import FeedEntry
from orgfeed.opml import OPMLError, export_opml, import_opml
from orgfeed.rules import RuleTable
from orgfeed.settings import DEFAULT_CONFIG_PATH, settings

logger = get_logger(__name__)

ENTRY_FIELDS = {'feed_url', 'feed_title', 'feed_authors', 'title', 'link', 'content_type', 'enclosures', 'tags'}


@click.group()
@click.version_option(version=__version__, prog_name='orgfeed')
@click.option(
    '--config',
    type=click.Path(path_type=Path),
    default=None,
    help=f'Path to YAML configuration file (default: {DEFAULT_CONFIG_PATH}, optional)'
)
@click.option(
    '--env',
    type=click.Path(path_type=Path),
    default='.env',
    help='Path to .env file with ORGFEED_* overrides (default: .env)'
)
@click.option(
    '--log-level',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
    default=None,
    help='Override the configured log level'
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[Path], env: Path, log_level: Optional[str]):
    """
    orgfeed: compile tagged outlines into feed tagging rules.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = str(config) if config else None
    ctx.obj['env_path'] = str(env)
    ctx.obj['log_level'] = log_level
    ctx.obj['config_initialized'] = False


def _ensure_config_initialized(ctx: click.Context) -> None:
    """
    Lazy initialization of settings facade and logging.
    Only loads config when a command actually runs (not for --help).

    Raises:
        SystemExit: If config loading fails
    """
    if ctx.obj.get('config_initialized', False):
        return

    config_path = ctx.obj['config_path']
    settings.reset()
    try:
        if config_path is None:
            settings.initialize(DEFAULT_CONFIG_PATH, ctx.obj['env_path'], allow_missing=True)
        else:
            settings.initialize(config_path, ctx.obj['env_path'])
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    overrides: Dict[str, Any] = {
        'level': (ctx.obj['log_level'] or settings.get_log_level()).upper(),
        'format': settings.get_log_format(),
    }
    if settings.get_log_file():
        overrides['handlers'] = {'file': {'enabled': True, 'path': settings.get_log_file()}}
    init_logging(overrides=overrides)
    ctx.obj['config_initialized'] = True


def _compile(ctx: click.Context, files: Tuple[Path, ...]) -> RuleTable:
    """Compile the given files, or the configured ones; exit 1 on configuration errors."""
    _ensure_config_initialized(ctx)
    documents: List[str] = [str(f) for f in files] or settings.get_outline_files()
    if not documents:
        click.echo(
            "Configuration error: no outline files given and none configured in outline.files",
            err=True
        )
        sys.exit(1)
    logger.debug(f"Compiling {len(documents)} outline file(s): {', '.join(documents)}")
    try:
        return compile_outlines(
            documents,
            tree_id=settings.get_tree_id(),
            ignore_tag=settings.get_ignore_tag(),
        )
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)


@cli.command('compile')
@click.argument('files', nargs=-1, type=click.Path(path_type=Path))
@click.option('--show-rules', is_flag=True, default=False, help='List every generated rule.')
@click.pass_context
def compile_command(ctx: click.Context, files: Tuple[Path, ...], show_rules: bool):
    """
    Compile outline files and report the rules they produce.
    """
    table = _compile(ctx, files)
    click.echo(
        f"Loaded {table.rule_count} rules "
        f"({len(table.keyword_rules)} keyword, {len(table.subscription_rules)} subscription)"
    )
    if show_rules:
        for rule in table.keyword_rules:
            click.echo(f"  {rule.field.value}: {rule.match} -> {', '.join(sorted(rule.add_tags)) or '-'}")
        for rule in table.subscription_rules:
            title = f" [{rule.title}]" if rule.title else ""
            click.echo(f"  feed {rule.feed_url}{title} -> {', '.join(sorted(rule.add_tags)) or '-'}")


def _load_entries(path: Path) -> List[FeedEntry]:
    """Read a YAML list of entry mappings."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            raw_entries = yaml.safe_load(f) or []
    except (OSError, yaml.YAMLError) as e:
        raise click.ClickException(f"Could not read entries from {path}: {e}")

    if not isinstance(raw_entries, list):
        raise click.ClickException(f"Entries file {path} must contain a list of mappings")

    entries = []
    for idx, raw in enumerate(raw_entries, start=1):
        if not isinstance(raw, dict) or not raw.get('feed_url'):
            raise click.ClickException(f"Entry #{idx} in {path} must be a mapping with a feed_url")
        unknown = set(raw) - ENTRY_FIELDS
        if unknown:
            raise click.ClickException(f"Entry #{idx} in {path} has unknown field(s): {', '.join(sorted(unknown))}")
        data = dict(raw)
        data['tags'] = set(data.get('tags') or [])
        data['feed_authors'] = list(data.get('feed_authors') or [])
        data['enclosures'] = list(data.get('enclosures') or [])
        entries.append(FeedEntry(**data))
    return entries


@cli.command('tag')
@click.argument('entries_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument('files', nargs=-1, type=click.Path(path_type=Path))
@click.pass_context
def tag_command(ctx: click.Context, entries_file: Path, files: Tuple[Path, ...]):
    """
    Apply compiled rules to the entries listed in ENTRIES_FILE (YAML).

    Useful for checking which tags an outline would give to sample entries.
    """
    entries = _load_entries(entries_file)
    table = _compile(ctx, files)
    store = InMemoryFeedStore()
    adapter = FeedEngineAdapter(lambda: table, store)
    adapter.start()

    for entry in entries:
        adapter.on_new_entry(entry)
        feed = store.get_feed_by_id(entry.feed_url)
        label = entry.title or entry.link or entry.feed_url
        feed_label = f" ({feed.title})" if feed and feed.title else ""
        click.echo(f"{label}{feed_label}: {', '.join(sorted(entry.tags)) or '-'}")


@cli.command('export-opml')
@click.argument('files', nargs=-1, type=click.Path(path_type=Path))
@click.option('-o', '--output', type=click.Path(dir_okay=False, path_type=Path), help='Write to file instead of stdout.')
@click.pass_context
def export_opml_command(ctx: click.Context, files: Tuple[Path, ...], output: Optional[Path]):
    """
    Export compiled subscriptions as OPML.
    """
    table = _compile(ctx, files)
    document = export_opml(table)
    if output:
        output.write_text(document, encoding='utf-8')
        click.echo(f"Wrote {len(table.feed_urls)} feed(s) to {output}")
    else:
        click.echo(document, nl=False)


@cli.command('import-opml')
@click.argument('opml_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('-o', '--output', type=click.Path(dir_okay=False, path_type=Path), help='Append to this outline file instead of printing.')
@click.option('--heading', default='Imported feeds', show_default=True, help='Text of the top heading.')
@click.pass_context
def import_opml_command(ctx: click.Context, opml_file: Path, output: Optional[Path], heading: str):
    """
    Convert an OPML subscription list into an outline subtree.
    """
    _ensure_config_initialized(ctx)
    try:
        outline = import_opml(
            opml_file.read_text(encoding='utf-8'),
            tree_id=settings.get_tree_id(),
            heading=heading,
        )
    except OPMLError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if output:
        with open(output, 'a', encoding='utf-8') as f:
            f.write(outline)
        click.echo(f"Appended imported feeds to {output}")
    else:
        click.echo(outline, nl=False)


if __name__ == '__main__':
    cli()

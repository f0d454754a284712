# === FILE: a11y_scout/cli.py ===
#!/usr/bin/env python3
"""
Command-line entry point for A11y Scout.

Commands:
  crawl URL   Discover the pages of a site and print them as JSON
  scan URL    Crawl a site, audit every page and print/save the scan
  show ID     Print a stored scan (needs store_dir in the config)
  config      Show the resolved configuration

Global options:
  --config PATH       YAML/JSON config (default: configs/default.yaml if present)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stderr only when omitted)
  --log-format FORMAT Logging format string

scan options:
  --max-pages N       Page budget (default: SCAN_CRAWL_MAX_PAGES or 50)
  --max-depth N       Link depth (default: SCAN_CRAWL_MAX_DEPTH or 5)
  --json PATH         Save the JSON report to a file
  --pretty            Indent JSON output
  --scan-timeout SEC  Give up waiting after SEC seconds

Example:
  a11y-scout scan https://example.com --max-pages 20 --json report.json
"""
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

import click
from pydantic import ValidationError

from a11y_scout import __version__
from a11y_scout.config import ScannerConfig, load_config
from a11y_scout.crawler.models import DiscoveredPage
from a11y_scout.engine import Engine
from a11y_scout.errors import A11yScoutError
from a11y_scout.logger import DEFAULT_FORMAT, init_logging
from a11y_scout.report.json_report import build_report, render_json
from a11y_scout.scan.models import Scan, ScanStatus
from a11y_scout.scan.store import ScanStore

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


async def run_crawl(cfg: ScannerConfig, url: str, max_pages: Optional[int], max_depth: Optional[int]) -> List[DiscoveredPage]:
    """Crawl *url* with a throwaway engine."""
    engine = Engine(cfg)
    return await engine.start_crawl(url, max_pages, max_depth)


async def run_scan(
    cfg: ScannerConfig,
    url: str,
    max_pages: Optional[int],
    max_depth: Optional[int],
    timeout: Optional[float] = None,
) -> Scan:
    """Start a scan and wait for its terminal state."""
    engine = Engine(cfg)
    await engine.reconcile()
    scan_id = await engine.start_scan(url, max_pages, max_depth)
    try:
        return await engine.wait_for(scan_id, timeout=timeout)
    except asyncio.TimeoutError:
        engine.cancel_scan(scan_id)
        raise


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='A11y Scout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to a YAML/JSON configuration file.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file (stderr when omitted)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    help='Logging format string'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """A11y Scout: crawl a site and audit its pages for accessibility issues."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except (OSError, ValueError, TypeError) as e:
        print_error(f'Cannot load configuration: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--max-pages', type=int, default=None, help='Page budget (1-500)')
@click.option('--max-depth', type=int, default=None, help='Link depth (1-10)')
@click.option('--pretty', is_flag=True, help='Indent JSON output')
@click.pass_context
def crawl(ctx, url, max_pages, max_depth, pretty):
    """Discover the pages of URL."""
    cfg = ctx.obj['config']
    try:
        pages = asyncio.run(run_crawl(cfg, url, max_pages, max_depth))
    except ValidationError as e:
        print_error(f'Invalid budget: {e}')
    except A11yScoutError as e:
        print_error(f'Crawl failed: {e}')
    click.echo(json.dumps([p.to_dict() for p in pages], ensure_ascii=False, indent=2 if pretty else None))


@cli.command('scan', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--max-pages', type=int, default=None, help='Page budget (1-500)')
@click.option('--max-depth', type=int, default=None, help='Link depth (1-10)')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the JSON report to a file'
)
@click.option('--pretty', is_flag=True, help='Indent JSON output')
@click.option(
    '--scan-timeout', 'scan_timeout',
    type=float,
    default=None,
    help='Stop waiting for the scan after SEC seconds'
)
@click.pass_context
def scan(ctx, url, max_pages, max_depth, json_output, pretty, scan_timeout):
    """Crawl URL, audit every discovered page and report the issues."""
    cfg = ctx.obj['config']
    click.echo(f'Starting scan of {url}', err=True)
    try:
        result = asyncio.run(run_scan(cfg, url, max_pages, max_depth, scan_timeout))
    except asyncio.TimeoutError:
        print_error(f'Scan did not finish within {scan_timeout} seconds')
    except ValidationError as e:
        print_error(f'Invalid budget: {e}')

    if json_output:
        try:
            saved = render_json(result, json_output, pretty=pretty)
        except OSError as e:
            print_error(f'Cannot save JSON report: {e}')
        click.echo(f'JSON report: {saved}', err=True)
    else:
        click.echo(json.dumps(build_report(result), ensure_ascii=False, indent=2 if pretty else None))

    click.echo(
        f'{result.status.value}: {result.pages_scanned} page(s) scanned, {result.pages_failed} failed, '
        f'{result.total_issues} issue(s) ({result.critical_issues} critical, '
        f'{result.warning_issues} warning, {result.info_issues} info)',
        err=True,
    )
    if result.status is ScanStatus.FAILED:
        sys.exit(1)


@cli.command('show', context_settings=CONTEXT_SETTINGS)
@click.argument('scan_id')
@click.option('--pretty', is_flag=True, help='Indent JSON output')
@click.pass_context
def show(ctx, scan_id, pretty):
    """Print a stored scan."""
    cfg = ctx.obj['config']
    if cfg.store_dir is None:
        print_error('store_dir is not configured, no scans are persisted')
    record = ScanStore(cfg.store_dir).get(scan_id)
    if record is None:
        print_error(f'Scan not found: {scan_id}')
    click.echo(json.dumps(build_report(record), ensure_ascii=False, indent=2 if pretty else None))


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the resolved configuration as JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()

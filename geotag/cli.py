"""Command-line interface for geotag."""

import json
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .catalog import load_catalog
from .config import OUTPUT_FORMATS, Config, get_config_dir
from .errors import ConfigError, ErrorCode, GeotagError, InputError
from .hosts import iter_input_lines
from .logging import set_log_catalog, setup_logging
from .matcher import CatalogIndex, CategoryScanner, PatternCache
from .models import HostReport
from .route import build_route, encode_route, read_route_domains

console = Console()
err_console = Console(stderr=True)


def _fail(error: Exception) -> None:
    """Report a fatal error and exit."""
    err_console.print(f"[red]ERROR:[/red] {escape(str(error))}")
    sys.exit(1)


def _plain(line: str = "", **styles) -> None:
    """Print report text verbatim. Rich would expand tabs and rewrap lines."""
    click.secho(line, **styles)


def _load_config() -> Config:
    try:
        return Config.load()
    except ConfigError as e:
        _fail(e)


@click.group()
@click.version_option(version=__version__, prog_name="geotag")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logs")
@click.option("--debug", is_flag=True, help="Alias for --verbose")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write logs to this file",
)
def main(verbose: bool, debug: bool, json_logs: bool, log_file: Optional[Path]):
    """geotag - find which geosite categories a host belongs to."""
    setup_logging(verbose=verbose, debug=debug, json_format=json_logs, log_file=log_file)


def _read_lines(source: str) -> list[str]:
    try:
        # Undecodable bytes become U+FFFD and are rejected per line by clean_host
        with click.open_file(source, encoding="utf-8", errors="replace") as f:
            return list(iter_input_lines(f))
    except OSError as e:
        raise InputError(
            ErrorCode.INPUT_READ_ERROR, f"cannot read input: {source}", cause=e
        ) from e


def _print_report(report: HostReport, show_why: bool, width: int, prefix: str) -> None:
    if report.error is not None:
        _plain(f"{report.raw}\tERROR\t{report.error}")
        return

    _plain(f"== {report.host} ==", bold=True)
    if not report.matches:
        _plain(f"(no {prefix} match found)")

    for m in report.matches:
        if show_why:
            _plain(f"{m.selector:<{width}} size={m.group_size:<6} via={m.strategy}:{m.rule_value}")
        else:
            _plain(f"{m.selector:<{width}} size={m.group_size}")
    _plain()


@main.command()
@click.argument("hosts", nargs=-1)
@click.option(
    "--catalog", "-c", "catalog_path", help="Path to geosite.dat or a JSON catalog"
)
@click.option("--input", "-i", "input_path", help="File with hosts/URLs, one per line ('-' for stdin)")
@click.option("--why/--no-why", default=None, help="Show the matched rule type/value")
@click.option("--format", "output_format", type=click.Choice(OUTPUT_FORMATS), help="Output format")
@click.option("--jobs", "-j", type=click.IntRange(min=1), help="Hosts to classify in parallel")
@click.option("--prefix", help="Selector prefix (default: geosite)")
def lookup(
    hosts: tuple[str, ...],
    catalog_path: Optional[str],
    input_path: Optional[str],
    why: Optional[bool],
    output_format: Optional[str],
    jobs: Optional[int],
    prefix: Optional[str],
):
    """Classify hosts or URLs against the catalog.

    Hosts are taken from the arguments, else from --input, else from the
    configured input file.

    Example: geotag lookup sub.ads.example.com https://weibo.com/path
    """
    config = _load_config()

    show_why = config.output.show_why if why is None else why
    output_format = output_format or config.output.format
    jobs = jobs or config.scan.jobs
    prefix = prefix or config.scan.selector_prefix

    catalog_path = catalog_path or config.catalog_path
    set_log_catalog(catalog_path)

    try:
        catalog = load_catalog(catalog_path)
        lines = list(iter_input_lines(hosts)) if hosts else _read_lines(input_path or config.input_path)
    except GeotagError as e:
        _fail(e)

    scanner = CategoryScanner(
        catalog,
        index=CatalogIndex.from_catalog(catalog),
        cache=PatternCache(),
        prefix=prefix,
    )
    reports = scanner.lookup_many(lines, jobs=jobs)

    if output_format == "json":
        click.echo(json.dumps([r.to_dict() for r in reports], indent=2))
        return

    for report in reports:
        _print_report(report, show_why, config.output.selector_width, prefix)


@main.command()
@click.option("--catalog", "-c", "catalog_path", help="Path to geosite.dat or a JSON catalog")
@click.option("--filter", "-f", "tag_filter", help="Only show tags containing this text")
def tags(catalog_path: Optional[str], tag_filter: Optional[str]):
    """List catalog categories with their group sizes."""
    config = _load_config()

    try:
        catalog = load_catalog(catalog_path or config.catalog_path)
    except GeotagError as e:
        _fail(e)

    index = CatalogIndex.from_catalog(catalog)
    names = index.tags()
    if tag_filter:
        names = [t for t in names if tag_filter.lower() in t.lower()]

    if not names:
        console.print("No matching categories.")
        return

    table = Table(show_header=True)
    table.add_column("Tag")
    table.add_column("Rules", justify="right")
    table.add_column("Attributes")

    for tag in names:
        attrs = index.attributes(tag)
        table.add_row(
            escape(tag),
            str(index.group_size(tag)),
            escape(", ".join(f"@{k} ({n})" for k, n in sorted(attrs.items()))),
        )

    console.print(table)
    console.print(f"\n{len(names)} categories, {catalog.rule_count} rules in catalog")


@main.command()
@click.argument("domains_file", type=click.Path(dir_okay=False))
@click.option("--name", default="Default", show_default=True, help="Route and rule name")
@click.option("--outbound", default="direct", show_default=True, help="Outbound tag for the rule")
@click.option("--json", "as_json", is_flag=True, help="Print the route document instead of the token")
def route(domains_file: str, name: str, outbound: str, as_json: bool):
    """Package a domain list as a v2rayTun routing import token.

    Example: geotag route domains.txt
    """
    try:
        document = build_route(read_route_domains(domains_file), name=name, outbound_tag=outbound)
    except GeotagError as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps(document, indent=2))
    else:
        _plain(encode_route(document))


@main.command("config")
@click.option("--show", is_flag=True, help="Show current config")
@click.option("--catalog", "catalog_path", help="Set the default catalog path")
@click.option("--input", "input_path", help="Set the default input file")
@click.option("--why", type=click.Choice(["on", "off"]), help="Show matched rules by default")
@click.option("--format", "output_format", type=click.Choice(OUTPUT_FORMATS), help="Default output format")
@click.option("--prefix", help="Set the selector prefix")
@click.option("--jobs", type=click.IntRange(min=1), help="Default parallel lookups")
def config_cmd(
    show: bool,
    catalog_path: Optional[str],
    input_path: Optional[str],
    why: Optional[str],
    output_format: Optional[str],
    prefix: Optional[str],
    jobs: Optional[int],
):
    """View or modify configuration."""
    config = _load_config()

    changed = False
    if catalog_path:
        config.catalog_path = catalog_path
        changed = True
    if input_path:
        config.input_path = input_path
        changed = True
    if why:
        config.output.show_why = why == "on"
        changed = True
    if output_format:
        config.output.format = output_format
        changed = True
    if prefix:
        config.scan.selector_prefix = prefix
        changed = True
    if jobs:
        config.scan.jobs = jobs
        changed = True

    if changed:
        config.save()
        console.print("[green]✓ Configuration saved[/green]")

    if show or not changed:
        console.print("\n[bold]Current Configuration[/bold]")
        console.print(f"  Config dir: {escape(str(get_config_dir()))}")
        console.print(f"  Catalog: {escape(config.catalog_path)}")
        console.print(f"  Input: {escape(config.input_path)}")
        console.print(f"  Show why: {config.output.show_why}")
        console.print(f"  Format: {config.output.format}")
        console.print(f"  Selector prefix: {escape(config.scan.selector_prefix)}")
        console.print(f"  Jobs: {config.scan.jobs}")


if __name__ == "__main__":
    main()

"""CLI entry point: python -m gifgallery {build,show} [options]"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Any

import yaml
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table

from gifgallery import settings
from gifgallery.items import Manifest, format_timestamp
from gifgallery.manifest import ManifestError, WriteError, filter_items, load_manifest, write_manifest
from gifgallery.profiles import load_profile
from gifgallery.query import FetchError, fetch_manifest

logger = logging.getLogger("gifgallery")

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

# Config keys and their converters, applied to profile values and GIFGALLERY_<KEY> overrides
_ENV_KEYS: dict[str, type] = {
    "channel_url": str,
    "output": str,
    "user_agent": str,
    "timeout": int,
    "max_retries": int,
    "log_level": str,
}


def _build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", default=None, metavar="FILE",
                        help="YAML profile with build settings")
    common.add_argument("--out", default=None, metavar="PATH",
                        help=f"Manifest path (default: {settings.OUTPUT_PATH})")
    common.add_argument("--log-level", default=None, choices=_LOG_LEVELS,
                        metavar="{DEBUG,INFO,WARNING,ERROR}",
                        help=f"Logging level (default: {settings.LOG_LEVEL})")

    parser = argparse.ArgumentParser(
        prog="gifgallery",
        description="Snapshot a GIPHY channel into a static gallery manifest.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    build = sub.add_parser("build", parents=[common],
                           help="Fetch the channel page and write the manifest")
    build.add_argument("--channel", dest="channel_url", default=None, metavar="URL",
                       help=f"Channel page URL (default: {settings.CHANNEL_URL})")
    build.add_argument("--timeout", type=int, default=None, metavar="N",
                       help=f"Request timeout in seconds (default: {settings.DOWNLOAD_TIMEOUT})")
    build.add_argument("--retries", dest="max_retries", type=int, default=None, metavar="N",
                       help=f"Retries on transient HTTP errors (default: {settings.RETRY_TIMES})")
    build.add_argument("--user-agent", default=None, metavar="UA",
                       help="Override the User-Agent header")

    show = sub.add_parser("show", parents=[common],
                          help="List the GIFs in an existing manifest")
    show.add_argument("--query", default="", metavar="TEXT",
                      help="Only show GIFs whose title, id or URL contains TEXT")
    show.add_argument("--limit", type=int, default=50, metavar="N",
                      help="Maximum rows to print (default: 50)")
    return parser


def resolve_config(args: argparse.Namespace, environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Merge settings defaults < profile file < environment < CLI flags."""
    environ = os.environ if environ is None else environ
    config: dict[str, Any] = {
        "channel_url": settings.CHANNEL_URL,
        "output": settings.OUTPUT_PATH,
        "user_agent": settings.USER_AGENT,
        "timeout": settings.DOWNLOAD_TIMEOUT,
        "max_retries": settings.RETRY_TIMES,
        "log_level": settings.LOG_LEVEL,
    }

    if getattr(args, "config", None):
        for key, value in load_profile(args.config).items():
            try:
                config[key] = _ENV_KEYS[key](value)
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid %s=%r in profile %s", key, value, args.config)

    for key, cast in _ENV_KEYS.items():
        raw = environ.get(f"GIFGALLERY_{key.upper()}")
        if raw:
            try:
                config[key] = cast(raw)
            except ValueError:
                logger.warning("Ignoring invalid GIFGALLERY_%s=%r", key.upper(), raw)

    cli = {
        "channel_url": getattr(args, "channel_url", None),
        "output": getattr(args, "out", None),
        "user_agent": getattr(args, "user_agent", None),
        "timeout": getattr(args, "timeout", None),
        "max_retries": getattr(args, "max_retries", None),
        "log_level": getattr(args, "log_level", None),
    }
    config.update({k: v for k, v in cli.items() if v is not None})
    return config


def _configure_logging(level: str) -> None:
    level = str(level).upper()
    logger.setLevel(level if level in _LOG_LEVELS else settings.LOG_LEVEL)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(
            RichHandler(console=Console(stderr=True), show_path=False, markup=False),
        )


def _print_banner(console: Console, config: dict[str, Any]) -> None:
    console.print(
        Panel.fit(
            f"[bold cyan]gifgallery[/bold cyan]\n"
            f"Channel:   [green]{config['channel_url']}[/green]\n"
            f"Output:    [yellow]{config['output']}[/yellow]\n"
            f"Timeout:   {config['timeout']}s\n"
            f"Retries:   {config['max_retries']}",
            border_style="cyan",
            title="[bold]Configuration[/bold]",
        ),
    )


def _print_items(console: Console, manifest: Manifest, query: str = "", limit: int = 50) -> None:
    limit = max(limit, 0)
    shown = filter_items(manifest.items, query)

    console.print()
    console.print(Rule("[bold cyan]Gallery[/bold cyan]"))
    console.print(f"  [bold]Channel  :[/bold] {manifest.source or '-'}")
    console.print(f"  [bold]Built at :[/bold] {format_timestamp(manifest.built_at) or 'unknown'}")
    console.print(f"  [bold]GIFs     :[/bold] {len(shown)} shown · {manifest.count} total")
    console.print()

    if not shown:
        return

    tbl = Table(box=box.SIMPLE_HEAVY, show_lines=False)
    tbl.add_column("#",     style="dim",   justify="right", width=4, no_wrap=True)
    tbl.add_column("ID",    style="green", min_width=8, no_wrap=True)
    tbl.add_column("Title", style="cyan",  max_width=48)
    tbl.add_column("Page",  style="blue",  max_width=60, overflow="fold")
    for i, item in enumerate(shown[:limit], 1):
        tbl.add_row(str(i), item.id, item.title, item.page_url)
    console.print(tbl)
    if len(shown) > limit:
        console.print(f"  [dim]… {len(shown) - limit} more[/dim]")


def _run_build(config: dict[str, Any], console: Console) -> int:
    _print_banner(console, config)
    try:
        manifest = fetch_manifest(
            config["channel_url"],
            timeout=config["timeout"],
            user_agent=config["user_agent"],
            max_retries=config["max_retries"],
        )
        path = write_manifest(manifest, config["output"])
    except (FetchError, WriteError) as exc:
        logger.error("Build failed: %s", exc)
        return 1

    if manifest.count == 0:
        logger.warning("No GIFs found on %s; wrote an empty manifest", config["channel_url"])
    _print_items(console, manifest, limit=20)
    console.print(f"Wrote [green]{path}[/green] with {manifest.count} GIFs.")
    return 0


def _run_show(config: dict[str, Any], args: argparse.Namespace, console: Console) -> int:
    try:
        manifest = load_manifest(config["output"])
    except ManifestError as exc:
        logger.error("%s (run 'gifgallery build' to generate it)", exc)
        return 1
    _print_items(console, manifest, query=args.query, limit=args.limit)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = resolve_config(args)
    except (OSError, yaml.YAMLError) as exc:
        print(f"ERROR: could not load profile {args.config!r}: {exc}", file=sys.stderr)
        return 1

    _configure_logging(config["log_level"])
    console = Console()

    if args.command == "build":
        return _run_build(config, console)
    return _run_show(config, args, console)


if __name__ == "__main__":
    sys.exit(main())

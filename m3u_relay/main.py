from __future__ import annotations

import argparse
import json
import logging
import os

from .api import create_app
from .config import Settings, configure_logging, load_settings
from .downloader.media_downloader import MediaDownloader
from .errors import RelayError
from .models import Entry, GroupSummary, ParseResult
from .playlist.generator import generate_playlist
from .playlist.parser import parse_stream, summarize_groups
from .utils.file_utils import ensure_directory
from .utils.http_client import HttpClient


def _csv_arg(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def select_entries(
    entries: list[Entry],
    groups: list[str] | None = None,
    search: str | None = None,
) -> list[Entry]:
    """Keeps entries in one of ``groups`` whose display name contains ``search``."""

    selected = entries
    if groups:
        allowed = {group.lower() for group in groups}
        selected = [entry for entry in selected if entry.group_name.lower() in allowed]
    if search:
        needle = search.lower()
        selected = [entry for entry in selected if needle in entry.display_name.lower()]
    if entries and not selected:
        logging.warning("Selection removed every entry; check --groups/--search values.")
    return selected


def parse_args(settings: Settings, argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Parse, regenerate and relay M3U playlists.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=settings.host, help="Bind address")
    serve.add_argument("--port", type=int, default=settings.port, help="Bind port")
    serve.add_argument("--debug", action="store_true", default=settings.debug, help="Enable Flask debug mode")

    parse_cmd = subparsers.add_parser("parse", help="Parse a playlist and list its groups")
    parse_cmd.add_argument("file", help="Path to a .m3u/.m3u8 file")
    parse_cmd.add_argument("--json", dest="json_output", help="Write the parse result as JSON to this path")
    parse_cmd.add_argument("--sort-groups", action="store_true", help="Sort groups by name instead of file order")

    for name, help_text in (
        ("export", "Write selected entries to a new playlist"),
        ("download", "Download the media of selected entries"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("file", help="Path to a .m3u/.m3u8 file")
        sub.add_argument("--groups", type=_csv_arg, help="Comma-separated group names to keep")
        sub.add_argument("--search", help="Keep entries whose name contains this text")
        if name == "export":
            sub.add_argument("--output", required=True, help="Destination playlist path")
        else:
            sub.add_argument("--output-dir", default="downloads", help="Directory to store downloaded media")
            sub.add_argument("--workers", type=int, default=4, help="Number of concurrent downloads")
            sub.add_argument(
                "--download",
                action="store_true",
                help="Perform actual downloads instead of preview-only output",
            )
    return parser.parse_args(argv)


def print_groups(groups: list[GroupSummary]) -> None:
    if not groups:
        logging.info("No entries found in this playlist.")
        return
    logging.info("%-40s | %s", "Group", "Entries")
    logging.info("%s", "-" * 52)
    for group in groups:
        logging.info("%-40s | %s", group.name, group.count)


def print_entries(entries: list[Entry]) -> None:
    for entry in entries:
        logging.info("  %-10s | %-30s | %s", entry.id, entry.group_name, entry.display_name)


def load_playlist(path: str, settings: Settings, sort_groups: bool = False) -> ParseResult:
    with open(path, "rb") as handle:
        return parse_stream(handle, chunk_size=settings.chunk_size, sort_groups=sort_groups)


def run_parse(args: argparse.Namespace, settings: Settings) -> None:
    result = load_playlist(args.file, settings, sort_groups=args.sort_groups)
    logging.info("Found %s entries in %s groups.", result.total_entries, len(result.groups))
    print_groups(result.groups)
    if args.json_output:
        parent = os.path.dirname(os.path.abspath(args.json_output))
        ensure_directory(parent)
        with open(args.json_output, "w", encoding="utf-8") as handle:
            json.dump(result.model_dump(by_alias=True, exclude_none=True), handle, ensure_ascii=False, indent=2)
        logging.info("Saved parse result to %s", args.json_output)


def run_export(args: argparse.Namespace, settings: Settings) -> None:
    result = load_playlist(args.file, settings)
    selected = select_entries(result.entries, args.groups, args.search)
    if not selected:
        logging.error("Nothing to export.")
        return
    parent = os.path.dirname(os.path.abspath(args.output))
    ensure_directory(parent)
    with open(args.output, "w", encoding="utf-8", newline="\n") as handle:
        handle.write(generate_playlist(selected))
    logging.info("Exported %s entries to %s", len(selected), args.output)
    print_groups(summarize_groups(selected))


def run_download(args: argparse.Namespace, settings: Settings) -> None:
    result = load_playlist(args.file, settings)
    selected = select_entries(result.entries, args.groups, args.search)
    if not selected:
        logging.error("Nothing to download.")
        return

    logging.info("Selected %s entries.", len(selected))
    print_entries(selected)
    if not args.download:
        logging.info("Preview complete. Re-run with --download to fetch the media.")
        return

    with HttpClient(
        connect_timeout=settings.connect_timeout,
        read_timeout=settings.read_timeout,
        user_agent=settings.user_agent,
        accept_language=settings.accept_language,
    ) as http_client:
        downloader = MediaDownloader(http_client, args.output_dir, workers=args.workers)
        succeeded, failed = downloader.download(selected)
    logging.info("Downloads finished: %s succeeded, %s failed.", succeeded, failed)


def main(argv: list[str] | None = None) -> None:
    settings = load_settings()
    args = parse_args(settings, argv)
    configure_logging(settings.log_level)

    if args.command == "serve":
        app = create_app(settings)
        logging.info("Serving on http://%s:%s", args.host, args.port)
        app.run(host=args.host, port=args.port, debug=args.debug)
        return

    handlers = {"parse": run_parse, "export": run_export, "download": run_download}
    try:
        handlers[args.command](args, settings)
    except FileNotFoundError as exc:
        logging.error("Playlist not found: %s", exc.filename)
    except RelayError as exc:
        logging.error("%s", exc.message)


if __name__ == "__main__":
    main()

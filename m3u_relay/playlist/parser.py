"""Incremental parser turning chunked M3U bytes into playlist entries."""

from __future__ import annotations

import codecs
import logging
import re
from typing import BinaryIO, Dict, Iterable, List, Optional, Tuple, Union

from ..errors import EmptyPlaylistError
from ..models import DEFAULT_GROUP, UNKNOWN_NAME, Entry, GroupSummary, ParseResult

HEADER_PREFIX = "#EXTM3U"
INFO_PREFIX = "#EXTINF:"
URL_PREFIX = "http"
DEFAULT_CHUNK_SIZE = 64 * 1024

DURATION_PATTERN = re.compile(r"^\s*-?\d+(?:\.\d+)?")
ATTRIBUTE_PATTERN = re.compile(r'([A-Za-z0-9_-]+)="([^"]*)"')

# attribute key -> Entry field
RECOGNIZED_ATTRIBUTES: Dict[str, str] = {
    "tvg-name": "attribute_name",
    "tvg-logo": "logo_url",
    "tvg-id": "external_id",
    "tvg-country": "country",
    "tvg-language": "language",
    "group-title": "group_name",
}

Chunk = Union[bytes, bytearray, str]


def _split_title(rest: str) -> Tuple[str, Optional[str]]:
    """Splits at the first comma outside double quotes; the title is ``None`` without one."""

    in_quotes = False
    for index, char in enumerate(rest):
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            return rest[:index], rest[index + 1:]
    return rest, None


def parse_info_line(line: str) -> Dict[str, str]:
    """Extracts entry fields from one ``#EXTINF:`` line.

    The returned mapping always holds ``display_name`` and ``group_name``; the other
    keys appear only for non-empty recognized attributes.
    """

    rest = line[len(INFO_PREFIX):] if line.startswith(INFO_PREFIX) else line
    duration = DURATION_PATTERN.match(rest)
    if duration:
        rest = rest[duration.end():]

    attribute_block, title = _split_title(rest)
    info: Dict[str, str] = {}
    for match in ATTRIBUTE_PATTERN.finditer(attribute_block):
        field = RECOGNIZED_ATTRIBUTES.get(match.group(1).lower())
        if field and match.group(2).strip() and field not in info:
            info[field] = match.group(2).strip()

    display_name = title.strip() if title is not None else ""
    info["display_name"] = display_name or info.get("attribute_name") or UNKNOWN_NAME
    info.setdefault("group_name", DEFAULT_GROUP)
    return info


class PlaylistParser:
    """Feeds successive chunks of one playlist and emits completed entries.

    Only two pieces of state survive between calls: the unterminated tail of the
    last chunk and the fields of the most recent info line. A line is never
    classified before its newline is seen, except by :meth:`finish`.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8-sig")(errors="replace")
        self._pending_text = ""
        self._pending_info: Optional[Dict[str, str]] = None
        self._next_id = 0
        self._finished = False

    def feed(self, chunk: Chunk) -> List[Entry]:
        if self._finished:
            raise RuntimeError("feed() called after finish()")
        text = chunk if isinstance(chunk, str) else self._decoder.decode(bytes(chunk))
        return self._consume(text, final=False)

    def finish(self) -> List[Entry]:
        if self._finished:
            raise RuntimeError("finish() called twice")
        self._finished = True
        return self._consume(self._decoder.decode(b"", final=True), final=True)

    def _consume(self, text: str, final: bool) -> List[Entry]:
        lines = (self._pending_text + text).split("\n")
        self._pending_text = lines.pop()

        entries: List[Entry] = []
        for line in lines:
            entry = self._process_line(line.strip())
            if entry:
                entries.append(entry)

        if final:
            tail = self._pending_text.strip()
            self._pending_text = ""
            if tail.startswith(URL_PREFIX):
                entry = self._process_line(tail)
                if entry:
                    entries.append(entry)
            elif tail.startswith(INFO_PREFIX):
                logging.debug("Dropping unterminated info line at end of stream")
            self._pending_info = None
        return entries

    def _process_line(self, line: str) -> Optional[Entry]:
        if not line or line.startswith(HEADER_PREFIX):
            return None
        if line.startswith(INFO_PREFIX):
            self._pending_info = parse_info_line(line)
            return None
        if line.startswith(URL_PREFIX):
            info, self._pending_info = self._pending_info, None
            if not info or not info.get("display_name"):
                return None
            entry = Entry(id=f"entry-{self._next_id}", media_url=line, **info)
            self._next_id += 1
            return entry
        return None


def summarize_groups(entries: Iterable[Entry], sort_by_name: bool = False) -> List[GroupSummary]:
    """Counts entries per group, in first-encountered order unless asked to sort."""

    counts: Dict[str, int] = {}
    for entry in entries:
        name = entry.group_name or DEFAULT_GROUP
        counts[name] = counts.get(name, 0) + 1
    groups = [GroupSummary(name=name, count=count) for name, count in counts.items()]
    if sort_by_name:
        groups.sort(key=lambda group: group.name.lower())
    return groups


def parse_chunks(chunks: Iterable[Chunk]) -> List[Entry]:
    """Runs a fresh parser over ``chunks`` and returns every entry in file order."""

    parser = PlaylistParser()
    entries: List[Entry] = []
    for chunk in chunks:
        entries.extend(parser.feed(chunk))
    entries.extend(parser.finish())
    return entries


def iter_file_chunks(stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterable[bytes]:
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            return
        yield chunk


def parse_stream(
    stream: Optional[BinaryIO],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    sort_groups: bool = False,
) -> ParseResult:
    """Parses a binary stream in ``chunk_size`` reads into a :class:`ParseResult`.

    Raises :class:`EmptyPlaylistError` when the stream is missing or holds no bytes.
    """

    if stream is None:
        raise EmptyPlaylistError("No playlist file was provided")
    first = stream.read(chunk_size)
    if not first:
        raise EmptyPlaylistError("The playlist file is empty")

    parser = PlaylistParser()
    entries = parser.feed(first)
    for chunk in iter_file_chunks(stream, chunk_size):
        entries.extend(parser.feed(chunk))
    entries.extend(parser.finish())

    groups = summarize_groups(entries, sort_by_name=sort_groups)
    logging.info("Parsed %s entries in %s groups", len(entries), len(groups))
    return ParseResult(entries=entries, total_entries=len(entries), groups=groups)

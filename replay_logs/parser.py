"""Nginx access-log parser: filters client traffic and extracts Requests.

Only GET requests tagged with the reference client are kept. Lines carrying
an excluded marker token or a catalogs path are dropped silently. Every
remaining line must contain a content URL such as:

    /tpr/sc1live/data/b5/20/b520b25e5d4b5627025aeba235d60708.index

A line that passes the filters but has no such URL is treated as a corrupt
capture and aborts the whole batch.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable

from replay_logs.models import (
    Request,
    RootFolder,
    RootFolderParseError,
    content_key_digest,
    parse_root_folder,
)

logger = logging.getLogger(__name__)

INDEX_SUFFIX = ".index"

# tpr/<product>/<root folder>/<2 hex>/<2 hex>/<hex id>[.index]
REQUEST_URL_PATTERN = re.compile(
    r'tpr/[^/\s"]+/[^/\s"]+/[0-9a-f]{2}/[0-9a-f]{2}/[0-9a-f]+'
    r'(?:\.index)?'
    r'(?![0-9A-Za-z])'
)

BYTE_RANGE_PATTERN = re.compile(r"bytes=([0-9]+)-([0-9]+)")


class LogParseError(ValueError):
    """Raised when a qualifying log line cannot be turned into a Request."""

    def __init__(self, message: str, line: str):
        super().__init__(f"{message}: {line}")
        self.reason = message
        self.line = line


@dataclass(frozen=True)
class LogDialect:
    method: str = "GET"
    client_tag: str = "[blizzard]"
    excluded_tokens: tuple[str, ...] = ("bnt002", "bnt004")
    excluded_segment: str = "catalogs"

    @property
    def excluded_segment_pattern(self) -> re.Pattern:
        return re.compile(rf'(?:^|/){re.escape(self.excluded_segment)}(?=[/\s?"]|$)')


DEFAULT_DIALECT = LogDialect()


def is_candidate(line: str, dialect: LogDialect = DEFAULT_DIALECT) -> bool:
    """True if the line is a client GET that is not excluded from replay."""
    if dialect.method not in line or dialect.client_tag not in line:
        return False
    if any(token in line for token in dialect.excluded_tokens):
        return False
    if dialect.excluded_segment and dialect.excluded_segment_pattern.search(line):
        return False
    return True


def parse_request(
    line: str,
    root_folder_parser: Callable[[str], RootFolder] = parse_root_folder,
    digest: Callable[[str], str] = content_key_digest,
) -> Request:
    """Extract a Request from a line already accepted by is_candidate()."""
    line = line.rstrip("\r\n")
    url_match = REQUEST_URL_PATTERN.search(line)
    if url_match is None:
        raise LogParseError("No request URL found in log line", line)

    request_url = url_match.group(0)
    segments = request_url.split("/")
    is_index = request_url.endswith(INDEX_SUFFIX)
    file_id = segments[5].removesuffix(INDEX_SUFFIX)

    try:
        root_folder = root_folder_parser(segments[2])
    except RootFolderParseError as e:
        raise LogParseError(str(e), line) from e

    byte_match = BYTE_RANGE_PATTERN.search(line)
    if byte_match is None:
        return Request(
            product_root_uri=f"tpr/{segments[1]}",
            root_folder=root_folder,
            content_key=digest(file_id),
            is_index=is_index,
            download_whole_file=True,
        )

    return Request(
        product_root_uri=f"tpr/{segments[1]}",
        root_folder=root_folder,
        content_key=digest(file_id),
        is_index=is_index,
        lower_byte_range=int(byte_match.group(1)),
        upper_byte_range=int(byte_match.group(2)),
    )


def parse(
    lines: Iterable[str],
    dialect: LogDialect = DEFAULT_DIALECT,
    root_folder_parser: Callable[[str], RootFolder] = parse_root_folder,
    digest: Callable[[str], str] = content_key_digest,
) -> list[Request]:
    """Turn raw access-log lines into Requests, preserving line order.

    Raises LogParseError on the first qualifying line that cannot be parsed;
    no partial result is returned.
    """
    requests = []
    total = 0
    for line in lines:
        total += 1
        if not is_candidate(line, dialect):
            continue
        requests.append(parse_request(line, root_folder_parser, digest))

    logger.info("Parsed %d log lines: %d requests, %d skipped",
                total, len(requests), total - len(requests))
    return requests

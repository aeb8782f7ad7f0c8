"""Locate saved request captures for a product and turn them into replay lists.

Captures live under ``<log_base_path>/<product>/`` as zipped nginx access
logs. The first time a capture is read it is parsed, coalesced and written
back beside the zip as ``<name>.coalesced.log``; later runs load that file
directly.
"""

import logging
import os
import time
import zipfile

from replay_logs.cache import JsonFileStore, RequestStore
from replay_logs.coalescer import coalesce
from replay_logs.models import Request
from replay_logs.parser import DEFAULT_DIALECT, LogDialect, LogParseError, parse

logger = logging.getLogger(__name__)

COALESCED_MARKER = "coalesced"
ARCHIVE_EXTENSION = ".zip"


class RequestLogsNotFoundError(FileNotFoundError):
    """Raised when no usable request capture exists for a product."""

    def __init__(self, product: str, reason: str = ""):
        message = f"Unable to find replay logs for {product}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.product = product


class CorruptCaptureError(ValueError):
    """Raised when a capture archive for a product cannot be opened."""

    def __init__(self, product: str, archive_path: str, reason: str):
        super().__init__(f"Corrupt capture {archive_path} for {product}: {reason}")
        self.product = product
        self.archive_path = archive_path


def product_log_folder(log_base_path: str, product: str) -> str:
    """Folder holding a product's captures. Colons are not allowed in folder names."""
    return os.path.join(log_base_path, product.replace(":", ""))


def is_capture_name(name: str) -> bool:
    """True for capture archives and coalesced results; extracted .log files are not captures."""
    return name.endswith(ARCHIVE_EXTENSION) or COALESCED_MARKER in name


def _captures_newest_first(folder: str) -> list[str]:
    paths = [
        os.path.join(folder, name)
        for name in os.listdir(folder)
        if is_capture_name(name) and os.path.isfile(os.path.join(folder, name))
    ]
    return sorted(paths, key=os.path.getmtime, reverse=True)


def find_latest_log(log_folder: str, use_cache: bool = True) -> str | None:
    """Most recently modified capture in ``log_folder``, or None.

    With ``use_cache`` off only archives are considered, so the newest raw
    capture is re-parsed.
    """
    if not os.path.isdir(log_folder):
        return None
    for path in _captures_newest_first(log_folder):
        if not use_cache and not path.endswith(ARCHIVE_EXTENSION):
            continue
        return path
    return None


def extract_archive(archive_path: str) -> str:
    """Unzip next to the archive and return the path of the extracted .log file."""
    with zipfile.ZipFile(archive_path) as archive:
        archive.extractall(os.path.dirname(archive_path))
    return archive_path[: -len(ARCHIVE_EXTENSION)] + ".log"


def coalesced_name(archive_path: str) -> str:
    name = os.path.basename(archive_path)
    return name[: -len(ARCHIVE_EXTENSION)] + f".{COALESCED_MARKER}.log"


def get_saved_request_logs(
    log_base_path: str,
    product: str,
    store: RequestStore | None = None,
    dialect: LogDialect = DEFAULT_DIALECT,
    use_cache: bool = True,
) -> list[Request]:
    """Return the coalesced requests the reference client made for ``product``.

    Raises RequestLogsNotFoundError when the product has no capture.
    Raises CorruptCaptureError when the newest archive is not a valid zip.
    Raises LogParseError, naming the product, when the capture contains a
    malformed request line.
    """
    start = time.perf_counter()
    log_folder = product_log_folder(log_base_path, product)
    if store is None:
        store = JsonFileStore(log_folder)

    latest = find_latest_log(log_folder, use_cache=use_cache)
    if latest is None:
        raise RequestLogsNotFoundError(product, f"no captures in {log_folder}")

    latest_name = os.path.basename(latest)
    if COALESCED_MARKER in latest_name:
        logger.info("Using coalesced capture %s", latest_name)
        cached = store.load(latest_name)
        if cached is None:
            raise RequestLogsNotFoundError(product, f"{latest_name} is not in the store")
        return cached

    logger.info("Extracting %s", latest)
    try:
        log_path = extract_archive(latest)
    except zipfile.BadZipFile as e:
        raise CorruptCaptureError(product, latest, str(e)) from e

    try:
        with open(log_path, "r", encoding="utf-8", errors="replace") as f:
            raw_requests = parse(f, dialect=dialect)
    except FileNotFoundError:
        raise RequestLogsNotFoundError(
            product, f"{os.path.basename(log_path)} missing from {latest_name}"
        ) from None
    except LogParseError as e:
        raise LogParseError(
            f"Malformed capture {latest_name} for {product}: {e.reason}", e.line
        ) from e

    requests_to_replay = coalesce(raw_requests)
    store.save(coalesced_name(latest), requests_to_replay)

    logger.info("Parsed request logs in %.2fs: %d raw, %d after coalescing",
                time.perf_counter() - start, len(raw_requests), len(requests_to_replay))
    return requests_to_replay


def get_latest_log_version(log_base_path: str, product: str) -> str:
    """Name (without extension) of the newest capture archive, or '' if none."""
    log_folder = product_log_folder(log_base_path, product)
    os.makedirs(log_folder, exist_ok=True)

    for path in _captures_newest_first(log_folder):
        name = os.path.basename(path)
        if name.endswith(ARCHIVE_EXTENSION):
            return name[: -len(ARCHIVE_EXTENSION)]
    return ""

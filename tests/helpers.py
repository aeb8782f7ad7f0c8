"""Builders for log lines, requests and zipped captures used across tests."""

import os
import zipfile

from replay_logs.models import Request, RootFolder, content_key_digest

SAMPLE_ID = "b520b25e5d4b5627025aeba235d60708"
SAMPLE_PATH = f"/tpr/sc1live/data/b5/20/{SAMPLE_ID}"


def make_line(path: str = SAMPLE_PATH, byte_range: str | None = None,
              tag: str = "[blizzard]", method: str = "GET") -> str:
    """Build an access-log line in the cache server's log format."""
    range_field = f"bytes={byte_range}" if byte_range else "-"
    return (
        f'{tag} 192.168.1.20 / - - - [17/Oct/2026:10:15:32 +0000] '
        f'"{method} {path} HTTP/1.1" 206 4096 "-" "Battle.net/1.0" "HIT" '
        f'"level3.blizzard.com" "{range_field}"\n'
    )


def make_request(lower: int | None = None, upper: int | None = None,
                 file_id: str = SAMPLE_ID, is_index: bool = False,
                 root_folder: RootFolder = RootFolder.DATA,
                 product_root_uri: str = "tpr/sc1live") -> Request:
    return Request(
        product_root_uri=product_root_uri,
        root_folder=root_folder,
        content_key=content_key_digest(file_id),
        is_index=is_index,
        lower_byte_range=lower,
        upper_byte_range=upper,
        download_whole_file=lower is None,
    )


def write_capture(folder: str, name: str, lines: list[str], mtime: float | None = None) -> str:
    """Zip ``lines`` as ``<name>.log`` inside ``<folder>/<name>.zip``."""
    os.makedirs(folder, exist_ok=True)
    archive_path = os.path.join(folder, f"{name}.zip")
    with zipfile.ZipFile(archive_path, "w") as archive:
        archive.writestr(f"{name}.log", "".join(lines))
    if mtime is not None:
        os.utime(archive_path, (mtime, mtime))
    return archive_path

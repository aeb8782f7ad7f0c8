"""Request model shared by the parser, coalescer and cache."""

import hashlib
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any


class RootFolderParseError(ValueError):
    """Raised when a URL segment is not a known root folder."""


class RootFolder(Enum):
    CONFIG = "config"
    DATA = "data"
    PATCH = "patch"


def parse_root_folder(segment: str) -> RootFolder:
    """Map a URL segment ('config', 'data', 'patch') to a RootFolder."""
    try:
        return RootFolder(segment)
    except ValueError:
        raise RootFolderParseError(f"Unknown root folder: {segment!r}") from None


def content_key_digest(segment: str) -> str:
    """MD5 hex digest of a path segment, always 32 lowercase hex chars."""
    return hashlib.md5(segment.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class Request:
    product_root_uri: str
    root_folder: RootFolder
    content_key: str
    is_index: bool = False
    lower_byte_range: int | None = None
    upper_byte_range: int | None = None
    download_whole_file: bool = False

    def __post_init__(self):
        has_lower = self.lower_byte_range is not None
        has_upper = self.upper_byte_range is not None
        if has_lower != has_upper:
            raise ValueError("Byte range bounds must be set together")
        if has_lower == self.download_whole_file:
            raise ValueError("A request is either ranged or whole-file, not both or neither")

    @property
    def key(self) -> tuple[str, RootFolder, str, bool]:
        """Identity of the requested object, ignoring the byte range."""
        return (self.product_root_uri, self.root_folder, self.content_key, self.is_index)

    @property
    def byte_count(self) -> int | None:
        if self.download_whole_file:
            return None
        return self.upper_byte_range - self.lower_byte_range + 1


def request_to_dict(request: Request) -> dict[str, Any]:
    """Convert a Request to a JSON-ready dict, dropping unset byte ranges."""
    data = asdict(request)
    data["root_folder"] = request.root_folder.value
    return {k: v for k, v in data.items() if v is not None}


def request_from_dict(data: dict[str, Any]) -> Request:
    return Request(
        product_root_uri=data["product_root_uri"],
        root_folder=parse_root_folder(data["root_folder"]),
        content_key=data["content_key"],
        is_index=data.get("is_index", False),
        lower_byte_range=data.get("lower_byte_range"),
        upper_byte_range=data.get("upper_byte_range"),
        download_whole_file=data.get("download_whole_file", False),
    )

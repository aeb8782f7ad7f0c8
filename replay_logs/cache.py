"""Key-value persistence for coalesced request lists.

Each key is a file name inside the store directory holding a JSON array of
serialized Requests. Loads are validated against REQUEST_LIST_SCHEMA.
"""

import json
import logging
import os
import tempfile
from typing import Protocol

import jsonschema

from replay_logs.models import Request, request_from_dict, request_to_dict

logger = logging.getLogger(__name__)

REQUEST_LIST_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "array",
    "items": {
        "type": "object",
        "required": ["product_root_uri", "root_folder", "content_key"],
        "properties": {
            "product_root_uri": {"type": "string", "pattern": "^tpr/"},
            "root_folder": {"enum": ["config", "data", "patch"]},
            "content_key": {"type": "string", "pattern": "^[0-9a-f]{32}$"},
            "is_index": {"type": "boolean"},
            "lower_byte_range": {"type": "integer", "minimum": 0},
            "upper_byte_range": {"type": "integer", "minimum": 0},
            "download_whole_file": {"type": "boolean"},
        },
        "dependentRequired": {
            "lower_byte_range": ["upper_byte_range"],
            "upper_byte_range": ["lower_byte_range"],
        },
    },
}

_validator = jsonschema.Draft202012Validator(REQUEST_LIST_SCHEMA)


class CacheFormatError(ValueError):
    """Raised when a cached request list is not valid JSON or fails the schema."""


class RequestStore(Protocol):
    def load(self, key: str) -> list[Request] | None: ...

    def save(self, key: str, requests: list[Request]) -> None: ...


def load_request_file(path: str) -> list[Request]:
    """Read and validate a JSON request list from ``path``."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise CacheFormatError(f"Invalid JSON in {path}: {e}") from e

    errors = sorted(_validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
    if errors:
        first = errors[0]
        location = "/".join(str(p) for p in first.path) or "<root>"
        raise CacheFormatError(
            f"{path} failed validation at {location}: {first.message} "
            f"({len(errors)} error(s))"
        )
    try:
        return [request_from_dict(item) for item in data]
    except ValueError as e:
        raise CacheFormatError(f"{path}: {e}") from e


class JsonFileStore:
    """Stores request lists as JSON files in a single directory."""

    def __init__(self, directory: str):
        self._directory = directory

    def path_for(self, key: str) -> str:
        return os.path.join(self._directory, key)

    def load(self, key: str) -> list[Request] | None:
        path = self.path_for(key)
        if not os.path.isfile(path):
            return None
        requests = load_request_file(path)
        logger.info("Loaded %d cached requests from %s", len(requests), path)
        return requests

    def save(self, key: str, requests: list[Request]) -> None:
        """Write the list atomically via a temp file in the same directory."""
        os.makedirs(self._directory, exist_ok=True)
        target = self.path_for(key)
        tmp_fd, tmp_path = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
                json.dump([request_to_dict(r) for r in requests], f)
                f.write("\n")
            os.replace(tmp_path, target)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        logger.info("Saved %d requests to %s", len(requests), target)

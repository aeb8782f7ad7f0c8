"""Output formatters: text and JSON (NDJSON)."""

import json
from typing import Callable

from replay_logs.models import Request, request_to_dict


def format_text(request: Request) -> str:
    """One line per request, e.g. 'tpr/sc1live data <key> bytes=0-4095'."""
    parts = [request.product_root_uri, request.root_folder.value, request.content_key]
    if request.is_index:
        parts.append("index")
    if request.download_whole_file:
        parts.append("whole")
    else:
        parts.append(f"bytes={request.lower_byte_range}-{request.upper_byte_range}")
    return " ".join(parts)


def format_json(request: Request) -> str:
    """Return NDJSON, one JSON object per line, compatible with jq."""
    return json.dumps(request_to_dict(request))


def get_formatter(output_format: str = "text") -> Callable[[Request], str]:
    """Factory that returns the right formatter based on args."""
    if output_format == "json":
        return format_json
    return format_text

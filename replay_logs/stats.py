"""Statistics: request counts by kind, root folder and product."""

import json
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from replay_logs.models import Request


@dataclass
class RequestStats:
    total_requests: int = 0
    whole_file_requests: int = 0
    range_requests: int = 0
    index_requests: int = 0
    ranged_bytes: int = 0
    root_folder_counts: dict[str, int] = field(default_factory=dict)
    product_counts: dict[str, int] = field(default_factory=dict)


def compute_stats(requests: Iterable[Request]) -> RequestStats:
    """Consume a request stream and produce aggregated statistics."""
    folder_counter = Counter()
    product_counter = Counter()
    stats = RequestStats()

    for request in requests:
        stats.total_requests += 1
        if request.download_whole_file:
            stats.whole_file_requests += 1
        else:
            stats.range_requests += 1
            stats.ranged_bytes += request.byte_count
        if request.is_index:
            stats.index_requests += 1
        folder_counter[request.root_folder.value] += 1
        product_counter[request.product_root_uri] += 1

    stats.root_folder_counts = dict(folder_counter.most_common())
    stats.product_counts = dict(product_counter.most_common())
    return stats


def format_stats_text(stats: RequestStats) -> str:
    """Human-readable stats summary."""
    lines = []
    lines.append(f"Total requests: {stats.total_requests}")
    lines.append(f"  whole file: {stats.whole_file_requests}")
    lines.append(f"  ranged:     {stats.range_requests} ({stats.ranged_bytes} bytes)")
    lines.append(f"  index:      {stats.index_requests}")
    lines.append("")

    lines.append("Root folders:")
    for folder, count in stats.root_folder_counts.items():
        lines.append(f"  {folder:8s} {count}")
    lines.append("")

    lines.append("Products:")
    for product, count in stats.product_counts.items():
        lines.append(f"  {product}  {count}")

    return "\n".join(lines)


def format_stats_json(stats: RequestStats) -> str:
    """JSON stats output."""
    return json.dumps({
        "total_requests": stats.total_requests,
        "whole_file_requests": stats.whole_file_requests,
        "range_requests": stats.range_requests,
        "index_requests": stats.index_requests,
        "ranged_bytes": stats.ranged_bytes,
        "root_folder_counts": stats.root_folder_counts,
        "product_counts": stats.product_counts,
    }, indent=2)

"""Merge duplicate and overlapping range requests into a minimal replay list."""

from dataclasses import replace
from typing import Iterable

from replay_logs.models import Request

ByteRange = tuple[int, int]  # inclusive (lower, upper)


def merge_ranges(ranges: Iterable[ByteRange]) -> list[ByteRange]:
    """Merge overlapping or adjacent inclusive ranges, sorted ascending."""
    merged: list[ByteRange] = []
    for lower, upper in sorted(ranges):
        if merged and lower <= merged[-1][1] + 1:
            prev_lower, prev_upper = merged[-1]
            merged[-1] = (prev_lower, max(prev_upper, upper))
        else:
            merged.append((lower, upper))
    return merged


def subtract_ranges(ranges: Iterable[ByteRange], removed: Iterable[ByteRange]) -> list[ByteRange]:
    """Return the parts of ``ranges`` not covered by ``removed``."""
    removed = merge_ranges(removed)
    remaining = []
    for lower, upper in merge_ranges(ranges):
        start = lower
        for cut_lower, cut_upper in removed:
            if cut_upper < start:
                continue
            if cut_lower > upper:
                break
            if cut_lower > start:
                remaining.append((start, cut_lower - 1))
            start = max(start, cut_upper + 1)
            if start > upper:
                break
        if start <= upper:
            remaining.append((start, upper))
    return remaining


def group_by_key(requests: Iterable[Request]) -> dict[tuple, list[Request]]:
    """Group requests by object, keeping first-seen key order."""
    groups: dict[tuple, list[Request]] = {}
    for request in requests:
        groups.setdefault(request.key, []).append(request)
    return groups


def coalesce(requests: Iterable[Request]) -> list[Request]:
    """Collapse each object's requests into the fewest covering requests.

    A whole-file request for an object absorbs every range request for it.
    Objects keep the order in which they first appear.
    """
    coalesced = []
    for group in group_by_key(requests).values():
        whole_file = next((r for r in group if r.download_whole_file), None)
        if whole_file is not None:
            coalesced.append(whole_file)
            continue

        template = group[0]
        for lower, upper in merge_ranges(
            (r.lower_byte_range, r.upper_byte_range) for r in group
        ):
            coalesced.append(replace(template, lower_byte_range=lower, upper_byte_range=upper))
    return coalesced

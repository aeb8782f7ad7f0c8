"""Diff a client's requests against the reference client's replay list."""

from dataclasses import dataclass, field, replace

from replay_logs.coalescer import coalesce, group_by_key, subtract_ranges
from replay_logs.models import Request


@dataclass
class ComparisonResult:
    expected_count: int = 0
    actual_count: int = 0
    expected_bytes: int = 0
    actual_bytes: int = 0
    misses: list[Request] = field(default_factory=list)
    unnecessary: list[Request] = field(default_factory=list)

    @property
    def is_match(self) -> bool:
        return not self.misses and not self.unnecessary


def _ranged_bytes(requests: list[Request]) -> int:
    return sum(r.byte_count for r in requests if not r.download_whole_file)


def _uncovered(requests: list[Request], covering: list[Request]) -> list[Request]:
    """Parts of ``requests`` that ``covering`` does not request."""
    covering_groups = group_by_key(covering)
    uncovered = []
    for key, group in group_by_key(requests).items():
        others = covering_groups.get(key, [])
        if any(r.download_whole_file for r in others):
            continue
        if not others:
            uncovered.extend(group)
            continue

        whole_file = next((r for r in group if r.download_whole_file), None)
        if whole_file is not None:
            # only part of the file was fetched by the other side
            uncovered.append(whole_file)
            continue

        remaining = subtract_ranges(
            [(r.lower_byte_range, r.upper_byte_range) for r in group],
            [(r.lower_byte_range, r.upper_byte_range) for r in others],
        )
        uncovered.extend(
            replace(group[0], lower_byte_range=lower, upper_byte_range=upper)
            for lower, upper in remaining
        )
    return uncovered


def compare_requests(expected: list[Request], actual: list[Request]) -> ComparisonResult:
    """Compare ``actual`` against the reference ``expected`` requests.

    Both sides are coalesced first, so duplicate or overlapping requests on
    either side never count as a difference.
    """
    expected = coalesce(expected)
    actual = coalesce(actual)
    return ComparisonResult(
        expected_count=len(expected),
        actual_count=len(actual),
        expected_bytes=_ranged_bytes(expected),
        actual_bytes=_ranged_bytes(actual),
        misses=_uncovered(expected, actual),
        unnecessary=_uncovered(actual, expected),
    )

"""Tests for replay_logs/parser.py"""

import pytest

from helpers import SAMPLE_ID, SAMPLE_PATH, make_line
from replay_logs.models import RootFolder, RootFolderParseError, content_key_digest
from replay_logs.parser import (
    BYTE_RANGE_PATTERN,
    REQUEST_URL_PATTERN,
    LogDialect,
    LogParseError,
    is_candidate,
    parse,
    parse_request,
)


class TestRequestUrlPattern:
    def test_matches_inside_log_line(self):
        m = REQUEST_URL_PATTERN.search(make_line())
        assert m.group(0) == SAMPLE_PATH.lstrip("/")

    def test_matches_index_suffix(self):
        m = REQUEST_URL_PATTERN.search(make_line(path=f"{SAMPLE_PATH}.index"))
        assert m.group(0).endswith(".index")

    @pytest.mark.parametrize("path", [
        "/tpr/sc1live/data/B5/20/b520b25e",      # uppercase prefix
        "/tpr/sc1live/data/b5/2/b520b25e",       # short prefix
        "/tpr/sc1live/data/b5/20/b520B25e",      # uppercase id
        "/tpr/sc1live/data/b5/20/b520xyz",       # non-hex id
        "/tpr/sc1live/data/b5/20/",              # missing id
    ])
    def test_rejects_malformed_paths(self, path):
        assert REQUEST_URL_PATTERN.search(make_line(path=path)) is None


class TestBytePattern:
    def test_captures_bounds(self):
        m = BYTE_RANGE_PATTERN.search('"bytes=0-4095"')
        assert m.groups() == ("0", "4095")

    def test_no_match_without_range(self):
        assert BYTE_RANGE_PATTERN.search(make_line()) is None


class TestIsCandidate:
    def test_blizzard_get_accepted(self):
        assert is_candidate(make_line()) is True

    @pytest.mark.parametrize("line", [
        make_line(tag="[steam]"),
        make_line(method="HEAD"),
        make_line(method="POST"),
        "",
    ])
    def test_inclusion_filter(self, line):
        assert is_candidate(line) is False

    @pytest.mark.parametrize("path", [
        f"/bnt002/{SAMPLE_PATH}",
        f"/bnt004/{SAMPLE_PATH}",
        "/tpr/catalogs/data/aa/bb/aabbccdd",
        "/tpr/catalogs/config/aa/bb/aabbccdd.index",
    ])
    def test_exclusion_filter(self, path):
        assert is_candidate(make_line(path=path)) is False

    def test_catalogs_prefix_is_not_a_catalogs_segment(self):
        line = make_line(path=f"/tpr/catalogsv2/data/b5/20/{SAMPLE_ID}")
        assert is_candidate(line) is True

    def test_custom_dialect(self):
        dialect = LogDialect(client_tag="[wsus]", excluded_tokens=())
        assert is_candidate(make_line(tag="[wsus]"), dialect) is True
        assert is_candidate(make_line(), dialect) is False


class TestParseRequest:
    def test_whole_file_request(self):
        request = parse_request(make_line())
        assert request.product_root_uri == "tpr/sc1live"
        assert request.root_folder == RootFolder.DATA
        assert request.content_key == content_key_digest(SAMPLE_ID)
        assert request.is_index is False
        assert request.download_whole_file is True
        assert request.lower_byte_range is None
        assert request.upper_byte_range is None

    def test_index_request(self):
        request = parse_request(make_line(path=f"{SAMPLE_PATH}.index"))
        assert request.is_index is True
        # suffix is stripped before hashing
        assert request.content_key == content_key_digest(SAMPLE_ID)

    def test_byte_range(self):
        request = parse_request(make_line(byte_range="0-4095"))
        assert request.lower_byte_range == 0
        assert request.upper_byte_range == 4095
        assert request.download_whole_file is False

    def test_large_byte_range(self):
        request = parse_request(make_line(byte_range="4294967296-18446744073709551615"))
        assert request.lower_byte_range == 2 ** 32
        assert request.upper_byte_range == 2 ** 64 - 1

    def test_config_root_folder(self):
        request = parse_request(make_line(path="/tpr/sc1live/config/0a/1b/0a1b2c3d"))
        assert request.root_folder == RootFolder.CONFIG

    def test_injected_collaborators(self):
        seen = []

        def digest(segment):
            seen.append(segment)
            return "k" * 32

        request = parse_request(
            make_line(),
            root_folder_parser=lambda segment: RootFolder.PATCH,
            digest=digest,
        )
        assert seen == [SAMPLE_ID]
        assert request.content_key == "k" * 32
        assert request.root_folder == RootFolder.PATCH

    def test_missing_url_raises(self):
        line = make_line(path="/tpr/sc1live/data/B5/20/b520b25e")
        with pytest.raises(LogParseError) as exc_info:
            parse_request(line)
        assert "B5/20" in str(exc_info.value)
        assert exc_info.value.line == line.rstrip("\n")
        assert exc_info.value.reason == "No request URL found in log line"

    def test_unknown_root_folder_raises(self):
        with pytest.raises(LogParseError) as exc_info:
            parse_request(make_line(path="/tpr/sc1live/bogus/b5/20/b520b25e"))
        assert isinstance(exc_info.value.__cause__, RootFolderParseError)


class TestParse:
    def test_filters_and_preserves_order(self, sample_lines):
        requests = parse(sample_lines)
        assert len(requests) == 5
        assert [(r.lower_byte_range, r.upper_byte_range) for r in requests] == [
            (0, 4095), (4096, 8191), (None, None), (None, None), (2048, 6000),
        ]
        assert requests[2].is_index is True
        assert requests[3].root_folder == RootFolder.CONFIG

    def test_empty_input(self):
        assert parse([]) == []

    def test_only_noise(self):
        assert parse([make_line(tag="[steam]"), "garbage\n"]) == []

    def test_malformed_line_fails_whole_batch(self, sample_lines):
        lines = sample_lines + [make_line(path="/tpr/sc1live/data/zz/20/b520")]
        with pytest.raises(LogParseError):
            parse(lines)

    def test_accepts_generator(self, sample_lines):
        assert len(parse(line for line in sample_lines)) == 5

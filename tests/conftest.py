"""Shared pytest fixtures for the replay-logs test suite."""

import pytest

from helpers import SAMPLE_ID, SAMPLE_PATH, make_line


@pytest.fixture()
def sample_lines() -> list[str]:
    """A small capture: noise, excluded traffic, and four content requests."""
    return [
        make_line(byte_range="0-4095"),
        make_line(tag="[steam]"),
        make_line(method="HEAD"),
        make_line(path="/tpr/catalogs/data/aa/bb/aabbccdd"),
        make_line(path="/bnt002/tpr/sc1live/data/b5/20/" + SAMPLE_ID),
        make_line(byte_range="4096-8191"),
        make_line(path=f"{SAMPLE_PATH}.index"),
        make_line(path="/tpr/sc1live/config/0a/1b/0a1b2c3d"),
        make_line(byte_range="2048-6000"),
    ]


@pytest.fixture()
def log_base(tmp_path) -> str:
    return str(tmp_path / "request_logs")

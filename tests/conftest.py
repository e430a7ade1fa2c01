# tests/conftest.py
from pathlib import Path

import pytest

from fakes import FakePage, FakeSession
from job_triage.config import Settings


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings rooted in tmp_path with no politeness delays."""
    return Settings(
        postings_dir=tmp_path / "job-postings",
        output_dir=tmp_path / "job-suitability",
        profile_file=tmp_path / "resume.md",
        delay_min_ms=0,
        delay_max_ms=0,
        panel_timeout_ms=10,
        page_timeout_ms=10,
    )


@pytest.fixture
def make_session():
    def _make(*pages: FakePage) -> FakeSession:
        return FakeSession(list(pages))
    return _make

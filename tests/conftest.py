"""Shared test fixtures."""

from pathlib import Path

import pytest

from adpoint.models import AnalysisReports

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_manifest_path() -> Path:
    return FIXTURES_DIR / "sample_manifest.json"


@pytest.fixture
def silence_log() -> str:
    return (FIXTURES_DIR / "silence.log").read_text()


@pytest.fixture
def black_log() -> str:
    return (FIXTURES_DIR / "black.log").read_text()


@pytest.fixture
def frames_log() -> str:
    return (FIXTURES_DIR / "frames.log").read_text()


@pytest.fixture
def reports(silence_log: str, black_log: str, frames_log: str) -> AnalysisReports:
    return AnalysisReports(silence=silence_log, black=black_log, frames=frames_log)

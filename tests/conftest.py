"""Pytest fixtures."""

import os

import pytest

os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "1")
os.environ.setdefault("POWERTOOLS_METRICS_DISABLED", "false")

from utils import FakeLambdaContext, RecordingSender  # noqa: E402

from wflambda.agent import WavefrontAgent  # noqa: E402
from wflambda.config import Settings, get_settings  # noqa: E402
from wflambda.memory import MemoryStats  # noqa: E402


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Make every test read the environment afresh."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def lambda_context() -> FakeLambdaContext:
    """Context of an invocation of version 3 of my-func."""
    return FakeLambdaContext()


@pytest.fixture
def sender() -> RecordingSender:
    """Recording sender."""
    return RecordingSender()


@pytest.fixture
def settings() -> Settings:
    """Settings with a static point tag."""
    return Settings(point_tags={"team": "payments"})


@pytest.fixture
def agent(settings: Settings, sender: RecordingSender) -> WavefrontAgent:
    """Agent reporting to the recording sender with fixed memory figures."""
    return WavefrontAgent(
        settings=settings,
        sender=sender,
        memory_stats=lambda: MemoryStats(total=1024.0, used=256.0, used_percentage=25.0),
    )

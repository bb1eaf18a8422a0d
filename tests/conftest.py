import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

# Ensure the project sources are importable without an editable install.
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from slippymap.core import MapViewport  # noqa: E402


class FakeClock:
    """Millisecond clock advanced explicitly by the tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> float:
        self.now += ms
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_viewport(clock):
    """Build a viewport on the fake clock; keyword arguments become options."""

    def _factory(**options) -> MapViewport:
        options.setdefault("width", 600)
        options.setdefault("height", 400)
        return MapViewport(options, clock=clock)

    return _factory

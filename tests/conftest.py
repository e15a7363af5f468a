from __future__ import annotations

import pytest

from tests._support import VirtualClock


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()

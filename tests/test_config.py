from __future__ import annotations

import pytest

from pyrotary.config import DEFAULT_BUFFER_SIZE, DEFAULT_INTERVAL, OverflowPolicy, SensorConfig
from pyrotary.exceptions import RotaryConfigError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("ROTARY_INTERVAL", "ROTARY_BUFFER_SIZE", "ROTARY_OVERFLOW"):
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    config = SensorConfig()
    assert config.interval == DEFAULT_INTERVAL == 0.1
    assert config.buffer_size == DEFAULT_BUFFER_SIZE
    assert config.overflow is OverflowPolicy.BLOCK


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ROTARY_INTERVAL", "0.25")
    monkeypatch.setenv("ROTARY_BUFFER_SIZE", "0")
    monkeypatch.setenv("ROTARY_OVERFLOW", " FAIL ")

    config = SensorConfig.from_env()

    assert config.interval == 0.25
    assert config.buffer_size == 0
    assert config.overflow is OverflowPolicy.FAIL


def test_explicit_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ROTARY_INTERVAL", "not-a-number")
    monkeypatch.setenv("ROTARY_BUFFER_SIZE", "8")

    config = SensorConfig.from_env(interval=0.5)

    assert config.interval == 0.5
    assert config.buffer_size == 8


@pytest.mark.parametrize(
    ("env_key", "value"),
    [
        ("ROTARY_INTERVAL", "fast"),
        ("ROTARY_INTERVAL", "0"),
        ("ROTARY_BUFFER_SIZE", "-1"),
        ("ROTARY_BUFFER_SIZE", "1.5"),
        ("ROTARY_OVERFLOW", "drop"),
    ],
)
def test_invalid_env_values_raise(monkeypatch: pytest.MonkeyPatch, env_key: str, value: str) -> None:
    monkeypatch.setenv(env_key, value)
    with pytest.raises(RotaryConfigError):
        SensorConfig.from_env()

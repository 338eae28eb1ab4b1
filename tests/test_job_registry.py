"""Tests for the job registry."""

from unittest.mock import MagicMock

import pytest

from dailyjobs.web.registry import JobRegistry


def _engine(name: str) -> MagicMock:
    engine = MagicMock()
    engine.name = name
    engine.config.scheduled_time = "23:00 WIB"
    return engine


def test_register_and_get() -> None:
    reg = JobRegistry()
    engine = _engine("currency")
    reg.register(engine)

    assert reg.get("currency") is engine
    assert reg.names == ["currency"]


def test_unknown_job_returns_none() -> None:
    assert JobRegistry().get("nope") is None


def test_duplicate_name_raises() -> None:
    reg = JobRegistry()
    reg.register(_engine("currency"))
    with pytest.raises(ValueError, match="already registered"):
        reg.register(_engine("currency"))


def test_names_empty_initially() -> None:
    assert JobRegistry().names == []


def test_start_all_and_stop_all() -> None:
    reg = JobRegistry()
    engines = [_engine("currency"), _engine("hpp-actual")]
    for engine in engines:
        reg.register(engine)

    reg.start_all()
    reg.stop_all()

    for engine in engines:
        engine.start.assert_called_once()
        engine.stop.assert_called_once()

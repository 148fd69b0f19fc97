"""Tests for process-global values that survive module reloads in development."""

from __future__ import annotations

import pytest

from tierwire.devstable import (
    DEV_STABLE_ENV,
    ENVIRONMENT_ENV,
    DevStable,
    clear_dev_stable,
    is_dev_stable_enabled,
)


class Client(DevStable):
    def __init__(self) -> None:
        self.connection = self.dev_stable("tests.connection", object)


@pytest.fixture()
def development(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(DEV_STABLE_ENV, raising=False)
    monkeypatch.delenv(ENVIRONMENT_ENV, raising=False)


@pytest.mark.usefixtures("development")
def test_enabled_outside_production() -> None:
    assert is_dev_stable_enabled()


def test_disabled_in_production(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(DEV_STABLE_ENV, raising=False)
    monkeypatch.setenv(ENVIRONMENT_ENV, "production")

    assert not is_dev_stable_enabled()


def test_explicit_flag_wins_over_production(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(ENVIRONMENT_ENV, "production")
    monkeypatch.setenv(DEV_STABLE_ENV, "1")

    assert is_dev_stable_enabled()


@pytest.mark.usefixtures("development")
def test_value_is_shared_across_instances() -> None:
    assert Client().connection is Client().connection


@pytest.mark.usefixtures("development")
def test_initializer_runs_once_per_key() -> None:
    calls: list[str] = []

    def init() -> str:
        calls.append("init")
        return "value"

    holder = DevStable()
    holder.dev_stable("tests.once", init)
    holder.dev_stable("tests.once", init)
    holder.dev_stable("tests.other", init)

    assert calls == ["init", "init"]


def test_production_creates_a_value_every_time(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(DEV_STABLE_ENV, raising=False)
    monkeypatch.setenv(ENVIRONMENT_ENV, "production")

    assert Client().connection is not Client().connection


@pytest.mark.usefixtures("development")
def test_clear_forgets_values() -> None:
    first = Client().connection

    clear_dev_stable()

    assert Client().connection is not first

"""Tests for configuration validation and display."""

import pytest

from blocksworld.config import Config


def test_default_config_is_valid():
    Config.validate()


@pytest.mark.parametrize(
    "attribute, value",
    [
        ("MAX_ITERATIONS", 0),
        ("MAX_ITERATION_CAP", -1),
        ("MAX_ITERATIONS", 10_000),
        ("DELIBERATION_TIMEOUT_MS", 0),
    ],
)
def test_validate_rejects_inconsistent_values(monkeypatch, attribute, value):
    monkeypatch.setattr(Config, "MAX_ITERATIONS", 2500)
    monkeypatch.setattr(Config, "MAX_ITERATION_CAP", 5000)
    monkeypatch.setattr(Config, attribute, value)

    with pytest.raises(ValueError):
        Config.validate()


def test_display_lists_planner_defaults(monkeypatch):
    monkeypatch.setattr(Config, "MAX_ITERATIONS", 2500)
    monkeypatch.setattr(Config, "MAX_ITERATION_CAP", 5000)
    monkeypatch.setattr(Config, "NEGOTIATION_STRATEGY", "prefer-stack")

    text = Config.display()

    assert "Max Iterations: 2500 (cap 5000)" in text
    assert "prefer-stack" in text

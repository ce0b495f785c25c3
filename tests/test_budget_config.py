"""
Tests for RetryBudget and environment-driven settings.
"""

from datetime import timedelta

import pytest

from converge_core.budget import RetryBudget
from converge_core.config import ConvergenceSettings


class TestRetryBudget:
    def test_defaults(self):
        budget = RetryBudget()

        assert budget.max_iterations == 200
        assert budget.interval == timedelta(milliseconds=100)
        assert budget.total_wait == timedelta(seconds=20)

    def test_interval_seconds(self):
        budget = RetryBudget(max_iterations=3, interval=timedelta(milliseconds=250))

        assert budget.interval_seconds == 0.25
        assert budget.total_wait == timedelta(milliseconds=750)

    def test_zero_interval_allowed(self):
        assert RetryBudget(max_iterations=1, interval=timedelta(0)).total_wait == timedelta(0)

    @pytest.mark.parametrize("iterations", [0, -1])
    def test_rejects_non_positive_iterations(self, iterations):
        with pytest.raises(ValueError, match="max_iterations"):
            RetryBudget(max_iterations=iterations)

    def test_rejects_bool_iterations(self):
        with pytest.raises(TypeError):
            RetryBudget(max_iterations=True)

    def test_rejects_negative_interval(self):
        with pytest.raises(ValueError, match="interval"):
            RetryBudget(interval=timedelta(milliseconds=-1))

    def test_is_immutable(self):
        budget = RetryBudget()

        with pytest.raises(AttributeError):
            budget.max_iterations = 5


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("CONVERGE_MAX_ITERATIONS", raising=False)
        monkeypatch.delenv("CONVERGE_INTERVAL_MS", raising=False)

        settings = ConvergenceSettings()

        assert settings.max_iterations == 200
        assert settings.interval_ms == 100
        assert settings.rest_url == "http://localhost:8080"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("CONVERGE_MAX_ITERATIONS", "50")
        monkeypatch.setenv("CONVERGE_INTERVAL_MS", "200")

        budget = RetryBudget.from_settings()

        assert budget.max_iterations == 50
        assert budget.interval == timedelta(milliseconds=200)
        assert budget.total_wait == timedelta(seconds=10)

    def test_from_explicit_settings(self):
        budget = RetryBudget.from_settings(ConvergenceSettings(max_iterations=7, interval_ms=5))

        assert budget == RetryBudget(max_iterations=7, interval=timedelta(milliseconds=5))

"""Tests for retry helpers and runtime configuration."""
from unittest.mock import patch

import pytest

from slather.core.config import SlatherConfig, get_config, set_config
from slather.core.errors import PermanentError, TransientError
from slather.core.retry import call_with_retry


class TestRetry:
    def test_retries_transient_then_succeeds(self):
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise TransientError("already locked")
            return "ok"

        with patch("slather.core.retry.time.sleep") as sleep:
            assert call_with_retry(flaky, max_attempts=3, delay=0.5, backoff=2.0) == "ok"

        assert len(calls) == 3
        assert [c.args[0] for c in sleep.call_args_list] == [0.5, 1.0]

    def test_reraises_after_last_attempt(self):
        def always_fails():
            raise TransientError("Could not resolve host")

        with patch("slather.core.retry.time.sleep"):
            with pytest.raises(TransientError):
                call_with_retry(always_fails, max_attempts=2, delay=1)

    def test_other_errors_are_not_retried(self):
        calls = []

        def wrong():
            calls.append(1)
            raise PermanentError("No available formula")

        with pytest.raises(PermanentError):
            call_with_retry(wrong, max_attempts=5, delay=0)

        assert len(calls) == 1

    def test_passes_arguments_through(self):
        assert call_with_retry(lambda a, b=0: a + b, 1, b=2, max_attempts=1) == 3


class TestSlatherConfig:
    def test_defaults(self):
        config = SlatherConfig()

        assert config.command_timeout == 60
        assert config.install_timeout == 1800
        assert config.install_attempts == 1
        assert config.expected_macos == 14

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SLATHER_COMMAND_TIMEOUT", "5")
        monkeypatch.setenv("SLATHER_INSTALL_TIMEOUT", "600")
        monkeypatch.setenv("SLATHER_INSTALL_ATTEMPTS", "0")
        monkeypatch.setenv("SLATHER_RETRY_DELAY", "0.5")
        monkeypatch.setenv("SLATHER_EXPECTED_MACOS", "15")

        config = SlatherConfig.from_env()

        assert config.command_timeout == 5
        assert config.install_timeout == 600
        assert config.install_attempts == 1
        assert config.retry_delay == 0.5
        assert config.expected_macos == 15

    def test_global_override(self):
        custom = SlatherConfig(command_timeout=3)
        set_config(custom)

        assert get_config() is custom

        set_config(None)
        assert get_config() is not custom

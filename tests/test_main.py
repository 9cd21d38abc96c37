"""Tests for the console entry point."""

import os

import pytest

from rollout_agent.__main__ import main


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("ROLLOUT_AGENT_"):
            monkeypatch.delenv(key)
    monkeypatch.setattr("rollout_agent.__main__.setup_logging", lambda *args: None)


class TestMain:
    """Exit status for configuration errors."""

    def test_invalid_setting_exits_2(self, monkeypatch, capsys):
        monkeypatch.setenv("ROLLOUT_AGENT_TARGET", "lambda")

        with pytest.raises(SystemExit) as exc:
            main()

        assert exc.value.code == 2
        assert "Invalid configuration" in capsys.readouterr().err

    def test_missing_inputs_exit_2(self, monkeypatch, capsys):
        monkeypatch.setenv("ROLLOUT_AGENT_IMAGE_REF", "registry/app@sha256:abc")

        with pytest.raises(SystemExit) as exc:
            main()

        assert exc.value.code == 2
        assert "ECS inputs missing" in capsys.readouterr().err

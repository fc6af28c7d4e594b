"""Tests for busylight.config — Settings validation and env loading."""

import pytest
from pydantic import ValidationError

from busylight.config import Settings, _load_settings


class TestSettings:
    def test_defaults(self):
        s = Settings()
        assert s.POLL_INTERVAL == 60
        assert s.TICK_INTERVAL == 60
        assert s.CAMERA_MODULE == "uvcvideo"
        assert s.LIGHT_COMMAND == "blink1-tool --rgb={r},{g},{b}"
        assert s.LIGHT_REPEAT_LIMIT == 2
        assert s.MEETING_FUZZ_SECONDS == 120

    def test_numeric_strings_coerced(self):
        s = Settings(POLL_INTERVAL="30", CAMERA_POLL_INTERVAL="0.5")
        assert s.POLL_INTERVAL == 30
        assert s.CAMERA_POLL_INTERVAL == 0.5

    def test_log_level_uppercased(self):
        assert Settings(LOG_LEVEL=" debug ").LOG_LEVEL == "DEBUG"

    def test_zero_interval_rejected(self):
        with pytest.raises(ValidationError):
            Settings(POLL_INTERVAL="0")

    def test_negative_camera_interval_rejected(self):
        with pytest.raises(ValidationError):
            Settings(CAMERA_POLL_INTERVAL="-1")

    def test_subprocess_timeouts(self):
        s = Settings()
        assert s.LIGHT_TIMEOUT == 5.0
        assert s.GCALCLI_TIMEOUT == 30.0
        assert Settings(LIGHT_TIMEOUT="0.5").LIGHT_TIMEOUT == 0.5

    def test_zero_timeout_rejected(self):
        with pytest.raises(ValidationError):
            Settings(GCALCLI_TIMEOUT="0")


class TestLoadSettings:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("CAMERA_MODULE", "gspca_main")
        monkeypatch.setenv("POLL_INTERVAL", "120")
        s = _load_settings()
        assert s.CAMERA_MODULE == "gspca_main"
        assert s.POLL_INTERVAL == 120

    def test_invalid_value_exits(self, monkeypatch, capsys):
        monkeypatch.setenv("TICK_INTERVAL", "not-a-number")
        with pytest.raises(SystemExit) as exc_info:
            _load_settings()
        assert exc_info.value.code == 1
        assert "invalid configuration" in capsys.readouterr().err

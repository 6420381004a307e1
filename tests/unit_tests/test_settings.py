"""Unit tests for settings.py."""

from unittest.mock import patch

import pydantic
import pytest

from persons_console.settings import Settings


class TestSettingsDefaults:
    """Tests for default configuration values."""

    def test_defaults(self):
        with patch.dict("os.environ", {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.persons_api_base_url == "http://localhost:8000/api"
        assert settings.poll_interval_seconds == 1.0
        assert settings.poll_max_attempts == 120
        assert settings.loading_delay_seconds == 0.0
        assert settings.default_ordering == "-created_date"
        assert settings.log_file_path is None

    def test_reads_environment(self, mock_settings):
        assert mock_settings.persons_api_base_url == "http://persons.test/api"
        assert mock_settings.poll_interval_seconds == 0
        assert mock_settings.poll_max_attempts == 5
        assert mock_settings.log_level == "DEBUG"


class TestSettingsValidation:
    """Tests for field validators."""

    def test_base_url_trailing_slash_stripped(self):
        settings = Settings(_env_file=None, persons_api_base_url="https://persons.example.com/api/")

        assert settings.persons_api_base_url == "https://persons.example.com/api"

    def test_base_url_requires_http(self):
        with pytest.raises(pydantic.ValidationError):
            Settings(_env_file=None, persons_api_base_url="persons.example.com")

    @pytest.mark.parametrize(
        "field,value",
        [
            ("request_timeout_seconds", 0),
            ("poll_max_interval_seconds", -1),
            ("poll_interval_seconds", -0.5),
            ("loading_delay_seconds", -1),
            ("poll_backoff_factor", 0.5),
            ("poll_max_attempts", 0),
            ("log_level", "LOUD"),
        ],
    )
    def test_invalid_values_rejected(self, field, value):
        with pytest.raises(pydantic.ValidationError):
            Settings(_env_file=None, **{field: value})

    def test_log_level_uppercased(self):
        assert Settings(_env_file=None, log_level="warning").log_level == "WARNING"

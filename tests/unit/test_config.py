"""
Unit tests for configuration loading (pydantic-settings).

The .env file is disabled with _env_file=None so only the variables set
through monkeypatch are seen.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from ant_enroll.config import AppSettings, EnrollmentSettings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "ENROLLMENT__URL",
        "ENROLLMENT__TIMEOUT_SECONDS",
        "ENROLLMENT__SKIP_SERVER_VERIFICATION",
        "ENROLLMENT__PAYLOAD_FILE",
        "STORAGE__DIRECTORY",
        "STORAGE__CERTIFICATE_FILE",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


class TestAppSettingsFromEnvironment:
    """
    GIVEN nested environment variables
    WHEN AppSettings is constructed
    THEN the values land in the nested sub-settings.
    """

    def test_minimal_configuration(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENROLLMENT__URL", "https://enroll.example.com/ant")
        settings = AppSettings(_env_file=None)
        assert settings.enrollment.url == "https://enroll.example.com/ant"
        assert settings.enrollment.timeout_seconds == 10.0
        assert settings.enrollment.skip_server_verification is True
        assert settings.enrollment.payload_file is None
        assert settings.storage.directory is None
        assert settings.storage.dir_name == ".marabunta"
        assert settings.storage.certificate_file == "ant.crt"
        assert settings.log_level == "INFO"

    def test_overrides(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("ENROLLMENT__URL", "https://enroll.example.com/ant")
        monkeypatch.setenv("ENROLLMENT__TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("ENROLLMENT__SKIP_SERVER_VERIFICATION", "false")
        monkeypatch.setenv("STORAGE__DIRECTORY", str(tmp_path))
        monkeypatch.setenv("STORAGE__CERTIFICATE_FILE", "node.crt")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        settings = AppSettings(_env_file=None)

        assert settings.enrollment.timeout_seconds == 2.5
        assert settings.enrollment.skip_server_verification is False
        assert settings.storage.directory == tmp_path
        assert settings.storage.certificate_file == "node.crt"
        assert settings.log_level == "DEBUG"

    def test_missing_url_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AppSettings(_env_file=None)


class TestEnrollmentSettingsValidation:
    """Verify field-level validation of the enrollment settings."""

    def test_url_must_be_http(self) -> None:
        with pytest.raises(ValidationError, match="http"):
            EnrollmentSettings(url="ftp://enroll.example.com")

    def test_url_whitespace_stripped(self) -> None:
        assert EnrollmentSettings(url="  https://e.example.com  ").url == "https://e.example.com"

    @pytest.mark.parametrize("timeout", [0, -1])
    def test_timeout_must_be_positive(self, timeout: float) -> None:
        with pytest.raises(ValidationError):
            EnrollmentSettings(url="https://e.example.com", timeout_seconds=timeout)

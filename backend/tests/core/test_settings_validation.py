"""
Tests for Settings configuration validation in config.py.
"""
import pytest
from pydantic import ValidationError

from ielts_mock.core.config import Settings

TEST_JWT_SECRET_KEY = "test-jwt-secret-key-for-unit-tests"  # pragma: allowlist secret


class TestSubmissionGraceValidation:
    def test_default_grace(self):
        settings = Settings(JWT_SECRET_KEY=TEST_JWT_SECRET_KEY)
        assert settings.SUBMISSION_GRACE_SECONDS == 120

    def test_zero_grace_allowed(self):
        settings = Settings(JWT_SECRET_KEY=TEST_JWT_SECRET_KEY, SUBMISSION_GRACE_SECONDS=0)
        assert settings.SUBMISSION_GRACE_SECONDS == 0

    def test_negative_grace_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            Settings(JWT_SECRET_KEY=TEST_JWT_SECRET_KEY, SUBMISSION_GRACE_SECONDS=-1)
        assert "SUBMISSION_GRACE_SECONDS" in str(exc_info.value)


class TestLogLevelValidation:
    def test_lowercase_normalized(self):
        settings = Settings(JWT_SECRET_KEY=TEST_JWT_SECRET_KEY, LOG_LEVEL="debug")
        assert settings.LOG_LEVEL == "DEBUG"

    def test_unknown_level_rejected(self):
        with pytest.raises(ValidationError):
            Settings(JWT_SECRET_KEY=TEST_JWT_SECRET_KEY, LOG_LEVEL="LOUD")


class TestSentryTracesSampleRateValidation:
    @pytest.mark.parametrize("rate", [0.0, 0.5, 1.0])
    def test_valid_sample_rates(self, rate):
        settings = Settings(
            JWT_SECRET_KEY=TEST_JWT_SECRET_KEY, SENTRY_TRACES_SAMPLE_RATE=rate
        )
        assert settings.SENTRY_TRACES_SAMPLE_RATE == pytest.approx(rate)

    @pytest.mark.parametrize("rate", [-0.1, 1.5])
    def test_out_of_range_rejected(self, rate):
        with pytest.raises(ValidationError):
            Settings(JWT_SECRET_KEY=TEST_JWT_SECRET_KEY, SENTRY_TRACES_SAMPLE_RATE=rate)


class TestRequiredSecret:
    def test_missing_jwt_secret_rejected(self, monkeypatch):
        monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

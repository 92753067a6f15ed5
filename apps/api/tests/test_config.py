"""
Settings tests.

Windows, floors and TTLs come from the environment; everything else is a
module constant next to the engine that owns it.
"""

import pytest

from core.config import Settings


class TestSettings:

    def test_defaults(self, monkeypatch):
        for name in ("BALANCE_LOOKBACK_DAYS", "MIN_CHECKINS_FOR_INSIGHTS", "MAX_RECOMMENDATIONS"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings(_env_file=None)
        assert settings.BALANCE_LOOKBACK_DAYS == 14
        assert settings.BALANCE_TREND_DAYS == 30
        assert settings.MIN_CHECKINS_FOR_INSIGHTS == 5
        assert settings.INSIGHT_CACHE_TTL_MINUTES == 10
        assert settings.MAX_RECOMMENDATIONS == 3
        assert settings.CHECKIN_PROMPT_AFTER_HOURS == 20

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("BALANCE_LOOKBACK_DAYS", "7")
        assert Settings(_env_file=None).BALANCE_LOOKBACK_DAYS == 7

    def test_recommendation_cap_cannot_exceed_three(self, monkeypatch):
        monkeypatch.setenv("MAX_RECOMMENDATIONS", "5")
        with pytest.raises(ValueError):
            Settings(_env_file=None)

    def test_lookback_must_be_positive(self, monkeypatch):
        monkeypatch.setenv("BALANCE_LOOKBACK_DAYS", "0")
        with pytest.raises(ValueError):
            Settings(_env_file=None)

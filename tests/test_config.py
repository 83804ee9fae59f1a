"""Tests for engine configuration defaults."""

from catchup_src.config import Config, config
from catchup_src.engine import CatchUpRulesEngine


class TestConfig:
    """Test configuration values and how the engine picks them up."""

    def test_singleton_is_config(self):
        assert isinstance(config, Config)
        assert isinstance(Config.GRACE_PERIOD_DAYS, int)

    def test_persistence_configured(self, monkeypatch):
        monkeypatch.setattr(Config, "CATCHUP_DB_PATH", "/tmp/catchup.db")
        assert Config.is_persistence_configured() is True

    def test_persistence_not_configured(self, monkeypatch):
        monkeypatch.setattr(Config, "CATCHUP_DB_PATH", None)
        assert Config.is_persistence_configured() is False

    def test_engine_defaults_from_config(self, monkeypatch):
        monkeypatch.setattr(Config, "GRACE_PERIOD_DAYS", 0)
        monkeypatch.setattr(Config, "CDC_VERSION", "2025.2")
        engine = CatchUpRulesEngine()
        assert engine.grace_period_days == 0
        assert engine.cdc_version == "2025.2"

    def test_explicit_arguments_override_config(self):
        engine = CatchUpRulesEngine(grace_period_days=7, cdc_version="test")
        assert engine.grace_period_days == 7
        assert engine.cdc_version == "test"

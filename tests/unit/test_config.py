import logging

import pytest

from statscope.config import OutlierSettings, Settings
from statscope.core.logging import QUIET_LOGGERS, setup_logging

pytestmark = pytest.mark.unit


class TestSettings:

    def test_outlier_thresholds_from_environment(self, monkeypatch):
        monkeypatch.setenv("OUTLIER_IQR_MULTIPLIER", "3.0")

        assert OutlierSettings().iqr_multiplier == 3.0

    def test_production_profile(self):
        assert Settings(env="production").is_production()
        assert not Settings(env="testing").is_production()

    def test_cors_origins_from_comma_string(self):
        settings = Settings(cors_origins="http://a.test, http://b.test,")

        assert settings.cors_origins == ["http://a.test", "http://b.test"]

    def test_negative_timeout_rejected(self):
        with pytest.raises(ValueError):
            Settings(operation_timeout_seconds=-1)


class TestLogging:

    def test_plotting_loggers_are_quieted(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging(level="DEBUG")

            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            for name in QUIET_LOGGERS:
                assert logging.getLogger(name).level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

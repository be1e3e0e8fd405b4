"""Logging setup tests"""

import logging
from types import SimpleNamespace

from app.core import logging as app_logging


class TestLogging:
    """Test Loguru wiring"""

    def test_level_normalized(self):
        """Test level aliases and unknown levels"""
        assert app_logging._normalize_level("warn") == "WARNING"
        assert app_logging._normalize_level(" fatal ") == "CRITICAL"
        assert app_logging._normalize_level("debug") == "DEBUG"
        assert app_logging._normalize_level("loud") == "INFO"
        assert app_logging._normalize_level(None) == "INFO"

    def test_server_loggers_intercepted(self):
        """Test uvicorn loggers forward to Loguru only"""
        for name in app_logging.SERVER_LOGGERS:
            server_logger = logging.getLogger(name)
            assert [type(h) for h in server_logger.handlers] == [app_logging.InterceptHandler]
            assert server_logger.propagate is False

    def test_slack_sink_message(self, monkeypatch):
        """Test ERROR records are posted with service and call site"""
        posted = []
        monkeypatch.setattr(app_logging.settings, "SLACK_WEBHOOK_URL", "https://hooks.test/x")
        monkeypatch.setattr(app_logging.httpx, "post", lambda url, **kwargs: posted.append((url, kwargs)))

        record = {
            "extra": {"name": "app.ingestion.opensea_source"},
            "level": SimpleNamespace(name="ERROR"),
            "function": "fetch_detail",
            "line": 42,
            "message": "Network error: down",
        }
        app_logging._slack_sink(SimpleNamespace(record=record))

        url, kwargs = posted[0]
        assert url == "https://hooks.test/x"
        assert kwargs["json"]["text"] == (
            "[nft-backend] [ERROR] app.ingestion.opensea_source:fetch_detail:42\nNetwork error: down"
        )

    def test_slack_sink_disabled(self, monkeypatch):
        """Test nothing is posted without a webhook"""
        posted = []
        monkeypatch.setattr(app_logging.settings, "SLACK_WEBHOOK_URL", None)
        monkeypatch.setattr(app_logging.httpx, "post", lambda *a, **k: posted.append(a))

        app_logging._slack_sink(SimpleNamespace(record={}))

        assert posted == []

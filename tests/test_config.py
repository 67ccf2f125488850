import json
import logging

from borewell_ops.config import Settings
from borewell_ops.logging_conf import JsonFormatter, configure_logging


class TestSettings:
    """Unit tests for environment configuration"""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("TAX_RATE", raising=False)
        settings = Settings(_env_file=None)
        assert settings.TAX_RATE == 0.18
        assert settings.DEPTH_RATE_PER_FOOT == 30.0
        assert settings.INVOICE_CURRENCY_SYMBOL == "Rs. "

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("TAX_RATE", "0.12")
        monkeypatch.setenv("DEPTH_RATE_PER_FOOT", "40")
        monkeypatch.setenv("EMBED_QR_IMAGE", "true")
        settings = Settings(_env_file=None)
        assert settings.TAX_RATE == 0.12
        assert settings.EMBED_QR_IMAGE is True

        policy = settings.pricing_policy()
        assert policy.tax_rate == 0.12
        assert policy.depth_rate_per_foot == 40.0
        assert policy.installation_service_type == "Borewell Installation"


class TestLogging:
    """Unit tests for log formatting"""

    def test_json_formatter(self):
        record = logging.LogRecord("borewell_ops.test", logging.INFO, __file__, 1,
                                   "Invoice %s sent", ("INV-1",), None)
        record.channel = "email"
        payload = json.loads(JsonFormatter().format(record))

        assert payload["level"] == "INFO"
        assert payload["logger"] == "borewell_ops.test"
        assert payload["message"] == "Invoice INV-1 sent"
        assert payload["channel"] == "email"

    def test_configure_logging(self):
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        try:
            configure_logging("debug", json_output=True)
            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JsonFormatter)
            assert logging.getLogger("uvicorn.access").handlers == root.handlers
        finally:
            root.handlers = saved_handlers
            root.setLevel(saved_level)

"""
Tests for logging configuration.
"""
import logging


class TestLoggingConfiguration:
    """Test logging setup and configuration."""

    def test_setup_logging_default_level(self, monkeypatch):
        """Test that setup_logging defaults to INFO level."""
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        from salad_cart.logging_config import setup_logging
        setup_logging()

        logger = logging.getLogger("salad_cart")
        assert logger.level == logging.INFO

    def test_setup_logging_respects_env_var(self, monkeypatch):
        """Test that LOG_LEVEL env var is respected."""
        monkeypatch.setenv("LOG_LEVEL", "WARNING")

        from salad_cart.logging_config import setup_logging
        setup_logging()

        logger = logging.getLogger("salad_cart")
        assert logger.level == logging.WARNING

    def test_setup_logging_explicit_level(self):
        """Test that explicit level parameter works."""
        from salad_cart.logging_config import setup_logging
        setup_logging(level="error")

        logger = logging.getLogger("salad_cart")
        assert logger.level == logging.ERROR

    def test_setup_logging_invalid_level_defaults_to_info(self):
        """Test that invalid level falls back to INFO."""
        from salad_cart.logging_config import setup_logging
        setup_logging(level="INVALID_LEVEL")

        logger = logging.getLogger("salad_cart")
        assert logger.level == logging.INFO

    def test_third_party_loggers_quieted(self):
        """Test that HTTP and SQL loggers are raised to WARNING outside DEBUG."""
        from salad_cart.logging_config import setup_logging
        setup_logging(level="INFO")

        assert logging.getLogger("urllib3").level == logging.WARNING
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


class TestHydrationLogging:
    """Test what the cart logs when the catalog misbehaves."""

    def test_missing_record_logged_as_warning(self, gateway, caplog):
        import asyncio

        from salad_cart.cart.models import AddRequest
        from salad_cart.cart.store import CartStore

        store = CartStore(gateway)
        store.add(AddRequest(id="ghost", kind="ingredient", name="Ghost", price=1.0))

        with caplog.at_level(logging.WARNING, logger="salad_cart"):
            asyncio.run(store.hydrate_pending())

        messages = [r.message for r in caplog.records if r.levelno == logging.WARNING]
        assert any("ghost" in m for m in messages)

    def test_debug_logs_not_shown_at_info_level(self, caplog):
        """Test that DEBUG logs don't appear when level is INFO."""
        from salad_cart.logging_config import setup_logging
        setup_logging(level="INFO")

        with caplog.at_level(logging.INFO):
            logger = logging.getLogger("salad_cart.test")
            logger.debug("This should not appear")
            logger.info("This should appear")

            messages = [r.message for r in caplog.records]
            assert "This should not appear" not in messages
            assert "This should appear" in messages


class TestLoggerOverrides:
    """Test per-logger level overrides."""

    def test_parse_overrides(self):
        from salad_cart.logging_config import parse_logger_overrides

        overrides = parse_logger_overrides(
            "salad_cart.cart.store=debug, sqlalchemy.engine=INFO,broken,bad=LOUD"
        )
        assert overrides == {"salad_cart.cart.store": "DEBUG", "sqlalchemy.engine": "INFO"}

    def test_parse_empty(self):
        from salad_cart.logging_config import parse_logger_overrides

        assert parse_logger_overrides(None) == {}
        assert parse_logger_overrides("") == {}

    def test_explicit_override_applied(self):
        """Test that one module can log at DEBUG while the app stays at INFO."""
        from salad_cart.logging_config import setup_logging
        store_logger = logging.getLogger("salad_cart.cart.store")
        try:
            setup_logging(level="INFO", overrides={"salad_cart.cart.store": "DEBUG"})

            assert logging.getLogger("salad_cart").level == logging.INFO
            assert store_logger.level == logging.DEBUG
        finally:
            store_logger.setLevel(logging.NOTSET)

    def test_override_from_env(self, monkeypatch):
        """Test that LOG_LOGGERS can bring a quieted library back to INFO."""
        monkeypatch.setenv("LOG_LOGGERS", "sqlalchemy.engine=INFO")

        from salad_cart.logging_config import setup_logging
        setup_logging(level="INFO")

        assert logging.getLogger("sqlalchemy.engine").level == logging.INFO
        monkeypatch.delenv("LOG_LOGGERS")
        setup_logging(level="INFO")
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

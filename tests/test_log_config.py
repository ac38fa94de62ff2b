from io import StringIO

from loguru import logger

from reqchain.log_config import configure_logging


def test_configure_logging_default_level():
    """Test configure_logging with default INFO level and stderr sink."""
    logger.remove()
    handler_id = configure_logging()

    assert list(logger._core.handlers.keys()) == [handler_id]
    handler = logger._core.handlers[handler_id]
    assert handler._levelno == logger.level("INFO").no


def test_configure_logging_custom_level_is_case_insensitive():
    logger.remove()
    handler_id = configure_logging(level="debug")
    assert logger._core.handlers[handler_id]._levelno == logger.level("DEBUG").no


def test_configure_logging_custom_sink_stringio():
    """Test configure_logging with a custom StringIO sink."""
    string_io_sink = StringIO()
    configure_logging(sink=string_io_sink, level="INFO")

    logger.info("Retrying GET https://example.org")
    logger.debug("hidden")

    logged_output = string_io_sink.getvalue()
    assert "INFO     | test_log_config:test_configure_logging_custom_sink_stringio" in logged_output
    assert "Retrying GET https://example.org" in logged_output
    assert "hidden" not in logged_output


def test_configure_logging_removes_existing_handlers():
    """Test that configure_logging removes pre-existing handlers."""
    logger.remove()
    dummy_id = logger.add(lambda _: None, level="ERROR")

    handler_id = configure_logging(level="WARNING", sink=StringIO())

    assert dummy_id not in logger._core.handlers
    assert list(logger._core.handlers.keys()) == [handler_id]

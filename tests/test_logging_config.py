import io
import logging

from capkeo.logging_config import setup_logging


def test_records_are_written_with_utc_timestamps():
    stream = io.StringIO()
    logger = setup_logging("debug", stream=stream)

    logging.getLogger("capkeo").debug("Fetching pending matches")

    line = stream.getvalue().strip()
    assert logger.level == logging.DEBUG
    assert "| DEBUG    | capkeo." in line
    assert line.endswith("Fetching pending matches")
    assert "+00:00 |" in line


def test_setting_up_twice_keeps_one_handler_and_host_handlers():
    logger = logging.getLogger("capkeo")
    host_handler = logging.NullHandler()
    logger.addHandler(host_handler)
    try:
        first, second = io.StringIO(), io.StringIO()
        setup_logging("INFO", stream=first)
        setup_logging("INFO", stream=second)

        logger.info("Cleared all cached match data")

        assert first.getvalue() == ""
        assert "Cleared all cached match data" in second.getvalue()
        assert host_handler in logger.handlers
    finally:
        logger.removeHandler(host_handler)


def test_uvicorn_loggers_share_the_handler_when_asked():
    stream = io.StringIO()
    setup_logging("INFO", stream=stream, route_uvicorn=True)

    logging.getLogger("uvicorn.error").warning("Sandbox shutting down")

    assert "Sandbox shutting down" in stream.getvalue()

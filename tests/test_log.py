import logging

from arcstory.core.log import LOGGER_NAME, configure_logging


def test_configure_logging_adds_a_single_handler(monkeypatch) -> None:
    logger = logging.getLogger(LOGGER_NAME)
    monkeypatch.setattr(logger, "handlers", [])
    monkeypatch.setattr(logger, "level", logger.level)

    configure_logging("debug")
    configure_logging("INFO")

    assert len(logger.handlers) == 1
    assert logger.level == logging.INFO


def test_unknown_level_falls_back_to_warning(monkeypatch) -> None:
    logger = logging.getLogger(LOGGER_NAME)
    monkeypatch.setattr(logger, "handlers", [])
    monkeypatch.setattr(logger, "level", logger.level)

    configure_logging("chatty")

    assert logger.level == logging.WARNING

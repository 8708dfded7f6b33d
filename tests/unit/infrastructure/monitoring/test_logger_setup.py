import logging

import pytest

from autoretry.infrastructure.monitoring.logger_setup import DEFAULT_LOG_LEVEL, parse_log_level, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Puts the root logger back the way pytest configured it."""
    root_logger = logging.getLogger()
    saved_handlers = root_logger.handlers[:]
    saved_level = root_logger.level
    yield
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        if handler not in saved_handlers:
            handler.close()
    for handler in saved_handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(saved_level)


@pytest.mark.parametrize(
    "value, expected",
    [("debug", logging.DEBUG), (" Warning ", logging.WARNING), (logging.ERROR, logging.ERROR), ("CRITICAL", logging.CRITICAL)]
)
def test_parse_log_level(value, expected):
    assert parse_log_level(value) == expected


@pytest.mark.parametrize("value", ["basic_format", "root", "verbose", ""])
def test_parse_log_level_ignores_names_that_are_not_levels(value):
    assert parse_log_level(value) == DEFAULT_LOG_LEVEL


def test_setup_logging_installs_console_and_file_handlers(tmp_path):
    log_file = tmp_path / "autoretry.log"

    setup_logging(log_level="debug", log_file=str(log_file))
    logging.getLogger("autoretry.test").debug("hello file")

    root_logger = logging.getLogger()
    assert root_logger.level == logging.DEBUG
    assert any(isinstance(h, logging.FileHandler) for h in root_logger.handlers)
    for handler in root_logger.handlers:
        handler.flush()
    assert "hello file" in log_file.read_text(encoding="utf-8")


def test_setup_logging_survives_unwritable_log_file(tmp_path, capsys):
    bad_path = tmp_path / "missing-dir" / "autoretry.log"

    setup_logging(log_level="info", log_file=str(bad_path))

    root_logger = logging.getLogger()
    assert len(root_logger.handlers) == 1
    assert not any(isinstance(h, logging.FileHandler) for h in root_logger.handlers)
    assert "Failed to set up file logging" in capsys.readouterr().out

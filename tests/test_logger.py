import logging
from logging.handlers import RotatingFileHandler

from modsentry.util.logger import (
    ColorFormatter,
    PromptToolkitHandler,
    get_log_filepath,
    get_logger,
    handle_exception,
    quiet_third_party_loggers,
    setup_logger,
    should_use_color,
)


class DummyStream:
    def __init__(self):
        self.written = []

    def write(self, msg):
        self.written.append(msg)

    def isatty(self):
        return True


def test_get_logger_returns_configured_logger():
    logger = get_logger("test_logger")

    assert isinstance(logger, logging.Logger)
    assert logger.propagate is False
    assert any(isinstance(h, PromptToolkitHandler) for h in logger.handlers)
    assert any(isinstance(h, RotatingFileHandler) for h in logger.handlers)


def test_setup_logger_idempotent():
    logger1 = setup_logger("test_logger_idem")
    handler_count = len(logger1.handlers)
    logger2 = setup_logger("test_logger_idem")

    assert logger1 is logger2
    assert len(logger2.handlers) == handler_count


def test_color_formatter_applies_color():
    formatter = ColorFormatter("%(levelname)s %(message)s")
    record = logging.LogRecord("test", logging.ERROR, "", 0, "error occurred", None, None)

    formatted = formatter.format(record)

    assert "\033[31m" in formatted and "error occurred" in formatted


def test_should_use_color_true(monkeypatch):
    monkeypatch.setattr("sys.stderr", DummyStream())
    assert should_use_color() is True


def test_get_log_filepath_is_stable():
    path = get_log_filepath()

    assert path == get_log_filepath()
    assert path.parent.exists()
    assert path.suffix == ".log"


def test_handle_exception_logs_error(caplog):
    class DummyException(Exception):
        pass

    with caplog.at_level(logging.ERROR):
        try:
            raise DummyException("fail")
        except DummyException as exc:
            handle_exception(DummyException, exc, exc.__traceback__)

    assert any("Uncaught exception" in r.message for r in caplog.records)


def test_quiet_third_party_loggers_raises_threshold():
    library_logger = logging.getLogger("modsentry_test_library")
    library_logger.addHandler(logging.NullHandler())

    quiet_third_party_loggers(("modsentry_test_library",))

    assert library_logger.level == logging.ERROR
    assert library_logger.propagate is False
    assert library_logger.handlers == []

import logging

from asesheet import logging_setup
from asesheet.cursor import TruncatedInput


def _format(name, level, message):
    record = logging.LogRecord(name, level, __file__, 1, message, (), None)
    return logging_setup._LogFormatter().format(record)


def test_formatter_shortens_package_loggers():
    assert _format("asesheet.builder", logging.WARNING, "hmm") == (
        "⚠️ builder: hmm"
    )
    assert _format("PIL.PngImagePlugin", logging.INFO, " x") == (
        " PIL.PngImagePlugin: x"
    )
    assert _format("root", logging.ERROR, "bad") == "🔥 bad"


def test_decode_errors_skip_the_traceback(caplog):
    error = TruncatedInput("Read of 4b at 10")
    with caplog.at_level(logging.CRITICAL):
        logging_setup._sys_exception_hook(TruncatedInput, error, None)
    (record,) = caplog.records
    assert record.getMessage() == "TruncatedInput: Read of 4b at 10"
    assert record.exc_info is None


def test_enable_debug_is_scoped_to_package():
    package_logger = logging.getLogger("asesheet")
    old_level = package_logger.level
    try:
        logging_setup.enable_debug()
        assert package_logger.level == logging.DEBUG
        assert logging.getLogger("asesheet.atlas").isEnabledFor(logging.DEBUG)
    finally:
        package_logger.setLevel(old_level)

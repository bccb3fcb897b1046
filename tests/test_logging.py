# tests/test_logging.py
import logging
import logging_setup  # top-level module

LOGGER_NAME = logging_setup.LOGGER_NAME


def _attach_caplog(caplog):
    """Attach caplog.handler to our named logger (propagate=False means root won't see it)."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.addHandler(caplog.handler)
    return logger


def test_logger_includes_context_messages(caplog):
    logging_setup.setup_logging(verbosity=1)  # INFO
    log = logging_setup.get_logger(stage="articles", project_id="proj-1")

    logger = _attach_caplog(caplog)
    try:
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            log.info("import started")
    finally:
        logger.removeHandler(caplog.handler)

    assert any(r.message == "import started" for r in caplog.records)
    assert any(getattr(r, "project_id", None) == "proj-1" for r in caplog.records)
    assert any(getattr(r, "stage", None) == "articles" for r in caplog.records)


def test_default_context_filter_unit():
    """
    Test the filter in isolation. caplog doesn't run filters on its own, so
    we construct a LogRecord and apply the filter directly.
    """
    f = logging_setup.DefaultContextFilter()
    record = logging.LogRecord(
        name=LOGGER_NAME,
        level=logging.INFO,
        pathname=__file__,
        lineno=0,
        msg="no extras",
        args=(),
        exc_info=None,
    )
    ok = f.filter(record)
    assert ok is True
    assert getattr(record, "project_id") == "-"
    assert getattr(record, "stage") == "-"


def test_reserved_extra_keys_are_prefixed(caplog):
    logging_setup.setup_logging(verbosity=1)
    log = logging_setup.get_logger(stage="files")

    logger = _attach_caplog(caplog)
    try:
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            log.info("file read", extra={"filename": "a.json", "stage": "ignored"})
    finally:
        logger.removeHandler(caplog.handler)

    rec = caplog.records[-1]
    assert getattr(rec, "meta_filename") == "a.json"
    assert rec.stage == "files"  # adapter defaults win


def test_debug_level_enabled(caplog):
    logging_setup.setup_logging(verbosity=2)  # DEBUG
    log = logging_setup.get_logger(stage="find_missing", project_id="proj-2")

    logger = _attach_caplog(caplog)
    try:
        with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
            log.debug("debugging here")
    finally:
        logger.removeHandler(caplog.handler)

    assert any(r.levelno == logging.DEBUG and r.message == "debugging here" for r in caplog.records)
    assert any(getattr(r, "project_id", None) == "proj-2" for r in caplog.records)


def test_verbosity_levels():
    assert logging_setup.level_for(0) == logging.WARNING
    assert logging_setup.level_for(1) == logging.INFO
    assert logging_setup.level_for(2) == logging.DEBUG
    assert logging_setup.level_for(5) == logging.DEBUG


def test_console_line_carries_context(capfd):
    logging_setup.setup_logging(verbosity=1)
    logging_setup.get_logger(stage="publish", project_id="proj-3").info("published %s", "item-1")

    err = capfd.readouterr().err
    assert "INFO project=proj-3 stage=publish published item-1" in err

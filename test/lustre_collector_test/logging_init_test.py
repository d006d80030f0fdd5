import logging
import logging.handlers
from pathlib import Path

from lustre_collector.logging_init import initialize_logging


def _installed() -> list:
    return [h for h in logging.getLogger().handlers if getattr(h, "_lustre_collector", False)]


def test_initialize_logging(tmp_path: Path) -> None:
    log_file = str(tmp_path / "collector.log")
    try:
        logger = initialize_logging("warning", log_file, "debug")
        handlers = _installed()
        assert len(handlers) == 2
        assert handlers[0].level == logging.WARNING
        assert isinstance(handlers[1], logging.handlers.RotatingFileHandler)
        assert handlers[1].level == logging.DEBUG

        logger.debug("written to the file only")
        handlers[1].flush()
        assert "written to the file only" in (tmp_path / "collector.log").read_text()

        # a second call replaces rather than adds
        initialize_logging("bogus")
        handlers = _installed()
        assert len(handlers) == 1
        assert handlers[0].level == logging.INFO
    finally:
        for handler in _installed():
            logging.getLogger().removeHandler(handler)
            handler.close()

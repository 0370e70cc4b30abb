"""Logger setup shared by the updater and the viewer."""
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s %(levelname)s %(message)s'


def setup_logger(name: str, log_path: Optional[Path] = None, verbose: bool = False) -> logging.Logger:
    """Return logger ``name`` with console and optional rotating file output.

    Handlers are only attached once so repeated calls (tests, reloads) do not
    duplicate output.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if logger.handlers:
        return logger

    fmt = logging.Formatter(LOG_FORMAT)
    console = logging.StreamHandler()
    console.setFormatter(fmt)
    logger.addHandler(console)

    if log_path is not None:
        try:
            Path(log_path).parent.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(str(log_path), maxBytes=5 * 1024 * 1024, backupCount=3, encoding='utf-8')
            handler.setFormatter(fmt)
            logger.addHandler(handler)
        except OSError as e:
            logger.warning(f"setup_logger: cannot open log file {log_path}: {e}")
    return logger


def close_logger(logger: logging.Logger) -> None:
    """Detach and close handlers so log files are released."""
    for h in list(logger.handlers):
        h.close()
        logger.removeHandler(h)

import logging
import os
from pathlib import Path

LOG_DIR = Path(__file__).parent.parent / "logs"
LOG_FILE = LOG_DIR / "app.log"

LOG_MODE_ENV = "AUTOTRANSLATE_LOG_MODE"
LOG_MODES = ("off", "info", "debug")
DEFAULT_LOG_MODE = "info"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Cache for log mode to avoid repeated config reads
_log_mode_cache = None


def _get_log_mode():
    """Get log mode from the environment, then the config file."""
    global _log_mode_cache
    if _log_mode_cache is not None:
        return _log_mode_cache

    log_mode = os.environ.get(LOG_MODE_ENV, "").strip().lower()
    if log_mode not in LOG_MODES:
        try:
            from autotranslate.config import read_log_mode
            log_mode = read_log_mode()
        except Exception:
            # Config is unreadable this early; fall back to the default
            log_mode = DEFAULT_LOG_MODE
    if log_mode not in LOG_MODES:
        log_mode = DEFAULT_LOG_MODE

    _log_mode_cache = log_mode
    return log_mode


def _make_file_handler(log_format: logging.Formatter) -> logging.FileHandler:
    LOG_DIR.mkdir(exist_ok=True)
    f_handler = logging.FileHandler(LOG_FILE, encoding="utf-8")
    f_handler.setLevel(logging.DEBUG)
    f_handler.setFormatter(log_format)
    return f_handler


def _levels_for_mode(log_mode: str):
    """Return (logger_level, console_level) for a log mode."""
    if log_mode == 'debug':
        return logging.DEBUG, logging.DEBUG
    if log_mode == 'off':
        # Higher than CRITICAL disables everything
        return logging.CRITICAL + 1, logging.CRITICAL + 1
    return logging.INFO, logging.INFO


def _apply_log_mode(logger: logging.Logger, log_mode: str) -> None:
    logger_level, console_level = _levels_for_mode(log_mode)
    logger.setLevel(logger_level)
    log_format = logging.Formatter(LOG_FORMAT)

    has_file_handler = any(isinstance(h, logging.FileHandler) for h in logger.handlers)

    # Add or remove FileHandler based on log_mode
    if log_mode != 'off' and not has_file_handler:
        logger.addHandler(_make_file_handler(log_format))
    elif log_mode == 'off' and has_file_handler:
        handlers_to_remove = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
        for handler in handlers_to_remove:
            handler.close()
            logger.removeHandler(handler)

    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            handler.setLevel(console_level)


def clear_log_mode_cache():
    """Clear the log mode cache and update all existing loggers (call this when config is updated)."""
    global _log_mode_cache
    _log_mode_cache = None

    log_mode = _get_log_mode()

    # Only update loggers that have handlers (i.e., were created by get_logger)
    for logger_name in list(logging.Logger.manager.loggerDict.keys()):
        logger = logging.getLogger(logger_name)
        if logger.handlers and logger_name.startswith("autotranslate"):
            _apply_log_mode(logger, log_mode)


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    log_mode = _get_log_mode()

    # Prevent duplicate handlers if logger already configured
    if logger.handlers:
        _apply_log_mode(logger, log_mode)
        return logger

    logger_level, console_level = _levels_for_mode(log_mode)
    logger.setLevel(logger_level)
    log_format = logging.Formatter(LOG_FORMAT)

    if log_mode != 'off':
        logger.addHandler(_make_file_handler(log_format))

        c_handler = logging.StreamHandler()
        c_handler.setLevel(console_level)
        c_handler.setFormatter(log_format)
        logger.addHandler(c_handler)

    return logger

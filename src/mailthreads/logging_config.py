# ABOUTME: Logging configuration setup for mailthreads
# ABOUTME: Console logging at the CLI/config level plus an optional rotating log file
import logging
import logging.handlers
from pathlib import Path

VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def resolve_log_level(config, debug: bool = False) -> str:
    """--debug wins, otherwise the logging.level setting."""
    if debug:
        return "DEBUG"
    return config.settings["logging"]["level"]


def setup_logging(log_level: str = "WARNING", log_file: Path | None = None) -> logging.Logger:
    """
    Set up the "mailthreads" logger.

    Args:
        log_level: One of VALID_LEVELS
        log_file: Full path of a log file (rotated at 10MB), or None for stderr only

    Returns:
        The configured package logger
    """
    level = getattr(logging, log_level.upper())
    logger = logging.getLogger("mailthreads")
    logger.setLevel(level)

    # Repeated CLI invocations in one process must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=10 * 1024 * 1024, backupCount=5  # 10MB
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)

    logger.debug(f"Logging initialized at {log_level} level")
    return logger

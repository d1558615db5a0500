"""Logging for transformation runs.

Every module logs through a ``chat_transformer.<component>`` logger. A run
attaches handlers once, to the ``chat_transformer`` parent: a log file in
the run's output folder (``<output>/logs/<run>.log``) and, optionally,
stderr. A later run in the same process moves the file handler to its own
output folder instead of appending to the previous run's log.
"""

import logging
import sys
from pathlib import Path

ROOT_LOGGER = "chat_transformer"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Used when a run has no output folder to log into
DEFAULT_LOG_DIR = Path.home() / "chat-transformer" / "logs"

# Marks handlers owned by setup_logging so reruns replace only those
_HANDLER_ATTR = "_chat_transformer_handler"


def parse_level(level: int | str) -> int:
    """Resolve a level given as an int or a name such as 'debug'.

    Raises:
        ValueError: If the name is not a logging level
    """
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def setup_logging(
    run_name: str,
    log_dir: Path | None = None,
    level: int | str = logging.INFO,
    console: bool = True,
) -> logging.Logger:
    """Attach file and console handlers for one run.

    Args:
        run_name: Log file stem, e.g. 'transformer'
        log_dir: Directory for the log file (defaults to ~/chat-transformer/logs/)
        level: Level as int or name (defaults to INFO)
        console: Whether to also log to stderr

    Returns:
        The configured ``chat_transformer`` logger
    """
    log_dir = log_dir or DEFAULT_LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    level = parse_level(level)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    for handler in [h for h in logger.handlers if getattr(h, _HANDLER_ATTR, False)]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.FileHandler(log_dir / f"{run_name}.log", encoding="utf-8")]
    if console:
        handlers.append(logging.StreamHandler(sys.stderr))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_ATTR, True)
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get the logger for a component, e.g. get_logger('pipeline')."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")

"""Logging utilities for VoiceSketch.

Console output goes to stderr: stdout is reserved for the transcript and
the prompt the CLI prints.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from voicesketch.config.config_loader import config

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class EmojiFormatter(logging.Formatter):
    """Prefixes each console line with a level indicator."""

    EMOJI_MAP = {
        logging.DEBUG: "🐛",
        logging.INFO: "🟢",
        logging.WARNING: "🟡",
        logging.ERROR: "🛑",
        logging.CRITICAL: "🛑",
    }

    def format(self, record: logging.LogRecord) -> str:
        emoji = self.EMOJI_MAP.get(record.levelno, "")
        return f"{emoji} {super().format(record)}"


def setup_logger(name: str) -> logging.Logger:
    """Set up a logger with a console handler and a daily log file.

    The log file is skipped when ``logging.directory`` is null.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    log_format = config.get("logging.format") or DEFAULT_FORMAT
    logger.setLevel(getattr(logging, config.get("logging.level", "INFO")))
    logger.propagate = False

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(EmojiFormatter(log_format))
    logger.addHandler(console_handler)

    log_dir = config.get("logging.directory")
    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        date_str = datetime.now().strftime("%Y-%m-%d")
        file_handler = logging.FileHandler(
            log_dir / f"voicesketch-{date_str}.log", mode="a", encoding="utf-8"
        )
        file_handler.setFormatter(logging.Formatter(log_format))
        logger.addHandler(file_handler)

    return logger

"""Colored, filtered console logging for extraction scripts."""
import logging
import logging.handlers
from pathlib import Path
from typing import Optional


class Colors:
    """ANSI color codes."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"


class ColoredFormatter(logging.Formatter):
    """A logging formatter that adds colors to the output."""

    LOG_LEVEL_COLORS = {
        logging.DEBUG: Colors.CYAN,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record):
        color = self.LOG_LEVEL_COLORS.get(record.levelno)
        message = super().format(record)
        if color:
            return color + message + Colors.RESET
        return message


class ConsoleFilter(logging.Filter):
    """Let warnings through from anywhere, lower levels only from our own loggers."""

    ALLOWED_PREFIXES = ("dendrocut", "extract_clusters", "__main__")

    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        return record.name.startswith(self.ALLOWED_PREFIXES)


def setup_logging(
    console_level=logging.INFO,
    log_file: Optional[Path] = None,
    file_level=logging.DEBUG,
    quiet: bool = False,
    color: bool = True,
):
    """
    Set up logging with a colored, filtered console handler and an
    optional verbose rotating file handler.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if not quiet:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(console_level)
        fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        if color:
            console_formatter = ColoredFormatter(fmt, datefmt="%H:%M:%S")
        else:
            console_formatter = logging.Formatter(fmt, datefmt="%H:%M:%S")
        console_handler.setFormatter(console_formatter)
        console_handler.addFilter(ConsoleFilter())
        root_logger.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=5 * 1024 * 1024, backupCount=5
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"
        ))
        root_logger.addHandler(file_handler)

    logging.getLogger(__name__).debug("Logging initialized (console=%s, file=%s).", console_level, log_file)

"""
Logging setup for cloudsync.

The CLI prints the sync activity log itself, so the console handler only
shows warnings and errors unless verbose mode or CLOUDSYNC_LOG_LEVEL asks
for more. The dated log file under the config directory always records
everything at DEBUG, with credentials scrubbed from every message.
"""

import logging
import os
import re
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from cloudsync.utils.paths import resolve_config_dir

CONSOLE_FORMAT = "%(levelname)s: %(message)s"
FILE_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ENV_LOG_LEVEL = "CLOUDSYNC_LOG_LEVEL"
ENV_LOG_FILE = "CLOUDSYNC_LOG_FILE"

# Files are named cloudsync_YYYYMMDD.log
LOG_FILE_PREFIX = "cloudsync_"

ROOT_LOGGER_NAME = "cloudsync"

DEFAULT_CONSOLE_LEVEL = logging.WARNING

REDACTED = "****"

# Authorization values ("token ghp_...", "Basic dXNlcjpw...") and
# user:password@ in URLs
_CREDENTIAL_PATTERNS = (
    re.compile(r"(?i)\b(token|bearer|basic)\s+(?=[\w\-.=+/]*[0-9=])[\w\-.=+/]{8,}"),
    re.compile(r"\bgh[pousr]_[A-Za-z0-9]{8,}"),
    re.compile(r"(?<=://)[^/\s:@]+:[^/\s@]+(?=@)"),
)


def redact_credentials(text: str) -> str:
    """Replace auth header values, GitHub tokens and URL passwords."""
    text = _CREDENTIAL_PATTERNS[0].sub(lambda m: f"{m.group(1)} {REDACTED}", text)
    text = _CREDENTIAL_PATTERNS[1].sub(REDACTED, text)
    return _CREDENTIAL_PATTERNS[2].sub(REDACTED, text)


class CredentialFilter(logging.Filter):
    """Handler filter that scrubs credentials from the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact_credentials(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


class LevelColorFormatter(logging.Formatter):
    """Console formatter that colors the level name on capable terminals."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, fmt: str = CONSOLE_FORMAT, use_colors: bool = True):
        super().__init__(fmt, DATE_FORMAT)
        self.use_colors = use_colors and stream_supports_color(sys.stderr)

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors or record.levelname not in self.COLORS:
            return super().format(record)

        # The file handler formats the same record
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = (
            f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"
        )
        return super().format(colored)


def stream_supports_color(stream) -> bool:
    """True for a TTY when NO_COLOR is unset and TERM is not dumb."""
    if not getattr(stream, "isatty", None) or not stream.isatty():
        return False
    if os.environ.get("NO_COLOR"):
        return False
    return os.environ.get("TERM", "") != "dumb"


def console_level(verbose: bool = False) -> int:
    """
    Resolve the console log level.

    Verbose mode means DEBUG. Otherwise CLOUDSYNC_LOG_LEVEL is used when it
    names a standard level, falling back to WARNING.
    """
    if verbose:
        return logging.DEBUG

    name = os.environ.get(ENV_LOG_LEVEL, "").strip().upper()
    if name == "WARN":
        name = "WARNING"
    level = logging.getLevelName(name) if name else None
    return level if isinstance(level, int) else DEFAULT_CONSOLE_LEVEL


def dated_log_name(day: Optional[datetime] = None) -> str:
    return f"{LOG_FILE_PREFIX}{(day or datetime.now()).strftime('%Y%m%d')}.log"


def resolve_log_file(log_dir: Optional[Path] = None) -> Optional[Path]:
    """
    Pick the log file path.

    CLOUDSYNC_LOG_FILE wins when set ("none", "disabled" or empty turn file
    logging off). Otherwise a dated file in log_dir, which defaults to
    <config dir>/logs.
    """
    override = os.environ.get(ENV_LOG_FILE)
    if override is not None:
        if override.strip().lower() in ("", "none", "disabled"):
            return None
        return Path(override)

    return (log_dir or resolve_config_dir() / "logs") / dated_log_name()


def setup_logging(
    verbose: bool = False,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = True,
    use_colors: bool = True,
) -> logging.Logger:
    """
    Configure the cloudsync logger.

    Replaces any handlers from a previous call, so the CLI can run it once
    per invocation.

    Args:
        verbose: Show DEBUG output on the console.
        log_dir: Directory for the dated log file.
        enable_file_logging: Set False to log to the console only.
        use_colors: Color level names when stderr is a terminal.

    Returns:
        The ``cloudsync`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.propagate = False
    logger.setLevel(logging.DEBUG)

    console = logging.StreamHandler(sys.stderr)
    console.addFilter(CredentialFilter())
    console.setLevel(console_level(verbose))
    console.setFormatter(
        LevelColorFormatter(FILE_FORMAT if verbose else CONSOLE_FORMAT, use_colors)
    )
    logger.addHandler(console)

    file_path = resolve_log_file(log_dir) if enable_file_logging else None
    if file_path is not None:
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(file_path, encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not open log file {file_path}: {e}")
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.addFilter(CredentialFilter())
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, DATE_FORMAT))
            logger.addHandler(file_handler)
            logger.debug(f"Log file: {file_path}")

    return logger


def cleanup_old_logs(log_dir: Path, keep_count: int = 10) -> int:
    """
    Delete all but the newest ``keep_count`` cloudsync log files.

    A keep_count of 0 keeps everything. Returns the number of files deleted.
    """
    if keep_count <= 0 or not log_dir.is_dir():
        return 0

    logs = sorted(
        log_dir.glob(f"{LOG_FILE_PREFIX}*.log"),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )
    deleted = 0
    for old_log in logs[keep_count:]:
        try:
            old_log.unlink()
        except OSError as e:
            logging.getLogger(__name__).debug(f"Could not delete {old_log}: {e}")
        else:
            deleted += 1
    return deleted


def get_logger(name: str) -> logging.Logger:
    """Return a logger inside the cloudsync hierarchy."""
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


__all__ = [
    "CONSOLE_FORMAT",
    "CredentialFilter",
    "DATE_FORMAT",
    "FILE_FORMAT",
    "LevelColorFormatter",
    "cleanup_old_logs",
    "console_level",
    "get_logger",
    "redact_credentials",
    "resolve_log_file",
    "setup_logging",
]

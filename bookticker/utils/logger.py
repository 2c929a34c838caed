"""
Logging Configuration Module
===========================

Loguru setup for the book ticker daemon. Provides console modes for
production, development and quiet runs, plus an optional rotating file sink.
"""

import sys
from enum import Enum
from typing import Optional
from loguru import logger


class LogLevel(Enum):
    """Console verbosity for the daemon"""
    SILENT = "SILENT"           # Critical errors only
    QUIET = "QUIET"             # Reconnects and failures
    NORMAL = "NORMAL"           # Connection lifecycle
    VERBOSE = "VERBOSE"         # Per-frame detail


_LOGURU_LEVELS = {
    LogLevel.SILENT: "CRITICAL",
    LogLevel.QUIET: "WARNING",
    LogLevel.NORMAL: "INFO",
    LogLevel.VERBOSE: "DEBUG",
}

_CONSOLE_FORMATS = {
    LogLevel.SILENT: "<red><bold>CRITICAL</bold></red> | {message}",
    LogLevel.QUIET: "<level>{level}</level> | {message}",
    LogLevel.NORMAL: "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[name]}</cyan> | {message}",
    LogLevel.VERBOSE: "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | {message}",
}

_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[name]}:{function}:{line} | {message}"


class LogConfig:
    """Holds the active console sink and any file sink"""

    def __init__(self):
        self.current_level = LogLevel.NORMAL
        self._initialized = False
        self._file_sink_id: Optional[int] = None

    def setup_logging(self,
                      level: LogLevel = LogLevel.NORMAL,
                      show_backtrace: bool = False,
                      show_diagnose: bool = False) -> None:
        """
        Replace every sink with a single stderr sink

        Args:
            level: Console verbosity
            show_backtrace: Extend tracebacks beyond the catching frame
            show_diagnose: Show variable values in tracebacks
        """
        logger.remove()
        self._file_sink_id = None

        # Records logged through the bare logger still need extra[name]
        logger.configure(extra={"name": "bookticker"})

        logger.add(
            sys.stderr,
            format=_CONSOLE_FORMATS[level],
            level=_LOGURU_LEVELS[level],
            backtrace=show_backtrace,
            diagnose=show_diagnose,
            colorize=True
        )

        self.current_level = level

        if level != LogLevel.SILENT and not self._initialized:
            logger.bind(name="logger").info(f"Logging configured: level={level.value}")

        self._initialized = True

    def set_production_mode(self) -> None:
        """Lifecycle events, warnings and errors"""
        self.setup_logging(level=LogLevel.NORMAL)

    def set_development_mode(self) -> None:
        """Per-frame detail with full tracebacks"""
        self.setup_logging(
            level=LogLevel.VERBOSE,
            show_backtrace=True,
            show_diagnose=True
        )

    def set_quiet_mode(self) -> None:
        self.setup_logging(level=LogLevel.QUIET)

    def set_silent_mode(self) -> None:
        self.setup_logging(level=LogLevel.SILENT)

    def add_file_logging(self,
                         filepath: str,
                         level: LogLevel = LogLevel.VERBOSE,
                         rotation: str = "10 MB",
                         retention: str = "7 days") -> None:
        """
        Mirror the log stream into a rotating file

        Args:
            filepath: Path to log file
            level: Verbosity for the file
            rotation: File rotation policy
            retention: Log retention policy
        """
        if self._file_sink_id is not None:
            logger.remove(self._file_sink_id)

        self._file_sink_id = logger.add(
            filepath,
            format=_FILE_FORMAT,
            level=_LOGURU_LEVELS[level],
            rotation=rotation,
            retention=retention,
            backtrace=True,
            diagnose=False
        )

        if self.current_level != LogLevel.SILENT:
            logger.bind(name="logger").info(f"File logging enabled: {filepath}")


# Global log configuration instance
log_config = LogConfig()


_MODES = {
    "production": log_config.set_production_mode,
    "development": log_config.set_development_mode,
    "quiet": log_config.set_quiet_mode,
    "silent": log_config.set_silent_mode,
}


def setup_logging_mode(mode: str, log_file: Optional[str] = None) -> None:
    """Apply one of the named modes, optionally adding a file sink"""
    try:
        _MODES[mode]()
    except KeyError:
        raise ValueError(f"Unknown logging mode {mode!r}; expected one of {sorted(_MODES)}")

    if log_file:
        log_config.add_file_logging(log_file)


def get_logger(name: str):
    """
    Get a logger bound to a component name

    Args:
        name: Component name shown in the log line

    Returns:
        Logger instance
    """
    if not log_config._initialized:
        log_config.setup_logging()

    return logger.bind(name=name)

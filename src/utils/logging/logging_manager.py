import logging
import os
from enum import Enum
from logging import Logger
from logging.handlers import TimedRotatingFileHandler
from typing import Dict, Optional

from utils.file_manager import FileManager

LOG_OUTPUTS = ("console", "file", "both")
FILE_FORMAT = "[%(asctime)s][%(levelname)s][%(name)s]: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class LogLevel(Enum):
    """Log levels accepted by the LogManager."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        """
        Maps a level name such as ``"info"`` to its LogLevel.

        Raises:
            ValueError: If the name is not a known level.
        """
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Invalid log level: {name}. Must be one of {[lvl.name for lvl in cls]}.")


class LevelFilter(logging.Filter):
    """
    A logging filter that only lets records of exactly one level through.
    """

    def __init__(self, level: LogLevel):
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno == self.level.value


class ColorFormatter(logging.Formatter):
    """
    Console formatter that colors the level and gives each logger name its own color.
    """

    LEVEL_COLORS = {
        logging.DEBUG: "\033[94m",  # Blue
        logging.INFO: "\033[92m",  # Green
        logging.WARNING: "\033[93m",  # Yellow
        logging.ERROR: "\033[91m",  # Red
        logging.CRITICAL: "\033[91m\033[1m",  # Bold Red
    }
    RESET = "\033[0m"

    MODULE_COLORS = [
        "\033[95m",
        "\033[96m",
        "\033[93m",
        "\033[92m",
        "\033[94m",
        "\033[90m",
        "\033[97m",
        "\033[36m",
        "\033[35m",
        "\033[34m",
    ]

    def __init__(self, logger_number: int):
        """
        Args:
            logger_number (int): Unique identifier used to pick the logger name color.
        """
        super().__init__(datefmt=DATE_FORMAT)
        self.color = self.MODULE_COLORS[logger_number % len(self.MODULE_COLORS)]

    def format(self, record: logging.LogRecord) -> str:
        level_color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        log_fmt = (
            f"{level_color}[%(asctime)s][%(levelname)s]{self.RESET}"
            f"{self.color}[%(name)s]{self.RESET}: %(message)s"
        )
        return logging.Formatter(log_fmt, datefmt=DATE_FORMAT).format(record)


class LogManager:
    """
    Singleton handing out named loggers for the CLI.

    Every logger gets the handlers selected by ``log_output``: a colored console
    handler, an hourly rotating file handler, or both. ``log_config`` creates the
    instance at import time; everything else calls ``get_instance()`` or imports
    ``log_config.log_manager``.
    """

    _instance = None
    MAIN_LOGGER = "__main__"

    @staticmethod
    def get_instance() -> "LogManager":
        if LogManager._instance is None:
            raise RuntimeError("LogManager is not initialized. Import `log_config` first.")
        return LogManager._instance

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super(LogManager, cls).__new__(cls)
        return cls._instance

    def __init__(
        self,
        log_dir: str,
        log_file: str,
        log_retention_hours: int,
        default_level: LogLevel = LogLevel.INFO,
        use_filter: bool = False,
        log_output: str = "both",
    ):
        """
        Args:
            log_dir (str): Folder of the rotating log file, created when file output is on.
            log_file (str): Log file name.
            log_retention_hours (int): Hourly files kept by the rotating handler.
            default_level (LogLevel): Level of every logger handed out.
            use_filter (bool): Only emit records of exactly ``default_level``.
            log_output (str): One of "console", "file" or "both".

        Raises:
            ValueError: If ``log_output`` is unknown or the retention is negative.
        """
        if getattr(self, "_ready", False):
            return

        output = log_output.strip().lower()
        if output not in LOG_OUTPUTS:
            raise ValueError(f"Invalid log_output: {log_output}. Must be one of {LOG_OUTPUTS}.")
        if log_retention_hours < 0:
            raise ValueError(f"log_retention_hours must not be negative, got {log_retention_hours}")

        self.log_path = os.path.join(log_dir, log_file)
        self.retention_hours = log_retention_hours
        self.level = default_level
        self.exact_level_only = use_filter
        self.to_console = output in ("console", "both")
        self.to_file = output in ("file", "both")
        self.loggers: Dict[str, Logger] = {}

        if self.to_file:
            FileManager.create_folder(log_dir)
        self.get_logger(self.MAIN_LOGGER)
        self._ready = True

    def _handlers_for(self, color_index: int) -> list:
        handlers: list = []
        if self.to_console:
            console = logging.StreamHandler()
            console.setFormatter(ColorFormatter(logger_number=color_index))
            handlers.append(console)
        if self.to_file:
            rotating = TimedRotatingFileHandler(
                self.log_path, when="h", interval=1, backupCount=self.retention_hours, encoding="utf-8"
            )
            rotating.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
            handlers.append(rotating)
        if self.exact_level_only:
            for handler in handlers:
                handler.addFilter(LevelFilter(self.level))
        return handlers

    def get_logger(self, name: Optional[str] = None, module_name: Optional[str] = None) -> Logger:
        """
        Named logger, configured on first use.

        Args:
            name (Optional[str]): Component name, e.g. ``"PeriodAggregator"``. Defaults to the main logger.
            module_name (Optional[str]): Optional suffix, producing ``"<name>.<module_name>"``.
        """
        logger_name = name.strip() if name and name.strip() else self.MAIN_LOGGER
        if module_name:
            logger_name = f"{logger_name}.{module_name}"

        logger = self.loggers.get(logger_name)
        if logger is None:
            logger = logging.getLogger(logger_name)
            logger.propagate = False
            logger.setLevel(self.level.value)
            if not logger.handlers:
                for handler in self._handlers_for(len(self.loggers)):
                    logger.addHandler(handler)
            self.loggers[logger_name] = logger
        return logger

"""BotLogger: singleton JSON logger for the ``botapi`` logger hierarchy.

Every SDK module logs through ``logging.getLogger("botapi.<module>")``.
:class:`BotLogger` attaches a structured JSON formatter to the ``botapi``
parent logger so those records come out as one JSON object per line, on the
console and, when a log directory is configured, in a rotating file.
"""

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Optional


class _JsonFormatter(logging.Formatter):
    """Format every log record as a single-line JSON object.

    Standard fields (timestamp, level, logger, message, module, func_name)
    are always present.  Any *extra* key-value pairs passed via the ``extra``
    parameter of a logging call are merged into the JSON object, so callers
    can attach request context such as ``api_endpoint`` or ``update_id``::

        logger.warning("Failed to get updates", extra={"api_endpoint": "getUpdates", "error": "timeout"})

    Produces::

        {"timestamp": "…", "level": "WARNING", …, "api_endpoint": "getUpdates", "error": "timeout"}
    """

    # Keys that belong to the standard LogRecord; everything else is extra.
    _BUILTIN_ATTRS: frozenset[str] = frozenset(vars(logging.LogRecord(
        name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None,
    )))

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "func_name": record.funcName,
        }

        for key, value in record.__dict__.items():
            if key not in self._BUILTIN_ATTRS and key not in log_entry:
                log_entry[key] = value

        if record.exc_info:
            log_entry["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class BotLogger:
    """Singleton that configures the ``botapi`` logger once per process.

    Usage::

        from core.logger import BotLogger

        logger = BotLogger.get_logger()
        logger.info("Bot started")

    The rotating file handler is only attached when ``log_dir`` is given or
    the ``BOTAPI_LOG_DIR`` environment variable is set.
    """

    _instance: Optional["BotLogger"] = None
    _logger: Optional[logging.Logger] = None

    LOGGER_NAME: str = "botapi"

    # Rotation settings
    _LOG_FILE: str = "botapi.log"
    _MAX_BYTES: int = 5 * 1024 * 1024  # 5 MB
    _BACKUP_COUNT: int = 5

    def __new__(cls, level: int = logging.INFO, log_dir: Optional[str] = None) -> "BotLogger":
        """Ensure only one instance is ever created (Singleton)."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._init_logger(level, log_dir or os.environ.get("BOTAPI_LOG_DIR"))
        return cls._instance

    # ------------------------------------------------------------------
    # Initialisation helpers
    # ------------------------------------------------------------------

    def _init_logger(self, level: int, log_dir: Optional[str]) -> None:
        """Create the underlying :class:`logging.Logger` and attach handlers."""
        self._logger = logging.getLogger(self.LOGGER_NAME)
        self._logger.setLevel(level)

        # Avoid duplicate handlers if the module is reloaded.
        if self._logger.handlers:
            return

        formatter = _JsonFormatter()

        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(level)
        stream_handler.setFormatter(formatter)
        self._logger.addHandler(stream_handler)

        if not log_dir:
            return

        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, self._LOG_FILE),
            maxBytes=self._MAX_BYTES,
            backupCount=self._BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        self._logger.addHandler(file_handler)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @staticmethod
    def get_logger(level: int = logging.INFO, log_dir: Optional[str] = None) -> logging.Logger:
        """Return the shared ``botapi`` :class:`logging.Logger`.

        Creates the singleton on first call; later calls return the same
        logger regardless of their arguments.
        """
        instance = BotLogger(level, log_dir)
        assert instance._logger is not None  # guaranteed by __new__
        return instance._logger

    @classmethod
    def reset(cls) -> None:
        """Detach all handlers and forget the singleton (used by tests)."""
        if cls._instance is not None:
            cls._instance.cleanup()
        cls._instance = None

    def cleanup(self) -> None:
        """Flush and close all handlers attached to the logger."""
        if self._logger is None:
            return
        for handler in list(self._logger.handlers):
            handler.flush()
            handler.close()
            self._logger.removeHandler(handler)

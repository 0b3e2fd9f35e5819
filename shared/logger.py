import json
import logging
import sys
from typing import Any, Dict, Union

logger = logging.getLogger("asset_purger")
logger.setLevel(logging.INFO)


def _encode(log_data: Dict[str, Any]) -> str:
    return json.dumps(log_data, default=str)


class StructuredLogger:
    """Structured logging as single-line JSON records."""

    @staticmethod
    def configure(level: Union[int, str] = logging.INFO) -> None:
        """Set the level and attach a stderr handler once."""
        if isinstance(level, str):
            level = logging.getLevelName(level.upper())
        logger.setLevel(level)
        if not logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(logging.Formatter("%(message)s"))
            logger.addHandler(handler)

    @staticmethod
    def info(message: str, **kwargs) -> None:
        """Log info level with structured data."""
        log_data = {"level": "INFO", "message": message, **kwargs}
        logger.info(_encode(log_data))

    @staticmethod
    def error(message: str, exception: Exception = None, **kwargs) -> None:
        """Log error level with exception details."""
        log_data = {
            "level": "ERROR",
            "message": message,
            **kwargs,
        }
        if exception:
            log_data["exception"] = str(exception)
            log_data["exception_type"] = type(exception).__name__

        logger.error(_encode(log_data))

    @staticmethod
    def warning(message: str, exception: Exception = None, **kwargs) -> None:
        """Log warning level with structured data."""
        log_data = {"level": "WARNING", "message": message, **kwargs}
        if exception:
            log_data["exception"] = str(exception)
            log_data["exception_type"] = type(exception).__name__
        logger.warning(_encode(log_data))

    @staticmethod
    def debug(message: str, **kwargs) -> None:
        """Log debug level with structured data."""
        if not logger.isEnabledFor(logging.DEBUG):
            return
        log_data = {"level": "DEBUG", "message": message, **kwargs}
        logger.debug(_encode(log_data))

import logging
import sys

_LIBRARY_LOGGERS = ("botocore", "boto3", "urllib3", "httpx", "openai", "psycopg.pool")


class Log:
    """Process-wide logger for the docflow services."""

    _logger: logging.Logger = logging.getLogger("docflow")

    @classmethod
    def configure(cls, log_level: str) -> None:
        """Attach a stdout handler once and set levels for docflow and its SDKs."""
        level = log_level.upper()
        cls._logger.setLevel(level)
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(
                logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
            )
            cls._logger.addHandler(handler)
        # SDK chatter only at WARNING and above unless docflow itself is debugging
        library_level = logging.DEBUG if level == "DEBUG" else logging.WARNING
        for name in _LIBRARY_LOGGERS:
            logging.getLogger(name).setLevel(library_level)

    @classmethod
    def _emit(cls, level: int, message: str) -> None:
        cls._logger.log(level, message)

    @classmethod
    def info(cls, message: str) -> None:
        cls._emit(logging.INFO, message)

    @classmethod
    def error(cls, message: str) -> None:
        cls._emit(logging.ERROR, message)

    @classmethod
    def warning(cls, message: str) -> None:
        cls._emit(logging.WARNING, message)

    @classmethod
    def debug(cls, message: str) -> None:
        cls._emit(logging.DEBUG, message)

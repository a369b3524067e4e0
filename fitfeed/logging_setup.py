import logging
import os

# The backend client logs every HTTP request at INFO through these.
_NOISY_LOGGERS = ("httpx", "httpcore", "hpack")


class KeyValueFormatter(logging.Formatter):
    """One ``time=... level=... logger=... message=...`` line; a traceback follows on its own lines."""

    def format(self, record: logging.LogRecord) -> str:
        pairs = (
            ("time", self.formatTime(record, self.datefmt)),
            ("level", record.levelname),
            ("logger", record.name),
            ("message", record.getMessage()),
        )
        line = " ".join(f"{key}={value}" for key, value in pairs)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def configure_logging(level: str | None = None) -> None:
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=level, format="%(message)s")
    formatter = KeyValueFormatter()
    for handler in logging.getLogger().handlers:
        handler.setFormatter(formatter)
    backend_level = os.getenv("BACKEND_LOG_LEVEL", "WARNING").upper()
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(backend_level)

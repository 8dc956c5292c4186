"""
Central logging configuration for the skycast service.

Usage
-----
In the process entrypoint (server, one-off script, test harness):

    from utils.logging_utils import setup_logging

    setup_logging(level="INFO", job_name="skycast-api")

In a module:

    from utils.logging_utils import get_tagged_logger

    logger = get_tagged_logger(__name__, tag="data_sources/gateway")
    logger.info("Fetching forecast", extra={"latitude": 51.5, "longitude": -0.1})

Every record carries `job_name` and `tag` so that the gateway, the consensus
fan-out and the cache sweeper can be told apart in a shared log stream.
"""

from __future__ import annotations

import logging
import logging.config
from typing import Any, Mapping, Optional


# Early records (emitted before setup_logging runs) still get timestamps.
BOOTSTRAP_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
BOOTSTRAP_DATEFMT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(
    level=logging.INFO,
    format=BOOTSTRAP_FORMAT,
    datefmt=BOOTSTRAP_DATEFMT,
)

DEFAULT_LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(job_name)s | %(tag)s | %(threadName)s | %(message)s"
)
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_JOB_NAME = "skycast"

_CONFIGURED: bool = False


class MaxLevelFilter(logging.Filter):
    """Pass only records at or below `max_level` (routes INFO and lower to stdout)."""

    def __init__(self, max_level: int) -> None:
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        return record.levelno <= self.max_level


class EnsureTagFilter(logging.Filter):
    """
    Guarantee a `tag` attribute on every record.

    Records coming through `get_tagged_logger` already have one; records from
    third-party loggers (uvicorn, urllib3) get the last segment of their
    logger name, e.g. "urllib3.connectionpool" -> "connectionpool".
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "tag"):
            logger_name = getattr(record, "name", "")
            record.tag = logger_name.split(".")[-1] if logger_name else "-"
        return True


class JobNameFilter(logging.Filter):
    """Stamp the process-wide `job_name` onto records that lack one."""

    def __init__(self, job_name: Optional[str] = None) -> None:
        super().__init__()
        self._job_name = job_name or DEFAULT_JOB_NAME

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "job_name"):
            record.job_name = self._job_name
        return True


def build_logging_config(
    *,
    level: str | int = "INFO",
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    job_name: Optional[str] = None,
) -> Mapping[str, Any]:
    """
    Build a dictConfig-style mapping.

    DEBUG and INFO go to stdout, WARNING and above go to stderr. Both handlers
    share the same formatter and the tag/job_name filters.
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "ensure_tag": {"()": EnsureTagFilter},
            "job_name": {"()": JobNameFilter, "job_name": job_name},
            "stdout_max_info": {
                "()": MaxLevelFilter,
                "max_level": logging.INFO,
            },
        },
        "formatters": {
            "standard": {
                "format": log_format,
                "datefmt": date_format,
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "filters": ["ensure_tag", "job_name", "stdout_max_info"],
                "level": "DEBUG",
                "stream": "ext://sys.stdout",
            },
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "filters": ["ensure_tag", "job_name"],
                "level": "WARNING",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            # urllib3 logs every pooled connection at DEBUG; keep it quieter
            "urllib3": {"level": "WARNING"},
        },
        "root": {
            "level": level,
            "handlers": ["stdout", "stderr"],
        },
    }


def setup_logging(
    *,
    level: str | int = "INFO",
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    job_name: Optional[str] = None,
    override_existing: bool = False,
) -> None:
    """
    Configure application-wide logging once per process.

    Repeated calls are no-ops unless `override_existing` is True, so library
    code and the server entrypoint can both call it safely.
    """
    global _CONFIGURED

    if _CONFIGURED and not override_existing:
        return

    logging.config.dictConfig(
        build_logging_config(
            level=level,
            log_format=log_format,
            date_format=date_format,
            job_name=job_name,
        )
    )
    _CONFIGURED = True


def get_tagged_logger(
    name: str,
    *,
    tag: Optional[str] = None,
) -> logging.LoggerAdapter:
    """
    Return a LoggerAdapter that always carries a `tag` field.

    `tag` defaults to the last segment of `name`. Use the adapter like a
    normal logger; pass structured context through `extra=`.
    """
    base_logger = logging.getLogger(name)
    if tag is None:
        tag = name.split(".")[-1]
    return _TaggedAdapter(base_logger, {"tag": tag})


class _TaggedAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges call-site `extra` with the adapter's tag."""

    def process(self, msg, kwargs):
        extra = dict(self.extra)
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs

"""
Application entry points — structlog setup, API server and purge job.

Responsibilities:
  1. Configure structlog for structured logging
  2. Load and validate configuration from environment (fail fast)
  3. `cert-registry`: serve the ASGI app with Uvicorn
  4. `cert-registry-purge`: remove rejected requests past their retention period
"""

from __future__ import annotations

import logging
import sys
from typing import TypeVar

import structlog
import uvicorn

from cert_registry import __version__
from cert_registry.config import AppSettings, PurgeSettings
from cert_registry.context import build_repository, build_service

S = TypeVar("S", bound=PurgeSettings)


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for structured logging.

    Colored, human-readable key/value output on stdout, filtered at `log_level`.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _load(settings_class: type[S]) -> S:
    try:
        return settings_class()
    except Exception as e:
        print(f"FATAL: Configuration error — {e}", file=sys.stderr)  # noqa: T201
        sys.exit(1)


def load_settings() -> AppSettings:
    """Load settings or exit with status 1 on any configuration error."""
    return _load(AppSettings)


def load_purge_settings() -> PurgeSettings:
    return _load(PurgeSettings)


def main() -> None:
    """Serve the certificate API."""
    settings = load_settings()
    configure_structlog(settings.log_level)
    log = structlog.get_logger()

    log.info(
        "app.starting",
        version=__version__,
        log_level=settings.log_level,
        host=settings.server.host,
        port=settings.server.port,
    )

    uvicorn.run(
        "cert_registry.asgi:app",
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.log_level.lower(),
    )


def purge() -> None:
    """
    Remove rejected requests older than RETENTION__REJECTED_DAYS, then exit.

    Needs only the database and retention settings; no caller is ever authenticated.
    """
    settings = load_purge_settings()
    configure_structlog(settings.log_level)
    log = structlog.get_logger()

    repository = build_repository(settings)
    result = repository.init_schema().flat_map(
        lambda _: build_service(repository).purge_rejected_requests(settings.retention.rejected)
    )

    if result.is_failure():
        log.error("purge.failed", error=result.error().message)
        sys.exit(1)
    log.info("purge.completed", removed=result.value(), retention_days=settings.retention.rejected_days)


if __name__ == "__main__":
    main()

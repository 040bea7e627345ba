"""
Application context — the process-wide wiring of the registry.

Composition root: creates concrete adapters and injects them into the
service. This is the ONLY place where concrete classes are instantiated;
everything else depends on Protocol interfaces.

The context is a plain value handed to whoever needs it (the ASGI app keeps
it on `app.state`). Its lifecycle is two plain functions:

  start_context(context)  → prepare storage before serving
  stop_context(context)   → release the context on shutdown
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

import structlog
from railway.result import Result

from cert_registry import __version__
from cert_registry.adapters.events import LogEventPublisher
from cert_registry.adapters.http_client import HttpCallerResolver
from cert_registry.adapters.pem_parser import PemCertificateParser
from cert_registry.adapters.repository import PsycopgCertificateRepository
from cert_registry.config import AppSettings, PurgeSettings
from cert_registry.domain.models import utcnow
from cert_registry.domain.ports import CallerResolver, CertificateRepository
from cert_registry.service import CertificateService

log = structlog.get_logger()


def _storage_ready() -> Result[bool]:
    return Result.success(True)


@dataclass(slots=True)
class AppContext:
    service: CertificateService
    callers: CallerResolver
    init_storage: Callable[[], Result[bool]] = _storage_ready
    started_at: datetime | None = None
    version: str = __version__

    @property
    def running(self) -> bool:
        return self.started_at is not None


def build_repository(settings: PurgeSettings) -> PsycopgCertificateRepository:
    return PsycopgCertificateRepository(dsn=settings.database.get_dsn())


def build_service(repository: CertificateRepository) -> CertificateService:
    return CertificateService(
        repository=repository,
        parser=PemCertificateParser(),
        events=LogEventPublisher(),
    )


def build_context(settings: AppSettings) -> AppContext:
    """Instantiate every adapter from application settings and wire the service."""
    repository = build_repository(settings)
    service = build_service(repository)
    callers = HttpCallerResolver(
        userinfo_url=settings.auth.userinfo_url,
        role_privileges=settings.auth.role_privileges,
        username_claim=settings.auth.username_claim,
        roles_claim=settings.auth.roles_claim,
        timeout=settings.http_timeout_seconds,
    )
    return AppContext(
        service=service,
        callers=callers,
        init_storage=repository.init_schema,
    )


def start_context(context: AppContext) -> Result[AppContext]:
    """Prepare storage; the context is running once this succeeds."""
    return (
        context.init_storage()
        .map(lambda _: _mark_started(context))
        .peek(lambda ctx: log.info("context.started", version=ctx.version))
        .peek_failure(lambda failure: log.error("context.start_failed", error=failure.message))
    )


def stop_context(context: AppContext) -> None:
    if context.started_at is not None:
        uptime = (utcnow() - context.started_at).total_seconds()
        log.info("context.stopped", uptime_seconds=round(uptime, 3))
    context.started_at = None


def _mark_started(context: AppContext) -> AppContext:
    context.started_at = utcnow()
    return context

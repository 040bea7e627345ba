"""Event publisher adapter that records domain events in the structured log."""

from __future__ import annotations

import structlog

from cert_registry.domain.models import CertificateEvent

log = structlog.get_logger()


class LogEventPublisher:
    """Implements the EventPublisher port by logging each event."""

    def publish(self, event: CertificateEvent) -> None:
        log.info(
            "event.published",
            event_type=event.type.value,
            participant_id=event.participant_id,
            request_id=str(event.request_id),
            actor=event.actor,
            occurred_at=event.occurred_at.isoformat(),
        )

"""
Ports — Protocol-based interfaces for infrastructure adapters.

These define WHAT the application needs (contracts) without specifying
HOW it's done (implementation). Following hexagonal architecture:

  Domain ← Ports (protocols) ← Adapters (implementations)

Each port is a Protocol (structural typing) so adapters satisfy
the contract simply by implementing the methods — no inheritance.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol, runtime_checkable
from uuid import UUID

from railway.result import Result

from cert_registry.domain.models import (
    ApprovedCertificate,
    CallerContext,
    CertificateEvent,
    CertificateRequest,
    ParsedCertificate,
    ParticipantRequests,
    PublicKeyInfo,
)


@runtime_checkable
class CertificateRepository(Protocol):
    """
    Port: the two logical collections and every state transition between them.

      - pending requests: one document per participant, holding its upload requests
      - approved certificates: at most one document per participant

    Maker-checker separation is enforced here, not only by callers.
    Single lookups report absence as NOT_FOUND; list lookups return empty lists.
    Storage problems surface as STORAGE_UNAVAILABLE.
    """

    def create_request(self, request: CertificateRequest) -> Result[UUID]: ...

    def get_all_approved(self) -> Result[list[ApprovedCertificate]]: ...

    def get_all_public_keys(self) -> Result[list[PublicKeyInfo]]: ...

    def get_by_id(self, certificate_id: UUID) -> Result[ApprovedCertificate]: ...

    def get_by_participant_id(self, participant_id: str) -> Result[ApprovedCertificate]: ...

    def get_requests(self) -> Result[list[ParticipantRequests]]: ...

    def get_pending_requests(self) -> Result[list[ParticipantRequests]]: ...

    def get_requests_by_participant_id(self, participant_id: str) -> Result[ParticipantRequests]: ...

    def get_requests_by_participant_ids(
        self, participant_ids: Sequence[str]
    ) -> Result[list[ParticipantRequests]]: ...

    def approve(self, request_id: UUID, approved_by: str) -> Result[ApprovedCertificate]:
        """
        Promote a request: replace the participant's approved certificate and
        pull the request from its pending document, in one transaction.
        """
        ...

    def bulk_approve(
        self, request_ids: Sequence[UUID], approved_by: str
    ) -> Result[list[ApprovedCertificate]]:
        """Promote every listed request or none of them."""
        ...

    def reject(self, request_id: UUID, rejected_by: str) -> Result[CertificateRequest]: ...

    def bulk_reject(
        self, request_ids: Sequence[UUID], rejected_by: str
    ) -> Result[list[CertificateRequest]]: ...

    def delete_request(self, request_id: UUID, participant_id: str) -> Result[UUID]: ...

    def bulk_delete_requests(self, request_ids: Sequence[UUID]) -> Result[int]: ...

    def all_unique_participants(self, request_ids: Sequence[UUID]) -> Result[bool]: ...

    def purge_rejected(self, older_than: datetime) -> Result[int]:
        """Remove rejected requests whose rejection is older than `older_than`."""
        ...


@runtime_checkable
class CertificateParser(Protocol):
    """
    Port: parse PEM certificate text into derived metadata and a PEM public key.

    Structural parse success is the only validation performed.
    """

    def parse(self, pem: str) -> Result[ParsedCertificate]: ...


@runtime_checkable
class CallerResolver(Protocol):
    """Port: turn a bearer token into the caller's username and privileges."""

    def resolve(self, bearer_token: str) -> Result[CallerContext]: ...


@runtime_checkable
class EventPublisher(Protocol):
    """Port: announce domain events to interested parties."""

    def publish(self, event: CertificateEvent) -> None: ...

"""
Certificate service — the facade between the HTTP layer and storage.

Thin validation + delegation, composed with Railway-Oriented Programming:

  raw identifiers
    → validate formats (participant id, request ids, upload filename)
    → CertificateParser (uploads only)
    → CertificateRepository (all lifecycle rules live there)
    → EventPublisher (after successful create/approve/reject)

No business rule of the lifecycle is repeated here, and nothing is retried.
Every method returns Result; nothing raises.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import timedelta
from uuid import UUID

import structlog
from railway import ErrorCode
from railway.result import Result

from cert_registry.domain.models import (
    ApprovedCertificate,
    CertificateEvent,
    CertificateEventType,
    CertificateRequest,
    ParsedCertificate,
    ParticipantRequests,
    PublicKeyInfo,
    utcnow,
)
from cert_registry.domain.ports import CertificateParser, CertificateRepository, EventPublisher

log = structlog.get_logger()

PARTICIPANT_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{3,30}$")
CERTIFICATE_EXTENSIONS = ("cer", "crt", "pem")

# Path segments of fixed GET routes under /certs; `/certs/{participant_id}` can never reach them.
RESERVED_PARTICIPANT_IDS = frozenset({"requests", "public-keys"})


def validate_participant_id(participant_id: str | None) -> Result[str]:
    if not participant_id:
        return Result.failure(ErrorCode.VALIDATION_ERROR, "participantId is required")
    if not PARTICIPANT_ID_PATTERN.match(participant_id):
        return Result.failure(
            ErrorCode.VALIDATION_ERROR,
            f"Invalid participantId '{participant_id}': use 3-30 letters, digits, '-' or '_'",
        )
    if participant_id in RESERVED_PARTICIPANT_IDS:
        return Result.failure(
            ErrorCode.VALIDATION_ERROR,
            f"Invalid participantId '{participant_id}': the name is reserved",
        )
    return Result.success(participant_id)


def parse_request_id(raw: str | UUID | None) -> Result[UUID]:
    if isinstance(raw, UUID):
        return Result.success(raw)
    if not raw:
        return Result.failure(ErrorCode.VALIDATION_ERROR, "certificateId is required")
    return Result.from_computation(
        lambda: UUID(raw),
        ErrorCode.VALIDATION_ERROR,
        f"Invalid certificate id: {raw}",
    )


def parse_request_ids(raw_ids: Sequence[str | UUID] | None) -> Result[list[UUID]]:
    if not raw_ids:
        return Result.failure(ErrorCode.VALIDATION_ERROR, "certificateIds is required")
    return Result.all_of(parse_request_id(raw) for raw in raw_ids)


def validate_filename(participant_id: str, filename: str | None) -> Result[str]:
    """Uploaded files must be named `<participant_id>.(cer|crt|pem)`."""
    stem, _, extension = (filename or "").rpartition(".")
    if stem != participant_id or extension.lower() not in CERTIFICATE_EXTENSIONS:
        return Result.failure(
            ErrorCode.VALIDATION_ERROR,
            f"Invalid file uploaded. use '{participant_id}.(cer/crt/pem)' as filename.",
        )
    return Result.success(participant_id)


class CertificateService:
    """
    Facade over the certificate registry.

    Constructed with its collaborators (ports), never with concrete adapters.
    """

    def __init__(
        self,
        repository: CertificateRepository,
        parser: CertificateParser,
        events: EventPublisher,
    ) -> None:
        self._repository = repository
        self._parser = parser
        self._events = events

    # ─────────────────────── Queries ───────────────────────

    def list_certificates(self) -> Result[list[ApprovedCertificate]]:
        return self._repository.get_all_approved()

    def list_public_keys(self) -> Result[list[PublicKeyInfo]]:
        return self._repository.get_all_public_keys()

    def get_certificate(self, participant_id: str) -> Result[ApprovedCertificate]:
        return validate_participant_id(participant_id).flat_map(
            self._repository.get_by_participant_id
        )

    def get_certificate_by_id(self, certificate_id: str | UUID) -> Result[ApprovedCertificate]:
        return parse_request_id(certificate_id).flat_map(self._repository.get_by_id)

    def list_requests(self, participant_id: str | None = None) -> Result[list[ParticipantRequests]]:
        """
        All request documents, or the one document of `participant_id`.

        A participant without requests yields an empty list, not NOT_FOUND.
        """
        if participant_id is None:
            return self._repository.get_requests()
        return (
            validate_participant_id(participant_id)
            .flat_map(self._repository.get_requests_by_participant_id)
            .map(lambda document: [document])
            .recover_when(ErrorCode.NOT_FOUND, lambda _: [])
        )

    def list_requests_for(self, participant_ids: Sequence[str]) -> Result[list[ParticipantRequests]]:
        return Result.all_of(validate_participant_id(p) for p in participant_ids).flat_map(
            self._repository.get_requests_by_participant_ids
        )

    def list_pending_requests(self) -> Result[list[ParticipantRequests]]:
        return self._repository.get_pending_requests()

    # ─────────────────────── Commands ───────────────────────

    def submit_request(
        self,
        participant_id: str,
        pem: str,
        created_by: str,
        filename: str | None = None,
        description: str | None = None,
    ) -> Result[UUID]:
        """
        Parse an uploaded PEM certificate and store it as a new CREATED request.

        When `filename` is given it must be `<participant_id>.(cer|crt|pem)`.
        """
        validated = validate_participant_id(participant_id)
        if filename is not None:
            validated = validated.flat_map(lambda pid: validate_filename(pid, filename))
        return (
            validated.flat_map(lambda _: self._parser.parse(pem))
            .map(
                lambda parsed: _new_request(participant_id, pem, parsed, created_by, description)
            )
            .flat_map(self._repository.create_request)
            .peek(
                lambda request_id: self._publish(
                    CertificateEventType.REQUEST_CREATED, participant_id, request_id, created_by
                )
            )
            .peek(
                lambda request_id: log.info(
                    "service.request_submitted",
                    participant_id=participant_id,
                    request_id=str(request_id),
                    created_by=created_by,
                )
            )
        )

    def approve(self, request_id: str | UUID, approved_by: str) -> Result[ApprovedCertificate]:
        return (
            parse_request_id(request_id)
            .flat_map(lambda rid: self._repository.approve(rid, approved_by))
            .peek(self._announce_approval)
        )

    def bulk_approve(
        self, request_ids: Sequence[str | UUID], approved_by: str
    ) -> Result[list[ApprovedCertificate]]:
        """
        Approve a batch of requests of distinct participants, all or nothing.

        The uniqueness precondition is checked before the repository is asked to approve.
        """
        return (
            parse_request_ids(request_ids)
            .flat_map(
                lambda ids: self._repository.all_unique_participants(ids)
                .ensure(
                    lambda unique: unique,
                    ErrorCode.VALIDATION_ERROR,
                    "Bulk approval requires all participants to be unique",
                )
                .flat_map(lambda _: self._repository.bulk_approve(ids, approved_by))
            )
            .peek(self._announce_approvals)
            .peek(lambda certs: log.info("service.bulk_approved", count=len(certs), approved_by=approved_by))
        )

    def reject(self, request_id: str | UUID, rejected_by: str) -> Result[CertificateRequest]:
        return (
            parse_request_id(request_id)
            .flat_map(lambda rid: self._repository.reject(rid, rejected_by))
            .peek(self._announce_rejection)
        )

    def bulk_reject(
        self, request_ids: Sequence[str | UUID], rejected_by: str
    ) -> Result[list[CertificateRequest]]:
        return (
            parse_request_ids(request_ids)
            .flat_map(lambda ids: self._repository.bulk_reject(ids, rejected_by))
            .peek(self._announce_rejections)
            .peek(lambda rejected: log.info("service.bulk_rejected", count=len(rejected), rejected_by=rejected_by))
        )

    def delete_request(self, request_id: str | UUID, participant_id: str) -> Result[UUID]:
        return validate_participant_id(participant_id).flat_map(
            lambda pid: parse_request_id(request_id).flat_map(
                lambda rid: self._repository.delete_request(rid, pid)
            )
        )

    def bulk_delete_requests(self, request_ids: Sequence[str | UUID]) -> Result[int]:
        return parse_request_ids(request_ids).flat_map(self._repository.bulk_delete_requests)

    def purge_rejected_requests(self, retention: timedelta) -> Result[int]:
        """Remove rejected requests whose rejection is older than `retention`."""
        cutoff = utcnow() - retention
        return self._repository.purge_rejected(cutoff).peek(
            lambda removed: log.info(
                "service.rejected_purged", removed=removed, cutoff=cutoff.isoformat()
            )
        )

    # ─────────────────────── Events ───────────────────────

    def _announce_approval(self, cert: ApprovedCertificate) -> None:
        self._publish(
            CertificateEventType.REQUEST_APPROVED, cert.participant_id, cert.id, cert.approved_by
        )

    def _announce_approvals(self, certs: list[ApprovedCertificate]) -> None:
        for cert in certs:
            self._announce_approval(cert)

    def _announce_rejections(self, rejected: list[CertificateRequest]) -> None:
        for request in rejected:
            self._announce_rejection(request)

    def _announce_rejection(self, request: CertificateRequest) -> None:
        self._publish(
            CertificateEventType.REQUEST_REJECTED,
            request.participant_id,
            request.id,
            request.rejected_by or "",
        )

    def _publish(
        self,
        event_type: CertificateEventType,
        participant_id: str,
        request_id: UUID,
        actor: str,
    ) -> None:
        self._events.publish(
            CertificateEvent(
                type=event_type,
                participant_id=participant_id,
                request_id=request_id,
                actor=actor,
            )
        )


def _new_request(
    participant_id: str,
    pem: str,
    parsed: ParsedCertificate,
    created_by: str,
    description: str | None,
) -> CertificateRequest:
    return CertificateRequest(
        participant_id=participant_id,
        cert_data=pem,
        cert_info=parsed.cert_info,
        public_key=parsed.public_key,
        created_by=created_by,
        description=description,
    )

"""
Domain models — immutable data structures for certificate requests and approved certificates.

These are pure value objects with no behavior beyond derived flags.
State changes never mutate a model: the lifecycle rules build a new
instance with dataclasses.replace().

All models are frozen dataclasses (immutable) following functional principles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from uuid import UUID, uuid4


def utcnow() -> datetime:
    return datetime.now(UTC)


class CertType(StrEnum):
    PUBLIC = "PUBLIC"


class CertificateRequestState(StrEnum):
    """
    CREATED --approve--> APPROVED (promoted out of the pending document)
    CREATED --reject-->  REJECTED (kept in the pending document, flagged)
    """

    CREATED = "CREATED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


@dataclass(frozen=True, slots=True)
class CertificateInfo:
    """
    Metadata derived from the X.509 certificate at submission time.

    Computed once by the parser and never changed afterwards.
    """

    subject: str
    issuer: str
    valid_from: datetime
    valid_to: datetime
    serial_number: str
    public_key_algorithm: str
    signature_algorithm: str
    extensions: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ParsedCertificate:
    """Parser output: the derived metadata and the extracted PEM public key."""

    cert_info: CertificateInfo
    public_key: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class CertificateRequest:
    """
    One certificate upload attempt by a participant.

    `id`, `cert_data`, `cert_info`, `public_key`, `created_by` and
    `created_date` are fixed at submission. The approval or rejection
    fields are set exactly once, by the matching transition.
    """

    participant_id: str
    cert_data: str = field(repr=False)
    cert_info: CertificateInfo
    public_key: str = field(repr=False)
    created_by: str
    id: UUID = field(default_factory=uuid4)
    type: CertType = CertType.PUBLIC
    state: CertificateRequestState = CertificateRequestState.CREATED
    created_date: datetime = field(default_factory=utcnow)
    description: str | None = None
    approved_by: str | None = None
    approved_date: datetime | None = None
    rejected_by: str | None = None
    rejected_date: datetime | None = None

    @property
    def approved(self) -> bool:
        return self.approved_by is not None

    @property
    def rejected(self) -> bool:
        return self.rejected_by is not None

    @property
    def is_pending(self) -> bool:
        return (
            self.state is CertificateRequestState.CREATED
            and not self.approved
            and not self.rejected
        )


@dataclass(frozen=True, slots=True)
class ApprovedCertificate:
    """
    A participant's single current approved certificate.

    Created by promoting a CertificateRequest; keeps the request's id.
    """

    id: UUID
    participant_id: str
    cert_data: str = field(repr=False)
    cert_info: CertificateInfo
    public_key: str = field(repr=False)
    created_by: str
    created_date: datetime
    approved_by: str
    approved_date: datetime
    type: CertType = CertType.PUBLIC
    state: CertificateRequestState = CertificateRequestState.APPROVED
    description: str | None = None


@dataclass(frozen=True, slots=True)
class ParticipantRequests:
    """
    The pending-requests document of one participant.

    `requests` is ordered by created_date, newest first.
    """

    participant_id: str
    requests: list[CertificateRequest] = field(default_factory=list)

    def find(self, request_id: UUID) -> CertificateRequest | None:
        return next((r for r in self.requests if r.id == request_id), None)

    def pending(self) -> ParticipantRequests:
        return ParticipantRequests(
            participant_id=self.participant_id,
            requests=[r for r in self.requests if r.is_pending],
        )


@dataclass(frozen=True, slots=True)
class PublicKeyInfo:
    participant_id: str
    public_key: str


@dataclass(frozen=True, slots=True)
class CallerContext:
    """Authenticated caller: username plus the privileges granted through its roles."""

    username: str
    privileges: frozenset[str] = frozenset()

    def has_privilege(self, privilege: str) -> bool:
        return privilege in self.privileges


class CertificateEventType(StrEnum):
    REQUEST_CREATED = "CertificateRequestCreated"
    REQUEST_APPROVED = "CertificateRequestApproved"
    REQUEST_REJECTED = "CertificateRequestRejected"


@dataclass(frozen=True, slots=True)
class CertificateEvent:
    """Domain event emitted by the service after a successful state change."""

    type: CertificateEventType
    participant_id: str
    request_id: UUID
    actor: str
    occurred_at: datetime = field(default_factory=utcnow)

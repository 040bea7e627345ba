"""
PostgreSQL repository adapter — certificate requests and approved certificates.

Adapter layer — implements the CertificateRepository port using psycopg (v3)
with PostgreSQL used as a document store: every participant owns one JSONB
document of upload requests, and at most one approved-certificate document.

Tables:
  certificate_requests   participant_id PK, requests JSONB array (the pending documents)
  approved_certificates  id PK, participant_id UNIQUE, document JSONB

Every state change runs in ONE transaction:
  1. BEGIN
  2. SELECT ... FOR UPDATE the request documents involved
  3. apply the lifecycle rules (pure, no writes on failure)
  4. DELETE old approved / INSERT new approved / rewrite request documents
  5. COMMIT (or automatic ROLLBACK on any exception)

Promotion therefore never leaves a participant with zero or two approved
certificates, and concurrent decisions on one participant serialize on the
row lock.

No ORM — raw parameterized SQL for maximum control and transparency.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from typing import Any, TypeVar
from uuid import UUID

import psycopg
import structlog
from psycopg.types.json import Jsonb
from railway import ErrorCode, FailureDescription
from railway.result import Result

from cert_registry.domain import lifecycle
from cert_registry.domain.models import (
    ApprovedCertificate,
    CertificateInfo,
    CertificateRequest,
    CertificateRequestState,
    CertType,
    ParticipantRequests,
    PublicKeyInfo,
)

log = structlog.get_logger()

T = TypeVar("T")

SCHEMA = """
CREATE TABLE IF NOT EXISTS certificate_requests (
    participant_id  TEXT PRIMARY KEY,
    requests        JSONB NOT NULL DEFAULT '[]'::jsonb,
    updated_at      TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS certificate_requests_requests_idx
    ON certificate_requests USING GIN (requests jsonb_path_ops);

CREATE TABLE IF NOT EXISTS approved_certificates (
    id              UUID PRIMARY KEY,
    participant_id  TEXT NOT NULL UNIQUE,
    document        JSONB NOT NULL
);
"""

_ID_IN_USE = """
SELECT EXISTS (SELECT 1 FROM certificate_requests WHERE requests @> %s)
    OR EXISTS (SELECT 1 FROM approved_certificates WHERE id = %s)
"""

_UPSERT_REQUEST = """
INSERT INTO certificate_requests (participant_id, requests) VALUES (%s, %s)
ON CONFLICT (participant_id) DO UPDATE
SET requests = certificate_requests.requests || EXCLUDED.requests,
    updated_at = now()
"""

_UPDATE_REQUESTS = """
UPDATE certificate_requests SET requests = %s, updated_at = now()
WHERE participant_id = %s
"""

_SELECT_ALL_REQUEST_DOCS = """
SELECT participant_id, requests FROM certificate_requests
ORDER BY participant_id
"""

_SELECT_PENDING_REQUEST_DOCS = """
SELECT participant_id, requests FROM certificate_requests
WHERE requests @> %s
ORDER BY participant_id
"""

_SELECT_REQUEST_DOC = """
SELECT participant_id, requests FROM certificate_requests
WHERE participant_id = %s
"""

_SELECT_REQUEST_DOCS_BY_PARTICIPANTS = """
SELECT participant_id, requests FROM certificate_requests
WHERE participant_id = ANY(%s)
ORDER BY participant_id
"""

_SELECT_REQUEST_DOCS_CONTAINING = """
SELECT participant_id, requests FROM certificate_requests
WHERE EXISTS (
    SELECT 1 FROM jsonb_array_elements(requests) AS r WHERE r->>'id' = ANY(%s)
)
ORDER BY participant_id
"""

_LOCK_REQUEST_DOCS_CONTAINING = _SELECT_REQUEST_DOCS_CONTAINING + "FOR UPDATE\n"

_LOCK_REQUEST_DOC = _SELECT_REQUEST_DOC + "FOR UPDATE\n"

_LOCK_REQUEST_DOCS_MATCHING = """
SELECT participant_id, requests FROM certificate_requests
WHERE requests @> %s
ORDER BY participant_id
FOR UPDATE
"""

_DELETE_APPROVED_OF_PARTICIPANTS = """
DELETE FROM approved_certificates WHERE participant_id = ANY(%s)
"""

_INSERT_APPROVED = """
INSERT INTO approved_certificates (id, participant_id, document) VALUES (%s, %s, %s)
"""

_SELECT_ALL_APPROVED = """
SELECT document FROM approved_certificates ORDER BY participant_id
"""

_SELECT_APPROVED_BY_ID = """
SELECT document FROM approved_certificates WHERE id = %s
"""

_SELECT_APPROVED_BY_PARTICIPANT = """
SELECT document FROM approved_certificates WHERE participant_id = %s
"""

_SELECT_PUBLIC_KEYS = """
SELECT participant_id, document->>'public_key' FROM approved_certificates
ORDER BY participant_id
"""


class PsycopgCertificateRepository:
    """
    Persist certificate requests and approved certificates to PostgreSQL.

    Implements the CertificateRepository port.
    All exceptions are caught at this adapter boundary via Result.from_computation()
    and reported as STORAGE_UNAVAILABLE after the cause is logged.
    """

    def __init__(self, dsn: str) -> None:
        self._dsn = dsn

    def init_schema(self) -> Result[bool]:
        """Create both tables and the request index if they do not exist yet."""
        return self._read("Unable to initialise the certificate registry", self._create_schema)

    # ─────────────────────── Create ───────────────────────

    def create_request(self, request: CertificateRequest) -> Result[UUID]:
        """
        Append a CREATED request to its participant's document.

        Creates the document when the participant has none. Several pending
        requests per participant are allowed; only the id must be unused.
        """
        return lifecycle.ensure_new(request).flat_map(
            lambda valid: self._guarded(
                "Unable to add certificate request",
                lambda: self._insert_request(valid),
            )
        )

    # ─────────────────────── Approved certificates ───────────────────────

    def get_all_approved(self) -> Result[list[ApprovedCertificate]]:
        return self._read(
            "Unable to get all certificates",
            lambda: [_approved_from_document(row[0]) for row in self._fetch_all(_SELECT_ALL_APPROVED)],
        )

    def get_all_public_keys(self) -> Result[list[PublicKeyInfo]]:
        return self._read(
            "Unable to get all public keys",
            lambda: [
                PublicKeyInfo(participant_id=row[0], public_key=row[1])
                for row in self._fetch_all(_SELECT_PUBLIC_KEYS)
            ],
        )

    def get_by_id(self, certificate_id: UUID) -> Result[ApprovedCertificate]:
        return self._read(
            "Unable to get certificate by id",
            lambda: self._fetch_one(_SELECT_APPROVED_BY_ID, (certificate_id,)),
        ).flat_map(
            lambda row: Result.from_optional(
                _approved_from_document(row[0]) if row else None,
                f"Certificate not found: {certificate_id}",
            )
        )

    def get_by_participant_id(self, participant_id: str) -> Result[ApprovedCertificate]:
        return self._read(
            "Unable to get certificate by participant id",
            lambda: self._fetch_one(_SELECT_APPROVED_BY_PARTICIPANT, (participant_id,)),
        ).flat_map(
            lambda row: Result.from_optional(
                _approved_from_document(row[0]) if row else None,
                f"Certificate not found for participant: {participant_id}",
            )
        )

    # ─────────────────────── Requests ───────────────────────

    def get_requests(self) -> Result[list[ParticipantRequests]]:
        return self._read(
            "Unable to get certificate requests",
            lambda: [_document_from_row(row) for row in self._fetch_all(_SELECT_ALL_REQUEST_DOCS)],
        )

    def get_pending_requests(self) -> Result[list[ParticipantRequests]]:
        """Documents with at least one pending request, holding only their pending requests."""
        pending_filter = Jsonb(
            [{"state": CertificateRequestState.CREATED.value, "approved": False, "rejected": False}]
        )
        return self._read(
            "Unable to get pending certificate requests",
            lambda: [
                _document_from_row(row).pending()
                for row in self._fetch_all(_SELECT_PENDING_REQUEST_DOCS, (pending_filter,))
            ],
        ).map(lambda documents: [d for d in documents if d.requests])

    def get_requests_by_participant_id(self, participant_id: str) -> Result[ParticipantRequests]:
        return self._read(
            "Unable to get certificate requests by participant id",
            lambda: self._fetch_one(_SELECT_REQUEST_DOC, (participant_id,)),
        ).flat_map(
            lambda row: Result.from_optional(
                _document_from_row(row) if row else None,
                f"No certificate requests for participant: {participant_id}",
            )
        )

    def get_requests_by_participant_ids(
        self, participant_ids: Sequence[str]
    ) -> Result[list[ParticipantRequests]]:
        return self._read(
            "Unable to get certificate requests by participant ids",
            lambda: [
                _document_from_row(row)
                for row in self._fetch_all(_SELECT_REQUEST_DOCS_BY_PARTICIPANTS, (list(participant_ids),))
            ],
        )

    def all_unique_participants(self, request_ids: Sequence[UUID]) -> Result[bool]:
        """True when no two of the given requests belong to the same participant."""
        ids = _unique(request_ids)
        return self._read(
            "Unable to resolve participants of certificate requests",
            lambda: [
                _document_from_row(row)
                for row in self._fetch_all(_SELECT_REQUEST_DOCS_CONTAINING, (_id_texts(ids),))
            ],
        ).map(lambda documents: lifecycle.has_unique_participants(_collect(documents, ids)))

    # ─────────────────────── Decisions ───────────────────────

    def approve(self, request_id: UUID, approved_by: str) -> Result[ApprovedCertificate]:
        """
        Promote one request.

        Failures, in order: NOT_FOUND, self-approval (VALIDATION), not pending (VALIDATION).
        """
        return self._guarded(
            "Unable to approve certificate",
            lambda: self._decide(
                [request_id],
                lambda found: lifecycle.approve(found[0], approved_by).map(lambda cert: [cert]),
                self._promote,
            ),
        ).map(lambda certs: certs[0])

    def bulk_approve(
        self, request_ids: Sequence[UUID], approved_by: str
    ) -> Result[list[ApprovedCertificate]]:
        """
        Promote every listed request in one transaction, or none.

        The whole batch fails if any id is unknown, any request was created by
        `approved_by`, two requests share a participant, or any is not pending.
        """
        return _require_ids(request_ids).flat_map(
            lambda ids: self._guarded(
                "Unable to bulk approve certificates",
                lambda: self._decide(
                    ids,
                    lambda found: lifecycle.approve_all(found, approved_by),
                    self._promote,
                ),
            )
        )

    def reject(self, request_id: UUID, rejected_by: str) -> Result[CertificateRequest]:
        """Flag one request as rejected in place; it stays in its participant's document."""
        return self._guarded(
            "Unable to reject certificate",
            lambda: self._decide(
                [request_id],
                lambda found: lifecycle.reject(found[0], rejected_by).map(lambda r: [r]),
                self._store_rejections,
            ),
        ).map(lambda rejected: rejected[0])

    def bulk_reject(
        self, request_ids: Sequence[UUID], rejected_by: str
    ) -> Result[list[CertificateRequest]]:
        return _require_ids(request_ids).flat_map(
            lambda ids: self._guarded(
                "Unable to bulk reject certificates",
                lambda: self._decide(
                    ids,
                    lambda found: lifecycle.reject_all(found, rejected_by),
                    self._store_rejections,
                ),
            )
        )

    # ─────────────────────── Removal ───────────────────────

    def delete_request(self, request_id: UUID, participant_id: str) -> Result[UUID]:
        return self._guarded(
            "Unable to delete certificate request",
            lambda: self._delete_one(request_id, participant_id),
        )

    def bulk_delete_requests(self, request_ids: Sequence[UUID]) -> Result[int]:
        """Remove every listed request wherever it is found; unknown ids are ignored."""
        return _require_ids(request_ids).flat_map(
            lambda ids: self._guarded(
                "Unable to delete certificate requests",
                lambda: self._delete_many(ids),
            )
        )

    def purge_rejected(self, older_than: datetime) -> Result[int]:
        return self._guarded(
            "Unable to purge rejected certificate requests",
            lambda: self._purge(older_than),
        )

    # ─────────────────────── Transaction bodies ───────────────────────

    def _create_schema(self) -> bool:
        with psycopg.connect(self._dsn) as conn:
            conn.execute(SCHEMA)
        log.info("repository.schema_ready")
        return True

    def _insert_request(self, request: CertificateRequest) -> Result[UUID]:
        with self._transaction() as cur:
            cur.execute(_ID_IN_USE, (Jsonb([{"id": str(request.id)}]), request.id))
            row = cur.fetchone()
            if row and row[0]:
                return Result.failure(
                    ErrorCode.ALREADY_EXISTS,
                    f"Certificate request already exists: {request.id}",
                )
            cur.execute(
                _UPSERT_REQUEST,
                (request.participant_id, Jsonb([_request_to_document(request)])),
            )
        log.info(
            "repository.request_created",
            participant_id=request.participant_id,
            request_id=str(request.id),
        )
        return Result.success(request.id)

    def _decide(
        self,
        request_ids: Sequence[UUID],
        rule: Callable[[list[CertificateRequest]], Result[list[T]]],
        write: Callable[[psycopg.Cursor[Any], list[ParticipantRequests], list[T]], None],
    ) -> Result[list[T]]:
        """
        Lock the documents holding `request_ids`, apply `rule`, and `write` its outcome.

        Nothing is written unless every id is found and the rule succeeds.
        """
        with self._transaction() as cur:
            documents = self._lock_documents_containing(cur, request_ids)
            return (
                _find_all(documents, request_ids)
                .flat_map(rule)
                .peek(lambda outcome: write(cur, documents, outcome))
            )

    def _promote(
        self,
        cur: psycopg.Cursor[Any],
        documents: list[ParticipantRequests],
        certificates: list[ApprovedCertificate],
    ) -> None:
        """Delete-then-insert the approved documents and pull the promoted requests."""
        participant_ids = [cert.participant_id for cert in certificates]
        cur.execute(_DELETE_APPROVED_OF_PARTICIPANTS, (participant_ids,))
        replaced = cur.rowcount
        cur.executemany(
            _INSERT_APPROVED,
            [
                (cert.id, cert.participant_id, Jsonb(_approved_to_document(cert)))
                for cert in certificates
            ],
        )
        self._remove_requests(cur, documents, {cert.id for cert in certificates})
        log.info(
            "repository.approved",
            participants=participant_ids,
            request_ids=[str(cert.id) for cert in certificates],
            replaced=replaced,
            approved_by=certificates[0].approved_by,
        )

    def _store_rejections(
        self,
        cur: psycopg.Cursor[Any],
        documents: list[ParticipantRequests],
        rejected: list[CertificateRequest],
    ) -> None:
        by_id = {request.id: request for request in rejected}
        for document in documents:
            if any(r.id in by_id for r in document.requests):
                self._write_requests(
                    cur,
                    document.participant_id,
                    [by_id.get(r.id, r) for r in document.requests],
                )
        log.info(
            "repository.rejected",
            request_ids=[str(r.id) for r in rejected],
            rejected_by=rejected[0].rejected_by,
        )

    def _delete_one(self, request_id: UUID, participant_id: str) -> Result[UUID]:
        with self._transaction() as cur:
            cur.execute(_LOCK_REQUEST_DOC, (participant_id,))
            row = cur.fetchone()
            document = _document_from_row(row) if row else None
            request = document.find(request_id) if document else None
            if document is None or request is None:
                return Result.failure(
                    ErrorCode.NOT_FOUND,
                    f"Certificate request {request_id} not found for participant {participant_id}",
                )
            outcome = lifecycle.ensure_retractable([request]).peek(
                lambda _: self._remove_requests(cur, [document], {request_id})
            )
        return outcome.map(lambda _: request_id).peek(
            lambda _: log.info(
                "repository.request_deleted",
                participant_id=participant_id,
                request_id=str(request_id),
            )
        )

    def _delete_many(self, request_ids: Sequence[UUID]) -> Result[int]:
        with self._transaction() as cur:
            documents = self._lock_documents_containing(cur, request_ids)
            found = _collect(documents, request_ids)
            outcome = lifecycle.ensure_retractable(found).peek(
                lambda _: self._remove_requests(cur, documents, {r.id for r in found})
            )
        return outcome.map(len).peek(
            lambda removed: log.info("repository.requests_deleted", removed=removed)
        )

    def _purge(self, older_than: datetime) -> Result[int]:
        rejected_filter = Jsonb([{"state": CertificateRequestState.REJECTED.value}])
        with self._transaction() as cur:
            cur.execute(_LOCK_REQUEST_DOCS_MATCHING, (rejected_filter,))
            documents = [_document_from_row(row) for row in cur.fetchall()]
            stale = {
                r.id
                for document in documents
                for r in document.requests
                if r.state is CertificateRequestState.REJECTED
                and r.rejected_date is not None
                and r.rejected_date < older_than
            }
            if stale:
                self._remove_requests(cur, documents, stale)
        log.info("repository.rejected_purged", removed=len(stale), older_than=older_than.isoformat())
        return Result.success(len(stale))

    # ─────────────────────── Low-level helpers ───────────────────────

    @contextmanager
    def _transaction(self) -> Iterator[psycopg.Cursor[Any]]:
        with psycopg.connect(self._dsn) as conn, conn.transaction(), conn.cursor() as cur:
            yield cur

    def _fetch_all(self, query: str, params: tuple[Any, ...] = ()) -> list[tuple[Any, ...]]:
        with psycopg.connect(self._dsn) as conn, conn.cursor() as cur:
            cur.execute(query, params)
            return cur.fetchall()

    def _fetch_one(self, query: str, params: tuple[Any, ...]) -> tuple[Any, ...] | None:
        with psycopg.connect(self._dsn) as conn, conn.cursor() as cur:
            cur.execute(query, params)
            return cur.fetchone()

    def _lock_documents_containing(
        self, cur: psycopg.Cursor[Any], request_ids: Sequence[UUID]
    ) -> list[ParticipantRequests]:
        cur.execute(_LOCK_REQUEST_DOCS_CONTAINING, (_id_texts(request_ids),))
        return [_document_from_row(row) for row in cur.fetchall()]

    def _remove_requests(
        self,
        cur: psycopg.Cursor[Any],
        documents: list[ParticipantRequests],
        request_ids: set[UUID],
    ) -> None:
        for document in documents:
            remaining = [r for r in document.requests if r.id not in request_ids]
            if len(remaining) != len(document.requests):
                self._write_requests(cur, document.participant_id, remaining)

    def _write_requests(
        self,
        cur: psycopg.Cursor[Any],
        participant_id: str,
        requests: list[CertificateRequest],
    ) -> None:
        cur.execute(
            _UPDATE_REQUESTS,
            (Jsonb([_request_to_document(r) for r in requests]), participant_id),
        )

    def _read(self, message: str, computation: Callable[[], T]) -> Result[T]:
        return Result.from_computation(
            computation, ErrorCode.STORAGE_UNAVAILABLE, message
        ).peek_failure(_log_storage_failure)

    def _guarded(self, message: str, computation: Callable[[], Result[T]]) -> Result[T]:
        """Run a Result-returning transaction body; exceptions become STORAGE_UNAVAILABLE."""
        return self._read(message, computation).flat_map(lambda outcome: outcome)


# ─────────────────────── Pure helpers ───────────────────────


def _log_storage_failure(failure: FailureDescription) -> None:
    log.error(
        "repository.storage_failed",
        message=failure.message,
        error=repr(failure.exception),
    )


def _unique(request_ids: Sequence[UUID]) -> list[UUID]:
    return list(dict.fromkeys(request_ids))


def _id_texts(request_ids: Sequence[UUID]) -> list[str]:
    return [str(request_id) for request_id in request_ids]


def _require_ids(request_ids: Sequence[UUID]) -> Result[list[UUID]]:
    ids = _unique(request_ids)
    if not ids:
        return Result.failure(
            ErrorCode.VALIDATION_ERROR, "At least one certificate request id is required"
        )
    return Result.success(ids)


def _collect(
    documents: list[ParticipantRequests], request_ids: Sequence[UUID]
) -> list[CertificateRequest]:
    wanted = set(request_ids)
    return [r for document in documents for r in document.requests if r.id in wanted]


def _find_all(
    documents: list[ParticipantRequests], request_ids: Sequence[UUID]
) -> Result[list[CertificateRequest]]:
    """Resolve every id to its request, in the given order; any miss is NOT_FOUND."""
    by_id = {r.id: r for document in documents for r in document.requests}
    missing = [str(request_id) for request_id in request_ids if request_id not in by_id]
    if missing:
        return Result.failure(
            ErrorCode.NOT_FOUND, "Certificate request not found: " + ", ".join(missing)
        )
    return Result.success([by_id[request_id] for request_id in request_ids])


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _info_to_document(info: CertificateInfo) -> dict[str, Any]:
    return {
        "subject": info.subject,
        "issuer": info.issuer,
        "valid_from": info.valid_from.isoformat(),
        "valid_to": info.valid_to.isoformat(),
        "serial_number": info.serial_number,
        "public_key_algorithm": info.public_key_algorithm,
        "signature_algorithm": info.signature_algorithm,
        "extensions": dict(info.extensions),
    }


def _info_from_document(doc: dict[str, Any]) -> CertificateInfo:
    return CertificateInfo(
        subject=doc["subject"],
        issuer=doc["issuer"],
        valid_from=datetime.fromisoformat(doc["valid_from"]),
        valid_to=datetime.fromisoformat(doc["valid_to"]),
        serial_number=doc["serial_number"],
        public_key_algorithm=doc["public_key_algorithm"],
        signature_algorithm=doc["signature_algorithm"],
        extensions=dict(doc.get("extensions") or {}),
    )


def _request_to_document(request: CertificateRequest) -> dict[str, Any]:
    return {
        "id": str(request.id),
        "participant_id": request.participant_id,
        "type": request.type.value,
        "cert_data": request.cert_data,
        "cert_info": _info_to_document(request.cert_info),
        "public_key": request.public_key,
        "state": request.state.value,
        "description": request.description,
        "created_by": request.created_by,
        "created_date": request.created_date.isoformat(),
        "approved": request.approved,
        "approved_by": request.approved_by,
        "approved_date": _iso(request.approved_date),
        "rejected": request.rejected,
        "rejected_by": request.rejected_by,
        "rejected_date": _iso(request.rejected_date),
    }


def _request_from_document(doc: dict[str, Any]) -> CertificateRequest:
    return CertificateRequest(
        id=UUID(doc["id"]),
        participant_id=doc["participant_id"],
        type=CertType(doc["type"]),
        cert_data=doc["cert_data"],
        cert_info=_info_from_document(doc["cert_info"]),
        public_key=doc["public_key"],
        state=CertificateRequestState(doc["state"]),
        description=doc.get("description"),
        created_by=doc["created_by"],
        created_date=datetime.fromisoformat(doc["created_date"]),
        approved_by=doc.get("approved_by"),
        approved_date=_parse_datetime(doc.get("approved_date")),
        rejected_by=doc.get("rejected_by"),
        rejected_date=_parse_datetime(doc.get("rejected_date")),
    )


def _document_from_row(row: tuple[Any, ...]) -> ParticipantRequests:
    participant_id, requests = row
    parsed = [_request_from_document(doc) for doc in requests]
    parsed.sort(key=lambda r: r.created_date, reverse=True)
    return ParticipantRequests(participant_id=participant_id, requests=parsed)


def _approved_to_document(cert: ApprovedCertificate) -> dict[str, Any]:
    return {
        "id": str(cert.id),
        "participant_id": cert.participant_id,
        "type": cert.type.value,
        "cert_data": cert.cert_data,
        "cert_info": _info_to_document(cert.cert_info),
        "public_key": cert.public_key,
        "state": cert.state.value,
        "description": cert.description,
        "created_by": cert.created_by,
        "created_date": cert.created_date.isoformat(),
        "approved": True,
        "approved_by": cert.approved_by,
        "approved_date": cert.approved_date.isoformat(),
    }


def _approved_from_document(doc: dict[str, Any]) -> ApprovedCertificate:
    return ApprovedCertificate(
        id=UUID(doc["id"]),
        participant_id=doc["participant_id"],
        type=CertType(doc["type"]),
        cert_data=doc["cert_data"],
        cert_info=_info_from_document(doc["cert_info"]),
        public_key=doc["public_key"],
        description=doc.get("description"),
        created_by=doc["created_by"],
        created_date=datetime.fromisoformat(doc["created_date"]),
        approved_by=doc["approved_by"],
        approved_date=datetime.fromisoformat(doc["approved_date"]),
    )

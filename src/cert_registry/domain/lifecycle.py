"""
Lifecycle rules — the certificate request state machine and maker-checker separation.

Domain layer — PURE BUSINESS LOGIC. No side effects, no I/O.
The repository loads documents, runs these rules inside its transaction,
and only writes when they succeed:

  CREATED --approve--> APPROVED  (promoted to the approved store, pulled from pending)
  CREATED --reject-->  REJECTED  (flagged in place)

No transition leaves APPROVED or REJECTED. The user who created a request
may never approve or reject it.

Check order for a single request: maker-checker, then pending state.
Batches apply maker-checker across the whole batch before any per-request rule.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime

from railway import ErrorCode
from railway.result import Result

from cert_registry.domain.models import (
    ApprovedCertificate,
    CertificateRequest,
    CertificateRequestState,
    utcnow,
)


def ensure_new(request: CertificateRequest) -> Result[CertificateRequest]:
    """A request entering the store must be a fresh CREATED request with its identity fields set."""
    if not request.participant_id:
        return Result.failure(ErrorCode.VALIDATION_ERROR, "participantId is required")
    if not request.created_by:
        return Result.failure(ErrorCode.VALIDATION_ERROR, "createdBy is required")
    if not request.is_pending or request.approved_date or request.rejected_date:
        return Result.failure(
            ErrorCode.VALIDATION_ERROR,
            "New certificate requests must be in CREATED state without a decision",
        )
    if request.created_date.tzinfo is None:
        # stored documents are ordered by created_date; naive and aware values do not compare
        return Result.failure(ErrorCode.VALIDATION_ERROR, "createdDate must carry a timezone")
    return Result.success(request)


def ensure_maker_checker(
    request: CertificateRequest,
    user: str,
    action: str,
) -> Result[CertificateRequest]:
    if not user:
        return Result.failure(ErrorCode.VALIDATION_ERROR, f"The user who {action} is required")
    if request.created_by == user:
        return Result.failure(
            ErrorCode.VALIDATION_ERROR,
            f"Certificate request cannot be {action} by the same user who created it",
        )
    return Result.success(request)


def ensure_pending(request: CertificateRequest) -> Result[CertificateRequest]:
    if not request.is_pending:
        return Result.failure(
            ErrorCode.VALIDATION_ERROR,
            f"Certificate request {request.id} is already {request.state.value.lower()}",
        )
    return Result.success(request)


def approve(
    request: CertificateRequest,
    approved_by: str,
    at: datetime | None = None,
) -> Result[ApprovedCertificate]:
    """Promote a pending request into the participant's approved certificate."""
    approved_date = at or utcnow()
    return (
        ensure_maker_checker(request, approved_by, "approved")
        .flat_map(ensure_pending)
        .map(lambda r: _promote(r, approved_by, approved_date))
    )


def reject(
    request: CertificateRequest,
    rejected_by: str,
    at: datetime | None = None,
) -> Result[CertificateRequest]:
    """Flag a pending request as rejected; it stays in its participant's document."""
    rejected_date = at or utcnow()
    return (
        ensure_maker_checker(request, rejected_by, "rejected")
        .flat_map(ensure_pending)
        .map(
            lambda r: replace(
                r,
                state=CertificateRequestState.REJECTED,
                rejected_by=rejected_by,
                rejected_date=rejected_date,
            )
        )
    )


def ensure_batch_maker_checker(
    requests: Sequence[CertificateRequest],
    user: str,
    action: str,
) -> Result[list[CertificateRequest]]:
    """Any request in the batch created by `user` fails the entire batch."""
    return Result.all_of(ensure_maker_checker(r, user, action) for r in requests)


def has_unique_participants(requests: Sequence[CertificateRequest]) -> bool:
    return len({r.participant_id for r in requests}) == len(requests)


def ensure_unique_participants(
    requests: Sequence[CertificateRequest],
) -> Result[list[CertificateRequest]]:
    if not has_unique_participants(requests):
        duplicated = sorted(p for p, n in Counter(r.participant_id for r in requests).items() if n > 1)
        return Result.failure(
            ErrorCode.VALIDATION_ERROR,
            "Bulk approval requires all participants to be unique: " + ", ".join(duplicated),
        )
    return Result.success(list(requests))


def approve_all(
    requests: Sequence[CertificateRequest],
    approved_by: str,
    at: datetime | None = None,
) -> Result[list[ApprovedCertificate]]:
    approved_date = at or utcnow()
    return (
        ensure_batch_maker_checker(requests, approved_by, "approved")
        .flat_map(ensure_unique_participants)
        .flat_map(lambda batch: Result.all_of(approve(r, approved_by, approved_date) for r in batch))
    )


def reject_all(
    requests: Sequence[CertificateRequest],
    rejected_by: str,
    at: datetime | None = None,
) -> Result[list[CertificateRequest]]:
    rejected_date = at or utcnow()
    return ensure_batch_maker_checker(requests, rejected_by, "rejected").flat_map(
        lambda batch: Result.all_of(reject(r, rejected_by, rejected_date) for r in batch)
    )


def ensure_retractable(
    requests: Sequence[CertificateRequest],
) -> Result[list[CertificateRequest]]:
    """
    Deleting must never retract a request that already carries an approval decision.

    Promotion pulls approved requests out of their participant's document, so
    requests read from storage are pending or rejected and pass. This only
    fails for requests built elsewhere or documents written outside these rules.
    """
    for request in requests:
        if request.approved or request.state is CertificateRequestState.APPROVED:
            return Result.failure(
                ErrorCode.VALIDATION_ERROR,
                f"Certificate request {request.id} cannot be deleted once it has been approved",
            )
    return Result.success(list(requests))


def _promote(
    request: CertificateRequest,
    approved_by: str,
    approved_date: datetime,
) -> ApprovedCertificate:
    return ApprovedCertificate(
        id=request.id,
        participant_id=request.participant_id,
        cert_data=request.cert_data,
        cert_info=request.cert_info,
        public_key=request.public_key,
        created_by=request.created_by,
        created_date=request.created_date,
        approved_by=approved_by,
        approved_date=approved_date,
        type=request.type,
        description=request.description,
    )

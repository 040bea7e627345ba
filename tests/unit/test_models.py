"""
Unit tests for domain models — frozen dataclasses and derived flags.
"""

from __future__ import annotations

import dataclasses
from datetime import UTC, datetime
from uuid import UUID

import pytest

from cert_registry.domain.models import (
    CallerContext,
    CertificateEvent,
    CertificateEventType,
    CertificateRequestState,
    CertType,
    ParticipantRequests,
)
from cert_registry.domain.privileges import CertificatePrivilege

from tests.factories import make_request


class TestCertificateRequest:
    def test_defaults_describe_a_fresh_upload(self) -> None:
        """
        GIVEN a request built with only its submission fields
        THEN it has a generated UUID, type PUBLIC, state CREATED, no decision
        AND a timezone-aware creation timestamp.
        """
        request = make_request()

        assert isinstance(request.id, UUID)
        assert request.type is CertType.PUBLIC
        assert request.state is CertificateRequestState.CREATED
        assert request.approved_by is None and request.rejected_by is None
        assert request.created_date.tzinfo is not None
        assert request.is_pending
        assert not request.approved
        assert not request.rejected

    def test_each_request_gets_its_own_id(self) -> None:
        assert make_request().id != make_request().id

    def test_is_frozen(self) -> None:
        request = make_request()
        with pytest.raises(dataclasses.FrozenInstanceError):
            request.state = CertificateRequestState.APPROVED  # type: ignore[misc]

    def test_repr_hides_certificate_material(self) -> None:
        assert "BEGIN CERTIFICATE" not in repr(make_request())

    def test_rejected_flag_follows_rejected_by(self) -> None:
        request = make_request(
            state=CertificateRequestState.REJECTED,
            rejected_by="dave",
            rejected_date=datetime(2026, 1, 2, tzinfo=UTC),
        )
        assert request.rejected
        assert not request.is_pending


class TestParticipantRequests:
    def test_find_returns_matching_request(self) -> None:
        first, second = make_request(), make_request()
        document = ParticipantRequests("dfsp-1", [first, second])

        assert document.find(second.id) is second
        assert document.find(make_request().id) is None

    def test_pending_keeps_only_undecided_requests(self) -> None:
        """
        GIVEN a document with one pending and one rejected request
        WHEN pending() is called
        THEN only the pending request remains.
        """
        pending = make_request()
        rejected = make_request(
            state=CertificateRequestState.REJECTED,
            rejected_by="dave",
            rejected_date=datetime(2026, 1, 2, tzinfo=UTC),
        )
        document = ParticipantRequests("dfsp-1", [pending, rejected])

        assert document.pending().requests == [pending]
        assert document.pending().participant_id == "dfsp-1"


class TestCallerContext:
    def test_has_privilege(self) -> None:
        caller = CallerContext("bob", frozenset({CertificatePrivilege.VIEW_CERTIFICATES.value}))

        assert caller.has_privilege(CertificatePrivilege.VIEW_CERTIFICATES)
        assert not caller.has_privilege(CertificatePrivilege.APPROVE_CERTIFICATE_REQUEST)

    def test_privilege_values_are_stable(self) -> None:
        assert CertificatePrivilege.CREATE_CERTIFICATE_REQUEST == "CERTIFICATES_CREATE_REQUEST"


class TestCertificateEvent:
    def test_event_type_names(self) -> None:
        event = CertificateEvent(
            type=CertificateEventType.REQUEST_CREATED,
            participant_id="dfsp-1",
            request_id=make_request().id,
            actor="alice",
        )
        assert event.type.value == "CertificateRequestCreated"
        assert event.occurred_at.tzinfo is UTC

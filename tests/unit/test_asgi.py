"""
Unit tests for the FastAPI ASGI application — REST endpoints.

Uses FastAPI's TestClient with an AppContext whose service and caller
resolver are MagicMocks: no database, no identity provider.

Covers:
  - /health and /info probes
  - bearer authentication (401) and privilege enforcement (403)
  - every certificate route's delegation and JSON rendering
  - ErrorCode → HTTP status mapping of service failures
"""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from railway import ErrorCode, Result

from cert_registry.asgi import create_app, to_json
from cert_registry.context import AppContext
from cert_registry.domain import lifecycle
from cert_registry.domain.models import CallerContext, ParticipantRequests, PublicKeyInfo
from cert_registry.domain.privileges import CertificatePrivilege

from tests.factories import make_request

AUTH = {"Authorization": "Bearer test-token"}
ALL_PRIVILEGES = frozenset(p.value for p in CertificatePrivilege)


@pytest.fixture()
def service() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def callers() -> MagicMock:
    mock = MagicMock()
    mock.resolve.return_value = Result.success(CallerContext("bob", ALL_PRIVILEGES))
    return mock


@pytest.fixture()
def context(service: MagicMock, callers: MagicMock) -> AppContext:
    return AppContext(service=service, callers=callers)


@pytest.fixture()
def client(context: AppContext) -> Iterator[TestClient]:
    """TestClient with the lifespan run, so the context is started."""
    with TestClient(create_app(context), raise_server_exceptions=False) as test_client:
        yield test_client


def _grant(callers: MagicMock, *privileges: CertificatePrivilege) -> None:
    callers.resolve.return_value = Result.success(
        CallerContext("bob", frozenset(p.value for p in privileges))
    )


# ─────────────────────── Probes ───────────────────────


class TestProbes:
    def test_health_is_200_once_started(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_health_is_503_before_startup(self, context: AppContext) -> None:
        """
        GIVEN the lifespan has not run
        WHEN GET /health is called
        THEN it returns 503.
        """
        response = TestClient(create_app(context)).get("/health")
        assert response.status_code == 503

    def test_info_reports_version_and_start_time(self, client: TestClient) -> None:
        body = client.get("/info").json()

        assert body["name"] == "cert-registry"
        assert body["version"] == "0.1.0"
        assert body["started_at"] is not None

    def test_probes_need_no_token(self, client: TestClient, callers: MagicMock) -> None:
        client.get("/health")
        callers.resolve.assert_not_called()

    def test_startup_failure_aborts_lifespan(self, service: MagicMock, callers: MagicMock) -> None:
        """
        GIVEN storage preparation fails
        WHEN the application starts
        THEN startup raises instead of serving.
        """
        context = AppContext(
            service=service,
            callers=callers,
            init_storage=lambda: Result.failure(ErrorCode.STORAGE_UNAVAILABLE, "down"),
        )
        with pytest.raises(RuntimeError, match="down"):
            with TestClient(create_app(context)):
                pass


# ─────────────────────── Authentication & authorization ───────────────────────


class TestSecurity:
    def test_missing_token_is_401(self, client: TestClient, service: MagicMock) -> None:
        """
        GIVEN no Authorization header
        WHEN GET /certs is called
        THEN it returns 401 AUTHENTICATION_ERROR and the service is not called.
        """
        response = client.get("/certs")

        assert response.status_code == 401
        assert response.json()["error_code"] == "AUTHENTICATION_ERROR"
        service.list_certificates.assert_not_called()

    def test_non_bearer_scheme_is_401(self, client: TestClient) -> None:
        response = client.get("/certs", headers={"Authorization": "Basic Ym9iOnNlY3JldA=="})
        assert response.status_code == 401

    def test_rejected_token_is_401(self, client: TestClient, callers: MagicMock) -> None:
        callers.resolve.return_value = Result.failure(
            ErrorCode.AUTHENTICATION_ERROR, "Invalid or expired token"
        )

        response = client.get("/certs", headers=AUTH)

        assert response.status_code == 401
        callers.resolve.assert_called_once_with("test-token")

    def test_missing_privilege_is_403(
        self, client: TestClient, callers: MagicMock, service: MagicMock
    ) -> None:
        """
        GIVEN a caller holding only the view privilege
        WHEN POST /certs/{id}/approve is called
        THEN it returns 403 naming the approve privilege.
        """
        _grant(callers, CertificatePrivilege.VIEW_CERTIFICATES)

        response = client.post(f"/certs/{uuid4()}/approve", headers=AUTH)

        assert response.status_code == 403
        assert "CERTIFICATES_APPROVE_REQUEST" in response.json()["message"]
        service.approve.assert_not_called()

    def test_identity_provider_outage_is_502(self, client: TestClient, callers: MagicMock) -> None:
        callers.resolve.return_value = Result.failure(
            ErrorCode.EXTERNAL_SERVICE_ERROR, "Identity provider request failed"
        )
        assert client.get("/certs", headers=AUTH).status_code == 502


# ─────────────────────── Queries ───────────────────────


class TestQueries:
    def test_list_certificates(self, client: TestClient, service: MagicMock) -> None:
        """
        GIVEN one approved certificate
        WHEN GET /certs is called
        THEN it returns 200 with camelCase JSON of the certificate.
        """
        cert = lifecycle.approve(make_request("dfsp-1"), "bob").value()
        service.list_certificates.return_value = Result.success([cert])

        response = client.get("/certs", headers=AUTH)

        assert response.status_code == 200
        [body] = response.json()
        assert body["id"] == str(cert.id)
        assert body["participantId"] == "dfsp-1"
        assert body["approvedBy"] == "bob"
        assert body["state"] == "APPROVED"
        assert body["certInfo"]["serialNumber"] == "4242"

    def test_list_public_keys(self, client: TestClient, service: MagicMock) -> None:
        service.list_public_keys.return_value = Result.success(
            [PublicKeyInfo(participant_id="dfsp-1", public_key="PEM")]
        )

        response = client.get("/certs/public-keys", headers=AUTH)

        assert response.json() == [{"participantId": "dfsp-1", "publicKey": "PEM"}]

    def test_list_requests_for_participant(self, client: TestClient, service: MagicMock) -> None:
        request = make_request("dfsp-1")
        service.list_requests.return_value = Result.success(
            [ParticipantRequests("dfsp-1", [request])]
        )

        response = client.get("/certs/requests", params={"participantId": "dfsp-1"}, headers=AUTH)

        service.list_requests.assert_called_once_with("dfsp-1")
        [document] = response.json()
        assert document["participantId"] == "dfsp-1"
        assert document["requests"][0]["id"] == str(request.id)
        assert document["requests"][0]["approved"] is False
        assert document["requests"][0]["rejected"] is False

    def test_list_all_requests(self, client: TestClient, service: MagicMock) -> None:
        service.list_requests.return_value = Result.success([])

        assert client.get("/certs/requests", headers=AUTH).json() == []
        service.list_requests.assert_called_once_with(None)

    def test_list_pending_requests(self, client: TestClient, service: MagicMock) -> None:
        service.list_pending_requests.return_value = Result.success([])

        response = client.get("/certs/requests/pending", headers=AUTH)

        assert response.status_code == 200
        service.list_pending_requests.assert_called_once_with()

    def test_get_certificate_not_found_is_404(self, client: TestClient, service: MagicMock) -> None:
        service.get_certificate.return_value = Result.failure(
            ErrorCode.NOT_FOUND, "Certificate not found for participant: dfsp-1"
        )

        response = client.get("/certs/dfsp-1", headers=AUTH)

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"
        service.get_certificate.assert_called_once_with("dfsp-1")

    def test_download_public_key(self, client: TestClient, service: MagicMock) -> None:
        """
        GIVEN an approved certificate of dfsp-1
        WHEN GET /certs/download/{id} is called
        THEN the public key is returned as a dfsp-1.pem attachment.
        """
        cert = lifecycle.approve(make_request("dfsp-1"), "bob").value()
        service.get_certificate_by_id.return_value = Result.success(cert)

        response = client.get(f"/certs/download/{cert.id}", headers=AUTH)

        assert response.status_code == 200
        assert response.text == cert.public_key
        assert response.headers["content-type"].startswith("application/x-pem-file")
        assert 'filename="dfsp-1.pem"' in response.headers["content-disposition"]

    def test_download_unknown_certificate_is_404(
        self, client: TestClient, service: MagicMock
    ) -> None:
        service.get_certificate_by_id.return_value = Result.failure(
            ErrorCode.NOT_FOUND, "Certificate not found"
        )
        assert client.get(f"/certs/download/{uuid4()}", headers=AUTH).status_code == 404

    def test_storage_outage_is_503(self, client: TestClient, service: MagicMock) -> None:
        service.list_certificates.return_value = Result.failure(
            ErrorCode.STORAGE_UNAVAILABLE, "Unable to get all certificates"
        )
        assert client.get("/certs", headers=AUTH).status_code == 503


# ─────────────────────── Commands ───────────────────────


class TestUpload:
    def test_upload_creates_request(self, client: TestClient, service: MagicMock, pem: str) -> None:
        """
        GIVEN a caller bob with the create privilege
        WHEN POST /certs/file uploads dfsp-1.pem for participant dfsp-1
        THEN it returns 201 with the new request id
        AND the service receives the PEM text, bob as creator and the filename.
        """
        request_id = uuid4()
        service.submit_request.return_value = Result.success(request_id)

        response = client.post(
            "/certs/file",
            data={"participantId": "dfsp-1"},
            files={"cert": ("dfsp-1.pem", pem.encode("ascii"), "application/x-pem-file")},
            headers=AUTH,
        )

        assert response.status_code == 201
        assert response.json() == {"id": str(request_id)}
        service.submit_request.assert_called_once_with(
            "dfsp-1", pem, created_by="bob", filename="dfsp-1.pem", description=None
        )

    def test_upload_without_file_is_400(self, client: TestClient, service: MagicMock) -> None:
        response = client.post("/certs/file", data={"participantId": "dfsp-1"}, headers=AUTH)

        assert response.status_code == 400
        assert response.json()["message"] == "No file uploaded"
        service.submit_request.assert_not_called()

    def test_binary_upload_is_invalid_certificate_data(
        self, client: TestClient, service: MagicMock
    ) -> None:
        response = client.post(
            "/certs/file",
            data={"participantId": "dfsp-1"},
            files={"cert": ("dfsp-1.cer", b"\xff\xfe\x00\x81", "application/octet-stream")},
            headers=AUTH,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid certificate data"

    def test_upload_requires_create_privilege(
        self, client: TestClient, callers: MagicMock, pem: str
    ) -> None:
        _grant(callers, CertificatePrivilege.VIEW_CERTIFICATES)

        response = client.post(
            "/certs/file",
            data={"participantId": "dfsp-1"},
            files={"cert": ("dfsp-1.pem", pem.encode("ascii"))},
            headers=AUTH,
        )

        assert response.status_code == 403


class TestDecisions:
    def test_approve(self, client: TestClient, service: MagicMock) -> None:
        cert = lifecycle.approve(make_request("dfsp-1"), "bob").value()
        service.approve.return_value = Result.success(cert)

        response = client.post(f"/certs/{cert.id}/approve", headers=AUTH)

        assert response.status_code == 200
        assert response.json()["approvedBy"] == "bob"
        service.approve.assert_called_once_with(str(cert.id), "bob")

    def test_self_approval_is_400(self, client: TestClient, service: MagicMock) -> None:
        service.approve.return_value = Result.failure(
            ErrorCode.VALIDATION_ERROR,
            "Certificate request cannot be approved by the same user who created it",
        )

        response = client.post(f"/certs/{uuid4()}/approve", headers=AUTH)

        assert response.status_code == 400
        assert "same user" in response.json()["message"]

    def test_bulk_approve(self, client: TestClient, service: MagicMock) -> None:
        ids = [str(uuid4()), str(uuid4())]
        service.bulk_approve.return_value = Result.success([])

        response = client.post("/certs/bulkapprove", json={"certificateIds": ids}, headers=AUTH)

        assert response.status_code == 200
        service.bulk_approve.assert_called_once_with(ids, "bob")

    @pytest.mark.parametrize("body", [{}, {"certificateIds": []}, {"ids": ["x"]}])
    def test_bulk_approve_requires_certificate_ids(
        self, client: TestClient, service: MagicMock, body: dict[str, object]
    ) -> None:
        response = client.post("/certs/bulkapprove", json=body, headers=AUTH)

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"
        service.bulk_approve.assert_not_called()

    def test_reject(self, client: TestClient, service: MagicMock) -> None:
        rejected = lifecycle.reject(make_request(created_by="carol"), "bob").value()
        service.reject.return_value = Result.success(rejected)

        response = client.post(f"/certs/{rejected.id}/reject", headers=AUTH)

        assert response.status_code == 200
        assert response.json()["state"] == "REJECTED"
        assert response.json()["rejected"] is True

    def test_bulk_reject(self, client: TestClient, service: MagicMock) -> None:
        ids = [str(uuid4())]
        service.bulk_reject.return_value = Result.success([])

        response = client.post("/certs/bulkreject", json={"certificateIds": ids}, headers=AUTH)

        assert response.status_code == 200
        service.bulk_reject.assert_called_once_with(ids, "bob")

    def test_reject_requires_reject_privilege(self, client: TestClient, callers: MagicMock) -> None:
        _grant(callers, CertificatePrivilege.APPROVE_CERTIFICATE_REQUEST)
        assert client.post(f"/certs/{uuid4()}/reject", headers=AUTH).status_code == 403


class TestToJson:
    def test_renders_nested_dataclasses_in_camel_case(self) -> None:
        request = make_request("dfsp-1")
        body = to_json(ParticipantRequests("dfsp-1", [request]))

        assert body["participantId"] == "dfsp-1"
        assert body["requests"][0]["createdBy"] == "alice"
        assert body["requests"][0]["certInfo"]["validFrom"] == "2026-01-01T00:00:00+00:00"
        assert body["requests"][0]["type"] == "PUBLIC"

"""Privileges a caller's roles must grant before a certificate route runs."""

from __future__ import annotations

from enum import StrEnum


class CertificatePrivilege(StrEnum):
    VIEW_CERTIFICATES = "CERTIFICATES_VIEW_CERTIFICATES"
    """Retrieve approved certificates, public keys and requests."""

    CREATE_CERTIFICATE_REQUEST = "CERTIFICATES_CREATE_REQUEST"
    """Submit a new certificate request."""

    APPROVE_CERTIFICATE_REQUEST = "CERTIFICATES_APPROVE_REQUEST"
    """Approve (promote) certificate requests."""

    REJECT_CERTIFICATE_REQUEST = "CERTIFICATES_REJECT_REQUEST"
    """Reject certificate requests."""

"""
PEM certificate parser adapter — X.509 metadata and public key extraction.

Adapter layer — implements the CertificateParser port using:
  - cryptography (PyCA): PEM loading, validity window, serial number,
    SubjectPublicKeyInfo export as a PEM "PUBLIC KEY"
  - asn1crypto: human-readable names for subject/issuer attributes,
    key and signature algorithms, and extension values

Pipeline:
  PEM text
    → cryptography: x509.load_pem_x509_certificate()
    → asn1crypto: x509.Certificate.load(DER) for friendly names
    → ParsedCertificate (domain model)

Structural parse success is the only validation: expired or self-signed
certificates are accepted.
"""

from __future__ import annotations

import structlog
from asn1crypto import x509 as asn1_x509
from cryptography import x509
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from railway import ErrorCode
from railway.result import Result

from cert_registry.domain.models import CertificateInfo, ParsedCertificate

log = structlog.get_logger()

INVALID_CERTIFICATE = "Invalid certificate data"


def _extensions(cert: asn1_x509.Certificate) -> dict[str, str]:
    extensions = cert["tbs_certificate"]["extensions"]
    if not extensions:
        return {}
    return {ext["extn_id"].native: str(ext["extn_value"].native) for ext in extensions}


def _certificate_info(cert: x509.Certificate, asn1_cert: asn1_x509.Certificate) -> CertificateInfo:
    tbs = asn1_cert["tbs_certificate"]
    return CertificateInfo(
        subject=asn1_cert.subject.human_friendly,
        issuer=asn1_cert.issuer.human_friendly,
        valid_from=cert.not_valid_before_utc,
        valid_to=cert.not_valid_after_utc,
        serial_number=str(cert.serial_number),
        public_key_algorithm=tbs["subject_public_key_info"]["algorithm"]["algorithm"].native,
        signature_algorithm=asn1_cert["signature_algorithm"]["algorithm"].native,
        extensions=_extensions(asn1_cert),
    )


class PemCertificateParser:
    """
    Parse PEM-encoded X.509 certificates.

    Implements the CertificateParser port.
    Every parse error is reported as VALIDATION_ERROR "Invalid certificate data".
    """

    def parse(self, pem: str) -> Result[ParsedCertificate]:
        return Result.from_computation(
            lambda: self._do_parse(pem),
            ErrorCode.VALIDATION_ERROR,
            INVALID_CERTIFICATE,
        ).peek_failure(
            lambda failure: log.warning("parser.invalid_certificate", error=repr(failure.exception))
        )

    def _do_parse(self, pem: str) -> ParsedCertificate:
        cert = x509.load_pem_x509_certificate(pem.encode("utf-8"))
        asn1_cert = asn1_x509.Certificate.load(cert.public_bytes(Encoding.DER))
        public_key = cert.public_key().public_bytes(
            Encoding.PEM, PublicFormat.SubjectPublicKeyInfo
        ).decode("ascii")
        info = _certificate_info(cert, asn1_cert)
        log.debug("parser.parsed", subject=info.subject, serial_number=info.serial_number)
        return ParsedCertificate(cert_info=info, public_key=public_key)

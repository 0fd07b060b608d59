"""
PEM bundle decoder adapter — PEM unarmoring + X.509 extraction.

Adapter layer — implements the BundleDecoder port using:
  - asn1crypto: splitting concatenated DER into individual ASN.1 elements
  - cryptography (PyCA): X.509 parsing, names and basicConstraints

Pipeline:
  response bytes
    → PEM blocks extracted one after another, payloads concatenated
    → asn1crypto: parser.parse() walks the DER element by element
    → cryptography: x509.load_der_x509_certificate() per element
    → CertificateChain (domain model), in bundle order

Only structure is checked: no signature, expiry or chain validation.
"""

from __future__ import annotations

import base64
import binascii
import re

import structlog
from asn1crypto import parser
from cryptography import x509
from cryptography.x509.extensions import ExtensionNotFound
from railway import ErrorCode
from railway.result import Result

from ant_enroll.domain.failures import FailureReason
from ant_enroll.domain.models import CertificateChain, CertificateRecord

log = structlog.get_logger()

# Text before a BEGIN line is skipped, as some servers prepend a
# human-readable dump of the certificate.
_PEM_BLOCK = re.compile(
    rb"-----BEGIN ([^\r\n-]+)-----[ \t]*\r?\n(.*?)^-----END \1-----[ \t]*(?:\r?\n)?",
    re.DOTALL | re.MULTILINE,
)


# ─────────────────────── PEM Framing ───────────────────────


def _decode_block_body(body: bytes) -> bytes:
    """
    Base64-decode a PEM body, skipping RFC 1421 headers (e.g. Proc-Type).

    Raises binascii.Error on invalid base64.
    """
    lines = body.splitlines()
    if lines and b":" in lines[0]:
        blank = next((i for i, line in enumerate(lines) if not line.strip()), len(lines))
        lines = lines[blank + 1 :]
    return base64.b64decode(b"".join(b"".join(line.split()) for line in lines), validate=True)


def _unarmor(bundle: bytes) -> Result[bytes]:
    """
    Extract every PEM block from the buffer and concatenate their payloads.

    The whole buffer must be consumed: a remainder without a PEM block
    (other than trailing whitespace) fails with MALFORMED_PEM.
    """
    der = bytearray()
    remaining = bundle
    blocks = 0

    while True:
        match = _PEM_BLOCK.search(remaining)
        if match is None:
            return Result.failure(
                ErrorCode.VALIDATION_ERROR,
                "Failed to parse certificate PEM",
                reason=FailureReason.MALFORMED_PEM,
                details={"offset": len(bundle) - len(remaining), "blocks": blocks},
            )
        try:
            der += _decode_block_body(match.group(2))
        except (binascii.Error, ValueError) as e:
            return Result.failure(
                ErrorCode.VALIDATION_ERROR,
                f"Invalid base64 in PEM block {blocks + 1}",
                e,
                reason=FailureReason.MALFORMED_PEM,
                details={"block_type": match.group(1).decode("ascii", errors="replace")},
            )
        blocks += 1
        remaining = remaining[match.end() :]
        if not remaining.strip():
            break

    log.debug("decoder.unarmored", blocks=blocks, der_bytes=len(der))
    return Result.success(bytes(der))


# ─────────────────────── DER → Records ───────────────────────


def _split_der(der: bytes) -> list[bytes]:
    """
    Split back-to-back DER elements.

    Raises ValueError when an element header or length is truncated.
    """
    elements: list[bytes] = []
    offset = 0
    while offset < len(der):
        _, _, _, header, contents, trailer = parser.parse(der[offset:])
        end = offset + len(header) + len(contents) + len(trailer)
        elements.append(der[offset:end])
        offset = end
    return elements


def _is_ca(cert: x509.Certificate) -> bool:
    """basicConstraints cA flag; absent or unreadable extension means False."""
    try:
        return cert.extensions.get_extension_for_class(x509.BasicConstraints).value.ca
    except (ExtensionNotFound, ValueError):
        return False


def _der_to_certificate_record(der_bytes: bytes) -> CertificateRecord:
    cert = x509.load_der_x509_certificate(der_bytes)
    return CertificateRecord(
        raw=der_bytes,
        issuer_name=cert.issuer.public_bytes(),
        subject_name=cert.subject.public_bytes(),
        is_ca=_is_ca(cert),
        subject=cert.subject.rfc4514_string(),
    )


def _parse_certificates(der: bytes) -> CertificateChain:
    return CertificateChain(
        records=tuple(_der_to_certificate_record(element) for element in _split_der(der))
    )


# ─────────────────────── Public Decoder Class ───────────────────────


class PemBundleDecoder:
    """
    Parse a concatenated PEM bundle into a CertificateChain.

    Implements the BundleDecoder port.
    All exceptions are caught at this adapter boundary.
    """

    def decode(self, bundle: bytes) -> Result[CertificateChain]:
        """
        Decode the enrollment response body.

        Returns Result[CertificateChain] in the order the blocks appear.
        Returns VALIDATION_ERROR with reason MALFORMED_PEM for bad framing,
        or MALFORMED_CERTIFICATE when the payload is not a certificate.
        """
        return (
            _unarmor(bundle)
            .flat_map(
                lambda der: Result.from_computation(
                    lambda: _parse_certificates(der),
                    ErrorCode.VALIDATION_ERROR,
                    "Failed to parse X.509 certificates from PEM payload",
                    reason=FailureReason.MALFORMED_CERTIFICATE,
                )
            )
            .peek(
                lambda chain: log.info(
                    "decoder.complete",
                    certificates=len(chain),
                    subjects=[record.subject for record in chain],
                )
            )
        )

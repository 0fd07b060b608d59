"""
Failure reasons — the enrollment error taxonomy.

Each reason rides on a railway FailureDescription next to its ErrorCode:

  request:  TIMEOUT, NETWORK_FAILURE, READ_FAILURE, HTTP_STATUS
  decode:   MALFORMED_PEM, MALFORMED_CERTIFICATE,
            INSUFFICIENT_CERTIFICATES, MULTIPLE_ROOTS
  storage:  OPEN_FAILURE, WRITE_FAILURE
"""

from __future__ import annotations

from enum import StrEnum, unique


@unique
class FailureReason(StrEnum):
    TIMEOUT = "timeout"
    NETWORK_FAILURE = "network_failure"
    READ_FAILURE = "read_failure"
    HTTP_STATUS = "http_status"

    MALFORMED_PEM = "malformed_pem"
    MALFORMED_CERTIFICATE = "malformed_certificate"
    INSUFFICIENT_CERTIFICATES = "insufficient_certificates"
    MULTIPLE_ROOTS = "multiple_roots"

    OPEN_FAILURE = "open_failure"
    WRITE_FAILURE = "write_failure"

"""
Ports — Protocol-based interfaces for infrastructure adapters.

These define WHAT the enrollment pipeline needs without specifying HOW:

  Domain ← Ports (protocols) ← Adapters (implementations)

Each port is a Protocol (structural typing) so adapters satisfy the
contract simply by implementing the methods — no inheritance.

Enrollment flow:
  1. EnrollmentClient → raw PEM bundle bytes
  2. BundleDecoder    → CertificateChain in bundle order
  3. ChainStore       → chain appended to the local PEM file
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from railway.result import Result

from ant_enroll.domain.models import CertificateChain


@runtime_checkable
class EnrollmentClient(Protocol):
    """
    Port: send the enrollment request and return the response body.

    The body is capped at 4096 bytes. Any non-200 status is a failure
    carrying the status code and the body read so far.
    """

    def request_chain(self, payload: bytes) -> Result[bytes]: ...


@runtime_checkable
class BundleDecoder(Protocol):
    """Port: parse concatenated PEM blocks into certificate records."""

    def decode(self, bundle: bytes) -> Result[CertificateChain]: ...


@runtime_checkable
class ChainStore(Protocol):
    """
    Port: append a chain to durable storage.

    Append-only: previously stored chains are never rewritten.
    Returns Result[int] with the number of certificates written.
    """

    def append(self, chain: CertificateChain) -> Result[int]: ...

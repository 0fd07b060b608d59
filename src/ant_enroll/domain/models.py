"""
Domain models — immutable data structures for certificates and enrollment.

These are pure value objects with no behavior beyond derived predicates.
A CertificateChain lives for a single request/response cycle; the only
durable state is the PEM file the chain is appended to.

All models are frozen dataclasses (immutable) following functional principles.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_USER_AGENT_PREFIX = "ant"
DEFAULT_CERTIFICATE_FILENAME = "ant.crt"


@dataclass(frozen=True, slots=True)
class CertificateRecord:
    """
    One X.509 certificate as returned by the enrollment endpoint.

    `issuer_name` and `subject_name` are the DER-encoded distinguished names;
    they are only ever compared byte-for-byte, never interpreted.
    """

    raw: bytes = field(repr=False)
    issuer_name: bytes = field(repr=False)
    subject_name: bytes = field(repr=False)
    is_ca: bool = False
    subject: str | None = None

    @property
    def is_self_signed(self) -> bool:
        return self.issuer_name == self.subject_name

    @property
    def is_root(self) -> bool:
        """True for a self-signed certificate carrying the CA flag."""
        return self.is_self_signed and self.is_ca


@dataclass(frozen=True, slots=True)
class CertificateChain:
    """
    Ordered sequence of certificates, leaf first.

    After normalization the self-signed CA (if any) is the last record.
    """

    records: tuple[CertificateRecord, ...] = ()

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[CertificateRecord]:
        return iter(self.records)


@dataclass(frozen=True, slots=True)
class EnrollmentConfig:
    """
    Everything one enrollment attempt needs, resolved up front.

    Built by the composition root from settings plus the identity and
    storage collaborators, so the pipeline never touches the process
    environment.

    `skip_server_verification` disables TLS server-certificate checks for
    the enrollment request only: the node has no trusted CA yet.
    """

    endpoint: str
    identity_tag: str
    output_directory: Path
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    skip_server_verification: bool = True
    user_agent_prefix: str = DEFAULT_USER_AGENT_PREFIX
    certificate_filename: str = DEFAULT_CERTIFICATE_FILENAME

    @property
    def user_agent(self) -> str:
        return f"{self.user_agent_prefix}-{self.identity_tag}"

    @property
    def output_path(self) -> Path:
        return self.output_directory / self.certificate_filename

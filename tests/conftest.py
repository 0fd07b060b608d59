"""
Shared test fixtures for the ant-enroll test suite.

Provides a small PKI (root CA, intermediate, node certificate) generated
once per session, plus synthetic CertificateRecords for the pure
chain-normalization tests.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog

from ant_enroll.domain.models import CertificateRecord
from tests.certs import Issued, issued_by, self_signed


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Keep structlog configuration from leaking between tests."""
    yield
    structlog.reset_defaults()


@pytest.fixture(scope="session")
def root_ca() -> Issued:
    return self_signed("Marabunta Root CA")


@pytest.fixture(scope="session")
def intermediate_ca(root_ca: Issued) -> Issued:
    return issued_by(root_ca, "Marabunta Colony CA", ca=True)


@pytest.fixture(scope="session")
def node_cert(root_ca: Issued) -> Issued:
    return issued_by(root_ca, "ant-node-0001")


def make_record(subject: str, issuer: str | None = None, is_ca: bool = False) -> CertificateRecord:
    """
    Synthetic record: names are plain byte strings, `raw` is the subject.

    `issuer=None` makes the record self-signed.
    """
    return CertificateRecord(
        raw=subject.encode(),
        issuer_name=(issuer or subject).encode(),
        subject_name=subject.encode(),
        is_ca=is_ca,
        subject=subject,
    )

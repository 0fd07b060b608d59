"""
Chain normalization — pure functions over CertificateChain.

Domain layer — no I/O. The enrollment endpoint returns the client
certificate and its CA in no guaranteed order; consumers of the stored
file expect the self-signed CA last.
"""

from __future__ import annotations

import structlog
from railway import ErrorCode
from railway.result import Result

from ant_enroll.domain.failures import FailureReason
from ant_enroll.domain.models import CertificateChain

MIN_CHAIN_LENGTH = 2

log = structlog.get_logger()


def require_complete_chain(chain: CertificateChain) -> Result[CertificateChain]:
    """Reject chains shorter than client certificate + CA."""
    if len(chain) < MIN_CHAIN_LENGTH:
        return Result.failure(
            ErrorCode.VALIDATION_ERROR,
            f"Expected at least {MIN_CHAIN_LENGTH} concatenated certificates "
            f"(client + CA), got {len(chain)}",
            reason=FailureReason.INSUFFICIENT_CERTIFICATES,
            details={"count": len(chain)},
        )
    return Result.success(chain)


def normalize(chain: CertificateChain) -> Result[CertificateChain]:
    """
    Move the self-signed CA to the end of the chain.

    The remaining records keep their relative order. A chain without a
    self-signed CA is returned unchanged; a chain with more than one is
    rejected as MULTIPLE_ROOTS because there is no way to tell which one
    anchors it.
    """
    roots = [record for record in chain if record.is_root]

    if not roots:
        log.warning("chain.no_self_signed_ca", certificates=len(chain))
        return Result.success(chain)

    if len(roots) > 1:
        return Result.failure(
            ErrorCode.VALIDATION_ERROR,
            f"Chain contains {len(roots)} self-signed CA certificates, expected one",
            reason=FailureReason.MULTIPLE_ROOTS,
            details={"subjects": [root.subject for root in roots]},
        )

    root = roots[0]
    others = tuple(record for record in chain if record is not root)
    log.debug("chain.normalized", ca=root.subject, certificates=len(chain))
    return Result.success(CertificateChain(records=(*others, root)))

"""
PEM file store adapter — append-only certificate chain persistence.

Adapter layer — implements the ChainStore port on a plain file.

Uses APPEND semantics:
  1. open(O_WRONLY | O_APPEND | O_CREAT), owner read/write on creation
  2. write one CERTIFICATE block per record, in chain order
  3. close

Existing content is never truncated; every enrollment adds its chain after
the previous ones. There is no locking and no rollback: a failure halfway
through leaves the blocks already written in place.
"""

from __future__ import annotations

import os
from pathlib import Path

import structlog
from asn1crypto import pem
from railway import ErrorCode
from railway.result import Result

from ant_enroll.domain.failures import FailureReason
from ant_enroll.domain.models import CertificateChain

FILE_MODE = 0o600
_OPEN_FLAGS = os.O_WRONLY | os.O_APPEND | os.O_CREAT

log = structlog.get_logger()


class PemChainStore:
    """
    Append certificate chains to a PEM file.

    Implements the ChainStore port.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    def append(self, chain: CertificateChain) -> Result[int]:
        """
        Append the chain to the store file.

        Returns Result[int] with the number of certificates written.
        Returns STORAGE_ERROR with reason OPEN_FAILURE or WRITE_FAILURE.
        """
        try:
            fd = os.open(self._path, _OPEN_FLAGS, FILE_MODE)
        except OSError as e:
            return Result.failure(
                ErrorCode.STORAGE_ERROR,
                f"Cannot open {self._path} for append: {e.strerror}",
                e,
                reason=FailureReason.OPEN_FAILURE,
                details={"path": str(self._path)},
            )

        return Result.from_computation(
            lambda: self._write_blocks(fd, chain),
            ErrorCode.STORAGE_ERROR,
            f"Failed to write certificate chain to {self._path}",
            reason=FailureReason.WRITE_FAILURE,
        )

    def _write_blocks(self, fd: int, chain: CertificateChain) -> int:
        """Write each block and close — may raise OSError. Always releases fd."""
        try:
            handle = os.fdopen(fd, "ab")
        except Exception:
            os.close(fd)
            raise
        with handle:
            for record in chain:
                handle.write(pem.armor("CERTIFICATE", record.raw))
        log.info("store.appended", path=str(self._path), certificates=len(chain))
        return len(chain)

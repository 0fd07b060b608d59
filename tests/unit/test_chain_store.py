"""
Unit tests for the append-only PEM chain store.

Uses pytest's tmp_path for a real filesystem.

Test categories:
  - Serialization: one CERTIFICATE block per record, chain order
  - Append-only: chain A then chain B → A immediately followed by B
  - Permissions: new file is owner read/write only
  - Errors: open failure → Failure(OPEN_FAILURE)
"""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest
from asn1crypto import pem
from railway import ErrorCode, ResultAssertions

from ant_enroll.adapters.chain_store import PemChainStore
from ant_enroll.adapters.pem_decoder import PemBundleDecoder
from ant_enroll.domain.failures import FailureReason
from ant_enroll.domain.models import CertificateChain, CertificateRecord
from tests.certs import Issued, pem_bundle


def _chain_of(*issued: Issued) -> CertificateChain:
    return ResultAssertions.assert_success(PemBundleDecoder().decode(pem_bundle(*issued)))


def _armored(chain: CertificateChain) -> bytes:
    return b"".join(pem.armor("CERTIFICATE", record.raw) for record in chain)


class TestAppendWritesPem:
    """
    GIVEN a decoded chain
    WHEN append is called on a fresh path
    THEN the file holds one CERTIFICATE block per record, in order.
    """

    def test_returns_certificate_count(
        self, tmp_path: Path, node_cert: Issued, root_ca: Issued
    ) -> None:
        store = PemChainStore(tmp_path / "ant.crt")
        written = ResultAssertions.assert_success(store.append(_chain_of(node_cert, root_ca)))
        assert written == 2

    def test_file_round_trips_through_decoder(
        self, tmp_path: Path, node_cert: Issued, root_ca: Issued
    ) -> None:
        path = tmp_path / "ant.crt"
        PemChainStore(path).append(_chain_of(node_cert, root_ca))
        chain = ResultAssertions.assert_success(PemBundleDecoder().decode(path.read_bytes()))
        assert [record.raw for record in chain] == [node_cert.der, root_ca.der]

    def test_blocks_are_certificate_type(
        self, tmp_path: Path, node_cert: Issued, root_ca: Issued
    ) -> None:
        path = tmp_path / "ant.crt"
        PemChainStore(path).append(_chain_of(node_cert, root_ca))
        content = path.read_bytes()
        assert content.count(b"-----BEGIN CERTIFICATE-----") == 2
        assert content.count(b"-----END CERTIFICATE-----") == 2

    def test_record_bytes_written_verbatim(self, tmp_path: Path) -> None:
        """
        GIVEN records whose raw bytes are arbitrary
        WHEN appended
        THEN the PEM payloads are exactly those bytes (no re-encoding).
        """
        records = tuple(
            CertificateRecord(raw=raw, issuer_name=b"i", subject_name=b"s")
            for raw in (b"\x30\x01\x00", b"\x30\x02\x01\x02")
        )
        path = tmp_path / "ant.crt"
        PemChainStore(path).append(CertificateChain(records=records))
        assert path.read_bytes() == _armored(CertificateChain(records=records))

    def test_new_file_is_owner_only(
        self, tmp_path: Path, node_cert: Issued, root_ca: Issued
    ) -> None:
        path = tmp_path / "ant.crt"
        old_umask = os.umask(0)
        try:
            PemChainStore(path).append(_chain_of(node_cert, root_ca))
        finally:
            os.umask(old_umask)
        mode = stat.S_IMODE(path.stat().st_mode)
        assert mode == 0o600


class TestAppendOnly:
    """
    GIVEN chain A already persisted
    WHEN chain B is appended to the same path
    THEN the file is A's PEM immediately followed by B's PEM.
    """

    def test_second_chain_follows_first(
        self, tmp_path: Path, node_cert: Issued, root_ca: Issued, intermediate_ca: Issued
    ) -> None:
        path = tmp_path / "ant.crt"
        store = PemChainStore(path)
        chain_a = _chain_of(node_cert, root_ca)
        chain_b = _chain_of(intermediate_ca, root_ca)

        store.append(chain_a)
        store.append(chain_b)

        assert path.read_bytes() == _armored(chain_a) + _armored(chain_b)

    def test_existing_content_preserved(
        self, tmp_path: Path, node_cert: Issued, root_ca: Issued
    ) -> None:
        path = tmp_path / "ant.crt"
        path.write_bytes(b"# previous content\n")
        chain = _chain_of(node_cert, root_ca)
        PemChainStore(path).append(chain)
        assert path.read_bytes() == b"# previous content\n" + _armored(chain)


class TestAppendFailures:
    """
    GIVEN a path that cannot be opened for append
    WHEN append is called
    THEN it returns Failure(STORAGE_ERROR, OPEN_FAILURE) and does not raise.
    """

    def test_missing_directory(self, tmp_path: Path, node_cert: Issued, root_ca: Issued) -> None:
        store = PemChainStore(tmp_path / "missing" / "ant.crt")
        error = ResultAssertions.assert_failure(
            store.append(_chain_of(node_cert, root_ca)), ErrorCode.STORAGE_ERROR
        )
        assert error.reason == FailureReason.OPEN_FAILURE
        assert error.details["path"] == str(tmp_path / "missing" / "ant.crt")

    def test_path_is_a_directory(self, tmp_path: Path, node_cert: Issued, root_ca: Issued) -> None:
        store = PemChainStore(tmp_path)
        result = store.append(_chain_of(node_cert, root_ca))
        ResultAssertions.assert_failure_reason(result, FailureReason.OPEN_FAILURE)

    def test_write_error_reported(
        self,
        tmp_path: Path,
        node_cert: Issued,
        root_ca: Issued,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """
        GIVEN the file opens but writing fails (e.g. disk full)
        WHEN append is called
        THEN it returns Failure(STORAGE_ERROR, WRITE_FAILURE).
        """

        def _disk_full(fd: int, mode: str) -> None:
            raise OSError(28, "No space left on device")

        monkeypatch.setattr("ant_enroll.adapters.chain_store.os.fdopen", _disk_full)
        result = PemChainStore(tmp_path / "ant.crt").append(_chain_of(node_cert, root_ca))
        error = ResultAssertions.assert_failure(result, ErrorCode.STORAGE_ERROR)
        assert error.reason == FailureReason.WRITE_FAILURE

    def test_descriptor_closed_when_handle_cannot_be_created(
        self,
        tmp_path: Path,
        node_cert: Issued,
        root_ca: Issued,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """
        GIVEN the file opens but wrapping the descriptor fails
        WHEN append is called
        THEN the descriptor is closed before the failure is returned.
        """
        seen: list[int] = []

        def _refuse(fd: int, mode: str) -> None:
            seen.append(fd)
            raise OSError(24, "Too many open files")

        monkeypatch.setattr("ant_enroll.adapters.chain_store.os.fdopen", _refuse)
        result = PemChainStore(tmp_path / "ant.crt").append(_chain_of(node_cert, root_ca))

        ResultAssertions.assert_failure_reason(result, FailureReason.WRITE_FAILURE)
        assert len(seen) == 1
        with pytest.raises(OSError):
            os.fstat(seen[0])

    @pytest.mark.skipif(os.geteuid() == 0, reason="root ignores file permissions")
    def test_read_only_file(self, tmp_path: Path, node_cert: Issued, root_ca: Issued) -> None:
        path = tmp_path / "ant.crt"
        path.write_bytes(b"")
        path.chmod(0o400)
        result = PemChainStore(path).append(_chain_of(node_cert, root_ca))
        ResultAssertions.assert_failure_reason(result, FailureReason.OPEN_FAILURE)

"""
Pipeline — the ROP pipeline for one enrollment attempt.

Domain layer — no I/O of its own. All I/O is injected via ports
(Protocol interfaces).

The pipeline connects stages via flat_map, forming a railway:

  request_chain(payload)
    → decode(bundle)
      → require_complete_chain(chain)
        → normalize(chain)
          → append(chain)

Each stage returns Result[T]. Failures short-circuit automatically, so
nothing is written unless the request, decoding and checks all succeeded.
"""

from __future__ import annotations

from railway.result import Result

from ant_enroll.domain.chain import normalize, require_complete_chain
from ant_enroll.domain.ports import BundleDecoder, ChainStore, EnrollmentClient


def run_enrollment(
    payload: bytes,
    client: EnrollmentClient,
    decoder: BundleDecoder,
    store: ChainStore,
) -> Result[int]:
    """
    Request, decode, normalize and persist a certificate chain.

    Returns Result[int] with the number of certificates appended,
    or the failure of the first stage that failed.
    """
    return (
        client.request_chain(payload)
        .flat_map(decoder.decode)
        .flat_map(require_complete_chain)
        .flat_map(normalize)
        .flat_map(store.append)
    )

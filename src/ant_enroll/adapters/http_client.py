"""
HTTP adapter — certificate enrollment request via httpx.

Adapter layer — implements the EnrollmentClient port using httpx for a
single synchronous POST.

  POST {endpoint}
  User-Agent: {prefix}-{identity_tag}
  <payload>

The response body is streamed and cut at MAX_RESPONSE_BYTES whatever the
server advertises. There is no retry: one attempt, one round trip.

When skip_server_verification is set the server certificate is not
checked. This is only acceptable for enrollment, where the node has no
trusted CA yet; it is not a general client policy.

All HTTP errors are captured into Result failures — no exceptions
leak to the business logic layer.
"""

from __future__ import annotations

import time

import httpx
import structlog
from railway import ErrorCode
from railway.result import Result

from ant_enroll.domain.failures import FailureReason
from ant_enroll.domain.models import EnrollmentConfig

MAX_RESPONSE_BYTES = 4096

log = structlog.get_logger()


class _BodyReadError(Exception):
    """Body stream broke after the response headers arrived."""


class HttpEnrollmentClient:
    """
    Request a certificate chain from the enrollment endpoint.

    Implements the EnrollmentClient port.
    """

    def __init__(
        self,
        endpoint: str,
        identity_tag: str,
        timeout: float = 10.0,
        skip_server_verification: bool = True,
        user_agent_prefix: str = "ant",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._user_agent = f"{user_agent_prefix}-{identity_tag}"
        self._timeout = timeout
        self._verify = not skip_server_verification
        self._transport = transport

    @classmethod
    def from_config(cls, config: EnrollmentConfig) -> HttpEnrollmentClient:
        return cls(
            endpoint=config.endpoint,
            identity_tag=config.identity_tag,
            timeout=config.timeout_seconds,
            skip_server_verification=config.skip_server_verification,
            user_agent_prefix=config.user_agent_prefix,
        )

    def request_chain(self, payload: bytes) -> Result[bytes]:
        """
        POST the payload and return the (capped) response body.

        Returns Result[bytes] on HTTP 200.
        Returns TIMEOUT_ERROR on timeout, EXTERNAL_SERVICE_ERROR with reason
        NETWORK_FAILURE, READ_FAILURE or HTTP_STATUS otherwise.
        """
        try:
            status_code, body = self._do_request(payload)
        except httpx.TimeoutException as e:
            return Result.failure(
                ErrorCode.TIMEOUT_ERROR,
                f"Enrollment request timed out after {self._timeout}s",
                e,
                reason=FailureReason.TIMEOUT,
            )
        except _BodyReadError as e:
            return Result.failure(
                ErrorCode.EXTERNAL_SERVICE_ERROR,
                f"Failed to read enrollment response: {e}",
                e,
                reason=FailureReason.READ_FAILURE,
            )
        except httpx.HTTPError as e:
            return Result.failure(
                ErrorCode.EXTERNAL_SERVICE_ERROR,
                f"Enrollment request failed: {e}",
                e,
                reason=FailureReason.NETWORK_FAILURE,
            )

        if status_code != httpx.codes.OK:
            snippet = body.decode("utf-8", errors="replace")
            log.warning("enrollment.rejected", status_code=status_code, body=snippet)
            return Result.failure(
                ErrorCode.EXTERNAL_SERVICE_ERROR,
                f"{status_code} - {snippet}",
                reason=FailureReason.HTTP_STATUS,
                details={"status_code": status_code, "body": snippet},
            )

        log.info("enrollment.response_received", size_bytes=len(body))
        return Result.success(body)

    def _do_request(self, payload: bytes) -> tuple[int, bytes]:
        """Single POST bounded by one overall deadline; exceptions are mapped by request_chain."""
        if not self._verify:
            log.warning("enrollment.server_verification_disabled", endpoint=self._endpoint)

        deadline = time.monotonic() + self._timeout
        with httpx.Client(
            timeout=self._timeout, verify=self._verify, transport=self._transport
        ) as client:
            with client.stream(
                "POST",
                self._endpoint,
                content=payload,
                headers={"User-Agent": self._user_agent},
                timeout=_remaining(deadline),
            ) as response:
                log.info(
                    "enrollment.request_sent",
                    endpoint=self._endpoint,
                    status_code=response.status_code,
                )
                return response.status_code, _read_capped(response, deadline)


def _remaining(deadline: float) -> float:
    return max(deadline - time.monotonic(), 0.0)


def _read_capped(
    response: httpx.Response, deadline: float, limit: int = MAX_RESPONSE_BYTES
) -> bytes:
    """
    Read at most `limit` bytes of the body, then stop.

    The deadline is checked after every chunk, so a server trickling bytes
    cannot hold the request open past it. Timeouts propagate unchanged;
    any other stream error becomes _BodyReadError.
    """
    body = bytearray()
    try:
        for chunk in response.iter_bytes():
            body += chunk[: limit - len(body)]
            if len(body) >= limit:
                break
            if time.monotonic() >= deadline:
                raise httpx.ReadTimeout(
                    "Enrollment response not complete before the request deadline",
                    request=response.request,
                )
    except httpx.TimeoutException:
        raise
    except (httpx.HTTPError, httpx.StreamError) as e:
        raise _BodyReadError(str(e)) from e
    return bytes(body)

"""
Test assertions for Result values.

Usage in tests:
    from railway import ResultAssertions

    def test_decodes_chain():
        chain = ResultAssertions.assert_success(decoder.decode(bundle))
        assert len(chain) == 2

    def test_rejects_garbage():
        result = decoder.decode(b"garbage")
        ResultAssertions.assert_failure(result, ErrorCode.VALIDATION_ERROR)
        ResultAssertions.assert_failure_reason(result, FailureReason.MALFORMED_PEM)
"""

from __future__ import annotations

from enum import Enum
from typing import TypeVar

from railway.failure import ErrorCode, FailureDescription
from railway.result import Result

T = TypeVar("T")


class ResultAssertions:
    """Expressive test assertions for Result values."""

    @staticmethod
    def assert_success(result: Result[T], message: str = "") -> T:
        """Assert the Result is a Success and return the value."""
        context = f" — {message}" if message else ""
        assert result.is_success(), (
            f"Expected Success but got Failure("
            f"{result.error().code.value}: {result.error().message!r}){context}"
        )
        return result.value()

    @staticmethod
    def assert_failure(
        result: Result[T],
        expected_code: ErrorCode | None = None,
        message: str = "",
    ) -> FailureDescription:
        """Assert the Result is a Failure, optionally checking the error code."""
        context = f" — {message}" if message else ""
        assert result.is_failure(), (
            f"Expected Failure but got Success({result.value()!r}){context}"
        )
        error = result.error()
        if expected_code is not None:
            assert error.code == expected_code, (
                f"Expected error code {expected_code.value} "
                f"but got {error.code.value}: {error.message!r}{context}"
            )
        return error

    @staticmethod
    def assert_failure_reason(result: Result[T], expected_reason: Enum) -> FailureDescription:
        """Assert the Result is a Failure carrying the given reason."""
        error = ResultAssertions.assert_failure(result)
        assert error.reason == expected_reason, (
            f"Expected failure reason {expected_reason!r} "
            f"but got {error.reason!r}: {error.message!r}"
        )
        return error

    @staticmethod
    def assert_failure_message_contains(result: Result[T], substring: str) -> None:
        """Assert that the failure message contains the given substring (case-insensitive)."""
        error = ResultAssertions.assert_failure(result)
        assert substring.lower() in error.message.lower(), (
            f"Expected failure message to contain {substring!r} "
            f"but message was: {error.message!r}"
        )

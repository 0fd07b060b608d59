"""
Failure description — structured error information for the failure track.

A failure is described by a coarse ErrorCode (the category a caller maps to
an exit status or an HTTP status) plus an optional, finer-grained `reason`
enum owned by the application, and free-form `details` for diagnostics.
"""

from __future__ import annotations

import traceback
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique
from types import MappingProxyType
from typing import Any, Optional


@unique
class ErrorCode(Enum):
    """
    Structured error codes for the failure track.

    Client-side: VALIDATION_ERROR.
    Server/infrastructure side: TECHNICAL, CONFIGURATION, STORAGE,
    EXTERNAL_SERVICE, TIMEOUT.
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Input that does not have the expected shape or content."""

    TECHNICAL_ERROR = "TECHNICAL_ERROR"
    """Unexpected exception escaping a computation."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """System misconfiguration."""

    STORAGE_ERROR = "STORAGE_ERROR"
    """Local filesystem failures (open, read, write)."""

    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    """Remote call failures: transport errors or unexpected responses."""

    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    """Operation exceeded its time limit."""


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor.

    >>> desc = FailureDescription(ErrorCode.VALIDATION_ERROR, "Name is required")
    >>> desc.code
    <ErrorCode.VALIDATION_ERROR: 'VALIDATION_ERROR'>
    >>> desc.message
    'Name is required'
    """

    code: ErrorCode
    message: str
    exception: Optional[BaseException] = field(default=None, repr=False)
    reason: Optional[Enum] = None
    details: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}), repr=False, compare=False
    )
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC), compare=False)

    @staticmethod
    def create(
        code: ErrorCode,
        message: str,
        exception: Optional[BaseException] = None,
        reason: Optional[Enum] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> FailureDescription:
        """Build a description, freezing `details` into a read-only mapping."""
        return FailureDescription(
            code=code,
            message=message,
            exception=exception,
            reason=reason,
            details=MappingProxyType(dict(details or {})),
        )

    def full_stack_trace(self) -> str:
        """Message followed by the formatted exception chain, if any."""
        if self.exception is None:
            return self.message
        tb = "".join(
            traceback.format_exception(
                type(self.exception), self.exception, self.exception.__traceback__
            )
        )
        return f"{self.message}\n{tb}"

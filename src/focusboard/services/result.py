"""ServiceResult and ServiceError — the contract between services and the CLI.

INVARIANT: All BoardService/CheckService methods return ServiceResult.
Error codes are stable strings: ``INVALID_MOVE``, ``WRITE_FAILED``,
``NOT_FOUND``, ``PROTECTED``, ``STORE_ERROR``, ``VALIDATION_FAILED``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

INVALID_MOVE = "INVALID_MOVE"
WRITE_FAILED = "WRITE_FAILED"
NOT_FOUND = "NOT_FOUND"
PROTECTED = "PROTECTED"
STORE_ERROR = "STORE_ERROR"
VALIDATION_FAILED = "VALIDATION_FAILED"


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Return type for every service operation.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"move_card"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (counts, batch numbers).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(
        cls,
        op: str,
        code: str,
        message: str,
        *,
        detail: dict[str, Any] | None = None,
    ) -> ServiceResult:
        """Shorthand for an ``ok=False`` result."""
        return cls(
            ok=False,
            op=op,
            error=ServiceError(code=code, message=message, detail=detail or {}),
        )

"""ServiceResult and ServiceError — the envelope every CLI command emits.

Services return domain records (``SnapshotRun``, ``RestoreResult`` lists,
``SnapshotInfo`` lists); command handlers wrap them in a
:class:`ServiceResult` so JSON and human output share one shape.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Outcome of one CLI operation.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"snapshot"``, ``"restore"``).
        data: Operation-specific payload.
        warnings: Non-fatal issues (failed plugins, failed hooks).
        error: Structured error if ``ok`` is False.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None

"""Error taxonomy for engine operations.

Validation and business-rule errors carry enough detail for a caller to
display (required vs. available days, the conflicting date range).
ConfigurationError signals incomplete reference data rather than bad input.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any


class EngineError(Exception):
    """Base class for all engine errors."""

    code = "ENGINE_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code, "context": self.details or None}


class ValidationError(EngineError):
    """Bad input shape or range."""

    code = "VALIDATION_ERROR"


class NotFoundError(EngineError):
    """Referenced entity does not exist."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            f"{entity} {entity_id} not found",
            {"entity": entity, "entity_id": str(entity_id)},
        )


class ConflictError(EngineError):
    """Request conflicts with current state (overlap, already decided)."""

    code = "CONFLICT"


class InsufficientBalanceError(EngineError):
    """Leave balance cannot cover the requested days."""

    code = "INSUFFICIENT_BALANCE"

    def __init__(
        self,
        required: Decimal,
        available: Decimal,
        message: str | None = None,
    ):
        self.required = required
        self.available = available
        super().__init__(
            message
            or f"Insufficient balance. Required: {required}, Available: {available}",
            {"required": str(required), "available": str(available)},
        )


class ConfigurationError(EngineError):
    """Required reference data (e.g. a leave type) is missing."""

    code = "CONFIGURATION_ERROR"

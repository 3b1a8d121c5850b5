"""Pydantic result models shared by the validator, adapters and orchestrator."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class EmailValidationStatus(str, Enum):
    """Outcome of validating a candidate email address.

    Attributes:
        VALID: Address matches the pattern and has no known domain typo.
        INVALID: Address is empty, too long or malformed.
        INVALID_WITH_SUGGESTION: Address is well-formed but its domain is a
            known typo; ``suggestion`` holds the corrected domain.
    """

    VALID = "valid"
    INVALID = "invalid"
    INVALID_WITH_SUGGESTION = "invalid_with_suggestion"


class EmailValidationResult(BaseModel):
    """Tagged result of ``validate_email_address``."""

    status: EmailValidationStatus
    suggestion: str | None = Field(
        default=None,
        description="Corrected domain when status is INVALID_WITH_SUGGESTION",
    )

    @property
    def is_valid(self) -> bool:
        return self.status == EmailValidationStatus.VALID

    @classmethod
    def valid(cls) -> EmailValidationResult:
        return cls(status=EmailValidationStatus.VALID)

    @classmethod
    def invalid(cls) -> EmailValidationResult:
        return cls(status=EmailValidationStatus.INVALID)

    @classmethod
    def with_suggestion(cls, domain: str) -> EmailValidationResult:
        return cls(
            status=EmailValidationStatus.INVALID_WITH_SUGGESTION,
            suggestion=domain,
        )


class LengthCheck(BaseModel):
    """Result of ``validate_length``."""

    valid: bool
    message: str | None = None


class BulkOperationResult(BaseModel):
    """Accounting for a single orchestrated bulk run.

    ``total`` is the size of the admitted candidate set. Items that matched
    no organize category are counted in ``skipped`` and in neither
    ``succeeded`` nor ``failed``.
    """

    operation: str = Field(..., description="Name of the bulk flow")
    total: int = Field(default=0, ge=0, description="Candidate items admitted")
    succeeded: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    warning: str | None = Field(
        default=None,
        description="Advisory for large batches",
    )

    @property
    def attempted(self) -> int:
        return self.total


__all__ = [
    "EmailValidationStatus",
    "EmailValidationResult",
    "LengthCheck",
    "BulkOperationResult",
]

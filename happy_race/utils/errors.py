"""
Error code definitions for happy-race.

Error codes follow the pattern:
- INVALID_*: Malformed race building blocks (programming errors)
- *_FAILED: Generation or verification could not complete
- UNKNOWN_*: Selection input that names nothing in the catalog

Generation errors are fatal: the catalog is either complete or absent.
"""

from enum import Enum
from typing import Any


class RaceErrorCode(str, Enum):
    """Error codes for scenario generation and verification."""

    INVALID_STEP = "INVALID_STEP"
    """A step was built with an unsupported family, kind, outcome or timing."""

    GENERATION_FAILED = "GENERATION_FAILED"
    """A leader sequence or walk could not produce exactly one winner."""

    UNKNOWN_CASE = "UNKNOWN_CASE"
    """A requested case name is not one of the generated scenarios."""

    VERIFICATION_FAILED = "VERIFICATION_FAILED"
    """An executed scenario did not match its expected outcome."""

    POOL_EXHAUSTED = "POOL_EXHAUSTED"
    """No listening address is left for the next scenario."""


class RaceError(Exception):
    """
    Base exception for happy-race errors.

    Carries a code and structured details for logging and CLI output.
    """

    def __init__(
        self,
        code: RaceErrorCode,
        message: str,
        *,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to a serializable dictionary."""
        result: dict[str, Any] = {
            "ok": False,
            "error_code": self.code.value,
            "error": self.message,
        }

        if self.details:
            result["details"] = self.details

        return result


class InvalidStepError(RaceError):
    """Raised when a step is constructed or used incorrectly."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        received: Any = None,
    ):
        details = {}
        if field:
            details["field"] = field
        if received is not None:
            details["received"] = str(received)

        super().__init__(
            RaceErrorCode.INVALID_STEP,
            message,
            details=details if details else None,
        )


class GenerationError(RaceError):
    """Raised when a scenario cannot be generated from its steps."""

    def __init__(
        self,
        message: str,
        *,
        context: str | None = None,
    ):
        details = {}
        if context:
            details["context"] = context

        super().__init__(
            RaceErrorCode.GENERATION_FAILED,
            message,
            details=details if details else None,
        )


class UnknownCaseError(RaceError):
    """Raised when selected case names are missing from the catalog.

    The message lists every supported name so the caller can fix the
    selection without another round trip.
    """

    def __init__(self, unknown: list[str], supported: list[str]):
        listing = "\n".join(supported)
        super().__init__(
            RaceErrorCode.UNKNOWN_CASE,
            f"--cases {', '.join(unknown)} is not one of the following "
            f"{len(supported)} supported test cases:\n{listing}",
            details={"unknown": unknown, "supported": supported},
        )
        self.unknown = unknown
        self.supported = supported


class VerificationError(RaceError):
    """Raised when an executed scenario violates its expectations."""

    def __init__(
        self,
        scenario: str,
        failures: list[str],
    ):
        super().__init__(
            RaceErrorCode.VERIFICATION_FAILED,
            f"Scenario {scenario} failed: {'; '.join(failures)}",
            details={"scenario": scenario, "failures": failures},
        )
        self.failures = failures


class AddressPoolExhaustedError(RaceError):
    """Raised when every listening address is already reserved."""

    def __init__(self, capacity: int):
        super().__init__(
            RaceErrorCode.POOL_EXHAUSTED,
            f"All {capacity} listening addresses are in use",
            details={"capacity": capacity},
        )

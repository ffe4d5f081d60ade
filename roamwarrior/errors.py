"""
Error taxonomy shared by the contract layer, the adapters and the API.
"""
from dataclasses import dataclass
from typing import Optional


class RoamWarriorError(Exception):
    """Base class for every error the service raises on purpose."""

    title = "Something went wrong"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class FieldViolation:
    """A single failed check, addressed by a dotted field path."""
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class ValidationError(RoamWarriorError):
    """Caller-supplied input failed the contract checks."""

    title = "Missing Information"

    def __init__(self, violations: list[FieldViolation], message: Optional[str] = None):
        self.violations = list(violations)
        if message is None:
            message = "; ".join(str(v) for v in self.violations) or "Invalid input"
        super().__init__(message)

    @property
    def fields(self) -> list[str]:
        """Violated field paths, in the order they were reported."""
        return [v.field for v in self.violations]


class GenerationError(RoamWarriorError):
    """The completion service failed or returned nothing usable."""

    title = "Generation Failed"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class MalformedResponseError(GenerationError):
    """The service answered, but the answer does not fit the expected structure."""

    title = "Unexpected Response"

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        violations: Optional[list[FieldViolation]] = None
    ):
        super().__init__(message, cause)
        self.violations = list(violations or [])


class GenerationTimeoutError(GenerationError):
    """The completion call did not finish within the configured bound."""

    title = "Request Timed Out"


class SessionNotFoundError(RoamWarriorError):
    """No wizard session exists under the given id."""

    title = "Session Not Found"


class WizardStepError(RoamWarriorError):
    """A wizard step was reached without the data from an earlier step."""

    title = "Previous Step Required"

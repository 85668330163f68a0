"""
Failure normalization for provider attempts.
Classifies errors for logs and metrics, and maps them to HTTP status in routes.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from app.services.image_generation.base import GenerationResult


class FailureKind(str, Enum):
    """Error taxonomy for generation requests."""

    VALIDATION = "validation"  # missing fields, undecodable input
    CONFIGURATION = "configuration"  # missing server credentials
    UPSTREAM = "upstream"  # non-2xx / SDK error from provider
    NO_DATA = "no_data"  # call succeeded, no known payload shape


_HTTP_STATUS = {
    FailureKind.VALIDATION: 400,
    FailureKind.CONFIGURATION: 500,
    FailureKind.UPSTREAM: 500,
    FailureKind.NO_DATA: 500,
}


def http_status_for(kind: FailureKind) -> int:
    """HTTP status the API answers with for a failure kind."""
    return _HTTP_STATUS.get(kind, 500)


@dataclass
class ProviderFailure:
    kind: FailureKind
    message: str
    http_status: int | None = None
    error: Exception | None = None
    detail: dict[str, Any] = field(default_factory=dict)


@dataclass
class ProviderResult:
    """Outcome of one provider attempt: exactly one of value / failure is set."""

    value: "GenerationResult | None" = None
    failure: ProviderFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None and self.value is not None

    @classmethod
    def success(cls, value: "GenerationResult") -> "ProviderResult":
        return cls(value=value)

    @classmethod
    def failed(cls, failure: ProviderFailure) -> "ProviderResult":
        return cls(failure=failure)

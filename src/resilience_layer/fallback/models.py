"""
Data models for fallback runs.

This module defines the target descriptor the unit of work receives, and
the records that capture the history of a fallback run.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from resilience_layer.errors.exceptions import ConfigurationError

R = TypeVar("R")


class ModelTarget(BaseModel):
    """
    A provider/model pair the gateway can forward work to.

    Parsed from "provider/model" references; the model part may itself
    contain slashes (e.g., "openrouter/anthropic/claude-sonnet-4").
    """

    model_config = ConfigDict(frozen=True)

    provider: str = Field(..., min_length=1, description="Provider identifier (e.g., 'anthropic')")
    model: str = Field(..., min_length=1, description="Model identifier within the provider")

    @classmethod
    def parse(cls, ref: str, default_provider: str = "anthropic") -> "ModelTarget":
        """
        Parse a "provider/model" reference.

        Args:
            ref: Model reference; a bare model name uses ``default_provider``
            default_provider: Provider for references without a prefix

        Raises:
            ConfigurationError: If the reference is blank or malformed
        """
        ref = (ref or "").strip()
        if not ref:
            raise ConfigurationError("Model reference must not be empty")
        if "/" not in ref:
            return cls(provider=default_provider, model=ref)
        provider, model = ref.split("/", 1)
        if not provider.strip() or not model.strip():
            raise ConfigurationError(
                f"Invalid model reference: {ref!r}",
                details={"expected": "provider/model"},
            )
        return cls(provider=provider.strip(), model=model.strip())

    def __str__(self) -> str:
        return f"{self.provider}/{self.model}"


class RetryReason(str, Enum):
    """Why a failed attempt did (or did not) advance the chain."""

    RATE_LIMIT = "rate_limit"
    TRANSIENT_NETWORK = "transient_network"
    OTHER = "other"


@dataclass(frozen=True)
class AttemptRecord:
    """
    One failed attempt within a fallback run.

    Attributes:
        target: Target that failed
        reason: Classification that allowed advancing to the next target
        message: Failure message
        error: The original exception
    """

    target: ModelTarget
    reason: RetryReason
    message: str
    error: BaseException = field(repr=False, compare=False)


@dataclass(frozen=True)
class FallbackResult(Generic[R]):
    """
    Successful outcome of a fallback run.

    Attributes:
        result: Value returned by the unit of work
        attempts: Failed predecessors, in chronological order
        target: Target that produced the result
    """

    result: R
    attempts: list[AttemptRecord]
    target: ModelTarget

    @property
    def used_fallback(self) -> bool:
        return bool(self.attempts)

"""
Abstract Provider Interfaces

Classification code depends on LLMProvider only, so tests can pass an
AsyncMock and deployments can swap models without touching call sites.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from pydantic import BaseModel

T = TypeVar("T", bound="BaseModel")


class LLMProvider(ABC):
    """Interface for chat models with structured output."""

    @abstractmethod
    async def generate_structured(
        self,
        prompt: str,
        schema: type[T],
        *,
        system: str | None = None,
        temperature: float = 0.0,
        images: list[bytes] | None = None,
    ) -> T:
        """
        Generate a response matching a Pydantic schema.

        Args:
            prompt: User prompt (may be empty when images carry the content)
            schema: Pydantic model class defining the expected structure
            system: Optional system message
            temperature: Sampling temperature
            images: PNG images attached to the user message

        Returns:
            Instance of schema populated by the model
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model identifier used for requests."""
        ...

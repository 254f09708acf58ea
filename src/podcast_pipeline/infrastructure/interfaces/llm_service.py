"""Abstract interface for LLM service operations."""

from abc import ABC, abstractmethod
from typing import TypeVar

from pydantic import BaseModel

ResponseT = TypeVar("ResponseT", bound=BaseModel)


class LLMService(ABC):
    """Abstract base class for schema-constrained LLM backends."""

    @abstractmethod
    def complete(
        self,
        prompt: str,
        response_model: type[ResponseT],
        system_prompt: str | None = None,
    ) -> ResponseT:
        """
        Runs one generation call and validates the response against a schema.

        Args:
            prompt: The user prompt.
            response_model: Pydantic model the response must conform to.
            system_prompt: Optional system instruction.

        Returns:
            The validated response.

        Raises:
            LLMServiceError: If the call itself fails.
            ResponseValidationError: If the response is empty or malformed.
        """
        pass

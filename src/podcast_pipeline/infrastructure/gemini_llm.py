"""Gemini LLM service implementation."""

from google import genai
from pydantic import ValidationError

from podcast_pipeline.exceptions import LLMServiceError, ResponseValidationError
from podcast_pipeline.infrastructure.interfaces import LLMService
from podcast_pipeline.infrastructure.interfaces.llm_service import ResponseT
from podcast_pipeline.logging import setup_logging

logger = setup_logging()


class GeminiLLMService(LLMService):
    """LLM service implementation using Google Gemini structured output."""

    def __init__(self, client: genai.Client, model_name: str):
        self._client = client
        self._model_name = model_name

    def complete(
        self,
        prompt: str,
        response_model: type[ResponseT],
        system_prompt: str | None = None,
    ) -> ResponseT:
        """
        Generates a JSON response constrained to a pydantic schema.

        Args:
            prompt: The user prompt.
            response_model: Pydantic model the response must conform to.
            system_prompt: Optional system instruction.

        Returns:
            The validated response.

        Raises:
            LLMServiceError: If the Gemini API call fails.
            ResponseValidationError: If Gemini returns nothing or JSON that
                does not match the schema.
        """
        schema_name = response_model.__name__
        config = {
            "response_mime_type": "application/json",
            "response_schema": response_model,
        }
        if system_prompt:
            config["system_instruction"] = system_prompt

        try:
            response = self._client.models.generate_content(
                model=self._model_name,
                contents=prompt,
                config=config,
            )
        except Exception as e:
            logger.exception("Gemini API call failed", extra={"schema": schema_name})
            raise LLMServiceError(f"Gemini generation failed: {e}", cause=e) from e

        if not response.text:
            logger.warning("Gemini returned empty response", extra={"schema": schema_name})
            raise ResponseValidationError(schema_name, "empty response")

        try:
            result = response_model.model_validate_json(response.text)
        except ValidationError as e:
            logger.warning(
                "Gemini response failed validation",
                extra={"schema": schema_name, "errors": e.error_count()},
            )
            raise ResponseValidationError(schema_name, "schema mismatch", cause=e) from e

        logger.info("LLM generation completed", extra={"schema": schema_name})
        return result

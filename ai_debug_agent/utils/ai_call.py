"""
Completion provider wrapper around the OpenAI chat completions call.

A provider answers a prompt either with free text or with text that is
guaranteed to validate against a pydantic response model. Any failure,
including a response that does not match the model, is raised as
CompletionError so callers never mistake it for a normal answer.
"""
import logging
from typing import Optional, Protocol, Type

import openai
from pydantic import BaseModel, ValidationError

from .ai_client import get_openai_client

logger = logging.getLogger(__name__)


class CompletionError(RuntimeError):
    """Raised when the completion service fails or returns an invalid response."""
    pass


class CompletionProvider(Protocol):
    def request_completion(self, prompt: str) -> str:
        ...

    def request_completion_with_schema(self, prompt: str, response_model: Type[BaseModel]) -> str:
        ...


class OpenAIProvider:
    """
    Completion provider backed by the OpenAI chat completions API.

    Args:
        model: Model name, e.g. "gpt-4.1-mini"
        system_prompt: System message sent with every request
        client: Optional pre-built OpenAI client
        api_key: Used to build a client when none is given
        base_url: Optional compatible endpoint
    """

    def __init__(self, model: str, system_prompt: str,
                 client=None, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.model = model
        self.system_prompt = system_prompt
        self.client = client or get_openai_client(api_key=api_key, base_url=base_url)

    @classmethod
    def from_config(cls, config) -> "OpenAIProvider":
        return cls(
            model=config.model,
            system_prompt=config.system_prompt,
            api_key=config.openai_api_key,
            base_url=config.openai_base_url,
        )

    def _messages(self, prompt: str) -> list:
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": prompt},
        ]

    def _create(self, **extra) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                **extra
            )
        except openai.OpenAIError as e:
            raise CompletionError(f"API call failed: {e}") from e

        if not response.choices:
            raise CompletionError("API call returned no choices")
        content = response.choices[0].message.content
        if not content:
            raise CompletionError("API call returned an empty message")
        return content

    def request_completion(self, prompt: str) -> str:
        logger.debug(f"Requesting completion with prompt: {prompt}")
        return self._create(messages=self._messages(prompt))

    def request_completion_with_schema(self, prompt: str, response_model: Type[BaseModel]) -> str:
        """
        Request a completion constrained to the JSON schema of response_model.

        Returns:
            Raw JSON text that validates against response_model

        Raises:
            CompletionError: On API failure or when the response fails validation
        """
        schema = response_model.model_json_schema()
        completion = self._create(
            messages=self._messages(prompt),
            response_format={
                "type": "json_schema",
                "json_schema": {
                    "name": response_model.__name__,
                    "strict": True,
                    "schema": schema,
                },
            },
        )
        logger.debug(f"OpenAI response: {completion}")

        try:
            response_model.model_validate_json(completion)
        except ValidationError as e:
            logger.error(f"Response is not valid according to the schema: {schema}")
            raise CompletionError(
                f"Response is not valid according to the schema\n{e}: {completion}"
            ) from e

        logger.debug("Response is valid according to the declared schema")
        return completion

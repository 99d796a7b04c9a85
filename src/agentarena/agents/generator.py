import json
import logging
import re
import time
from typing import Any

import openai
from openai import OpenAI
from pydantic import ValidationError
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from agentarena.agents.personas import EliminationRequest, KickDecision, PersonaContext
from agentarena.constants import (
    DEFAULT_API_KEY,
    DEFAULT_BASE_URL,
    DEFAULT_MODEL,
    GENERATION_BACKOFF_MAX_SECONDS,
    GENERATION_BACKOFF_MULTIPLIER,
    GENERATION_MAX_ATTEMPTS,
    MAX_OUTPUT_TOKENS,
)
from agentarena.errors import SchemaViolation, UpstreamGenerationFailure

logger = logging.getLogger(__name__)

NO_RESPONSE = "No response"

_THINK_PATTERN = re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE)
_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


def is_transient_error(exc: BaseException) -> bool:
    """Network errors, timeouts, rate limiting and 5xx responses are worth retrying."""
    # APITimeoutError is a subclass of APIConnectionError
    if isinstance(
        exc,
        (openai.APIConnectionError, openai.RateLimitError, openai.InternalServerError),
    ):
        return True
    if isinstance(exc, openai.APIStatusError):
        return exc.status_code == 429 or 500 <= exc.status_code < 600
    return False


def strip_reasoning(text: str) -> str:
    """Drop <think>...</think> blocks some reasoning models prepend to their answer."""
    return _THINK_PATTERN.sub("", text).strip()


def strip_code_fence(text: str) -> str:
    match = _FENCE_PATTERN.match(text.strip())
    return match.group(1) if match else text.strip()


class OpenAIGenerator:
    """
    Text generation service backed by an OpenAI-compatible chat endpoint.

    Two modes are offered: free-form narration for a persona, and a
    constrained elimination decision validated against KickDecision.
    """

    def __init__(
        self,
        model_name: str = DEFAULT_MODEL,
        client: Any | None = None,
        max_attempts: int = GENERATION_MAX_ATTEMPTS,
        wait: wait_base | None = None,
    ):
        """
        Args:
            model_name: Model identifier sent with every request
            client: Pre-built OpenAI client (defaults to one configured from the environment)
            max_attempts: Total attempts per request, including the first one
            wait: tenacity wait strategy between attempts
        """
        self.model_name = model_name
        self.client = client or OpenAI(api_key=DEFAULT_API_KEY, base_url=DEFAULT_BASE_URL)
        self.max_attempts = max_attempts
        self.wait = wait or wait_exponential(
            multiplier=GENERATION_BACKOFF_MULTIPLIER,
            max=GENERATION_BACKOFF_MAX_SECONDS,
        )
        self.last_llm_metadata: dict[str, Any] = {}

    def _retrying(self) -> Retrying:
        return Retrying(
            retry=retry_if_exception(is_transient_error),
            stop=stop_after_attempt(self.max_attempts),
            wait=self.wait,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def _complete(self, messages: list[dict[str, str]], **kwargs: Any) -> str:
        """
        Make one chat completion request, retrying transient failures.

        Raises:
            UpstreamGenerationFailure: If the request still fails after all attempts
        """
        start_time = time.time()
        try:
            completion = self._retrying()(
                self.client.chat.completions.create,
                model=self.model_name,
                messages=messages,
                n=1,
                max_tokens=MAX_OUTPUT_TOKENS,
                **kwargs,
            )
        except openai.OpenAIError as e:
            logger.error("Text generation failed for model %s: %s", self.model_name, e)
            raise UpstreamGenerationFailure(f"Text generation failed: {e}") from e

        usage = getattr(completion, "usage", None)
        self.last_llm_metadata = {
            "model": self.model_name,
            "total_response_time_ms": int((time.time() - start_time) * 1000),
            "response_tokens": usage.completion_tokens if usage else 0,
            "total_tokens_consumed": usage.total_tokens if usage else 0,
        }
        logger.debug("LLM call finished: %s", self.last_llm_metadata)

        content = completion.choices[0].message.content
        return content.strip() if content else ""

    def narrate(self, context: PersonaContext) -> str:
        """Generate the narrative text for one persona turn."""
        text = strip_reasoning(self._complete(context.to_messages()))
        return text or NO_RESPONSE

    def decide_elimination(self, request: EliminationRequest) -> KickDecision:
        """
        Ask the Game Master which player to eliminate.

        Raises:
            SchemaViolation: If the response is not a valid KickDecision
        """
        raw = self._complete(
            request.to_messages(),
            response_format={
                "type": "json_schema",
                "json_schema": {
                    "name": "kick_decision",
                    "schema": KickDecision.model_json_schema(by_alias=True),
                },
            },
        )
        payload = strip_code_fence(strip_reasoning(raw))
        try:
            return KickDecision.model_validate(json.loads(payload))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Elimination decision failed validation: %r", raw[:200])
            raise SchemaViolation(f"Invalid elimination decision: {e}") from e

    def generate_text(self, prompt: str) -> str:
        """Single-prompt generation used by the sample-data tooling."""
        return strip_reasoning(self._complete([{"role": "user", "content": prompt}]))

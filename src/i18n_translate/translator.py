"""
OpenAI-compatible translation client.

Implements the ``translate(system_prompt, content, language_code)`` contract
used by the orchestrator: it returns ``(mapping, None)`` on success and
``(None, error)`` on failure and never raises for service problems.
"""
import asyncio
import logging
import random
from typing import Any, Dict, Optional, Tuple

import tiktoken
from aiolimiter import AsyncLimiter
from openai import (
    APIConnectionError,
    APIStatusError,
    RateLimitError,
    APITimeoutError,
    OpenAIError
)
from openai import AsyncOpenAI
from openai.types.chat import (
    ChatCompletionSystemMessageParam,
    ChatCompletionUserMessageParam
)

from i18n_translate.exceptions import (
    I18nTranslateError,
    NetworkError,
    ResponseFormatError,
    ServiceError
)
from i18n_translate.response_parser import parse_response

logger = logging.getLogger(__name__)

TranslateResult = Tuple[Optional[Dict[str, Any]], Optional[I18nTranslateError]]


def count_tokens(text: str, model_name: str = 'gpt-3.5-turbo') -> int:
    """Count the number of tokens in ``text`` for ``model_name``.

    ``tiktoken.encoding_for_model`` only knows OpenAI model names and may need
    network access to fetch encodings. Endpoint ids of other OpenAI-compatible
    services are unknown to it, so the function falls back to ``gpt2``, and
    as a last resort to a whitespace split.
    """

    try:
        encoding = tiktoken.encoding_for_model(model_name)
    except Exception:
        try:
            encoding = tiktoken.get_encoding("gpt2")
        except Exception:
            return len(text.split())

    try:
        return len(encoding.encode(text))
    except Exception:
        return len(text.split())


def _retry_delay(attempt: int, base_delay: float, api_exc: Optional[Exception] = None) -> float:
    """
    Compute the delay before the next attempt.

    Honours a ``Retry-After`` header (seconds or milliseconds) when the API
    sent one; otherwise uses exponential backoff with jitter.
    """
    try:
        response = getattr(api_exc, "response", None)
        headers = getattr(response, "headers", None) or {}
        retry_after_header = headers.get("Retry-After")
        if retry_after_header:
            if retry_after_header.isdigit():
                return float(retry_after_header)
            if retry_after_header.endswith("ms"):
                return float(retry_after_header[:-2]) / 1000
    except (AttributeError, TypeError, ValueError) as exc:
        logger.warning("Failed to parse Retry-After header: %s. Falling back to exponential backoff.", exc)
    return base_delay * (2 ** (attempt - 1)) + random.uniform(0, 1)


RETRYABLE_STATUS_CODES = frozenset({408, 409, 429})


def _is_retryable(api_exc: OpenAIError) -> bool:
    """Rate limits, timeouts, connection faults and 5xx are worth another attempt; auth and request errors are not."""
    if isinstance(api_exc, (RateLimitError, APIConnectionError)):
        return True
    if isinstance(api_exc, APIStatusError):
        return api_exc.status_code in RETRYABLE_STATUS_CODES or api_exc.status_code >= 500
    return False


def _to_service_error(api_exc: OpenAIError, language_code: str) -> ServiceError:
    details = {"language": language_code, "error_type": api_exc.__class__.__name__}
    if isinstance(api_exc, (APIConnectionError, APITimeoutError)):
        return NetworkError(f"Could not reach the translation service: {api_exc}", details=details)
    if isinstance(api_exc, APIStatusError):
        details["status_code"] = api_exc.status_code
    return ServiceError(f"Translation service error: {api_exc}", details=details)


class OpenAITranslator:
    """Translates a JSON selection into one language per call."""

    def __init__(
            self,
            client: AsyncOpenAI,
            model_name: str,
            temperature: float = 0.2,
            max_retries: int = 3,
            base_delay: float = 1.0,
            rate_limiter: Optional[AsyncLimiter] = None,
            max_model_tokens: int = 4000,
            request_timeout: float = 120.0
    ):
        self.client = client
        self.model_name = model_name
        self.temperature = temperature
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.rate_limiter = rate_limiter or AsyncLimiter(max_rate=60, time_period=60)
        self.max_model_tokens = max_model_tokens
        self.request_timeout = request_timeout

    async def __call__(self, system_prompt: str, content: str, language_code: str) -> TranslateResult:
        return await self.translate(system_prompt, content, language_code)

    async def translate(self, system_prompt: str, content: str, language_code: str) -> TranslateResult:
        """
        Translate ``content`` (a JSON object as text) into ``language_code``.

        Args:
            system_prompt: Instructions for the model.
            content: The serialized selection.
            language_code: Target language code, appended to the user message.

        Returns:
            ``(translated_mapping, None)`` on success, ``(None, error)`` otherwise.
        """
        user_content = f"{content} {language_code}"

        prompt_tokens = count_tokens(system_prompt + user_content, self.model_name)
        if prompt_tokens > self.max_model_tokens:
            logger.warning(
                "Request for '%s' is about %d tokens, above the configured limit of %d. "
                "The reply may be truncated.", language_code, prompt_tokens, self.max_model_tokens
            )

        for attempt in range(1, self.max_retries + 1):
            try:
                async with self.rate_limiter:
                    response = await self.client.chat.completions.create(
                        model=self.model_name,
                        messages=[
                            ChatCompletionSystemMessageParam(role="system", content=system_prompt),
                            ChatCompletionUserMessageParam(role="user", content=user_content)
                        ],
                        temperature=self.temperature,
                        timeout=self.request_timeout,
                    )
            except (RateLimitError, APITimeoutError, APIConnectionError, APIStatusError, OpenAIError) as api_exc:
                logger.error("API error occurred: %s - %s", api_exc.__class__.__name__, api_exc)
                if not _is_retryable(api_exc):
                    logger.error("Not retrying the request for '%s': the error is not recoverable.", language_code)
                    return None, _to_service_error(api_exc, language_code)
                if attempt < self.max_retries:
                    delay = _retry_delay(attempt, self.base_delay, api_exc)
                    logger.info(
                        "Retrying request to /chat/completions in %.2f seconds (Attempt %d/%d)",
                        delay, attempt, self.max_retries
                    )
                    await asyncio.sleep(delay)
                    continue
                logger.error("Translation to '%s' failed after %d attempts.", language_code, self.max_retries)
                return None, _to_service_error(api_exc, language_code)

            reply = response.choices[0].message.content if response.choices else None
            if not reply:
                return None, ServiceError(
                    f"Translation service returned an empty reply for '{language_code}'.",
                    details={"language": language_code}
                )

            try:
                translated = parse_response(reply)
            except ResponseFormatError as format_exc:
                logger.debug("Unparseable reply for '%s':\n---\n%s\n---", language_code, reply)
                return None, format_exc

            logger.debug("Translated %d keys to '%s'.", len(translated), language_code)
            return translated, None

        return None, ServiceError(
            f"Translation to '{language_code}' was not attempted (max_retries={self.max_retries})."
        )

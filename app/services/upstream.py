"""Shared plumbing for calls to the OpenAI speech and chat endpoints."""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import openai
from openai import AsyncOpenAI
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.config import get_settings
from app.errors import InternalError, JournalError, UpstreamConfigError, UpstreamQuotaExceeded

logger = logging.getLogger("voice_journal")

T = TypeVar("T")

_client: AsyncOpenAI | None = None


def get_openai_client() -> AsyncOpenAI:
    """Shared async client with an explicit timeout. Retries are handled by ``call_with_retry``."""
    global _client
    if _client is None:
        settings = get_settings()
        if not settings.OPENAI_API_KEY:
            raise UpstreamConfigError()
        _client = AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY,
            timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
            max_retries=0,
        )
    return _client


async def call_with_retry(fn: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
    """Await ``fn`` retrying only on timeouts and connection failures."""
    settings = get_settings()
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(max(1, settings.UPSTREAM_MAX_ATTEMPTS)),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type((openai.APITimeoutError, openai.APIConnectionError)),
        reraise=True,
    ):
        with attempt:
            if attempt.retry_state.attempt_number > 1:
                logger.warning("Retrying %s (attempt %d)", getattr(fn, "__qualname__", fn), attempt.retry_state.attempt_number)
            return await fn(*args, **kwargs)
    raise InternalError()  # pragma: no cover


def translate_upstream_error(exc: Exception) -> JournalError:
    """Map an SDK exception to the journal error taxonomy."""
    if isinstance(exc, JournalError):
        return exc
    if isinstance(exc, openai.RateLimitError):
        return UpstreamQuotaExceeded()
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return UpstreamConfigError()

    message = str(exc).lower()
    if "quota" in message:
        return UpstreamQuotaExceeded()
    if "api key" in message:
        return UpstreamConfigError()
    return InternalError()

"""Provider adapter: one async call shape over the OpenAI and Gemini SDKs."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, TypeVar

import httpx
import openai
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from resume_analyzer.config import ProviderCredentials
from resume_analyzer.errors import (
    ConfigurationError,
    DeadlineExceededError,
    StreamInterruptedError,
    VendorError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

PROVIDER_NAMES = {"openai": "OpenAI", "gemini": "Google Gemini"}

# Model ids that belong to Gemini no matter which provider was selected
GEMINI_MODEL_PREFIX = "gemini"
# OpenAI models served through the Responses API instead of chat completions
RESPONSES_API_PATTERN = re.compile(r"^gpt-(4\.1|5)")


def is_gemini_model(model: str) -> bool:
    return model.startswith(GEMINI_MODEL_PREFIX)


def uses_responses_api(model: str) -> bool:
    return bool(RESPONSES_API_PATTERN.match(model))


def resolve_provider(provider: str, model: str) -> str:
    """Return the provider that will actually serve ``model``."""
    if provider == "gemini" or is_gemini_model(model):
        return "gemini"
    return "openai"


@dataclass
class ModelRequest:
    """A single model invocation. ``api_key`` overrides the process default."""

    provider: str
    model: str
    system_prompt: str
    user_message: str
    api_key: str | None = field(default=None, repr=False)
    max_output_tokens: int = 8000
    temperature: float = 0.3


@dataclass
class BufferedText:
    text: str | None
    input_tokens: int = 0
    output_tokens: int = 0


class ChunkStream:
    """Text chunks in arrival order.

    ``prime()`` pulls the first chunk early so connection and auth failures
    raise before a caller commits to streaming.
    """

    def __init__(self, chunks: AsyncIterator[str]):
        self._chunks = chunks
        self._primed: list[str] = []
        self._exhausted = False

    async def prime(self) -> bool:
        """Buffer the first chunk. Returns False when the stream is empty."""
        try:
            self._primed.append(await self._chunks.__anext__())
        except StopAsyncIteration:
            self._exhausted = True
            return False
        return True

    def __aiter__(self) -> AsyncIterator[str]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[str]:
        while self._primed:
            yield self._primed.pop(0)
        if self._exhausted:
            return
        async for chunk in self._chunks:
            yield chunk

    async def collect(self) -> str:
        return "".join([chunk async for chunk in self])


@dataclass
class ModelOutput:
    """Result of one invocation, tagged with the provider that served it."""

    provider: str
    model: str
    result: BufferedText | ChunkStream


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def extract_responses_text(response: Any) -> str | None:
    """Flatten a Responses API result into one string.

    Any string ``output_text`` wins, even an empty one; otherwise the first
    content block carrying a ``text`` string is used.
    """
    output_text = _field(response, "output_text")
    if isinstance(output_text, str):
        return output_text

    for item in _field(response, "output") or []:
        for block in _field(item, "content") or []:
            text = _field(block, "text")
            if isinstance(text, str):
                return text
    return None


def _wrap_openai_error(exc: openai.APIError, timeout: float | None) -> Exception:
    if isinstance(exc, openai.APITimeoutError):
        return DeadlineExceededError("openai", timeout)
    retryable = isinstance(
        exc, (openai.RateLimitError, openai.APIConnectionError, openai.InternalServerError)
    )
    return VendorError("openai", str(exc), retryable=retryable)


def _wrap_gemini_error(exc: genai_errors.APIError) -> Exception:
    retryable = isinstance(exc, genai_errors.ServerError) or exc.code == 429
    return VendorError("gemini", str(exc), retryable=retryable)


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, VendorError) and exc.retryable


async def _close_client(provider: str, client: Any) -> None:
    if provider == "gemini":
        await client.aio.aclose()
    else:
        await client.close()


_STREAM_END = object()


async def _next_chunk(iterator: AsyncIterator[str]) -> Any:
    try:
        return await iterator.__anext__()
    except StopAsyncIteration:
        return _STREAM_END


class ProviderAdapter:
    """Issues model calls against OpenAI or Gemini.

    Credentials are injected at construction; a request key, when given,
    is used for that call only.
    """

    def __init__(
        self,
        credentials: ProviderCredentials,
        *,
        timeout: float | None = None,
        max_attempts: int = 1,
        openai_factory: Callable[..., Any] = openai.AsyncOpenAI,
        gemini_factory: Callable[..., Any] = genai.Client,
    ):
        self.credentials = credentials
        self.timeout = timeout
        self.max_attempts = max_attempts
        self._openai_factory = openai_factory
        self._gemini_factory = gemini_factory
        # Clients for the process-default keys, reused across requests
        self._clients: dict[str, Any] = {}

    async def aclose(self) -> None:
        """Close the cached default-key clients."""
        clients, self._clients = self._clients, {}
        for provider, client in clients.items():
            await _close_client(provider, client)

    def _make_client(self, provider: str, api_key: str) -> Any:
        if provider == "gemini":
            return self._gemini_factory(api_key=api_key)
        return self._openai_factory(api_key=api_key)

    @asynccontextmanager
    async def _client(self, provider: str, api_key: str) -> AsyncIterator[Any]:
        """Yield an SDK client. Request-key clients are closed on exit."""
        if api_key == self.credentials.for_provider(provider):
            if provider not in self._clients:
                self._clients[provider] = self._make_client(provider, api_key)
            yield self._clients[provider]
            return

        client = self._make_client(provider, api_key)
        try:
            yield client
        finally:
            await _close_client(provider, client)

    def resolve_api_key(self, provider: str, override: str | None) -> str:
        key = override or self.credentials.for_provider(provider)
        if not key:
            raise ConfigurationError(f"Missing {PROVIDER_NAMES[provider]} API key")
        return key

    def _route(self, request: ModelRequest) -> tuple[str, str]:
        provider = resolve_provider(request.provider, request.model)
        if provider != request.provider:
            logger.info(
                "Model %s is served by %s (requested %s)",
                request.model, provider, request.provider,
            )
        return provider, self.resolve_api_key(provider, request.api_key)

    async def generate(self, request: ModelRequest) -> ModelOutput:
        """Buffered call. Returns the full text (possibly None) with usage."""
        provider, api_key = self._route(request)
        logger.debug("LLM call: provider=%s model=%s", provider, request.model)

        result: BufferedText | None = None
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(min=1, max=10),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        ):
            with attempt:
                if provider == "gemini":
                    result = await self._guard(provider, self._gemini_generate(api_key, request))
                else:
                    result = await self._guard(provider, self._openai_generate(api_key, request))

        logger.debug(
            "LLM response: %d input, %d output tokens",
            result.input_tokens, result.output_tokens,
        )
        return ModelOutput(provider=provider, model=request.model, result=result)

    async def stream(self, request: ModelRequest) -> ModelOutput:
        """Streaming call. Responses API models yield their buffered text as one chunk."""
        provider, api_key = self._route(request)
        logger.debug("LLM stream: provider=%s model=%s", provider, request.model)

        if provider == "gemini":
            chunks = self._gemini_stream(api_key, request)
        elif uses_responses_api(request.model):
            chunks = self._buffered_as_stream(api_key, request)
        else:
            chunks = self._openai_stream(api_key, request)
        return ModelOutput(
            provider=provider,
            model=request.model,
            result=ChunkStream(self._guard_stream(provider, chunks)),
        )

    async def _with_deadline(self, provider: str, awaitable: Awaitable[T]) -> T:
        if self.timeout is None:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError:
            raise DeadlineExceededError(provider, self.timeout) from None

    async def _guard(self, provider: str, awaitable: Awaitable[T]) -> T:
        """Apply the deadline and translate SDK errors."""
        try:
            return await self._with_deadline(provider, awaitable)
        except openai.APIError as exc:
            raise _wrap_openai_error(exc, self.timeout) from exc
        except genai_errors.APIError as exc:
            raise _wrap_gemini_error(exc) from exc
        except (httpx.HTTPError, OSError) as exc:
            # google-genai lets transport failures through unwrapped
            raise VendorError(provider, str(exc) or type(exc).__name__, retryable=True) from exc

    async def _guard_stream(self, provider: str, chunks: AsyncIterator[str]) -> AsyncIterator[str]:
        iterator = chunks.__aiter__()
        started = False
        while True:
            try:
                chunk = await self._guard(provider, _next_chunk(iterator))
            except VendorError as exc:
                if not started:
                    raise
                logger.error("%s stream interrupted: %s", provider, exc.message)
                raise StreamInterruptedError(provider, exc.message) from exc
            if chunk is _STREAM_END:
                return
            started = True
            if chunk:
                yield chunk

    # -- OpenAI -----------------------------------------------------------

    async def _openai_generate(self, api_key: str, request: ModelRequest) -> BufferedText:
        async with self._client("openai", api_key) as client:
            if uses_responses_api(request.model):
                return await self._responses_api_call(client, request)
            return await self._chat_completions_call(client, request)

    async def _chat_completions_call(self, client: Any, request: ModelRequest) -> BufferedText:
        completion = await client.chat.completions.create(
            model=request.model,
            messages=[
                {"role": "system", "content": request.system_prompt},
                {"role": "user", "content": request.user_message},
            ],
            temperature=request.temperature,
            max_tokens=request.max_output_tokens,
            response_format={"type": "json_object"},
        )
        text = completion.choices[0].message.content if completion.choices else None
        usage = completion.usage
        return BufferedText(
            text=text,
            input_tokens=(usage.prompt_tokens or 0) if usage else 0,
            output_tokens=(usage.completion_tokens or 0) if usage else 0,
        )

    async def _responses_api_call(self, client: Any, request: ModelRequest) -> BufferedText:
        response = await client.responses.create(
            model=request.model,
            input=[
                {
                    "role": "system",
                    "content": [{"type": "input_text", "text": request.system_prompt}],
                },
                {
                    "role": "user",
                    "content": [{"type": "input_text", "text": request.user_message}],
                },
            ],
            max_output_tokens=request.max_output_tokens,
        )
        usage = getattr(response, "usage", None)
        return BufferedText(
            text=extract_responses_text(response),
            input_tokens=(usage.input_tokens or 0) if usage else 0,
            output_tokens=(usage.output_tokens or 0) if usage else 0,
        )

    async def _openai_stream(self, api_key: str, request: ModelRequest) -> AsyncIterator[str]:
        async with self._client("openai", api_key) as client:
            stream = await client.chat.completions.create(
                model=request.model,
                messages=[
                    {"role": "system", "content": request.system_prompt},
                    {"role": "user", "content": request.user_message},
                ],
                temperature=request.temperature,
                max_tokens=request.max_output_tokens,
                response_format={"type": "json_object"},
                stream=True,
            )
            async for chunk in stream:
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content

    async def _buffered_as_stream(self, api_key: str, request: ModelRequest) -> AsyncIterator[str]:
        result = await self._openai_generate(api_key, request)
        if result.text:
            yield result.text

    # -- Gemini -----------------------------------------------------------

    def _gemini_config(self, request: ModelRequest) -> genai_types.GenerateContentConfig:
        return genai_types.GenerateContentConfig(
            temperature=request.temperature,
            max_output_tokens=request.max_output_tokens,
        )

    async def _gemini_generate(self, api_key: str, request: ModelRequest) -> BufferedText:
        # Gemini gets the system prompt inline, ahead of the user message
        async with self._client("gemini", api_key) as client:
            response = await client.aio.models.generate_content(
                model=request.model,
                contents=f"{request.system_prompt}\n\n{request.user_message}",
                config=self._gemini_config(request),
            )
        text = response.text
        usage = getattr(response, "usage_metadata", None)
        return BufferedText(
            text=text if isinstance(text, str) else None,
            input_tokens=(usage.prompt_token_count or 0) if usage else 0,
            output_tokens=(usage.candidates_token_count or 0) if usage else 0,
        )

    async def _gemini_stream(self, api_key: str, request: ModelRequest) -> AsyncIterator[str]:
        async with self._client("gemini", api_key) as client:
            stream = await client.aio.models.generate_content_stream(
                model=request.model,
                contents=f"{request.system_prompt}\n\n{request.user_message}",
                config=self._gemini_config(request),
            )
            async for chunk in stream:
                if isinstance(chunk.text, str):
                    yield chunk.text

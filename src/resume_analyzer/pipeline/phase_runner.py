"""Phase runner: prompt -> provider -> normalize -> parse, for one phase.

Each invocation ends in exactly one of: a parsed result,
``EmptyResponseError`` or ``PhaseParseError``. There is no retry and no
fallback to another provider.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, ValidationError

from resume_analyzer.clients.llm_client import (
    BufferedText,
    ModelOutput,
    ModelRequest,
    ProviderAdapter,
)
from resume_analyzer.errors import EmptyResponseError, PhaseParseError, ResumeAnalyzerError
from resume_analyzer.logging.cost_calculator import calculate_cost
from resume_analyzer.logging.models import PhaseUsage
from resume_analyzer.utils.json_parser import error_context, normalize_response

logger = logging.getLogger(__name__)

PhaseName = Literal["analysis", "rewrite"]
ResultT = TypeVar("ResultT", bound=BaseModel)


@dataclass
class PhaseRequest:
    phase: PhaseName
    model_request: ModelRequest


@dataclass
class PhaseOutcome(Generic[ResultT]):
    data: ResultT
    provider: str
    usage: PhaseUsage


class PhaseRunner:
    def __init__(self, adapter: ProviderAdapter):
        self.adapter = adapter

    async def run(
        self,
        request: PhaseRequest,
        result_type: type[ResultT],
        *,
        stream: bool = False,
    ) -> PhaseOutcome[ResultT]:
        """Run one phase to completion and parse the result."""
        start = time.monotonic()
        model_request = request.model_request
        usage = PhaseUsage(
            phase=request.phase,
            requested_provider=model_request.provider,
            provider=model_request.provider,
            model=model_request.model,
            streamed=stream,
        )
        try:
            if stream:
                output = await self.adapter.stream(model_request)
            else:
                output = await self.adapter.generate(model_request)
            usage.provider = output.provider
            text = await self._read_text(output, usage)
            data = self.parse(request.phase, output.provider, text, result_type)
        except ResumeAnalyzerError as exc:
            usage.success = False
            usage.error_kind = type(exc).__name__
            raise
        finally:
            usage.elapsed_seconds = time.monotonic() - start
            logger.info("Phase usage: %s", usage.log_line())

        return PhaseOutcome(data=data, provider=output.provider, usage=usage)

    async def open_stream(self, request: PhaseRequest) -> ModelOutput:
        """Open a stream for pass-through delivery.

        The first chunk is awaited here so that credential and vendor
        failures raise before any bytes reach the caller.
        """
        output = await self.adapter.stream(request.model_request)
        if not await output.result.prime():
            raise EmptyResponseError(request.phase, output.provider)
        logger.info(
            "Streaming %s phase from provider=%s model=%s",
            request.phase, output.provider, output.model,
        )
        return output

    @staticmethod
    async def _read_text(output: ModelOutput, usage: PhaseUsage) -> str | None:
        result = output.result
        if isinstance(result, BufferedText):
            usage.input_tokens = result.input_tokens
            usage.output_tokens = result.output_tokens
            usage.estimated_cost_usd = calculate_cost(
                [(output.model, result.input_tokens, result.output_tokens)]
            )
            return result.text
        return await result.collect()

    @staticmethod
    def parse(
        phase: PhaseName,
        provider: str,
        text: str | None,
        result_type: type[ResultT],
    ) -> ResultT:
        """Normalize and parse model text for ``phase``."""
        if not text:
            raise EmptyResponseError(phase, provider)

        cleaned = normalize_response(provider, text)
        try:
            data = json.loads(cleaned)
            if not isinstance(data, dict):
                raise ValueError(f"Expected JSON object, got {type(data).__name__}")
            return result_type.model_validate(data)
        except (ValueError, ValidationError) as exc:
            logger.error(
                "%s phase parse failure: provider=%s error=%s",
                phase, provider, type(exc).__name__,
            )
            logger.debug("Parse error detail: %s", exc)
            logger.debug("Cleaned text near error: %s", error_context(cleaned, exc))
            raise PhaseParseError(
                phase=phase,
                provider=provider,
                raw=text,
                cleaned=cleaned,
                original_error=exc,
            ) from exc

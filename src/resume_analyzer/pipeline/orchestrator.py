"""Résumé analyzer service - coordinates the analysis and rewrite phases."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field

from resume_analyzer.clients.llm_client import (
    ModelOutput,
    ModelRequest,
    ProviderAdapter,
    is_gemini_model,
)
from resume_analyzer.config import LLMConfig, ProviderCredentials
from resume_analyzer.errors import InputValidationError
from resume_analyzer.models.analysis import AnalysisPhaseResult
from resume_analyzer.models.input import AnalysisInput, RewriteRequest, validate_resume_text
from resume_analyzer.models.rewrite import RewritePhaseResult
from resume_analyzer.pipeline.phase_runner import PhaseOutcome, PhaseRequest, PhaseRunner
from resume_analyzer.pipeline.prompts import (
    ANALYSIS_PHASE_PROMPT,
    REWRITE_PHASE_PROMPT,
    build_analysis_message,
    build_rewrite_message,
)


@dataclass
class AnalysisReport:
    """Result of running both phases back to back."""

    analysis: AnalysisPhaseResult
    rewrite: RewritePhaseResult | None
    providers: dict[str, str] = field(default_factory=dict)
    elapsed_seconds: float = 0.0


class ResumeAnalyzer:
    """Builds phase requests from validated input and runs them."""

    def __init__(
        self,
        adapter: ProviderAdapter,
        *,
        llm_config: LLMConfig | None = None,
        credentials: ProviderCredentials | None = None,
    ):
        self.runner = PhaseRunner(adapter)
        self.llm_config = llm_config or LLMConfig()
        self.credentials = credentials or adapter.credentials

    def resolve_model(self, provider: str, model: str | None) -> str:
        """Request model, else the environment default, else the configured one.

        The environment default only applies when it belongs to ``provider``.
        """
        if model:
            return model
        default = self.credentials.default_model
        if default and is_gemini_model(default) == (provider == "gemini"):
            return default
        return self.llm_config.default_model(provider)

    def _analysis_request(self, input: AnalysisInput) -> PhaseRequest:
        validate_resume_text(input.resume_text)
        return PhaseRequest(
            phase="analysis",
            model_request=ModelRequest(
                provider=input.provider,
                model=self.resolve_model(input.provider, input.model),
                system_prompt=ANALYSIS_PHASE_PROMPT,
                user_message=build_analysis_message(input),
                api_key=_secret(input),
                max_output_tokens=input.constraints.max_output_tokens,
                temperature=self.llm_config.analysis_temperature,
            ),
        )

    def _rewrite_request(
        self, input: AnalysisInput, analysis: AnalysisPhaseResult | None
    ) -> PhaseRequest:
        validate_resume_text(input.resume_text)
        if analysis is None:
            raise InputValidationError("Analysis data is required")
        return PhaseRequest(
            phase="rewrite",
            model_request=ModelRequest(
                provider=input.provider,
                model=self.resolve_model(input.provider, input.model),
                system_prompt=REWRITE_PHASE_PROMPT,
                user_message=build_rewrite_message(input, analysis),
                api_key=_secret(input),
                max_output_tokens=input.constraints.max_output_tokens,
                temperature=self.llm_config.rewrite_temperature,
            ),
        )

    async def analyze(
        self, input: AnalysisInput, *, stream: bool = False
    ) -> PhaseOutcome[AnalysisPhaseResult]:
        """Run the analysis phase."""
        request = self._analysis_request(input)
        return await self.runner.run(request, AnalysisPhaseResult, stream=stream)

    async def rewrite(
        self, request: RewriteRequest, *, stream: bool = False
    ) -> PhaseOutcome[RewritePhaseResult]:
        """Run the rewrite phase on top of a prior analysis result."""
        phase_request = self._rewrite_request(request.to_analysis_input(), request.analysis)
        return await self.runner.run(phase_request, RewritePhaseResult, stream=stream)

    async def stream_analysis(self, input: AnalysisInput) -> ModelOutput:
        """Open the analysis phase as a raw text stream."""
        return await self.runner.open_stream(self._analysis_request(input))

    async def stream_rewrite(self, request: RewriteRequest) -> ModelOutput:
        """Open the rewrite phase as a raw text stream."""
        return await self.runner.open_stream(
            self._rewrite_request(request.to_analysis_input(), request.analysis)
        )

    async def run(
        self,
        input: AnalysisInput,
        *,
        include_rewrite: bool = True,
        on_phase: Callable[[str, str], None] | None = None,
    ) -> AnalysisReport:
        """Run analysis, then rewrite with the analysis embedded.

        Args:
            input: Validated analysis input.
            include_rewrite: Stop after the analysis phase when False.
            on_phase: Optional callback(phase_name, detail) for progress.
        """
        start = time.monotonic()

        def _notify(phase: str, detail: str = ""):
            if on_phase:
                on_phase(phase, detail)

        _notify("analysis", "Analyzing résumé")
        analysis = await self.analyze(input)
        providers = {"analysis": analysis.provider}
        _notify("analysis_done", f"provider: {analysis.provider}")

        rewrite: RewritePhaseResult | None = None
        if include_rewrite:
            _notify("rewrite", "Rewriting résumé")
            outcome = await self.rewrite(
                RewriteRequest(
                    resume_text=input.resume_text,
                    analysis=analysis.data,
                    perspective=input.perspective,
                    language=input.language,
                    region=input.region,
                    provider=input.provider,
                    model=input.model,
                    provider_api_key=input.provider_api_key,
                    target_role=input.target_role,
                )
            )
            rewrite = outcome.data
            providers["rewrite"] = outcome.provider
            _notify("rewrite_done", f"provider: {outcome.provider}")

        elapsed = time.monotonic() - start
        _notify("done", f"{elapsed:.1f}s")
        return AnalysisReport(
            analysis=analysis.data,
            rewrite=rewrite,
            providers=providers,
            elapsed_seconds=elapsed,
        )


def _secret(input: AnalysisInput) -> str | None:
    if input.provider_api_key is None:
        return None
    return input.provider_api_key.get_secret_value()

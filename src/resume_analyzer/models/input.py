"""Request models for the analysis and rewrite phases."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, SecretStr

from resume_analyzer.errors import InputValidationError
from resume_analyzer.models.analysis import AnalysisPhaseResult

MIN_RESUME_CHARS = 100
MAX_RESUME_CHARS = 15_000

Perspective = Literal[
    "general",
    "leadership",
    "technical",
    "sales",
    "hr",
    "legal",
    "customer_service",
    "product",
    "marketing",
    "finance",
    "operations",
]
Language = Literal["es", "en", "en-GB"]
Region = Literal["usa", "latam_mx", "uk"]
Tone = Literal["concise", "professional", "friendly"]
Provider = Literal["openai", "gemini"]


def validate_resume_text(resume_text: str | None) -> str:
    """Enforce the [100, 15000] character bounds on résumé text."""
    if not resume_text or len(resume_text) < MIN_RESUME_CHARS:
        raise InputValidationError(
            f"Resume text must be at least {MIN_RESUME_CHARS} characters"
        )
    if len(resume_text) > MAX_RESUME_CHARS:
        raise InputValidationError(
            f"Resume text must not exceed {MAX_RESUME_CHARS:,} characters"
        )
    return resume_text


class AnalysisConstraints(BaseModel):
    max_output_tokens: int = Field(default=8000, ge=1)
    format: Literal["markdown"] = "markdown"
    tone: Tone = "professional"


class AnalysisInput(BaseModel):
    # Length is checked by validate_resume_text so the HTTP layer can answer 400
    resume_text: str = ""
    perspective: Perspective = "general"
    language: Language = "en"
    region: Region = "usa"
    provider: Provider = "openai"
    model: str | None = None
    provider_api_key: SecretStr | None = Field(default=None, exclude=True)
    target_role: str | None = None
    job_description: str | None = None
    constraints: AnalysisConstraints = Field(default_factory=AnalysisConstraints)

    @property
    def has_job_description(self) -> bool:
        return bool(self.job_description and self.job_description.strip())


class RewriteRequest(BaseModel):
    resume_text: str = ""
    analysis: AnalysisPhaseResult | None = None
    perspective: Perspective = "general"
    language: Language = "en"
    region: Region = "usa"
    provider: Provider = "openai"
    model: str | None = None
    provider_api_key: SecretStr | None = Field(default=None, exclude=True)
    target_role: str | None = None

    def to_analysis_input(self) -> AnalysisInput:
        """Build the input record the rewrite prompt is rendered from."""
        return AnalysisInput(
            resume_text=self.resume_text,
            perspective=self.perspective,
            language=self.language,
            region=self.region,
            provider=self.provider,
            model=self.model,
            provider_api_key=self.provider_api_key,
            target_role=self.target_role,
            job_description=None,
            constraints=AnalysisConstraints(),
        )

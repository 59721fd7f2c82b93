"""Pydantic models for the analysis phase output."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _ModelOutput(BaseModel):
    # Keys the model adds beyond the schema are passed through untouched
    model_config = ConfigDict(extra="allow")


class ErrorDetail(_ModelOutput):
    code: str = ""
    severity: str = "warning"  # critical, warning or info
    message: str = ""


class AnalysisMeta(_ModelOutput):
    language: str = ""
    perspective: str = ""
    region: str = ""
    schema_version: str = ""
    warnings: list[str] = []
    errors: list[ErrorDetail | str] = []


class ExperienceEntry(_ModelOutput):
    title: str = ""
    company: str = ""
    dates: str = ""
    bullets: list[str] = []


class EducationEntry(_ModelOutput):
    degree: str = ""
    institution: str = ""
    dates: str = ""


class ExtractedProfile(_ModelOutput):
    headline: str = ""
    summary: str = ""
    skills: list[str] = []
    experience: list[ExperienceEntry] = []
    education: list[EducationEntry] = []
    certifications: list[str] = []
    achievements: list[str] = []


class DiagnosticScores(_ModelOutput):
    # 0.0-10.0 by contract; passed through without clamping
    clarity: float = 0.0
    impact: float = 0.0
    ats_alignment: float = 0.0
    readability: float = 0.0
    role_fit: float = 0.0


class Diagnostic(_ModelOutput):
    scores: DiagnosticScores = Field(default_factory=DiagnosticScores)
    score_explanation: str = ""
    strengths: list[str] = []
    gaps: list[str] = []
    risks: list[str] = []


class KeywordCoverage(_ModelOutput):
    keyword: str
    present: bool = False
    evidence: str = ""


class KeywordHelper(_ModelOutput):
    """Job-description keyword comparison.

    Only ``enabled`` and ``message`` are expected when no job description
    was supplied; list fields the model never sends stay out of the payload.
    """

    enabled: bool = False
    message: str | None = None
    jd_keywords: list[str] | None = None
    resume_keyword_coverage: list[KeywordCoverage] | None = None
    missing_keywords: list[str] | None = None
    weak_keywords: list[str] | None = None
    integration_suggestions: list[str] | None = None


class SectionRecommendations(_ModelOutput):
    summary: list[str] = []
    skills: list[str] = []
    experience: list[str] = []
    education: list[str] = []
    achievements: list[str] = []


class RewriteCriteria(_ModelOutput):
    tone: str = ""
    length: str = ""
    style: str = ""


class Recommendations(_ModelOutput):
    global_: list[str] = Field(default=[], alias="global")
    by_section: SectionRecommendations = Field(default_factory=SectionRecommendations)
    rewrite_criteria: RewriteCriteria = Field(default_factory=RewriteCriteria)

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class AnalysisPhaseResult(_ModelOutput):
    meta: AnalysisMeta = Field(default_factory=AnalysisMeta)
    extracted_profile: ExtractedProfile = Field(default_factory=ExtractedProfile)
    diagnostic: Diagnostic = Field(default_factory=Diagnostic)
    keyword_helper: KeywordHelper = Field(default_factory=KeywordHelper)
    recommendations: Recommendations = Field(default_factory=Recommendations)

    def to_payload(self) -> dict:
        """JSON-ready dict using the wire names.

        Only keys the model sent are kept; explicit nulls survive.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)

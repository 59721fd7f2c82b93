"""Data models for the résumé analysis phases."""

from resume_analyzer.models.analysis import (
    AnalysisMeta,
    AnalysisPhaseResult,
    Diagnostic,
    DiagnosticScores,
    ExtractedProfile,
    KeywordHelper,
    Recommendations,
    RewriteCriteria,
)
from resume_analyzer.models.input import (
    MAX_RESUME_CHARS,
    MIN_RESUME_CHARS,
    AnalysisConstraints,
    AnalysisInput,
    RewriteRequest,
    validate_resume_text,
)
from resume_analyzer.models.rewrite import ChangelogEntry, RewritePhaseResult

__all__ = [
    "MAX_RESUME_CHARS",
    "MIN_RESUME_CHARS",
    "AnalysisConstraints",
    "AnalysisInput",
    "AnalysisMeta",
    "AnalysisPhaseResult",
    "ChangelogEntry",
    "Diagnostic",
    "DiagnosticScores",
    "ExtractedProfile",
    "KeywordHelper",
    "Recommendations",
    "RewriteCriteria",
    "RewritePhaseResult",
    "RewriteRequest",
    "validate_resume_text",
]

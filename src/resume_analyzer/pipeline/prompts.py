"""Versioned system prompts and the per-phase user message builders.

The builders are pure: identical inputs render byte-identical messages.
"""

from __future__ import annotations

import json

from resume_analyzer.errors import InputValidationError
from resume_analyzer.models.analysis import AnalysisPhaseResult
from resume_analyzer.models.input import AnalysisInput

PROMPT_VERSION = "2.0"

ANALYSIS_PHASE_PROMPT = """\
# Resume Analyzer – Analysis Phase v2.0

You evaluate résumés and produce a succinct diagnostic JSON. Focus on accuracy and ATS alignment.

## Output JSON (analysis phase)
{
  "meta": {
    "language": "es | en | en-GB",
    "perspective": "string",
    "region": "usa | latam_mx | uk",
    "schema_version": "2.0",
    "warnings": ["string"],
    "errors": ["string"]
  },
  "extracted_profile": {
    "headline": "string",
    "summary": "string",
    "skills": ["string"],
    "experience": [{"title":"", "company":"", "dates":"MM/YYYY - MM/YYYY", "bullets":["string (≤28 words)"]}],
    "education": [{"degree":"", "institution":"", "dates":""}],
    "certifications": ["string"],
    "achievements": ["string"]
  },
  "diagnostic": {
    "scores": {
      "clarity": 0.0,
      "impact": 0.0,
      "ats_alignment": 0.0,
      "readability": 0.0,
      "role_fit": 0.0
    },
    "score_explanation": "string",
    "strengths": ["string"],
    "gaps": ["string"],
    "risks": ["string"]
  },
  "keyword_helper": {
    "enabled": false,
    "message": "string",
    "missing_keywords": ["string"],
    "integration_suggestions": ["string"]
  },
  "recommendations": {
    "global": ["string"],
    "by_section": {
      "summary": ["string"],
      "skills": ["string"],
      "experience": ["string"],
      "education": ["string"],
      "achievements": ["string"]
    },
    "rewrite_criteria": {
      "tone": "string",
      "length": "string",
      "style": "string"
    }
  }
}

## Rules
- Never fabricate information; prefer placeholders like <add metric>.
- Scores range from 0.0 to 10.0 with one decimal.
- keyword_helper: when job_description is null set "enabled": false and explain in "message"; \
otherwise set "enabled": true and fill jd_keywords, missing_keywords and integration_suggestions.
- Limit arrays to the most impactful 5-7 items.
- Keep bullets ≤28 words and use action verbs.
- Respect language, region, and perspective constraints.
- Return raw JSON only (no markdown fences).
"""

REWRITE_PHASE_PROMPT = """\
# Resume Analyzer – Rewrite Phase v2.0

You craft improved résumés based on diagnostics already produced. Focus on clarity, impact, and ATS compliance.

## Output JSON (rewrite phase)
{
  "improved_resume_markdown": "string (complete résumé in markdown)",
  "changelog": [
    {
      "section": "string",
      "change_type": "added | removed | modified | restructured",
      "description": "string",
      "original": "string",
      "improved": "string"
    }
  ],
  "next_steps": ["string"]
}

## Rules
- Preserve factual accuracy; use placeholders for missing data.
- Markdown must be ATS-friendly: no tables, use headings and bullet lists.
- Align tone and style with the provided rewrite criteria.
- Return raw JSON only (no markdown fences).
"""


def _to_json(payload: dict) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def build_analysis_message(input: AnalysisInput) -> str:
    """Render the analysis phase user message."""
    payload = {
        "resume_text": input.resume_text,
        "perspective": input.perspective,
        "language": input.language,
        "region": input.region,
        "target_role": input.target_role,
        "job_description": input.job_description,
    }
    return (
        "Analyze the following résumé and produce the analysis phase JSON. "
        "Keep the response concise and strictly follow the schema.\n\n"
        f"{_to_json(payload)}"
    )


def build_rewrite_message(input: AnalysisInput, analysis: AnalysisPhaseResult) -> str:
    """Render the rewrite phase user message from the prior analysis result."""
    if analysis is None:
        raise InputValidationError("Analysis data is required")

    recommendations = analysis.recommendations.model_dump(
        mode="json", by_alias=True, exclude_none=True
    )
    context = {
        "perspective": input.perspective,
        "language": input.language,
        "region": input.region,
        "target_role": input.target_role,
        "rewrite_criteria": recommendations["rewrite_criteria"],
        "diagnostic": analysis.diagnostic.model_dump(mode="json", exclude_none=True),
        "extracted_profile": analysis.extracted_profile.model_dump(
            mode="json", exclude_none=True
        ),
        "recommendations": recommendations,
    }
    return (
        "Using the existing diagnostic data, craft the improved résumé in markdown "
        "and document a changelog. Preserve factual accuracy and use placeholders "
        "for missing data.\n\n"
        f"## Diagnostic JSON\n{_to_json(context)}\n\n"
        f"## Original Résumé\n{input.resume_text}"
    )

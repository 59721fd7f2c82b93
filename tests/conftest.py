"""Shared test fixtures."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest

from resume_analyzer.clients.llm_client import (
    BufferedText,
    ChunkStream,
    ModelOutput,
    ProviderAdapter,
)
from resume_analyzer.config import ProviderCredentials
from resume_analyzer.models.analysis import AnalysisPhaseResult
from resume_analyzer.models.input import AnalysisInput


async def _aiter(chunks):
    for chunk in chunks:
        yield chunk


def buffered(text: str | None, provider: str = "openai", model: str = "gpt-4o-mini") -> ModelOutput:
    return ModelOutput(provider=provider, model=model, result=BufferedText(text=text))


def streamed(chunks: list[str], provider: str = "gemini", model: str = "gemini-2.5-flash") -> ModelOutput:
    return ModelOutput(provider=provider, model=model, result=ChunkStream(_aiter(chunks)))


@pytest.fixture
def sample_resume_text() -> str:
    return """Jane Doe
jane.doe@example.com | Austin, TX

EXPERIENCE
Account Executive, Acme SaaS (03/2020 - Present)
- Closed enterprise deals across the southern region
- Managed a pipeline of 40 mid-market accounts
- Partnered with solutions engineering on technical demos

Sales Development Representative, Beta Corp (06/2017 - 02/2020)
- Booked qualified meetings for three account executives

EDUCATION
B.A. Communications, University of Texas (2017)

SKILLS
Salesforce, Outreach, negotiation, discovery calls
"""


@pytest.fixture
def sample_job_description() -> str:
    return (
        "Enterprise Account Executive. Own quota attainment for Fortune 500 accounts. "
        "Experience with MEDDICC qualification and quota % reporting required."
    )


@pytest.fixture
def sample_input(sample_resume_text) -> AnalysisInput:
    return AnalysisInput(
        resume_text=sample_resume_text,
        perspective="sales",
        language="en",
        region="usa",
        provider="openai",
        model="gpt-4o-mini",
        target_role="Enterprise Account Executive",
    )


@pytest.fixture
def analysis_json() -> dict:
    return {
        "meta": {
            "language": "en",
            "perspective": "sales",
            "region": "usa",
            "schema_version": "2.0",
            "warnings": [],
            "errors": [],
        },
        "extracted_profile": {
            "headline": "Account Executive",
            "summary": "Quota-carrying AE with SDR background.",
            "skills": ["Salesforce", "Outreach", "Negotiation"],
            "experience": [
                {
                    "title": "Account Executive",
                    "company": "Acme SaaS",
                    "dates": "03/2020 - Present",
                    "bullets": ["Closed enterprise deals <add metric>"],
                }
            ],
            "education": [
                {"degree": "B.A. Communications", "institution": "University of Texas", "dates": "2017"}
            ],
            "certifications": [],
            "achievements": [],
        },
        "diagnostic": {
            "scores": {
                "clarity": 7.5,
                "impact": 5.0,
                "ats_alignment": 6.5,
                "readability": 8.0,
                "role_fit": 6.0,
            },
            "score_explanation": "Clear layout, few quantified results.",
            "strengths": ["Relevant progression"],
            "gaps": ["No quota attainment numbers"],
            "risks": ["Vague deal sizes"],
        },
        "keyword_helper": {
            "enabled": False,
            "message": "Provide a job description to enable keyword matching.",
        },
        "recommendations": {
            "global": ["Quantify every bullet"],
            "by_section": {
                "summary": ["Lead with quota attainment"],
                "skills": [],
                "experience": ["Add deal sizes"],
                "education": [],
                "achievements": ["Add President's Club if applicable"],
            },
            "rewrite_criteria": {"tone": "confident", "length": "1 page", "style": "results-first"},
        },
    }


@pytest.fixture
def rewrite_json() -> dict:
    return {
        "improved_resume_markdown": "# Jane Doe\n\n## Experience\n- Closed <add metric> in enterprise deals",
        "changelog": [
            {
                "section": "experience",
                "change_type": "modified",
                "description": "Added metric placeholder",
                "original": "Closed enterprise deals across the southern region",
                "improved": "Closed <add metric> in enterprise deals",
            }
        ],
        "next_steps": ["Fill in the metric placeholders"],
    }


@pytest.fixture
def sample_analysis(analysis_json) -> AnalysisPhaseResult:
    return AnalysisPhaseResult.model_validate(analysis_json)


@pytest.fixture
def credentials() -> ProviderCredentials:
    return ProviderCredentials(openai_api_key="sk-server-default", gemini_api_key="gm-server-default")


@pytest.fixture
def mock_adapter(credentials, analysis_json) -> ProviderAdapter:
    """Create a mock provider adapter that answers with the analysis fixture."""
    adapter = AsyncMock(spec=ProviderAdapter)
    adapter.credentials = credentials
    adapter.generate = AsyncMock(return_value=buffered(json.dumps(analysis_json)))
    adapter.stream = AsyncMock(return_value=streamed([json.dumps(analysis_json)]))
    return adapter

"""Tests for the phase prompt builders."""

import json

import pytest

from resume_analyzer.errors import InputValidationError
from resume_analyzer.pipeline.prompts import (
    ANALYSIS_PHASE_PROMPT,
    REWRITE_PHASE_PROMPT,
    build_analysis_message,
    build_rewrite_message,
)


def _payload(message: str) -> dict:
    return json.loads(message[message.index("{"):])


class TestAnalysisMessage:
    def test_deterministic(self, sample_input):
        assert build_analysis_message(sample_input) == build_analysis_message(
            sample_input.model_copy(deep=True)
        )

    def test_payload_fields(self, sample_input):
        payload = _payload(build_analysis_message(sample_input))
        assert payload == {
            "resume_text": sample_input.resume_text,
            "perspective": "sales",
            "language": "en",
            "region": "usa",
            "target_role": "Enterprise Account Executive",
            "job_description": None,
        }

    def test_job_description_included(self, sample_input, sample_job_description):
        data = sample_input.model_copy(update={"job_description": sample_job_description})
        payload = _payload(build_analysis_message(data))
        assert payload["job_description"] == sample_job_description

    def test_credential_never_in_message(self, sample_input):
        data = sample_input.model_copy(update={"provider_api_key": "sk-user-secret"})
        assert "sk-user-secret" not in build_analysis_message(data)

    def test_non_ascii_kept_readable(self, sample_input):
        data = sample_input.model_copy(update={"target_role": "Ejecutiva de Cuentas Sénior"})
        assert "Sénior" in build_analysis_message(data)


class TestRewriteMessage:
    def test_embeds_analysis_sections(self, sample_input, sample_analysis):
        message = build_rewrite_message(sample_input, sample_analysis)
        context = json.loads(
            message.split("## Diagnostic JSON\n", 1)[1].split("\n\n## Original Résumé", 1)[0]
        )
        assert context["rewrite_criteria"] == {
            "tone": "confident",
            "length": "1 page",
            "style": "results-first",
        }
        assert context["diagnostic"]["scores"]["clarity"] == 7.5
        assert context["extracted_profile"]["headline"] == "Account Executive"
        assert context["recommendations"]["global"] == ["Quantify every bullet"]
        assert context["target_role"] == "Enterprise Account Executive"

    def test_ends_with_original_resume(self, sample_input, sample_analysis):
        message = build_rewrite_message(sample_input, sample_analysis)
        assert message.endswith(f"## Original Résumé\n{sample_input.resume_text}")

    def test_deterministic(self, sample_input, sample_analysis):
        assert build_rewrite_message(sample_input, sample_analysis) == build_rewrite_message(
            sample_input, sample_analysis.model_copy(deep=True)
        )

    def test_requires_analysis(self, sample_input):
        with pytest.raises(InputValidationError, match="Analysis data is required"):
            build_rewrite_message(sample_input, None)


class TestSystemPrompts:
    def test_versioned(self):
        assert "v2.0" in ANALYSIS_PHASE_PROMPT
        assert "v2.0" in REWRITE_PHASE_PROMPT

    def test_rules_present(self):
        assert "Never fabricate" in ANALYSIS_PHASE_PROMPT
        assert "<add metric>" in ANALYSIS_PHASE_PROMPT
        assert "5-7 items" in ANALYSIS_PHASE_PROMPT
        assert "≤28 words" in ANALYSIS_PHASE_PROMPT
        assert "Return raw JSON only" in REWRITE_PHASE_PROMPT

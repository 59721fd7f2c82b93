"""Tests for the typer command line."""

import json
from unittest.mock import patch

from conftest import buffered
from typer.testing import CliRunner

from resume_analyzer.cli import app
from resume_analyzer.errors import ConfigurationError

runner = CliRunner()


def test_analyze_writes_outputs(tmp_path, mock_adapter, sample_resume_text, analysis_json, rewrite_json):
    resume = tmp_path / "resume.txt"
    resume.write_text(sample_resume_text, encoding="utf-8")
    output = tmp_path / "improved.md"
    json_out = tmp_path / "result.json"
    mock_adapter.generate.side_effect = [
        buffered(json.dumps(analysis_json)),
        buffered(json.dumps(rewrite_json)),
    ]

    with patch("resume_analyzer.cli.ProviderAdapter", return_value=mock_adapter):
        result = runner.invoke(
            app,
            ["analyze", str(resume), "-p", "sales", "-o", str(output), "--json-out", str(json_out)],
        )

    assert result.exit_code == 0, result.output
    assert "clarity" in result.output
    assert output.read_text(encoding="utf-8").startswith("# Jane Doe")
    saved = json.loads(json_out.read_text(encoding="utf-8"))
    assert saved["providers"] == {"analysis": "openai", "rewrite": "openai"}
    assert saved["analysis"]["recommendations"]["global"] == ["Quantify every bullet"]


def test_analysis_only(tmp_path, mock_adapter, sample_resume_text):
    resume = tmp_path / "resume.txt"
    resume.write_text(sample_resume_text, encoding="utf-8")
    with patch("resume_analyzer.cli.ProviderAdapter", return_value=mock_adapter):
        result = runner.invoke(app, ["analyze", str(resume), "--analysis-only"])
    assert result.exit_code == 0, result.output
    assert mock_adapter.generate.await_count == 1
    mock_adapter.aclose.assert_awaited_once()


def test_missing_file(tmp_path):
    result = runner.invoke(app, ["analyze", str(tmp_path / "nope.txt")])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_invalid_perspective(tmp_path, sample_resume_text):
    resume = tmp_path / "resume.txt"
    resume.write_text(sample_resume_text, encoding="utf-8")
    result = runner.invoke(app, ["analyze", str(resume), "-p", "astrology"])
    assert result.exit_code == 1
    assert "Invalid option" in result.output


def test_parse_failure_exit_code(tmp_path, mock_adapter, sample_resume_text):
    resume = tmp_path / "resume.txt"
    resume.write_text(sample_resume_text, encoding="utf-8")
    mock_adapter.generate.return_value = buffered('{"meta": ')
    with patch("resume_analyzer.cli.ProviderAdapter", return_value=mock_adapter):
        result = runner.invoke(app, ["analyze", str(resume)])
    assert result.exit_code == 2


def test_configuration_error_exit_code(tmp_path, mock_adapter, sample_resume_text):
    resume = tmp_path / "resume.txt"
    resume.write_text(sample_resume_text, encoding="utf-8")
    mock_adapter.generate.side_effect = ConfigurationError("Missing OpenAI API key")
    with patch("resume_analyzer.cli.ProviderAdapter", return_value=mock_adapter):
        result = runner.invoke(app, ["analyze", str(resume)])
    assert result.exit_code == 1
    assert "Missing OpenAI API key" in result.output

"""CLI interface using typer + rich."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from resume_analyzer.clients.llm_client import ProviderAdapter
from resume_analyzer.config import load_config, load_credentials
from resume_analyzer.errors import PhaseParseError, ResumeAnalyzerError
from resume_analyzer.models.analysis import AnalysisPhaseResult
from resume_analyzer.models.input import AnalysisInput
from resume_analyzer.pipeline.orchestrator import AnalysisReport, ResumeAnalyzer

app = typer.Typer(
    name="resume-analyzer",
    help="AI résumé analysis and rewrite (OpenAI / Gemini)",
    no_args_is_help=True,
)
console = Console()

PHASE_LABELS = {
    "analysis": "Analyzing résumé...",
    "rewrite": "Rewriting résumé...",
}


def _print_analysis(analysis: AnalysisPhaseResult) -> None:
    scores = analysis.diagnostic.scores
    table = Table(title="Diagnostic scores (0-10)")
    table.add_column("Dimension")
    table.add_column("Score", justify="right")
    for name in ("clarity", "impact", "ats_alignment", "readability", "role_fit"):
        table.add_row(name.replace("_", " "), f"{getattr(scores, name):.1f}")
    console.print(table)

    if analysis.diagnostic.score_explanation:
        console.print(Panel(analysis.diagnostic.score_explanation, title="Why these scores"))
    for title, items, color in (
        ("Strengths", analysis.diagnostic.strengths, "green"),
        ("Gaps", analysis.diagnostic.gaps, "yellow"),
        ("Risks", analysis.diagnostic.risks, "red"),
    ):
        if items:
            console.print(f"[bold {color}]{title}[/bold {color}]")
            for item in items:
                console.print(f"  • {item}")

    helper = analysis.keyword_helper
    if helper.enabled:
        console.print("[bold]Missing keywords:[/bold] " + ", ".join(helper.missing_keywords or []))
        for suggestion in helper.integration_suggestions or []:
            console.print(f"  → {suggestion}")
    elif helper.message:
        console.print(f"[dim]{helper.message}[/dim]")


async def _run(
    analyzer: ResumeAnalyzer, adapter: ProviderAdapter, input: AnalysisInput, **kwargs
) -> AnalysisReport:
    try:
        return await analyzer.run(input, **kwargs)
    finally:
        await adapter.aclose()


@app.command()
def analyze(
    resume: Path = typer.Argument(help="Résumé text file (.txt / .md)"),
    perspective: str = typer.Option("general", "--perspective", "-p", help="Reviewer perspective"),
    language: str = typer.Option("en", "--language", "-l", help="Output language: es, en, en-GB"),
    region: str = typer.Option("usa", "--region", "-r", help="Region: usa, latam_mx, uk"),
    provider: str = typer.Option("openai", "--provider", help="openai or gemini"),
    model: str = typer.Option(None, "--model", "-m", help="Model id (defaults from config)"),
    target_role: str = typer.Option(None, "--target-role", help="Role you are applying for"),
    jd: Path = typer.Option(None, "--jd", help="Job description text file (enables keyword helper)"),
    analysis_only: bool = typer.Option(False, "--analysis-only", help="Skip the rewrite phase"),
    output: Path = typer.Option(None, "--output", "-o", help="Write improved résumé markdown here"),
    json_out: Path = typer.Option(None, "--json-out", help="Write both phase results as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Analyze a résumé and rewrite it from the diagnostic."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not resume.exists():
        console.print(f"[red]Résumé file not found: {resume}[/red]")
        raise typer.Exit(1)
    if jd is not None and not jd.exists():
        console.print(f"[red]Job description file not found: {jd}[/red]")
        raise typer.Exit(1)

    try:
        input = AnalysisInput(
            resume_text=resume.read_text(encoding="utf-8"),
            perspective=perspective,
            language=language,
            region=region,
            provider=provider,
            model=model,
            target_role=target_role,
            job_description=jd.read_text(encoding="utf-8") if jd else None,
        )
    except ValueError as e:
        console.print(f"[red]Invalid option: {e}[/red]")
        raise typer.Exit(1)

    config = load_config()
    credentials = load_credentials()
    adapter = ProviderAdapter(
        credentials,
        timeout=config.llm.timeout,
        max_attempts=config.llm.max_attempts,
    )
    analyzer = ResumeAnalyzer(adapter, llm_config=config.llm, credentials=credentials)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Starting...", total=None)

        def on_phase(phase: str, detail: str) -> None:
            progress.update(task, description=PHASE_LABELS.get(phase, detail))

        try:
            report: AnalysisReport = asyncio.run(
                _run(analyzer, adapter, input, include_rewrite=not analysis_only, on_phase=on_phase)
            )
        except PhaseParseError as e:
            progress.stop()
            console.print(
                f"[red]The {e.phase} response from {e.provider} was not valid JSON. Please retry.[/red]"
            )
            raise typer.Exit(2)
        except ResumeAnalyzerError as e:
            progress.stop()
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)

    _print_analysis(report.analysis)
    providers = ", ".join(f"{phase}={name}" for phase, name in report.providers.items())
    console.print(f"[dim]providers: {providers} | {report.elapsed_seconds:.1f}s[/dim]")

    if report.rewrite is not None:
        if output:
            output.write_text(report.rewrite.improved_resume_markdown, encoding="utf-8")
            console.print(f"[green]Improved résumé written to {output}[/green]")
        else:
            console.print(Panel(report.rewrite.improved_resume_markdown, title="Improved résumé"))
        if report.rewrite.next_steps:
            console.print("[bold]Next steps[/bold]")
            for step in report.rewrite.next_steps:
                console.print(f"  • {step}")

    if json_out:
        payload = {
            "analysis": report.analysis.to_payload(),
            "rewrite": report.rewrite.to_payload() if report.rewrite else None,
            "providers": report.providers,
        }
        json_out.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        console.print(f"[green]JSON written to {json_out}[/green]")


@app.command()
def serve(
    host: str = typer.Option(None, "--host", help="Bind address (defaults from config)"),
    port: int = typer.Option(None, "--port", help="Port (defaults from config)"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    config = load_config()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(
        "resume_analyzer.api.app:app",
        host=host or config.server.host,
        port=port or config.server.port,
        reload=reload,
    )


if __name__ == "__main__":
    app()

"""Typer CLI — ``impactcompare compare``, ``validate``, ``history`` and ``serve``."""

from __future__ import annotations

import asyncio
import base64
import logging
import mimetypes
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from impactcompare.config import load_context, load_settings
from impactcompare.schemas.context import ComparisonContext

if TYPE_CHECKING:
    from impactcompare.schemas.config import Settings
    from impactcompare.schemas.pipeline import AnalysisResult, ImpactData
    from impactcompare.shared.storage import ComparisonStore

# Load .env file from project root (if it exists)
load_dotenv()

app = typer.Typer(
    name="impactcompare",
    help="ImpactCompare — directional UX-impact comparison of two design variants.",
    no_args_is_help=True,
)
history_app = typer.Typer(help="Browse and manage saved comparisons.", no_args_is_help=True)
app.add_typer(history_app, name="history")

console = Console()

_WINNER_STYLE = {"A": "green", "B": "magenta", "Tie": "yellow"}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every HTTP request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _read_image(image: str) -> str:
    """URL or base64 passes through; a local file becomes a base64 data URL."""
    if image.startswith(("http://", "https://", "data:")):
        return image
    path = Path(image).expanduser()
    if path.is_file():
        mime = mimetypes.guess_type(path.name)[0] or "image/png"
        encoded = base64.b64encode(path.read_bytes()).decode("ascii")
        return f"data:{mime};base64,{encoded}"
    return image


def _load_context_or_exit(context: Path | None) -> ComparisonContext:
    if context is None:
        return ComparisonContext()
    try:
        return load_context(context)
    except Exception as exc:
        console.print(f"[red]Context validation failed:[/] {exc}")
        raise typer.Exit(code=1)


@app.command()
def validate(
    context: Path = typer.Option(..., "--context", "-c", help="Path to a comparison context YAML file."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Validate a context file and show the confidence it supports."""
    from impactcompare.scoring.aggregate import derive_confidence

    _setup_logging(verbose)
    ctx = _load_context_or_exit(context)

    console.print("[green]Context is valid![/]\n")
    console.print(f"  User segment:   {ctx.user_segment or '(none)'}")
    console.print(f"  Product stage:  {ctx.product_stage or '(none)'}")
    console.print(f"  User mindset:   {ctx.user_mindset or '(none)'}")
    console.print(f"  Primary metric: {ctx.primary_metric or '(none)'}")
    console.print(f"  Assumptions:    {ctx.assumptions or '(none)'}")
    console.print(f"  Pain points:    {ctx.pain_points or '(none)'}")
    console.print(f"\n  Supported confidence: [bold]{derive_confidence(ctx)}[/]")


@app.command()
def compare(
    image_a: str = typer.Argument(..., help="Variant A: image URL, local file or base64 string."),
    image_b: str = typer.Argument(..., help="Variant B: image URL, local file or base64 string."),
    context: Path = typer.Option(None, "--context", "-c", help="Path to a comparison context YAML file."),
    output: Path = typer.Option(None, "--output", "-o", help="Directory to write report.json into."),
    no_save: bool = typer.Option(False, "--no-save", help="Don't store the comparison in history."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Run the full pipeline with mock data (no API calls)."),
) -> None:
    """Compare two design variants and project their UX impact."""
    _setup_logging(verbose)
    ctx = _load_context_or_exit(context)

    try:
        settings = load_settings()
    except Exception as exc:
        console.print(f"[red]Settings validation failed:[/] {exc}")
        raise typer.Exit(code=1)

    if dry_run:
        console.print("[yellow]DRY-RUN mode — no API calls will be made.[/]\n")

    asyncio.run(_run_comparison(
        _read_image(image_a),
        _read_image(image_b),
        ctx,
        settings=settings,
        labels=(image_a, image_b),
        output=output,
        save=not no_save,
        dry_run=dry_run,
    ))


async def _run_comparison(
    image_a: str,
    image_b: str,
    ctx: ComparisonContext,
    *,
    settings: Settings,
    labels: tuple[str, str],
    output: Path | None,
    save: bool,
    dry_run: bool,
) -> None:
    """Run the orchestrator, print the table and persist the results."""
    from impactcompare.agents.orchestrator.agent import OrchestratorAgent
    from impactcompare.errors import ImpactCompareError
    from impactcompare.schemas.pipeline import Comparison, VariantData
    from impactcompare.scoring.aggregate import build_ai_summary, build_impact_data
    from impactcompare.shared.progress import PipelineProgress
    from impactcompare.shared.storage import ComparisonStore

    try:
        if dry_run:
            from impactcompare.shared.llm_client import DryRunClient
            client = DryRunClient()
        else:
            from impactcompare.shared.llm_client import LLMClient
            client = LLMClient(settings)
    except ImpactCompareError as exc:
        console.print(f"[red]Configuration error:[/] {exc}")
        raise typer.Exit(code=1)

    orchestrator = OrchestratorAgent(client)
    with PipelineProgress() as progress:
        progress.print_phase("Analyzing variants")
        try:
            result = await orchestrator.analyze(
                image_a, image_b, ctx, on_stage=progress.update_stage,
            )
        except ImpactCompareError as exc:
            progress.fail_all(type(exc).__name__)
            console.print(f"[red]Analysis failed:[/] {exc}")
            raise typer.Exit(code=1)
        progress.finish_all()

    impact = build_impact_data(result.analysis)
    _print_result(result, impact)

    if output:
        output.mkdir(parents=True, exist_ok=True)
        report_path = output / "report.json"
        report_path.write_text(result.model_dump_json(by_alias=True, indent=2))
        console.print(f"[green]Report written to:[/] {report_path}")

    if save:
        comparison = Comparison(
            variant_a=VariantData(id="A", image_url=_short_label(labels[0])),
            variant_b=VariantData(id="B", image_url=_short_label(labels[1])),
            context=ctx,
            ai_summary=build_ai_summary(result.analysis),
            impact=impact,
            result=result,
        )
        ComparisonStore(settings.history_path).save(comparison)
        console.print(f"[dim]Saved as comparison {comparison.id}[/]")


def _short_label(image: str) -> str:
    """Keep history readable: raw base64 payloads are not stored as labels."""
    return image if len(image) <= 300 else f"{image[:60]}…"


def _metrics_table(impact: ImpactData) -> Table:
    table = Table(title="Projected impact")
    table.add_column("Metric")
    table.add_column("Variant A", justify="right")
    table.add_column("Variant B", justify="right")
    table.add_column("Winner", justify="center")
    table.add_column("Confidence")
    for row in impact.metrics_table:
        style = _WINNER_STYLE[row.winner]
        table.add_row(
            row.metric, row.variant_a, row.variant_b,
            f"[{style}]{row.winner}[/]", row.confidence,
        )
    return table


def _print_result(result: AnalysisResult, impact: ImpactData) -> None:
    analysis = result.analysis
    console.print(f"\n[bold]Variant A:[/] {analysis.summary_a}")
    console.print(f"[bold]Variant B:[/] {analysis.summary_b}\n")
    if analysis.differences:
        console.print("[bold]Key differences:[/]")
        for diff in analysis.differences:
            console.print(f"  - {diff}")
        console.print("")
    console.print(_metrics_table(impact))
    console.print(f"\n{impact.rationale}\n")
    console.print(f"[dim]{result.disclaimer}[/]")


# ── history ──────────────────────────────────────────────────────────


def _store() -> ComparisonStore:
    from impactcompare.shared.storage import ComparisonStore

    return ComparisonStore(load_settings().history_path)


@history_app.command("list")
def history_list() -> None:
    """List saved comparisons."""
    comparisons = _store().list_all()
    if not comparisons:
        console.print("No saved comparisons.")
        return
    table = Table(title="Saved comparisons")
    table.add_column("ID")
    table.add_column("Created")
    table.add_column("Primary metric")
    table.add_column("Recommendation")
    for c in comparisons:
        recommendation = c.result.analysis.recommendation if c.result else ""
        table.add_row(c.id, c.created_at, c.context.primary_metric or "-", recommendation)
    console.print(table)


@history_app.command("show")
def history_show(comparison_id: str = typer.Argument(..., help="Comparison ID.")) -> None:
    """Show one saved comparison."""
    comparison = _store().get(comparison_id)
    if comparison is None:
        console.print(f"[red]No comparison with id {comparison_id}[/]")
        raise typer.Exit(code=1)
    console.print(f"[bold]Comparison {comparison.id}[/] ({comparison.created_at})")
    console.print(f"  A: {comparison.variant_a.image_url}")
    console.print(f"  B: {comparison.variant_b.image_url}")
    if comparison.result and comparison.impact:
        _print_result(comparison.result, comparison.impact)


@history_app.command("delete")
def history_delete(comparison_id: str = typer.Argument(..., help="Comparison ID.")) -> None:
    """Delete a saved comparison."""
    if not _store().delete(comparison_id):
        console.print(f"[red]No comparison with id {comparison_id}[/]")
        raise typer.Exit(code=1)
    console.print(f"[green]Deleted comparison {comparison_id}[/]")


# ── server ───────────────────────────────────────────────────────────


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind."),
    port: int = typer.Option(8000, "--port", "-p", help="Port to listen on."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Serve the analyze-variants HTTP endpoint."""
    import uvicorn

    from impactcompare.server.app import create_app

    _setup_logging(verbose)
    uvicorn.run(create_app(), host=host, port=port)

"""tiergate CLI — Typer + Rich terminal interface.

Commands: classify, evaluate, gate, decompose, recommend, record, config.
Each command loads the configuration, calls the matching engine entry
point and renders the result as a Rich table, or as JSON with --json.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from tiergate import __version__
from tiergate.config_loader import ConfigError, load_config
from tiergate.decomposer import decompose_task
from tiergate.escalation import detect_failure_signals, evaluate_escalation
from tiergate.learning.history import JsonlHistoryStore, build_record
from tiergate.learning.learner import get_recommendation
from tiergate.quality_gate import run_quality_gate
from tiergate.routing.engine import classify_task
from tiergate.routing.specialist import ladder_examples, ladder_size
from tiergate.schemas.config import TierGateConfig
from tiergate.schemas.learning import Outcome
from tiergate.schemas.routing import Route

console = Console()

app = typer.Typer(
    name="tiergate",
    help="Route coding tasks between no model, a local model and the cloud.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Set by the app callback, read by every command
_state: dict[str, Path | None] = {"config_path": None}


# ── Version callback ───────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"tiergate {__version__}")
        raise typer.Exit()


# ── App Callback ────────────────────────────────────────────────


@app.callback()
def main(
    config_path: Path = typer.Option(
        None, "--config", "-c",
        help="TOML file merged over the shipped defaults",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log routing details to stderr",
    ),
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """tiergate — delegation-level task routing."""
    _state["config_path"] = config_path
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


# ── Helpers ──────────────────────────────────────────────────────


def _load_config() -> TierGateConfig:
    """Load the configuration, exit on error."""
    try:
        return load_config(_state["config_path"])
    except (FileNotFoundError, ConfigError) as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1) from None


def _read_output(file: Path) -> str:
    """Read a model output file, exit if it is missing."""
    if not file.is_file():
        console.print(f"[red]Error:[/red] File not found: {file}")
        raise typer.Exit(1) from None
    return file.read_text(encoding="utf-8", errors="replace")


def _route_style(route: Route) -> str:
    return {
        Route.NO_LLM: "bold cyan",
        Route.LOCAL: "bold green",
        Route.CLOUD: "bold magenta",
    }[route]


# ── Commands ─────────────────────────────────────────────────────


@app.command()
def classify(
    description: str = typer.Argument(..., help="Task description to route"),
    level: int = typer.Option(
        None, "--level", "-l",
        help="Delegation level 0-5 (defaults to the configured level)",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the decision as JSON"),
) -> None:
    """Classify a task and show the routing decision."""
    if not description.strip():
        console.print("[red]Error:[/red] Description cannot be empty.")
        raise typer.Exit(1) from None

    config = _load_config()
    decision = asyncio.run(classify_task(description, level, config=config))

    if as_json:
        console.print_json(decision.model_dump_json())
        return

    table = Table(title="Routing Decision", show_header=False, show_lines=True)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    style = _route_style(decision.route)
    table.add_row("Route", f"[{style}]{decision.route.value}[/{style}]")
    table.add_row("Delegation Level", str(decision.delegation_level))
    table.add_row("Complexity", str(decision.task_complexity))
    table.add_row("Confidence", f"{decision.confidence:.2f}")
    table.add_row("Layer", str(decision.classification_layer))
    table.add_row("Escalation", decision.escalation_policy.value)
    if decision.suggested_model:
        table.add_row("Suggested Model", decision.suggested_model)
        if decision.suggested_model == ladder_size(decision.task_complexity):
            examples = ladder_examples(decision.task_complexity)
            if examples:
                table.add_row("Example Models", ", ".join(examples))
    if decision.specialist_key:
        table.add_row("Category", decision.specialist_key)
    if decision.cost_of_wrong:
        table.add_row("Cost of Wrong", decision.cost_of_wrong.value)
    table.add_row("Reason", decision.reason)
    console.print(table)


@app.command()
def evaluate(
    file: Path = typer.Argument(..., help="File holding the model output to check"),
    language: str = typer.Option(
        None, "--language", "-L",
        help="Expected language (enables language and syntax checks)",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the verdict as JSON"),
) -> None:
    """Check a model output for failure signals. Exits 1 when rejected."""
    output = _read_output(file)
    result = evaluate_escalation(detect_failure_signals(output, language))

    if as_json:
        console.print_json(result.model_dump_json())
    else:
        verdict = "[bold green]ACCEPT[/bold green]" if result.accept else "[bold red]REJECT[/bold red]"
        signals = ", ".join(s.value for s in result.signals) or "none"
        body = (
            f"[bold]Verdict:[/bold] {verdict}\n"
            f"[bold]Severity:[/bold] {result.severity.value}\n"
            f"[bold]Signals:[/bold] {signals}"
        )
        if result.escalation_context:
            body += f"\n[bold]Context:[/bold] {result.escalation_context}"
        console.print(Panel(body, title="[bold blue]Escalation Check[/bold blue]", border_style="blue"))

    if not result.accept:
        raise typer.Exit(1)


@app.command()
def gate(
    file: Path = typer.Argument(..., help="File holding the model output to check"),
    language: str = typer.Option(
        None, "--language", "-L",
        help="Expected language (enables language and syntax checks)",
    ),
    allowed_files: list[str] = typer.Option(
        None, "--allowed-file", "-f",
        help="File the output may reference (repeatable; enables the scope check)",
    ),
    sections: list[str] = typer.Option(
        None, "--section", "-s",
        help="Term that must appear in the output (repeatable)",
    ),
    expected_tokens: int = typer.Option(
        None, "--expected-tokens",
        help="Expected output size in tokens (enables the proportionality check)",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the gate result as JSON"),
) -> None:
    """Run the quality gate over a model output. Exits 1 when not accepted."""
    config = _load_config()
    if not config.quality_gate.enabled:
        console.print("[yellow]Quality gate disabled[/yellow]")
        return

    output = _read_output(file)
    result = run_quality_gate(
        output,
        config.quality_gate,
        expected_language=language,
        allowed_files=allowed_files,
        required_sections=sections,
        expected_output_tokens=expected_tokens,
    )

    if as_json:
        console.print_json(result.model_dump_json())
    else:
        table = Table(title="Quality Gate")
        table.add_column("Check", style="cyan")
        table.add_column("Kind")
        table.add_column("Result", justify="center")
        table.add_column("Reason", style="dim")
        for check in result.all_checks:
            status = "[green]pass[/green]" if check.passed else "[red]fail[/red]"
            table.add_row(
                check.name, "hard" if check.hard else "soft", status, check.reason or "",
            )
        console.print(table)

        if result.accepted:
            verdict = "[bold green]ACCEPT[/bold green]"
        elif result.should_retry:
            verdict = "[bold yellow]RETRY[/bold yellow]"
        else:
            verdict = "[bold red]ESCALATE[/bold red]"
        console.print(
            f"{verdict} ({result.checks_passed}/{result.checks_total} checks passed)"
        )

    if not result.accepted:
        raise typer.Exit(1)


@app.command()
def decompose(
    description: str = typer.Argument(..., help="Task description to split"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Split a task into subtasks with the local model."""
    config = _load_config()
    result = asyncio.run(decompose_task(description, config=config))

    if as_json:
        console.print_json(result.model_dump_json())
        return

    if not result.decomposed:
        console.print(f"[yellow]Not decomposed:[/yellow] {result.reason}")
        return

    table = Table(title=result.reason)
    table.add_column("ID", style="cyan")
    table.add_column("Description")
    table.add_column("Level", justify="center")
    table.add_column("Depends On", style="dim")
    for subtask in result.subtasks:
        table.add_row(
            subtask.id,
            subtask.description,
            str(subtask.estimated_level),
            ", ".join(subtask.depends_on) or "-",
        )
    console.print(table)


@app.command()
def recommend(
    task_type: str = typer.Argument(..., help="Task type key, e.g. code_gen"),
    level: int = typer.Argument(..., help="Proposed complexity level"),
    as_json: bool = typer.Option(False, "--json", help="Print the recommendation as JSON"),
) -> None:
    """Show what outcome history says about a task type at a level."""
    config = _load_config()
    rec = get_recommendation(task_type, level, config=config)

    if as_json:
        console.print_json(rec.model_dump_json())
        return

    table = Table(title="Learner Recommendation", show_header=False, show_lines=True)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    adjusted = str(rec.adjusted_level) if rec.adjusted_level is not None else "(unchanged)"
    table.add_row("Adjusted Level", adjusted)
    table.add_row("Confidence Adjustment", f"{rec.confidence_adjustment:+.2f}")
    table.add_row("Sample Size", str(rec.sample_size))
    table.add_row("Reason", rec.reason)
    console.print(table)


@app.command()
def record(
    description: str = typer.Argument(..., help="Task description that was run"),
    task_type: str = typer.Argument(..., help="Task type key, e.g. code_gen"),
    level: int = typer.Argument(..., help="Complexity level the task ran at"),
    outcome: Outcome = typer.Argument(..., help="What happened"),
    quality: float = typer.Option(None, "--quality", "-q", help="Optional quality score"),
) -> None:
    """Append an outcome to the history log."""
    config = _load_config()
    try:
        entry = build_record(description, task_type, level, outcome, quality)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None
    store = JsonlHistoryStore(config.history.path)
    store.append(entry)
    console.print(
        f"[green]Recorded[/green] {entry.outcome.value} for {task_type} "
        f"at level {level} ({entry.task_fingerprint}) in {store.path}"
    )


@app.command("config")
def config_show() -> None:
    """Show the effective configuration."""
    config = _load_config()

    table = Table(title="tiergate Configuration", show_header=False, show_lines=True)
    table.add_column("Setting", style="bold")
    table.add_column("Value")

    table.add_row("Delegation Level", str(config.delegation_level))
    table.add_row("Local Triage", str(config.routing.use_local_triage))
    table.add_row("Historical Learning", str(config.routing.use_historical_learning))
    table.add_row("Decomposition", str(config.routing.enable_decomposition))
    table.add_row("Learner Min Records", str(config.routing.learner_min_records))
    table.add_row("Triage Model", config.routing.triage_model or "(default)")
    table.add_row("Local Base URL", config.local_model.base_url)
    table.add_row("Default Model", config.local_model.default_model)
    table.add_row("Fallback Model", config.local_model.fallback_model or "(none)")
    table.add_row("Timeout", f"{config.local_model.timeout}s")
    table.add_row("History Path", config.history.path)
    table.add_row("Quality Gate", "enabled" if config.quality_gate.enabled else "disabled")
    table.add_row(
        "Output Length",
        f"{config.quality_gate.min_output_length}-{config.quality_gate.max_output_length} chars",
    )

    console.print(table)

    if config.specialist_models:
        spec_table = Table(title="Specialist Models")
        spec_table.add_column("Category", style="cyan")
        spec_table.add_column("Model")
        for category, model in sorted(config.specialist_models.items()):
            spec_table.add_row(category, model)
        console.print()
        console.print(spec_table)

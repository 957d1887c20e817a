"""
CLI entry point for Matchpoint, the resume critique and startup matching assistant.
"""

from __future__ import annotations

import logging
import sys
import webbrowser
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from app_state import AppState, MatchSession, ThinkingEntry
from config import DEFAULT_CONFIG_PATH, Settings, load_settings
from data_models import AnalysisResult, Tier
from llm_handler import GeminiClient
from local_store import JsonFileStore
from matcher import MatchPipeline
from persistence import HistoryGateway
from preferences import Question, QuestionKind, SurveyWizard
from reporting import write_analysis_json, write_html_summary

app = typer.Typer(
    name="matchpoint",
    help="Matchpoint: resume critique and tiered startup matches powered by Gemini",
    add_completion=False,
)
history_app = typer.Typer(help="Inspect or clear saved analyses")
app.add_typer(history_app, name="history")
console = Console()

PHASE_LABELS = {
    "resume": "Reading your resume",
    "preferences": "Weighing your preferences",
    "intersection": "Finding the overlap",
    "search": "Planning the search",
    "searching": "Searching",
    "structuring": "Structuring",
}
TIER_STYLES = {Tier.REACH: "magenta", Tier.TARGET: "green", Tier.SAFETY: "blue"}


class TruncatingFormatter(logging.Formatter):
    """Formatter that truncates log messages to a maximum length."""

    def __init__(self, max_length: int = 200, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.max_length = max_length

    def format(self, record):
        formatted = super().format(record)
        if len(formatted) > self.max_length:
            formatted = formatted[:self.max_length] + "... (truncated)"
        return formatted


def configure_logging(settings: Settings) -> None:
    """
    Configure logging according to settings.

    Console output goes to stderr so it never mixes with rendered results.

    Args:
        settings: Application settings dataclass.
    """
    log_format = settings.log_format or "%(asctime)s [%(levelname)s] %(message)s"
    datefmt = settings.log_date_format or "%Y-%m-%d %H:%M:%S"

    console_formatter = TruncatingFormatter(max_length=200, fmt=log_format, datefmt=datefmt)
    file_formatter = logging.Formatter(fmt=log_format, datefmt=datefmt)

    handlers = []
    if settings.log_file:
        file_handler = logging.FileHandler(settings.log_file, encoding="utf-8")
        file_handler.setFormatter(file_formatter)
        handlers.append(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(console_formatter)
    console_handler.setLevel(logging.DEBUG if settings.debug else logging.WARNING)
    handlers.append(console_handler)

    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO, handlers=handlers, force=True)

    # Suppress verbose HTTP logging from the Supabase and Gemini clients
    for name in ("httpx", "httpcore", "hpack", "urllib3", "grpc"):
        logging.getLogger(name).setLevel(logging.WARNING)


def _load(config: Path, require_api_key: bool) -> Settings:
    try:
        settings = load_settings(config, require_api_key=require_api_key)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]Configuration error:[/red] {escape(str(exc))}")
        raise typer.Exit(1)
    configure_logging(settings)
    return settings


def _build_session(settings: Settings, user_id: Optional[str], with_pipeline: bool) -> MatchSession:
    pipeline = None
    if with_pipeline:
        try:
            backend = GeminiClient.from_settings(settings)
        except (RuntimeError, ValueError) as exc:
            console.print(f"[red]Gemini unavailable:[/red] {escape(str(exc))}")
            raise typer.Exit(1)
        pipeline = MatchPipeline.from_settings(backend, settings)

    return MatchSession(
        pipeline=pipeline,
        store=JsonFileStore(settings.local_store_file),
        gateway=HistoryGateway.from_settings(settings),
        user_id=user_id,
        local_history_limit=settings.local_history_limit,
        on_thinking=_print_thinking,
    )


def _print_thinking(entry: ThinkingEntry) -> None:
    label = PHASE_LABELS.get(entry.phase, entry.phase)
    console.print(f"[bold cyan]{label}[/bold cyan] [dim]{escape(entry.content[:300])}[/dim]")


def _ask(question: Question):
    if question.kind is QuestionKind.TEXT:
        if question.suggestions:
            console.print(f"[dim]Suggestions: {', '.join(question.suggestions[:8])}...[/dim]")
        return Prompt.ask(question.title)

    for index, option in enumerate(question.options, start=1):
        console.print(f"  {index}. {option}")
    if question.kind is QuestionKind.SELECT:
        numbers = [str(i) for i in range(1, len(question.options) + 1)]
        choice = Prompt.ask(question.title, choices=numbers + ["skip"], show_choices=False)
        return choice if choice == "skip" else question.options[int(choice) - 1]

    raw = Prompt.ask(f"{question.title} (comma-separated numbers)")
    if raw.strip() == "skip":
        return "skip"
    picks: List[str] = []
    for token in raw.split(","):
        token = token.strip()
        if token.isdigit() and 1 <= int(token) <= len(question.options):
            picks.append(question.options[int(token) - 1])
    return picks


def run_survey(wizard: SurveyWizard) -> None:
    """Walk the user through the survey; typing 'skip' ends it without preferences."""
    console.print(Panel("Tell us what you are looking for, or type 'skip' at any prompt.", title="Preferences"))
    while not wizard.is_finished:
        question = wizard.current_question
        console.print(f"[dim]{wizard.progress:.0f}% complete[/dim]")
        value = _ask(question)
        if value == "skip":
            wizard.skip()
            return
        try:
            wizard.answer(value)
        except ValueError as exc:
            console.print(f"[yellow]{escape(str(exc))}[/yellow]")


def render_result(result: AnalysisResult) -> None:
    console.print(
        Panel(
            f"[bold]{result.score:.0f}/100[/bold]  Grade [bold]{escape(result.grade)}[/bold]\n\n{escape(result.summary)}",
            title="The Verdict",
        )
    )
    advice = result.career_advice
    if advice is not None:
        console.print(f"[bold]Current level:[/bold] {escape(advice.current_level)}")
        console.print(f"[bold]Estimated salary:[/bold] {escape(advice.estimated_salary)}")
        console.print(f"[bold]Recommended roles:[/bold] {escape(', '.join(advice.recommended_roles))}")
        console.print(f"[bold]Reality check:[/bold] {escape(advice.reality_check)}\n")

        for tier, companies in result.matches_by_tier().items():
            if not companies:
                continue
            table = Table(title=f"{tier.value} ({len(companies)})", title_style=TIER_STYLES[tier])
            table.add_column("Company", style="bold")
            table.add_column("Domain")
            table.add_column("Location")
            table.add_column("Funding")
            table.add_column("Why it fits")
            for company in companies:
                cells = (company.name, company.domain, company.location, company.funding, company.reason)
                table.add_row(*(escape(value or "") for value in cells))
            console.print(table)

    for company in result.target_companies:
        console.print(f"- [bold]{escape(company.name)}[/bold] ({escape(company.domain)}): {escape(company.reason)}")

    if result.markdown_content:
        console.print(Markdown(result.markdown_content))


def run_swipe_deck(session: MatchSession) -> None:
    """Go through matched companies one by one; liked companies open their careers page."""
    companies = session.result.company_matches if session.result else []
    for index, company in enumerate(companies, start=1):
        console.print(
            Panel(
                escape(f"{company.description or ''}\n{company.location or ''} · {company.funding or ''}\n\n{company.reason}"),
                title=f"[{TIER_STYLES[company.tier]}]{company.tier.value}[/] {escape(company.name)} ({index}/{len(companies)})",
            )
        )
        url = session.swipe(company, Confirm.ask("Interested?", default=False))
        if url:
            webbrowser.open_new_tab(url)
    console.print(f"Liked {len(session.liked_companies)} of {len(companies)} companies.")


@app.command()
def analyze(
    file: Path = typer.Argument(..., help="Resume file (PDF, image or text, max 10MB)"),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c", help="Configuration JSON"),
    skip_survey: bool = typer.Option(False, "--skip-survey", help="Match without preferences"),
    one_shot: bool = typer.Option(False, "--one-shot", help="Single-call critique without search or tiers"),
    fix: bool = typer.Option(False, "--fix", help="Also rewrite the resume after the critique"),
    swipe: bool = typer.Option(False, "--swipe", help="Review matches one by one"),
    user_id: Optional[str] = typer.Option(None, "--user-id", help="Owner of the saved record"),
    json_out: Optional[Path] = typer.Option(None, "--json-out", help="Write the result as JSON"),
    html_out: Optional[Path] = typer.Option(None, "--html-out", help="Write an HTML summary"),
):
    """Critique a resume and find matching startups."""
    settings = _load(config, require_api_key=True)
    session = _build_session(settings, user_id, with_pipeline=True)
    session.load_history()
    console.print(f"[dim]{session.match_count:,} resumes analysed so far[/dim]")

    if not session.select_file(file):
        console.print(f"[red]{escape(session.error or '')}[/red]")
        raise typer.Exit(1)

    if one_shot:
        session.roast()
    elif skip_survey:
        session.analyze()
    else:
        wizard = session.start_survey()
        run_survey(wizard)
        session.submit_preferences(wizard.result)

    if session.state is AppState.ERROR:
        console.print(Panel(escape(session.error or "Unable to analyze document."), title="Analysis Failed", style="red"))
        raise typer.Exit(1)

    result = session.result
    render_result(result)
    write_html_summary(result, html_out or settings.summary_file, file.name)
    if json_out:
        write_analysis_json(result, json_out)

    if swipe:
        run_swipe_deck(session)

    if fix:
        console.print("[dim]Rewriting your resume...[/dim]")
        markdown = session.fix_resume()
        if markdown is None:
            console.print(Panel(escape(session.error or "Unable to fix resume."), title="Fix Failed", style="red"))
            raise typer.Exit(1)
        console.print(Panel(Markdown(markdown), title="Improved Resume"))


@history_app.command("list")
def history_list(
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c"),
    user_id: Optional[str] = typer.Option(None, "--user-id"),
):
    """Show saved analyses, newest first."""
    session = _build_session(_load(config, require_api_key=False), user_id, with_pipeline=False)
    records = session.load_history()
    table = Table(title=f"History ({session.match_count} total)")
    table.add_column("ID")
    table.add_column("Date")
    table.add_column("File")
    table.add_column("Score")
    table.add_column("Grade")
    for record in records:
        date = datetime.fromtimestamp(record.timestamp / 1000).strftime("%Y-%m-%d %H:%M")
        table.add_row(record.id, date, record.file_name, f"{record.analysis.score:.0f}", record.analysis.grade)
    console.print(table)


@history_app.command("show")
def history_show(
    record_id: str = typer.Argument(...),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c"),
    user_id: Optional[str] = typer.Option(None, "--user-id"),
):
    """Show one saved analysis."""
    session = _build_session(_load(config, require_api_key=False), user_id, with_pipeline=False)
    record = session.gateway.get(record_id) if session.gateway else None
    if record is None:
        record = next((item for item in session.load_history() if item.id == record_id), None)
    if record is None:
        console.print(f"[red]No saved analysis with id {record_id}[/red]")
        raise typer.Exit(1)
    session.select_history(record)
    render_result(record.analysis)


@history_app.command("count")
def history_count(
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c"),
    user_id: Optional[str] = typer.Option(None, "--user-id"),
):
    """Print the number of saved analyses."""
    session = _build_session(_load(config, require_api_key=False), user_id, with_pipeline=False)
    session.load_history()
    console.print(f"{session.match_count:,} resumes analysed")


@history_app.command("clear")
def history_clear(
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c"),
    user_id: Optional[str] = typer.Option(None, "--user-id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete saved analyses."""
    if not yes and not Confirm.ask("Delete all saved analyses?", default=False):
        raise typer.Exit(0)
    session = _build_session(_load(config, require_api_key=False), user_id, with_pipeline=False)
    session.clear_history()
    console.print("History cleared.")


@app.command()
def theme(config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c")):
    """Toggle between the light and dark theme."""
    settings = _load(config, require_api_key=False)
    session = MatchSession(pipeline=None, store=JsonFileStore(settings.local_store_file))
    console.print(f"Theme set to {session.toggle_theme()}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()

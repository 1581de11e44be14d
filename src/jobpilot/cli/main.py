"""jobpilot command line: track applications and run the AI assistants."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .. import __version__
from ..agents.job_analyzer import summarize_job_analysis
from ..agents.mock_interview import AnswerInput, QuestionRequest, SessionInput
from ..agents.resume_parser import resume_warnings
from ..agents.resume_tailor import diff_resumes, summarize_tailoring
from ..agents.cover_letter import summarize_cover_letter
from ..core.config import get_effective_config
from ..core.exceptions import JobPilotError
from ..core.store import WorkspaceStore
from ..models.agent import AgentError, AgentResponse, ErrorCode
from ..models.analysis import TONES, JobAnalysisResult
from ..models.interview import AnsweredQuestion
from ..models.job import JOB_TYPES, WORK_MODES, JobStatus
from ..providers.base import get_model_client
from ..services.ai import AIService
from ..services.jobs import JobService
from ..services.resumes import ResumeService
from ..utils.documents import extract_document_text

console = Console()

STATUS_COLORS = {
    JobStatus.INTERESTED: "white",
    JobStatus.APPLIED: "cyan",
    JobStatus.INTERVIEW_SCHEDULED: "blue",
    JobStatus.INTERVIEW_COMPLETED: "magenta",
    JobStatus.OFFER_RECEIVED: "yellow",
    JobStatus.ACCEPTED: "green",
    JobStatus.REJECTED: "red",
    JobStatus.WITHDRAWN: "dim",
}

STATUS_CHOICE = click.Choice([s.value for s in JobStatus], case_sensitive=False)


def setup_logging(verbose: bool) -> None:
    """Route jobpilot's loggers through rich. Library code never does this."""
    logger = logging.getLogger("jobpilot")
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=Console(stderr=True), show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


class JobPilotGroup(click.Group):
    """Turns ``JobPilotError`` into a red message and exit code 1."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except JobPilotError as e:
            console.print(f"  [red]ERROR[/red] {escape(str(e))}")
            ctx.exit(1)


# ---------------------------------------------------------------------------
# Context helpers
# ---------------------------------------------------------------------------


def _store(ctx: click.Context) -> WorkspaceStore:
    return WorkspaceStore(ctx.obj["workspace"])


def _config(ctx: click.Context) -> dict:
    if "config" not in ctx.obj:
        ctx.obj["config"] = get_effective_config(ctx.obj["workspace"], ctx.obj.get("overrides"))
    return ctx.obj["config"]


def _ai(ctx: click.Context) -> AIService:
    config = _config(ctx)
    client = ctx.obj.get("client") or get_model_client(config)
    return AIService(_store(ctx), config, client)


def _print_error(error: AgentError, config: dict) -> None:
    console.print(f"  [red]{error.code.value}[/red] {escape(error.message)}")
    if error.code == ErrorCode.INVALID_INPUT and error.details:
        for item in error.details.get("errors", []):
            console.print(f"    - {escape(str(item))}")
    if error.code == ErrorCode.AUTHENTICATION_ERROR:
        env_var = config.get("ai", {}).get("api_key_env", "ANTHROPIC_API_KEY")
        console.print(f"  Check the API key in the {env_var} environment variable.")
    elif error.retryable:
        console.print("  [yellow]This looks temporary. Please try again in a moment.[/yellow]")


def _unwrap(ctx: click.Context, response: AgentResponse):
    """Data of a successful response; otherwise report and exit 1."""
    if not response.success:
        _print_error(response.error, _config(ctx))
        ctx.exit(1)
    if response.usage and ctx.obj.get("verbose"):
        console.print(
            f"  [dim]{response.model}: {response.usage.input_tokens} in / "
            f"{response.usage.output_tokens} out tokens[/dim]"
        )
    return response.data


def _emit_json(ctx: click.Context, data) -> bool:
    if ctx.obj.get("json"):
        console.print_json(data.model_dump_json())
        return True
    return False


def _read_text(path: Optional[str]) -> str:
    """Text of a PDF, DOCX or plain-text file."""
    return extract_document_text(path).text if path else ""


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@click.group(cls=JobPilotGroup)
@click.version_option(__version__, prog_name="jobpilot")
@click.option(
    "--workspace", "-w",
    type=click.Path(file_okay=False),
    default=".",
    show_default=True,
    help="Directory holding the .jobpilot workspace",
)
@click.option("--ai-model", type=str, help="Model override")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging and token usage")
@click.pass_context
def jobpilot_cli(ctx: click.Context, workspace: str, ai_model: Optional[str], verbose: bool) -> None:
    """jobpilot - job applications tracker with AI resume and job analysis."""
    ctx.ensure_object(dict)
    ctx.obj["workspace"] = Path(workspace)
    ctx.obj["verbose"] = verbose
    if ai_model:
        ctx.obj["overrides"] = {"ai": {"model": ai_model}}
    setup_logging(verbose)


@jobpilot_cli.command()
@click.pass_context
def init(ctx: click.Context) -> None:
    """Create the .jobpilot workspace."""
    store = _store(ctx)
    if store.initialize():
        console.print(f"  [green]Initialized[/green] {store.base}")
    else:
        console.print(f"  Workspace already exists: {store.base}")


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


@jobpilot_cli.group()
def job() -> None:
    """Track job applications."""


@job.command("add")
@click.argument("title")
@click.argument("company")
@click.option("--description", "-d", default="", help="Job description text")
@click.option("--description-file", type=click.Path(exists=True, dir_okay=False), help="Read the description from a file")
@click.option("--location", "-l")
@click.option("--salary", "salary_range")
@click.option("--type", "job_type", type=click.Choice(JOB_TYPES))
@click.option("--mode", "work_mode", type=click.Choice(WORK_MODES))
@click.option("--url")
@click.option("--status", type=STATUS_CHOICE, default=JobStatus.INTERESTED.value, show_default=True)
@click.pass_context
def job_add(
    ctx: click.Context,
    title: str,
    company: str,
    description: str,
    description_file: Optional[str],
    location: Optional[str],
    salary_range: Optional[str],
    job_type: Optional[str],
    work_mode: Optional[str],
    url: Optional[str],
    status: str,
) -> None:
    """Track a new job."""
    created = JobService(_store(ctx)).create_job(
        title=title,
        company=company,
        description=_read_text(description_file) or description,
        location=location,
        salary_range=salary_range,
        job_type=job_type,
        work_mode=work_mode,
        url=url,
        status=JobStatus(status.upper()),
    )
    console.print(f"  [green]Added[/green] {created.title} at {created.company} [dim]({created.id})[/dim]")


@job.command("list")
@click.option("--status", type=STATUS_CHOICE)
@click.option("--company")
@click.option("--search", "-q")
@click.pass_context
def job_list(ctx: click.Context, status: Optional[str], company: Optional[str], search: Optional[str]) -> None:
    """List tracked jobs, newest first."""
    jobs = JobService(_store(ctx)).list_jobs(
        status=JobStatus(status.upper()) if status else None,
        company=company,
        search=search,
    )
    if not jobs:
        console.print("  No jobs found.")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Company")
    table.add_column("Status")
    table.add_column("Match", justify="right")
    for j in jobs:
        color = STATUS_COLORS[j.status]
        match = f"{j.match_score:g}%" if j.match_score is not None else "-"
        table.add_row(j.id[:8], j.title, j.company, f"[{color}]{j.status.value}[/{color}]", match)
    console.print(table)


@job.command("show")
@click.argument("job_id")
@click.pass_context
def job_show(ctx: click.Context, job_id: str) -> None:
    """Show a job with its notes and latest analysis."""
    j = JobService(_store(ctx)).get_job(job_id)
    console.print(f"  [bold]{j.title}[/bold] at [bold]{j.company}[/bold]")
    console.print(f"  ID:       {j.id}")
    console.print(f"  Status:   [{STATUS_COLORS[j.status]}]{j.status.value}[/{STATUS_COLORS[j.status]}]")
    for label, value in (
        ("Location", j.location),
        ("Salary", j.salary_range),
        ("Type", j.job_type),
        ("Mode", j.work_mode),
        ("URL", j.url),
    ):
        if value:
            console.print(f"  {label + ':':<9} {value}")
    if j.match_score is not None:
        console.print(f"  Match:    {j.match_score:g}%")
    if j.description:
        console.print()
        console.print(j.description, markup=False)
    if j.notes:
        console.print()
        console.print("  [bold]Notes[/bold]")
        console.print(j.notes.rstrip(), markup=False)
    if j.ai_analysis:
        console.print()
        console.print(summarize_job_analysis(JobAnalysisResult.model_validate(j.ai_analysis)), markup=False)


@job.command("status")
@click.argument("job_id")
@click.argument("status", type=STATUS_CHOICE)
@click.option("--reason", "-r")
@click.pass_context
def job_status(ctx: click.Context, job_id: str, status: str, reason: Optional[str]) -> None:
    """Move a job to another status."""
    j = JobService(_store(ctx)).update_status(job_id, JobStatus(status.upper()), reason)
    previous = j.status_changes[-1].from_status
    console.print(f"  [green]Moved[/green] {j.title}: {previous.value} -> {j.status.value}")


@job.command("note")
@click.argument("job_id")
@click.argument("text")
@click.pass_context
def job_note(ctx: click.Context, job_id: str, text: str) -> None:
    """Append a timestamped note to a job."""
    j = JobService(_store(ctx)).add_note(job_id, text)
    console.print(f"  [green]Noted[/green] on {j.title}")


@job.command("delete")
@click.argument("job_id")
@click.confirmation_option(prompt="Delete this job and its history?")
@click.pass_context
def job_delete(ctx: click.Context, job_id: str) -> None:
    """Stop tracking a job."""
    j = JobService(_store(ctx)).delete_job(job_id)
    console.print(f"  [green]Deleted[/green] {j.title} at {j.company}")


@job.command("stats")
@click.pass_context
def job_stats(ctx: click.Context) -> None:
    """Counts by status."""
    stats = JobService(_store(ctx)).stats()
    console.print(f"  Total:            {stats.total}")
    console.print(f"  Active:           {stats.active}")
    console.print(f"  Added this month: {stats.added_this_month}")
    for status in JobStatus:
        count = stats.by_status.get(status.value, 0)
        if count:
            console.print(f"    {status.value:<20} {count}")


@job.command("timeline")
@click.argument("job_id")
@click.pass_context
def job_timeline(ctx: click.Context, job_id: str) -> None:
    """Status history of a job."""
    for change in JobService(_store(ctx)).timeline(job_id):
        source = change.from_status.value if change.from_status else "(created)"
        line = f"  {change.changed_at:%Y-%m-%d %H:%M}  {source} -> {change.to_status.value}"
        if change.reason:
            line += f"  [dim]{change.reason}[/dim]"
        console.print(line)


@job.command("parse")
@click.option("--url", help="Posting URL to fetch")
@click.option("--file", "file_path", type=click.Path(exists=True, dir_okay=False), help="Posting text file")
@click.pass_context
def job_parse(ctx: click.Context, url: Optional[str], file_path: Optional[str]) -> None:
    """Extract a job from a posting with AI and track it."""
    if not url and not file_path:
        raise click.UsageError("Give --url or --file")
    with console.status("Parsing job posting..."):
        response = asyncio.run(_ai(ctx).import_job(url=url, text=_read_text(file_path)))
    j = _unwrap(ctx, response)
    console.print(f"  [green]Added[/green] {j.title} at {j.company} [dim]({j.id})[/dim]")
    console.print(f"  {j.location} | {j.job_type} | {j.work_mode}")


# ---------------------------------------------------------------------------
# Resumes
# ---------------------------------------------------------------------------


@jobpilot_cli.group()
def resume() -> None:
    """Store resumes."""


@resume.command("add")
@click.argument("title")
@click.option("--file", "file_path", type=click.Path(exists=True, dir_okay=False), required=True, help="PDF, DOCX or text file")
@click.option("--parse/--no-parse", default=True, show_default=True, help="Extract structured data with AI")
@click.pass_context
def resume_add(ctx: click.Context, title: str, file_path: str, parse: bool) -> None:
    """Add a resume from a text file."""
    text = _read_text(file_path)
    if not parse:
        r = ResumeService(_store(ctx)).add_resume(title, text)
        console.print(f"  [green]Added[/green] {r.title} [dim]({r.id})[/dim]")
        return

    with console.status("Parsing resume..."):
        response = asyncio.run(_ai(ctx).import_resume(title, text, file_name=Path(file_path).name))
    r = _unwrap(ctx, response)
    console.print(f"  [green]Added[/green] {r.title} [dim]({r.id})[/dim]")
    for warning in resume_warnings(r.parsed):
        console.print(f"  [yellow]warning[/yellow] {warning}")


@resume.command("list")
@click.pass_context
def resume_list(ctx: click.Context) -> None:
    """List stored resumes."""
    resumes = ResumeService(_store(ctx)).list_resumes()
    if not resumes:
        console.print("  No resumes found.")
        return
    for r in resumes:
        state = "parsed" if r.parsed else "raw"
        console.print(f"  [dim]{r.id[:8]}[/dim]  {r.title}  [dim]({state})[/dim]")


@resume.command("show")
@click.argument("resume_id")
@click.pass_context
def resume_show(ctx: click.Context, resume_id: str) -> None:
    """Show a resume's structured data."""
    r = ResumeService(_store(ctx)).get_resume(resume_id)
    console.print(f"  [bold]{r.title}[/bold] [dim]({r.id})[/dim]")
    if r.parsed is None:
        console.print(r.raw_text, markup=False)
        return
    p = r.parsed
    if p.personal_info.name:
        console.print(f"  Name: {p.personal_info.name}")
    if p.summary:
        console.print(f"  Summary: {p.summary}", markup=False)
    for exp in p.experiences:
        console.print(f"  - {exp.position} at {exp.company}", markup=False)
    if p.skills:
        console.print(f"  Skills: {', '.join(s.name for s in p.skills)}", markup=False)
    for warning in resume_warnings(p):
        console.print(f"  [yellow]warning[/yellow] {warning}")


# ---------------------------------------------------------------------------
# AI
# ---------------------------------------------------------------------------


@jobpilot_cli.group()
@click.option("--json", "as_json", is_flag=True, help="Print the raw result as JSON")
@click.pass_context
def ai(ctx: click.Context, as_json: bool) -> None:
    """AI analysis of jobs and resumes."""
    ctx.obj["json"] = as_json


@ai.command("analyze-job")
@click.argument("job_id")
@click.option("--resume", "resume_id", help="Score the match against this resume")
@click.pass_context
def ai_analyze_job(ctx: click.Context, job_id: str, resume_id: Optional[str]) -> None:
    """Analyze a job posting."""
    with console.status("Analyzing job..."):
        response = asyncio.run(_ai(ctx).analyze_job(job_id, resume_id))
    result = _unwrap(ctx, response)
    if _emit_json(ctx, result):
        return
    console.print(summarize_job_analysis(result), markup=False)
    _bullets("Red flags", result.analysis.red_flags, "red")
    _bullets("Application tips", result.application_tips)


@ai.command("analyze-resume")
@click.argument("resume_id")
@click.option("--role", "target_role")
@click.option("--industry", "target_industry")
@click.pass_context
def ai_analyze_resume(
    ctx: click.Context, resume_id: str, target_role: Optional[str], target_industry: Optional[str]
) -> None:
    """Score a resume and suggest improvements."""
    with console.status("Analyzing resume..."):
        response = asyncio.run(_ai(ctx).analyze_resume(resume_id, target_role, target_industry))
    result = _unwrap(ctx, response)
    if _emit_json(ctx, result):
        return
    console.print(
        f"  Overall {result.overall_score:g}  |  ATS {result.ats_score:g}  |  "
        f"Readability {result.readability_score:g}"
    )
    _bullets("Strengths", result.strengths, "green")
    _bullets("Weaknesses", result.weaknesses, "yellow")
    for s in result.suggestions:
        console.print(f"  [{s.priority}] {s.section}: {s.suggestion}", markup=False)


@ai.command("tailor")
@click.argument("resume_id")
@click.argument("job_id")
@click.option("--diff", "show_diff", is_flag=True, help="Show what changed")
@click.pass_context
def ai_tailor(ctx: click.Context, resume_id: str, job_id: str, show_diff: bool) -> None:
    """Tailor a resume to a job."""
    service = _ai(ctx)
    with console.status("Tailoring resume..."):
        response = asyncio.run(service.tailor_resume(resume_id, job_id))
    result = _unwrap(ctx, response)
    if _emit_json(ctx, result):
        return
    console.print(summarize_tailoring(result), markup=False)
    if show_diff:
        original = service.resumes.get_resume(resume_id).parsed
        for d in diff_resumes(original, result.tailored_resume):
            console.print(f"\n  [bold]{escape(d.section)}[/bold] {escape(d.field)}", highlight=False)
            console.print(f"  [red]- {escape(str(d.before))}[/red]", highlight=False)
            console.print(f"  [green]+ {escape(str(d.after))}[/green]", highlight=False)


@ai.command("cover-letter")
@click.argument("resume_id")
@click.argument("job_id")
@click.option("--tone", type=click.Choice(TONES), default="professional", show_default=True)
@click.option("--notes", help="Extra points to mention")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the letter to a file")
@click.pass_context
def ai_cover_letter(
    ctx: click.Context,
    resume_id: str,
    job_id: str,
    tone: str,
    notes: Optional[str],
    output: Optional[str],
) -> None:
    """Write a cover letter for a job."""
    with console.status("Writing cover letter..."):
        response = asyncio.run(_ai(ctx).generate_cover_letter(resume_id, job_id, tone, notes))
    result = _unwrap(ctx, response)
    if _emit_json(ctx, result):
        return
    if output:
        Path(output).write_text(result.cover_letter, encoding="utf-8")
        console.print(f"  [green]Wrote[/green] {output}")
    else:
        console.print(result.cover_letter, markup=False)
    console.print()
    console.print(summarize_cover_letter(result), markup=False)


def _bullets(title: str, items: list[str], color: str = "white") -> None:
    if not items:
        return
    console.print(f"\n  [bold {color}]{title}[/bold {color}]")
    for item in items:
        console.print(f"    - {item}", markup=False)


# ---------------------------------------------------------------------------
# Mock interview
# ---------------------------------------------------------------------------


@jobpilot_cli.command()
@click.option("--job", "job_id", help="Interview for a tracked job")
@click.option("--title", "job_title", help="Job title, when not using --job")
@click.option("--company", "company_name", help="Company, when not using --job")
@click.option("--type", "interview_type", type=click.Choice(["behavioral", "technical", "mixed"]), default="mixed")
@click.option("--difficulty", type=click.Choice(["easy", "medium", "hard"]), default="medium")
@click.option("--count", "number_of_questions", type=click.IntRange(1, 20), default=5, show_default=True)
@click.pass_context
def interview(
    ctx: click.Context,
    job_id: Optional[str],
    job_title: Optional[str],
    company_name: Optional[str],
    interview_type: str,
    difficulty: str,
    number_of_questions: int,
) -> None:
    """Run an interactive mock interview."""
    service = _ai(ctx)
    description = None
    if job_id:
        j = service.jobs.get_job(job_id)
        job_title, company_name, description = j.title, j.company, j.description

    request = QuestionRequest(
        job_title=job_title or "",
        company_name=company_name or "",
        job_description=description,
        interview_type=interview_type,
        difficulty=difficulty,
        number_of_questions=number_of_questions,
    )
    with console.status("Preparing questions..."):
        generated = _unwrap(ctx, asyncio.run(service.interview_questions(request)))

    console.print(f"\n  [bold cyan]MOCK INTERVIEW[/bold cyan] {request.job_title} at {request.company_name}")
    if generated.interview_context:
        console.print(f"  {generated.interview_context}", markup=False)

    answered: list[AnsweredQuestion] = []
    total = len(generated.questions)
    for i, question in enumerate(generated.questions, 1):
        console.print(f"\n  [bold]Q{i}/{total}[/bold] [dim]({question.category}, {question.difficulty})[/dim]")
        console.print(f"  {question.question}", markup=False)
        answer = click.prompt("  Your answer (blank to skip)", default="", show_default=False)
        if not answer.strip():
            console.print("  [dim]skipped[/dim]")
            continue

        data = AnswerInput(question=question, answer=answer, job_title=request.job_title, company_name=request.company_name)
        with console.status("Evaluating..."):
            response = asyncio.run(service.evaluate_answer(data))
        if not response.success:
            _print_error(response.error, service.config)
            continue

        evaluation = response.data
        console.print(f"  Score: [bold]{evaluation.score:g}[/bold]/100")
        _bullets("Strengths", evaluation.strengths, "green")
        _bullets("Improve", evaluation.improvements, "yellow")
        answered.append(
            AnsweredQuestion(
                question=question.question,
                category=question.category,
                answer=answer,
                evaluation=evaluation,
            )
        )

    if not answered:
        console.print("\n  No answers to analyze.")
        return

    session = SessionInput(
        interview_type=interview_type,
        job_title=request.job_title,
        company_name=request.company_name,
        answered=answered,
    )
    with console.status("Analyzing session..."):
        analysis = _unwrap(ctx, asyncio.run(service.analyze_interview(session)))

    console.print(f"\n  [bold]Overall {analysis.overall_score:g}/100[/bold]  readiness: {analysis.readiness_level}")
    console.print(f"  {analysis.detailed_analysis}", markup=False)
    _bullets("Recommendations", analysis.recommendations)


def main() -> None:
    jobpilot_cli()


if __name__ == "__main__":
    main()

"""CLI commands for ExamQuiz.

Commands:
- init-db: Create the database schema
- seed: Load grades and subjects from YAML
- add-learner / set-role: Manage learner accounts and roles
- review-queue / approve / reject / auto-reject: Question moderation
- streak / leaderboard: Learner engagement
- serve: Run the Web API
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from examquiz.core.leaderboard import get_leaderboard
from examquiz.core.learner_profile import upsert_learner
from examquiz.core.moderation import change_status, get_review_queue, run_auto_reject
from examquiz.core.reference import load_seed_file, seed_reference_data
from examquiz.core.streaks import get_streak_info
from examquiz.db.database import get_db_path, init_db
from examquiz.db.learners_repository import get_learner_by_uid, update_learner
from examquiz.utils.validators import ExamQuizError

ROLES = ("learner", "capturer", "reviewer", "admin")
DEFAULT_SEED_FILE = Path("data/seed/reference.yaml")

app = typer.Typer(
    name="examquiz",
    help="Exam practice backend: learners, question moderation and lessons.",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main(
    db: Path | None = typer.Option(None, "--db", help="Database file (default from config)"),
) -> None:
    """Open (and if needed create) the database before any command."""
    init_db(db.expanduser().resolve() if db else None)


def _fail(error: Exception | str) -> None:
    console.print(f"[red]✗ {error}[/red]")
    raise typer.Exit(code=1)


@app.command(name="init-db")
def init_db_command() -> None:
    """Create the database schema."""
    console.print("[green]✓ Database ready[/green]")
    console.print(f"  [dim]path:[/dim] {get_db_path()}")


@app.command()
def seed(
    file: Path = typer.Option(DEFAULT_SEED_FILE, "--file", "-f", help="Reference data YAML"),
) -> None:
    """Create the grades and subjects listed in a YAML file."""
    try:
        grades, subjects = seed_reference_data(load_seed_file(file))
    except ExamQuizError as e:
        _fail(e)

    console.print(f"[green]✓ Seeded {grades} grades and {subjects} subjects[/green]")


@app.command(name="add-learner")
def add_learner(
    uid: str = typer.Argument(..., help="Learner uid"),
    name: str = typer.Option("", "--name", "-n"),
    email: str = typer.Option("", "--email", "-e"),
    grade: int | None = typer.Option(None, "--grade", "-g"),
    role: str = typer.Option("learner", "--role", "-r", help="learner, capturer, reviewer or admin"),
) -> None:
    """Create or update a learner account."""
    if role not in ROLES:
        _fail(f"Unknown role '{role}'")

    data = {"name": name, "email": email}
    if grade is not None:
        data["grade"] = grade
    try:
        learner, is_new = upsert_learner(uid, data)
    except ExamQuizError as e:
        _fail(e)

    update_learner(uid, {"role": role})
    verb = "Created" if is_new else "Updated"
    console.print(f"[green]✓ {verb} learner {uid}[/green]")
    console.print(f"  [dim]id:[/dim]   {learner.id}")
    console.print(f"  [dim]role:[/dim] {role}")


@app.command(name="set-role")
def set_role(
    uid: str = typer.Argument(..., help="Learner uid"),
    role: str = typer.Argument(..., help="learner, capturer, reviewer or admin"),
) -> None:
    """Change the role of a learner."""
    if role not in ROLES:
        _fail(f"Unknown role '{role}'")
    if get_learner_by_uid(uid) is None:
        _fail(f"Learner not found: {uid}")

    update_learner(uid, {"role": role})
    console.print(f"[green]✓ {uid} is now {role}[/green]")


@app.command(name="review-queue")
def review_queue(
    uid: str = typer.Argument(..., help="Reviewer or capturer uid"),
    status: str = typer.Option("new", "--status", "-s"),
    page: int = typer.Option(1, "--page", "-p", min=1),
    limit: int = typer.Option(20, "--limit", "-l", min=1),
) -> None:
    """List questions awaiting review."""
    try:
        queue = get_review_queue(uid, status, page=page, limit=limit)
    except ExamQuizError as e:
        _fail(e)

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Subject", width=24)
    table.add_column("Grade", justify="center")
    table.add_column("Type", width=16)
    table.add_column("Question", width=50)
    table.add_column("Capturer", width=20)

    for item in queue.items:
        q = item.question
        table.add_row(
            str(q.id),
            q.subject_name,
            str(q.grade_number),
            q.type,
            q.question if len(q.question) <= 50 else q.question[:47] + "...",
            q.capturer_name or "",
        )

    console.print(table)
    console.print(
        f"[dim]page {queue.page}/{max(queue.total_pages, 1)} · {queue.total} {status} questions[/dim]"
    )


def _review(uid: str, question_id: int, status: str, comment: str | None) -> None:
    try:
        question = change_status(uid, question_id, status, comment)
    except ExamQuizError as e:
        _fail(e)

    console.print(f"[green]✓ Question {question.id} {question.status}[/green]")


@app.command()
def approve(
    uid: str = typer.Argument(..., help="Reviewer uid"),
    question_id: int = typer.Argument(...),
    comment: str | None = typer.Option(None, "--comment", "-c"),
) -> None:
    """Approve a question and make it available to learners."""
    _review(uid, question_id, "approved", comment)


@app.command()
def reject(
    uid: str = typer.Argument(..., help="Reviewer uid"),
    question_id: int = typer.Argument(...),
    comment: str = typer.Option(..., "--comment", "-c", help="Feedback for the capturer"),
) -> None:
    """Reject a question with feedback."""
    _review(uid, question_id, "rejected", comment)


@app.command(name="auto-reject")
def auto_reject() -> None:
    """Reject approved questions whose correct answer is much longer than the rest."""
    rejected = run_auto_reject()
    if not rejected:
        console.print("[green]✓ No questions rejected[/green]")
        return

    console.print(f"[yellow]⚠ Rejected {len(rejected)} questions[/yellow]")
    for question_id in rejected:
        console.print(f"  - {question_id}")


@app.command()
def streak(uid: str = typer.Argument(..., help="Learner uid")) -> None:
    """Show a learner's daily streak."""
    try:
        summary = get_streak_info(uid)
    except ExamQuizError as e:
        _fail(e)

    mark = "[green]✓[/green]" if summary.streak_maintained else "[yellow]…[/yellow]"
    console.print(f"{mark} Current streak: [bold]{summary.current_streak}[/bold]")
    console.print(f"  [dim]longest:[/dim]        {summary.longest_streak}")
    console.print(f"  [dim]answered today:[/dim] {summary.questions_answered_today}")
    console.print(f"  [dim]still needed:[/dim]   {summary.questions_needed_today}")


@app.command()
def leaderboard(
    uid: str = typer.Argument(..., help="Learner uid requesting the board"),
    period: int | None = typer.Option(None, "--period", "-p", help="Days to look back"),
    limit: int | None = typer.Option(None, "--limit", "-l"),
) -> None:
    """Show the top learners."""
    try:
        board = get_leaderboard(uid, period=period, limit=limit)
    except ExamQuizError as e:
        _fail(e)

    table = Table(show_header=True, header_style="bold", title=f"Last {board.period} days")
    table.add_column("#", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Grade", justify="center")
    table.add_column("Answered", justify="right")
    table.add_column("Accuracy", justify="right")
    table.add_column("Subjects", justify="right")
    table.add_column("Score", justify="right", style="bold")

    for position, entry in enumerate(board.rankings, start=1):
        table.add_row(
            str(position),
            entry.name,
            str(entry.grade or ""),
            str(entry.total_questions),
            f"{entry.accuracy}%",
            str(entry.unique_subjects),
            str(entry.score),
        )

    console.print(table)
    if board.user_rank:
        console.print(f"[dim]Your rank: {board.user_rank} ({board.user_score} points)[/dim]")
    else:
        console.print("[dim]You are not ranked yet[/dim]")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
    reload: bool = typer.Option(False, "--reload"),
) -> None:
    """Run the Web API with uvicorn."""
    import uvicorn

    uvicorn.run("examquiz.web.api:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()

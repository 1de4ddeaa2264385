"""Interactive CLI application."""
import time

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from srs_tracker.config import Settings, get_settings
from srs_tracker.dashboard import get_learner_summary, get_mastery_color, get_priority_color
from srs_tracker.db import init_db
from srs_tracker.logging_setup import configure_logging
from srs_tracker.models import ItemKind, MasteryLabel, ReviewDifficulty, ReviewQueueEntry
from srs_tracker.review_queue import ReviewQueue
from srs_tracker.session import ReviewSessionService
from srs_tracker.srs import SRSCalculator
from srs_tracker.store import SQLiteStore

console = Console()

EXIT_WORDS = ("q", "quit", "menu")

DIFFICULTY_CHOICES = {
    "e": ReviewDifficulty.EASY,
    "n": ReviewDifficulty.NORMAL,
    "h": ReviewDifficulty.HARD,
}


class SessionExitRequested(Exception):
    """Raised when the learner leaves a review session early."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def build_services(settings: Settings) -> tuple[ReviewQueue, ReviewSessionService]:
    init_db(settings.db_path)
    store = SQLiteStore(settings.db_path)
    queue = ReviewQueue(store, SRSCalculator.from_settings(settings))
    return queue, ReviewSessionService(store, queue)


def show_welcome():
    console.print(Panel(
        "[bold]Study Item Review Tracker[/bold]\n[dim]Kanji · Vocabulary · Grammar · Kana[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("review", "Review due items"),
        ("dashboard", "Queue and mastery overview"),
        ("upcoming", "Reviews due in the coming days"),
        ("add", "Add an item to the review queue"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def describe_entry(entry: ReviewQueueEntry) -> str:
    color = get_priority_color(entry.priority)
    return (
        f"{entry.kind.value} #{entry.item_id}  "
        f"[{color}]{entry.priority.name.title()}[/{color}]  level {entry.mastery_level}"
    )


def run_review_session(
    sessions: ReviewSessionService,
    learner_id: int,
    entries: list,
) -> int:
    """Walk through `entries`, grading each one. Returns the session id."""
    session = sessions.start(learner_id)
    if not entries:
        console.print("[yellow]No reviews due right now![/yellow]")
        sessions.end(session.id)
        return session.id
    console.print(f"\n[bold]Review Session[/bold] — {len(entries)} items\n")
    try:
        for i, entry in enumerate(entries, 1):
            console.print(Panel(describe_entry(entry), title=f"Item {i}/{len(entries)}", border_style="cyan"))
            started = time.monotonic()
            correct = session_prompt("Did you recall it? (y/n, q to stop)", choices=["y", "n", "q"])
            elapsed_ms = int((time.monotonic() - started) * 1000)
            difficulty = ReviewDifficulty.NORMAL
            if correct == "y":
                rating = session_prompt("How was it? (e=easy, n=normal, h=hard)", choices=["e", "n", "h", "q"], default="n")
                difficulty = DIFFICULTY_CHOICES[rating]
            if sessions.record_result(session.id, entry.id, correct == "y", elapsed_ms, difficulty):
                console.print("[green]Recorded.[/green]\n")
            else:
                console.print("[red]This item was already reviewed.[/red]\n")
    finally:
        sessions.end(session.id)
        finished = sessions.get(session.id)
        console.print(
            f"[bold]Reviewed {finished.items_reviewed} items "
            f"({finished.accuracy_rate:.0f}% correct)[/bold]"
        )
    return session.id


def cmd_review(queue: ReviewQueue, sessions: ReviewSessionService, settings: Settings):
    entries = queue.due_entries(settings.learner_id, limit=settings.due_limit)
    try:
        run_review_session(sessions, settings.learner_id, entries)
    except SessionExitRequested:
        console.print("[dim]Session stopped.[/dim]")


def cmd_dashboard(queue: ReviewQueue, settings: Settings):
    summary = get_learner_summary(queue, settings.learner_id)
    stats = summary["queue"]
    console.print(Panel(
        f"[bold]{summary['due_count']}[/bold] reviews due  |  "
        f"Overdue: [bold]{stats['overdue']}[/bold]  |  "
        f"Next 7 days: [bold]{stats['upcoming']}[/bold]",
        title="Review Dashboard", border_style="blue",
    ))

    table = Table(title="Items by Kind")
    table.add_column("Kind", style="cyan")
    table.add_column("Due", justify="right")
    table.add_column("Tracked", justify="right")
    table.add_column("Mastered", justify="right")
    for label in MasteryLabel:
        table.add_column(f"[{get_mastery_color(label)}]{label.value}[/{get_mastery_color(label)}]", justify="right")
    for kind in ItemKind:
        row = summary["by_kind"][kind.value]
        table.add_row(
            kind.value,
            str(stats[f"due_{kind.name.lower()}"]),
            str(row["items"]),
            str(row["mastered"]),
            *(str(row["labels"][label.value]) for label in MasteryLabel),
        )
    console.print(table)
    console.print(f"\n  Overall retention: [bold]{summary['retention_rate']}%[/bold]  |  "
                  f"Mastered: [bold]{summary['items_mastered']}[/bold] of {summary['items_tracked']}")


def cmd_upcoming(queue: ReviewQueue, settings: Settings):
    entries = queue.upcoming_entries(settings.learner_id, within_days=settings.upcoming_days)
    if not entries:
        console.print(f"[green]Nothing scheduled in the next {settings.upcoming_days} days.[/green]")
        return
    table = Table(title=f"Upcoming Reviews ({settings.upcoming_days} days)")
    table.add_column("When")
    table.add_column("Item")
    for entry in entries:
        table.add_row(entry.scheduled_at.strftime("%Y-%m-%d %H:%M"), describe_entry(entry))
    console.print(table)


def cmd_add(queue: ReviewQueue, settings: Settings):
    kind = Prompt.ask("Item kind", choices=[k.value for k in ItemKind])
    item_id = Prompt.ask("Item id")
    if not item_id.isdigit():
        console.print(f"[red]Not a valid item id: {item_id}[/red]")
        return
    entry = queue.enqueue(settings.learner_id, ItemKind(kind), int(item_id))
    console.print(f"[green]Queued {kind} #{item_id} for {entry.scheduled_at:%Y-%m-%d %H:%M}[/green]")


def main():
    settings = get_settings()
    configure_logging(settings.log_level)
    queue, sessions = build_services(settings)

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="review").strip().lower()
        try:
            if choice == "review":
                cmd_review(queue, sessions, settings)
            elif choice == "dashboard":
                cmd_dashboard(queue, settings)
            elif choice == "upcoming":
                cmd_upcoming(queue, settings)
            elif choice == "add":
                cmd_add(queue, settings)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]See you at your next review![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()

"""Interactive CLI application."""
import argparse
import logging
from dataclasses import replace

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt, IntPrompt
from rich.table import Table

from vocab_tutor.clock import utc_now
from vocab_tutor.config import DEFAULT_DB_PATH, clamp_session_size, load_config, save_config
from vocab_tutor.dashboard import (
    deck_stats, due_forecast, find_leeches, get_retention_color, get_retention_label,
)
from vocab_tutor.errors import EmptyQueue, PersistenceFailure, VocabTutorError
from vocab_tutor.models import Direction, PromptMode, Rating, SessionState, SessionSummary
from vocab_tutor.seed import is_seeded, seed_sample_deck
from vocab_tutor.session import ReviewSession, start_session
from vocab_tutor.store import CardStore

console = Console()
logger = logging.getLogger(__name__)

RATING_KEYS = {"1": Rating.AGAIN, "2": Rating.HARD, "3": Rating.GOOD, "4": Rating.EASY}
EXIT_WORDS = ("q", "menu")


class SessionExitRequested(Exception):
    """The user asked to leave a review session early."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_rating_prompt() -> Rating:
    answer = session_prompt(
        "Rate yourself (1=again, 2=hard, 3=good, 4=easy, q=quit)",
        choices=list(RATING_KEYS) + list(EXIT_WORDS),
    )
    return RATING_KEYS[answer.strip()]


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("review", "Review due cards"),
        ("add", "Add a card"),
        ("list", "List cards"),
        ("search", "Search cards"),
        ("edit", "Edit a card"),
        ("delete", "Delete a card"),
        ("stats", "Deck statistics"),
        ("settings", "Scheduler settings"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<10}[/cyan] {desc}")


def show_summary(summary: SessionSummary) -> None:
    if not summary.reviewed:
        console.print("[dim]No cards were rated.[/dim]")
        return
    table = Table(title="Session Summary")
    table.add_column("#", justify="right")
    table.add_column("Prompt")
    table.add_column("Answer")
    table.add_column("Rating")
    table.add_column("Next in", justify="right")
    for o in summary.outcomes:
        saved = "" if o.persisted else " [red](unsaved)[/red]"
        table.add_row(str(o.order), o.prompt_shown, o.answer_shown, o.rating.value + saved,
                      f"{o.scheduled_interval_after:g}d")
    console.print(table)
    counts = "  ".join(f"{r.value}: [bold]{n}[/bold]" for r, n in summary.by_rating.items())
    console.print(f"\n  Reviewed: [bold]{summary.reviewed}[/bold]  |  "
                  f"Accuracy: [bold]{summary.accuracy_percent}%[/bold]  |  {counts}")


def run_review_session(session: ReviewSession) -> SessionSummary:
    total = len(session.queue)
    console.print(f"\n[bold]Review Session[/bold] — {total} cards [dim](q to quit)[/dim]\n")
    try:
        while session.state is SessionState.REVIEWING:
            card_no = session.cursor + 1
            console.print(Panel(session.current_prompt, title=f"Card {card_no}/{total}", border_style="cyan"))
            session_prompt("[dim]Press Enter to reveal answer[/dim]", default="")
            console.print(Panel(session.reveal(), border_style="green"))
            rating = session_rating_prompt()
            try:
                outcome = session.rate(rating)
            except PersistenceFailure as e:
                console.print(f"[red]Could not save this review: {e}[/red]")
            else:
                console.print(f"[dim]Next review in {outcome.scheduled_interval_after:g} day(s)[/dim]\n")
    except SessionExitRequested:
        session.abandon()
        if session.unpersisted:
            console.print(f"[yellow]Session ended early.[/yellow] "
                          f"[red]{len(session.unpersisted)} review(s) were not saved.[/red]")
        else:
            console.print("[yellow]Session ended early. Reviews so far are saved.[/yellow]")
    if session.unpersisted and session.state is not SessionState.ABANDONED:
        remaining = session.retry_persistence()
        if remaining:
            console.print(f"[red]{remaining} review(s) could not be saved.[/red]")
    summary = session.summary
    show_summary(summary)
    return summary


def cmd_review(store: CardStore, clock=utc_now):
    config = store.config
    size = clamp_session_size(
        IntPrompt.ask(f"Cards to review (max {config.max_session_size})", default=config.session_size),
        config,
    )
    direction = Prompt.ask("Direction", choices=[d.value for d in Direction], default=Direction.FRONT_TO_BACK.value)
    mode = Prompt.ask("Prompt with", choices=[m.value for m in PromptMode], default=PromptMode.TEXT.value)
    tags = Prompt.ask("Tags (comma separated, blank for all)", default="")
    try:
        session = start_session(
            store, size, Direction(direction), PromptMode(mode),
            tags=tags.split(",") if tags.strip() else None, clock=clock,
        )
    except EmptyQueue:
        console.print("[yellow]Nothing due right now![/yellow]")
        return
    run_review_session(session)


def cmd_add(store: CardStore):
    front = Prompt.ask("Front")
    back = Prompt.ask("Back")
    phonetic = Prompt.ask("Phonetic (optional)", default="")
    tags = Prompt.ask("Tags (comma separated)", default="")
    item = store.add_item(front, back, phonetic=phonetic or None, tags=tags.split(","))
    console.print(f"[green]Added card {item.id}: {item.front} → {item.back}[/green]")


def show_items(items: list, title: str = "Cards") -> None:
    if not items:
        console.print("[yellow]No cards found.[/yellow]")
        return
    table = Table(title=title)
    table.add_column("ID", justify="right")
    table.add_column("Front", style="cyan")
    table.add_column("Phonetic")
    table.add_column("Back")
    table.add_column("Tags", style="dim")
    for item in items:
        table.add_row(str(item.id), item.front, item.phonetic or "", item.back, ", ".join(item.tags))
    console.print(table)


def cmd_search(store: CardStore):
    query = Prompt.ask("Search for")
    show_items(store.search_items(query), title=f"Results for '{query}'")


def cmd_edit(store: CardStore):
    item_id = IntPrompt.ask("Card ID")
    try:
        item = store.get_item(item_id)
    except KeyError:
        console.print(f"[red]No card with ID {item_id}.[/red]")
        return
    front = Prompt.ask("Front", default=item.front)
    back = Prompt.ask("Back", default=item.back)
    phonetic = Prompt.ask("Phonetic (blank to clear)", default=item.phonetic or "")
    tags = Prompt.ask("Tags (comma separated)", default=", ".join(item.tags))
    item = store.update_item(item_id, front=front, back=back, phonetic=phonetic, tags=tags.split(","))
    console.print(f"[green]Updated card {item.id}: {item.front} → {item.back}[/green]")


def cmd_delete(store: CardStore):
    item_id = IntPrompt.ask("Card ID")
    try:
        store.delete_item(item_id)
    except KeyError:
        console.print(f"[red]No card with ID {item_id}.[/red]")
        return
    console.print(f"[green]Deleted card {item_id}.[/green]")


def cmd_stats(store: CardStore, clock=utc_now):
    now = clock()
    stats = deck_stats(store, now)
    color = get_retention_color(stats["retention"])
    label = get_retention_label(stats["retention"]) if stats["reviews_logged"] else "NO DATA"
    console.print(Panel(
        f"Cards: [bold]{stats['total']}[/bold]  |  New: [bold]{stats['new']}[/bold]  |  "
        f"Learning: [bold]{stats['learning']}[/bold]  |  Mature: [bold]{stats['mature']}[/bold]\n"
        f"Due now: [bold]{stats['due_now']}[/bold]  |  Reviews: [bold]{stats['reviews_logged']}[/bold]  |  "
        f"Retention: [{color}]{stats['retention']}% {label}[/{color}]",
        title="Deck Statistics", border_style="blue",
    ))

    table = Table(title="Upcoming Reviews")
    table.add_column("Day", justify="right")
    table.add_column("Cards", justify="right")
    for day, count in enumerate(due_forecast(store, now)):
        table.add_row("Today" if day == 0 else f"+{day}", str(count))
    console.print(table)

    leeches = find_leeches(store)
    if leeches:
        console.print("\n[bold]Leeches:[/bold]")
        for leech in leeches[:5]:
            item = leech["item"]
            console.print(f"  [red]{leech['lapses']} lapses[/red] — {item.front} → {item.back}")


def cmd_settings(store: CardStore):
    config = store.config
    table = Table(title="Scheduler Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Session size", str(config.session_size))
    table.add_row("Reviews per new card", str(config.reviews_per_new_card))
    table.add_row("Starting ease", str(config.starting_ease))
    table.add_row("Ease floor", str(config.ease_floor))
    console.print(table)
    if Prompt.ask("Change session size?", choices=["y", "n"], default="n") == "y":
        size = clamp_session_size(IntPrompt.ask("Session size", default=config.session_size), config)
        per_new = max(0, IntPrompt.ask("Reviews per new card", default=config.reviews_per_new_card))
        store.config = replace(config, session_size=size, reviews_per_new_card=per_new)
        save_config(store, store.config)
        console.print("[green]Settings saved.[/green]")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="vocab-tutor", description="Spaced-repetition vocabulary review")
    parser.add_argument("--db", default=DEFAULT_DB_PATH, help="Path to the SQLite database")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")
    return parser.parse_args(argv)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def main(argv=None):
    args = parse_args(argv)
    configure_logging(args.verbose)

    with CardStore(args.db) as store:
        store.config = load_config(store)
        if not is_seeded(store):
            console.print("[dim]Setting up a sample deck...[/dim]")
            seed_sample_deck(store)

        console.print(Panel(
            "[bold]Vocabulary Tutor[/bold]\n[dim]Spaced-repetition review[/dim]",
            title="Welcome", border_style="blue",
        ))

        while True:
            show_menu()
            choice = Prompt.ask("\n[bold]>[/bold]", default="review").strip().lower()
            try:
                if choice == "review":
                    cmd_review(store)
                elif choice == "add":
                    cmd_add(store)
                elif choice == "list":
                    show_items(store.list_items())
                elif choice == "search":
                    cmd_search(store)
                elif choice == "edit":
                    cmd_edit(store)
                elif choice == "delete":
                    cmd_delete(store)
                elif choice == "stats":
                    cmd_stats(store)
                elif choice == "settings":
                    cmd_settings(store)
                elif choice in ("quit", "exit", "q"):
                    console.print("[dim]See you next review![/dim]")
                    break
                else:
                    console.print("[red]Unknown command. Try again.[/red]")
            except KeyboardInterrupt:
                console.print("\n[dim]Use 'quit' to exit.[/dim]")
            except VocabTutorError as e:
                console.print(f"[red]Error: {e}[/red]")
                logger.debug("command %s failed", choice, exc_info=True)


if __name__ == "__main__":
    main()

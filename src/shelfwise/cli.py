"""Command-line interface for shelfwise.

Built with Typer for commands and Rich for output.
"""

from datetime import date, datetime, timezone
from typing import Optional

import typer
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import configure_logging, get_config
from .db import get_db
from .db.models import Book
from .db.schemas import BookCreate, BookStatus, BookUpdate
from .errors import ShelfwiseError, describe_validation_error

# Create the main app
app = typer.Typer(
    name="shelfwise",
    help="Track your books, reading sessions, reviews and yearly goals.",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Track your books, reading sessions, reviews and yearly goals."""
    config = get_config()
    configure_logging("DEBUG" if verbose else config.log_level)
    for problem in config.validate():
        print_warning(problem)


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{message}[/dim]")


def progress_bar(percent: float, width: int = 15) -> str:
    """Render a text progress bar."""
    filled = int((min(percent, 100) / 100) * width)
    return "█" * filled + "░" * (width - filled)


def format_minutes(minutes: int) -> str:
    """Format minutes as '2h 5m' or '5m'."""
    hours, mins = divmod(minutes, 60)
    if hours:
        return f"{hours}h {mins}m"
    return f"{mins}m"


def parse_tags(tags: Optional[str]) -> Optional[list[str]]:
    """Split a comma-separated tag option."""
    if tags is None:
        return None
    return [t.strip() for t in tags.split(",") if t.strip()]


def format_book_table(books: list, title: str = "Books") -> Table:
    """Create a rich table for displaying books."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", max_width=8)
    table.add_column("Title", style="cyan", no_wrap=False, max_width=40)
    table.add_column("Author", style="green", max_width=25)
    table.add_column("Genre")
    table.add_column("Status", style="yellow")
    table.add_column("Progress", justify="center")

    for book in books:
        progress = f"{book.progress}%" if book.progress is not None else "-"
        table.add_row(
            book.id[:8],
            book.title,
            book.author,
            book.genre,
            book.status,
            progress,
        )

    return table


def resolve_book(query: str) -> Book:
    """Find a book by ID or title/author search, prompting on ambiguity."""
    db = get_db()

    book = db.get_book(query)
    if book:
        return book

    books = db.search_books(query, limit=5)
    if not books:
        print_error(f"No book found matching: {query}")
        raise typer.Exit(1)

    if len(books) == 1:
        return books[0]

    console.print("\n[bold]Multiple books found:[/bold]")
    for i, b in enumerate(books, 1):
        console.print(f"  {i}. {b.title} by {b.author}")

    choice = typer.prompt("Select book number", type=int, default=1)
    if choice < 1 or choice > len(books):
        print_error("Invalid selection")
        raise typer.Exit(1)
    return books[choice - 1]


# ============================================================================
# Book Management Commands
# ============================================================================


@app.command()
def add(
    title: str = typer.Argument(..., help="Book title"),
    author: str = typer.Option(..., "--author", "-a", help="Author"),
    genre: str = typer.Option(..., "--genre", "-g", help="Genre"),
    pages: Optional[int] = typer.Option(None, "--pages", "-p", help="Page count"),
    status: BookStatus = typer.Option(
        BookStatus.WANT_TO_READ, "--status", "-s", help="Reading status"
    ),
    tags: Optional[str] = typer.Option(None, "--tags", "-t", help="Comma-separated tags"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Description"),
) -> None:
    """Add a book to your library."""
    db = get_db()

    try:
        book_data = BookCreate(
            title=title,
            author=author,
            genre=genre,
            pages=pages,
            status=status,
            tags=parse_tags(tags) or [],
            description=description,
        )
    except PydanticValidationError as e:
        print_error(describe_validation_error(e))
        raise typer.Exit(1)

    book = db.create_book(book_data)
    print_success(f"Added: {book.title} by {book.author}")
    print_info(f"ID: {book.id}")


@app.command("list")
def list_books(
    status: Optional[BookStatus] = typer.Option(None, "--status", "-s", help="Filter by status"),
    tag: Optional[str] = typer.Option(None, "--tag", "-t", help="Filter by tag"),
    limit: int = typer.Option(20, "--limit", "-l", help="Max books to show"),
) -> None:
    """List books, optionally filtered by status or tag."""
    db = get_db()

    if status:
        books = db.get_books_by_status(status.value)
        title = f"Books - {status.value.replace('_', ' ').title()}"
    elif tag:
        books = db.get_books_by_tags([tag])
        title = f"Books - #{tag}"
    else:
        books = db.get_all_books()
        title = "All Books"

    if not books:
        console.print("[dim]No books found.[/dim]")
        return

    total = len(books)
    books = books[:limit]
    console.print(format_book_table(books, title=title))

    if len(books) < total:
        console.print(f"[dim]Showing {len(books)} of {total} books[/dim]")


@app.command()
def show(
    query: str = typer.Argument(..., help="Book title or ID"),
) -> None:
    """Show a book's details, reading progress and reviews."""
    from .reading import ProgressUpdater
    from .reviews import ReviewManager

    db = get_db()
    book = resolve_book(query)
    info = ProgressUpdater(db).get_book_progress(book.id)

    lines = [
        f"[bold]{book.title}[/bold]",
        f"by {book.author}",
        "",
        f"Genre: {book.genre}",
        f"Status: {book.status}",
        f"Pages: {book.pages if book.pages is not None else '-'}",
    ]
    if info["progress_percent"] is not None:
        lines.append(f"Progress: [{progress_bar(info['progress_percent'])}] {info['progress_percent']}%")
    if info["sessions_count"]:
        lines.append(
            f"Sessions: {info['sessions_count']} "
            f"({info['pages_read']} pages, {format_minutes(info['time_spent_minutes'])})"
        )
    if info["reading_speed"]:
        lines.append(f"Speed: {info['reading_speed']:.0f} pages/hr")
    if info["estimated_time_remaining"]:
        lines.append(f"Time left: ~{format_minutes(info['estimated_time_remaining'])}")
    if book.date_started:
        lines.append(f"Started: {book.started_at.date()}")
    if book.date_finished:
        lines.append(f"Finished: {book.finished_at.date()}")
    if book.get_tags():
        lines.append(f"Tags: {', '.join(book.get_tags())}")
    if book.is_wishlist:
        lines.append("[magenta]On wishlist[/magenta]")

    for review in ReviewManager(db).get_reviews_for_book(book.id):
        lines.append("")
        lines.append(f"Review: {review.star_display}")
        if review.content:
            lines.append(f"  {review.content}")

    lines.append("")
    lines.append(f"[dim]ID: {book.id}[/dim]")
    console.print(Panel("\n".join(lines), title="Book Details"))


@app.command()
def update(
    query: str = typer.Argument(..., help="Book title or ID to update"),
    status: Optional[BookStatus] = typer.Option(None, "--status", "-s", help="New status"),
    progress: Optional[int] = typer.Option(None, "--progress", "-p", help="Progress percent"),
    pages: Optional[int] = typer.Option(None, "--pages", help="Page count"),
    genre: Optional[str] = typer.Option(None, "--genre", "-g", help="Genre"),
    tags: Optional[str] = typer.Option(None, "--tags", "-t", help="Comma-separated tags"),
) -> None:
    """Edit a book directly. Edits are stored as given."""
    db = get_db()
    book = resolve_book(query)

    changes = {}
    if status:
        changes["status"] = status
    if progress is not None:
        changes["progress"] = progress
    if pages is not None:
        changes["pages"] = pages
    if genre:
        changes["genre"] = genre
    if tags is not None:
        changes["tags"] = parse_tags(tags)

    if not changes:
        print_warning("Nothing to update")
        raise typer.Exit(1)

    try:
        update_data = BookUpdate(**changes)
    except PydanticValidationError as e:
        print_error(describe_validation_error(e))
        raise typer.Exit(1)

    db.update_book(book.id, update_data)
    print_success(f"Updated: {book.title}")


@app.command()
def delete(
    query: str = typer.Argument(..., help="Book title or ID to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a book with its sessions and reviews."""
    db = get_db()
    book = resolve_book(query)

    if not yes and not typer.confirm(f"Delete '{book.title}'?", default=False):
        console.print("[dim]Cancelled.[/dim]")
        raise typer.Exit(0)

    db.delete_book(book.id)
    print_success(f"Deleted: {book.title}")


# ============================================================================
# Reading Session Commands
# ============================================================================


@app.command()
def log(
    query: str = typer.Argument(..., help="Book title or ID to log reading for"),
    pages: int = typer.Option(..., "--pages", "-p", help="Pages read"),
    minutes: int = typer.Option(0, "--minutes", "-m", help="Minutes spent"),
    session_date: Optional[str] = typer.Option(
        None, "--date", help="Date (YYYY-MM-DD, default: now)"
    ),
) -> None:
    """Log a reading session and update the book's progress."""
    from .reading import get_session_recorder

    db = get_db()
    recorder = get_session_recorder(db)
    book = resolve_book(query)

    timestamp = None
    if session_date:
        try:
            timestamp = datetime.combine(
                date.fromisoformat(session_date), datetime.min.time(), tzinfo=timezone.utc
            )
        except ValueError:
            print_error(f"Invalid date: {session_date}. Use YYYY-MM-DD")
            raise typer.Exit(1)

    try:
        recorder.record_session(book.id, pages, minutes, timestamp=timestamp)
    except ShelfwiseError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Logged reading session for: {book.title}")
    console.print(f"  Pages: {pages}")
    if minutes:
        console.print(f"  Duration: {format_minutes(minutes)}")

    updated = db.get_book(book.id)
    if updated.progress is not None:
        console.print(f"  Progress: [{progress_bar(updated.progress)}] {updated.progress}%")
    if updated.status == BookStatus.COMPLETED.value and book.status != BookStatus.COMPLETED.value:
        console.print(f"[bold green]Finished '{book.title}'![/bold green]")


@app.command()
def sessions(
    query: str = typer.Argument(..., help="Book title or ID"),
) -> None:
    """Show the reading session history of a book."""
    from .reading import get_session_recorder

    book = resolve_book(query)
    history = get_session_recorder(get_db()).get_sessions_for_book(book.id)

    if not history:
        console.print(f"[dim]No reading sessions for {book.title}.[/dim]")
        return

    table = Table(title=f"Sessions - {book.title}", show_header=True, header_style="bold magenta")
    table.add_column("Date", style="cyan")
    table.add_column("Pages", justify="right")
    table.add_column("Time", justify="right")

    for entry in history:
        table.add_row(
            entry.occurred_at.strftime("%Y-%m-%d %H:%M"),
            str(entry.pages_read),
            format_minutes(entry.minutes_spent),
        )

    console.print(table)
    total_pages = sum(s.pages_read for s in history)
    total_minutes = sum(s.minutes_spent for s in history)
    console.print(f"[dim]{len(history)} sessions, {total_pages} pages, {format_minutes(total_minutes)}[/dim]")


# ============================================================================
# Goals Commands
# ============================================================================

# Create goals sub-app
goals_app = typer.Typer(help="Manage yearly reading goals.")
app.add_typer(goals_app, name="goals")


@goals_app.command("set")
def goals_set(
    target: int = typer.Argument(..., help="Number of books to finish"),
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Year (default: current)"),
) -> None:
    """Set the reading goal for a year."""
    from .stats import GoalTracker

    tracker = GoalTracker(get_db())

    try:
        goal = tracker.set_goal(target, year=year)
    except ShelfwiseError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Goal set: {goal.target_books} books in {goal.year}")


@goals_app.command("show")
def goals_show(
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Year to show"),
    all_goals: bool = typer.Option(False, "--all", "-a", help="Show all goals"),
) -> None:
    """Show reading goals and progress."""
    from .stats import GoalTracker

    tracker = GoalTracker(get_db())

    if all_goals:
        goals = tracker.get_all_goals()
        title = "All Reading Goals"
    else:
        goal = tracker.get_goal(year)
        goals = [goal] if goal else []
        title = "Reading Goal"

    if not goals:
        console.print("[dim]No reading goals set.[/dim]")
        console.print("[dim]Use 'shelfwise goals set <target>' to set a goal.[/dim]")
        return

    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Year", style="cyan")
    table.add_column("Progress", justify="center")
    table.add_column("Read", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Remaining", justify="right")
    table.add_column("Status")

    for goal in goals:
        if goal.completed:
            status = "[bold green]Complete![/bold green]"
        elif goal.progress_percent >= 50:
            status = "[yellow]Making Progress[/yellow]"
        else:
            status = "[dim]In Progress[/dim]"

        table.add_row(
            str(goal.year),
            f"[{progress_bar(goal.progress_percent)}] {goal.progress_percent}%",
            str(goal.books_read),
            str(goal.target_books),
            str(goal.remaining),
            status,
        )

    console.print(table)

    if not all_goals:
        pace = tracker.calculate_required_pace(goals[0])
        if pace["remaining"] > 0 and pace["remaining_days"] > 0:
            console.print(
                f"[dim]Need {pace['per_month']} books/month "
                f"({pace['per_week']}/week) to finish on time[/dim]"
            )


# ============================================================================
# Review Commands
# ============================================================================

review_app = typer.Typer(help="Manage book reviews and ratings.")
app.add_typer(review_app, name="review")


@review_app.command("add")
def review_add(
    query: str = typer.Argument(..., help="Book title or ID"),
    rating: Optional[float] = typer.Option(None, "--rating", "-r", help="Rating (0.5-5)"),
    content: Optional[str] = typer.Option(None, "--content", "-c", help="Review content"),
    tags: Optional[str] = typer.Option(None, "--tags", "-t", help="Comma-separated tags"),
) -> None:
    """Add a review for a book."""
    from .reviews import ReviewCreate, ReviewManager

    manager = ReviewManager(get_db())
    book = resolve_book(query)

    try:
        data = ReviewCreate(book_id=book.id, rating=rating, content=content, tags=parse_tags(tags))
        review = manager.create_review(data)
    except PydanticValidationError as e:
        print_error(describe_validation_error(e))
        raise typer.Exit(1)
    except ShelfwiseError as e:
        print_error(str(e))
        raise typer.Exit(1)

    console.print(Panel(
        f"[bold]{book.title}[/bold]\n"
        f"Rating: {review.star_display}",
        title="[green]Review Added[/green]",
    ))


@review_app.command("list")
def review_list(
    query: Optional[str] = typer.Option(None, "--book", "-b", help="Only reviews of this book"),
    min_rating: Optional[float] = typer.Option(None, "--min-rating", help="Minimum rating"),
) -> None:
    """List reviews."""
    from .reviews import ReviewManager

    db = get_db()
    manager = ReviewManager(db)

    if query:
        book = resolve_book(query)
        reviews = manager.get_reviews_for_book(book.id)
    else:
        reviews = manager.list_reviews(min_rating=min_rating)

    if not reviews:
        console.print("[dim]No reviews found.[/dim]")
        return

    table = Table(title="Reviews", show_header=True, header_style="bold magenta")
    table.add_column("Book", style="cyan", max_width=40)
    table.add_column("Rating", justify="center")
    table.add_column("Review", max_width=50)

    titles = {b.id: b.title for b in db.get_all_books()}
    for review in reviews:
        table.add_row(
            titles.get(review.book_id, review.book_id),
            review.star_display,
            review.content or "-",
        )

    console.print(table)


# ============================================================================
# Wishlist Commands
# ============================================================================

wishlist_app = typer.Typer(help="Manage your wishlist.")
app.add_typer(wishlist_app, name="wishlist")


@wishlist_app.command("add")
def wishlist_add(
    title: str = typer.Argument(..., help="Book title"),
    author: str = typer.Option(..., "--author", "-a", help="Author name"),
    genre: str = typer.Option(..., "--genre", "-g", help="Genre"),
    pages: Optional[int] = typer.Option(None, "--pages", "-p", help="Page count"),
    tags: Optional[str] = typer.Option(None, "--tags", "-t", help="Comma-separated tags"),
) -> None:
    """Add a book to your wishlist."""
    db = get_db()

    try:
        book_data = BookCreate(
            title=title,
            author=author,
            genre=genre,
            pages=pages,
            is_wishlist=True,
            tags=parse_tags(tags) or [],
        )
    except PydanticValidationError as e:
        print_error(describe_validation_error(e))
        raise typer.Exit(1)

    book = db.create_book(book_data)
    print_success(f"Added to wishlist: {book.title} by {book.author}")


@wishlist_app.command("remove")
def wishlist_remove(
    query: str = typer.Argument(..., help="Book title or ID"),
) -> None:
    """Take a book off your wishlist. The book stays in the library."""
    db = get_db()
    book = resolve_book(query)

    if not book.is_wishlist:
        print_warning(f"'{book.title}' is not on your wishlist")
        return

    db.update_book(book.id, BookUpdate(is_wishlist=False))
    print_success(f"Removed from wishlist: {book.title}")


@wishlist_app.command("list")
def wishlist_list() -> None:
    """List wishlist books."""
    books = get_db().get_wishlist_books()

    if not books:
        console.print("[dim]Your wishlist is empty.[/dim]")
        return

    console.print(format_book_table(books, title="Wishlist"))


# ============================================================================
# Statistics Commands
# ============================================================================


@app.command()
def stats(
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Reporting year"),
) -> None:
    """Show reading statistics for a year."""
    from .stats import StatisticsAggregator

    aggregator = StatisticsAggregator(get_db())
    try:
        report = aggregator.compute_statistics(year)
    except ShelfwiseError as e:
        print_error(str(e))
        raise typer.Exit(1)

    table = Table(title=f"Reading Statistics {report.year}", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")

    table.add_row("Books read", str(report.books_read))
    table.add_row("Pages read", str(report.pages_read))
    table.add_row("Time reading", format_minutes(report.reading_time_minutes))
    table.add_row("Average rating", f"{report.average_rating:.1f} / 5")
    if report.reading_goal:
        goal = report.reading_goal
        table.add_row("Goal", f"{goal.books_read}/{goal.target_books} ({goal.progress_percent}%)")

    console.print(table)

    if report.genre_distribution:
        console.print()
        genre_table = Table(title="Genres", show_header=True, header_style="bold")
        genre_table.add_column("Genre", style="cyan")
        genre_table.add_column("Books", justify="right")
        genre_table.add_column("Share", justify="right")
        for share in report.genre_distribution:
            genre_table.add_row(share.genre, str(share.count), f"{share.percentage:.0f}%")
        console.print(genre_table)

    if any(m.count for m in report.monthly_progress):
        console.print()
        console.print("[bold]Books finished per month[/bold]")
        peak = max(m.count for m in report.monthly_progress)
        for entry in report.monthly_progress:
            label = date(report.year, entry.month + 1, 1).strftime("%b")
            bar = "█" * int(entry.count / peak * 20) if entry.count else ""
            console.print(f"  {label} {bar} {entry.count}")

    for issue in aggregator.find_inconsistencies():
        print_warning(f"{issue.title}: {issue.reason}")


@app.command()
def activity(
    days: Optional[int] = typer.Option(None, "--days", "-d", help="Number of days"),
) -> None:
    """Show daily reading activity for recent days."""
    from .stats import StatisticsAggregator

    if days is None:
        days = get_config().activity_days
    if days < 1:
        print_error("--days must be at least 1")
        raise typer.Exit(1)

    daily = StatisticsAggregator(get_db()).reading_activity(days=days)

    table = Table(title=f"Reading Activity (Last {days} Days)", show_header=True, header_style="bold magenta")
    table.add_column("Day", style="cyan")
    table.add_column("Minutes", justify="right")
    table.add_column("Pages", justify="right")

    for entry in daily:
        table.add_row(entry.day.strftime("%a %Y-%m-%d"), str(entry.minutes), str(entry.pages))

    console.print(table)
    total = sum(d.minutes for d in daily)
    console.print(f"[dim]Total: {format_minutes(total)}[/dim]")


# ============================================================================
# Version Command
# ============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"shelfwise version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()

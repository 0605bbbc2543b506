"""Tests for the CLI interface."""

import os
import tempfile
from datetime import date
from pathlib import Path

import pytest
from typer.testing import CliRunner

from shelfwise.cli import app
from shelfwise.config import reset_config
from shelfwise.db.schemas import BookStatus
from shelfwise.db.sqlite import get_db, reset_db
from shelfwise.reading.session import reset_session_recorder


@pytest.fixture(autouse=True)
def setup_test_db():
    """Set up a test database for each test."""
    reset_db()
    reset_config()
    reset_session_recorder()

    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    os.environ["SHELFWISE_DB_PATH"] = db_path

    yield

    # Cleanup
    reset_db()
    reset_config()
    reset_session_recorder()
    if "SHELFWISE_DB_PATH" in os.environ:
        del os.environ["SHELFWISE_DB_PATH"]
    if Path(db_path).exists():
        Path(db_path).unlink()


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


def add_book(runner: CliRunner, title: str = "Piranesi", pages: str = "200", *extra: str):
    """Add a book through the CLI."""
    result = runner.invoke(
        app,
        ["add", title, "--author", "Susanna Clarke", "--genre", "Fantasy", "--pages", pages, *extra],
    )
    assert result.exit_code == 0, result.stdout
    return get_db().search_books(title)[0]


class TestCLIBasics:
    """Tests for basic CLI functionality."""

    def test_help(self, runner: CliRunner):
        """Test that help command works."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "reading sessions" in result.stdout

    def test_version(self, runner: CliRunner):
        """Test version command."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "shelfwise version" in result.stdout


class TestBookCommands:
    """Tests for book management commands."""

    def test_add_and_list(self, runner: CliRunner):
        """Test adding a book shows it in the list."""
        add_book(runner)

        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert "Piranesi" in result.stdout

    def test_add_requires_genre(self, runner: CliRunner):
        """Test add fails without a genre."""
        result = runner.invoke(app, ["add", "Piranesi", "--author", "Susanna Clarke"])
        assert result.exit_code != 0
        assert get_db().get_all_books() == []

    def test_add_rejects_negative_pages(self, runner: CliRunner):
        """Test invalid fields are reported."""
        result = runner.invoke(
            app, ["add", "Piranesi", "--author", "A", "--genre", "G", "--pages", "-5"]
        )
        assert result.exit_code == 1
        assert "Error" in result.stdout

    def test_list_empty(self, runner: CliRunner):
        """Test listing an empty library."""
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert "No books found" in result.stdout

    def test_list_by_status(self, runner: CliRunner):
        """Test filtering the list by status."""
        add_book(runner, "Piranesi")
        add_book(runner, "Jonathan Strange", "800", "--status", "reading")

        result = runner.invoke(app, ["list", "--status", "reading"])
        assert "Jonathan Strange" in result.stdout
        assert "Piranesi" not in result.stdout

    def test_show(self, runner: CliRunner):
        """Test showing a book's details."""
        add_book(runner)
        result = runner.invoke(app, ["show", "Piranesi"])
        assert result.exit_code == 0
        assert "Susanna Clarke" in result.stdout
        assert "Fantasy" in result.stdout

    def test_show_unknown_book(self, runner: CliRunner):
        """Test showing a book that does not exist."""
        result = runner.invoke(app, ["show", "Nothing"])
        assert result.exit_code == 1
        assert "No book found" in result.stdout

    def test_update_progress_directly(self, runner: CliRunner):
        """Test direct progress edits are stored as given."""
        book = add_book(runner)
        runner.invoke(app, ["update", book.id, "--progress", "80"])
        result = runner.invoke(app, ["update", book.id, "--progress", "20"])

        assert result.exit_code == 0
        assert get_db().get_book(book.id).progress == 20

    def test_update_out_of_range(self, runner: CliRunner):
        """Test progress over 100 is rejected."""
        book = add_book(runner)
        result = runner.invoke(app, ["update", book.id, "--progress", "120"])
        assert result.exit_code == 1

    def test_update_nothing(self, runner: CliRunner):
        """Test update without options warns."""
        book = add_book(runner)
        result = runner.invoke(app, ["update", book.id])
        assert result.exit_code == 1
        assert "Nothing to update" in result.stdout

    def test_delete(self, runner: CliRunner):
        """Test deleting a book."""
        book = add_book(runner)
        result = runner.invoke(app, ["delete", book.id, "--yes"])
        assert result.exit_code == 0
        assert get_db().get_book(book.id) is None

    def test_delete_cancelled(self, runner: CliRunner):
        """Test declining the confirmation keeps the book."""
        book = add_book(runner)
        result = runner.invoke(app, ["delete", book.id], input="n\n")
        assert result.exit_code == 0
        assert get_db().get_book(book.id) is not None


class TestSessionCommands:
    """Tests for reading session commands."""

    def test_log_updates_progress(self, runner: CliRunner):
        """Test logging pages updates the book's progress."""
        book = add_book(runner)
        result = runner.invoke(app, ["log", "Piranesi", "--pages", "50", "--minutes", "40"])

        assert result.exit_code == 0
        assert "Logged reading session" in result.stdout
        assert get_db().get_book(book.id).progress == 25

    def test_log_finishes_book(self, runner: CliRunner):
        """Test logging the last page completes the book and the goal."""
        book = add_book(runner)
        runner.invoke(app, ["goals", "set", "1"])

        result = runner.invoke(app, ["log", book.id, "--pages", "200"])

        assert result.exit_code == 0
        assert "Finished" in result.stdout
        assert get_db().get_book(book.id).status == BookStatus.COMPLETED.value
        assert get_db().get_reading_goal(date.today().year).books_read == 1

    def test_log_invalid_pages(self, runner: CliRunner):
        """Test zero pages is rejected."""
        book = add_book(runner)
        result = runner.invoke(app, ["log", book.id, "--pages", "0"])

        assert result.exit_code == 1
        assert "Error" in result.stdout
        assert get_db().get_reading_sessions_for_book(book.id) == []

    def test_log_bad_date(self, runner: CliRunner):
        """Test an unparseable date is rejected."""
        book = add_book(runner)
        result = runner.invoke(app, ["log", book.id, "--pages", "5", "--date", "yesterday"])
        assert result.exit_code == 1
        assert "Invalid date" in result.stdout

    def test_sessions_history(self, runner: CliRunner):
        """Test listing a book's sessions."""
        book = add_book(runner)
        runner.invoke(app, ["log", book.id, "--pages", "12", "--date", "2025-02-03"])

        result = runner.invoke(app, ["sessions", book.id])
        assert result.exit_code == 0
        assert "2025-02-03" in result.stdout

    def test_sessions_empty(self, runner: CliRunner):
        """Test a book without sessions."""
        book = add_book(runner)
        result = runner.invoke(app, ["sessions", book.id])
        assert "No reading sessions" in result.stdout


class TestGoalCommands:
    """Tests for goal commands."""

    def test_set_and_show(self, runner: CliRunner):
        """Test setting and showing a goal."""
        result = runner.invoke(app, ["goals", "set", "12", "--year", "2025"])
        assert result.exit_code == 0
        assert "12 books in 2025" in result.stdout

        result = runner.invoke(app, ["goals", "show", "--year", "2025"])
        assert result.exit_code == 0
        assert "2025" in result.stdout

    def test_set_invalid(self, runner: CliRunner):
        """Test a zero target is rejected."""
        result = runner.invoke(app, ["goals", "set", "0"])
        assert result.exit_code == 1

    def test_show_none(self, runner: CliRunner):
        """Test showing goals when none are set."""
        result = runner.invoke(app, ["goals", "show", "--all"])
        assert "No reading goals set" in result.stdout


class TestReviewCommands:
    """Tests for review commands."""

    def test_add_and_list(self, runner: CliRunner):
        """Test reviewing a book and listing reviews."""
        add_book(runner)
        result = runner.invoke(app, ["review", "add", "Piranesi", "--rating", "4.5", "--content", "Haunting"])
        assert result.exit_code == 0
        assert "Review Added" in result.stdout

        result = runner.invoke(app, ["review", "list"])
        assert "Haunting" in result.stdout

    def test_add_invalid_rating(self, runner: CliRunner):
        """Test out-of-range ratings are rejected."""
        add_book(runner)
        result = runner.invoke(app, ["review", "add", "Piranesi", "--rating", "9"])
        assert result.exit_code == 1


class TestWishlistCommands:
    """Tests for wishlist commands."""

    def test_wishlist_flow(self, runner: CliRunner):
        """Test adding, listing and removing a wishlist book."""
        result = runner.invoke(
            app, ["wishlist", "add", "Babel", "--author", "R. F. Kuang", "--genre", "Fantasy"]
        )
        assert result.exit_code == 0

        result = runner.invoke(app, ["wishlist", "list"])
        assert "Babel" in result.stdout

        result = runner.invoke(app, ["wishlist", "remove", "Babel"])
        assert result.exit_code == 0
        assert get_db().get_wishlist_books() == []
        assert len(get_db().get_all_books()) == 1


class TestStatsCommands:
    """Tests for statistics commands."""

    def test_stats(self, runner: CliRunner):
        """Test the yearly statistics report."""
        book = add_book(runner)
        runner.invoke(app, ["log", book.id, "--pages", "200", "--minutes", "90"])

        result = runner.invoke(app, ["stats"])
        assert result.exit_code == 0
        assert "Books read" in result.stdout
        assert "Fantasy" in result.stdout

    def test_stats_invalid_year(self, runner: CliRunner):
        """Test an out-of-range year prints an error instead of crashing."""
        result = runner.invoke(app, ["stats", "--year", "0"])
        assert result.exit_code == 1
        assert "Error" in result.stdout
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_stats_warns_on_missing_pages(self, runner: CliRunner):
        """Test completed books without pages are flagged."""
        runner.invoke(
            app, ["add", "Untold", "--author", "A", "--genre", "G", "--status", "completed"]
        )
        result = runner.invoke(app, ["stats"])
        assert result.exit_code == 0
        assert "without a page count" in result.stdout

    def test_activity(self, runner: CliRunner):
        """Test the daily activity table."""
        book = add_book(runner)
        runner.invoke(app, ["log", book.id, "--pages", "10", "--minutes", "25"])

        result = runner.invoke(app, ["activity", "--days", "3"])
        assert result.exit_code == 0
        assert "Last 3 Days" in result.stdout
        assert "25m" in result.stdout

    def test_activity_invalid_days(self, runner: CliRunner):
        """Test a non-positive window is rejected."""
        result = runner.invoke(app, ["activity", "--days", "0"])
        assert result.exit_code == 1

"""
pytest configuration and fixtures.

Loads environment variables from .env file for all tests and provides a
throwaway SQLite database per test.
"""

from pathlib import Path
from typing import Callable, Generator

import pytest
from dotenv import load_dotenv

from bookshelf.db import DatabaseConnection, WriteSequenceCoordinator
from bookshelf.db.repositories import BookRepository
from bookshelf.models import Book


def pytest_configure(config):
    """Load .env file before running tests"""
    # Find the project root (where .env is located)
    project_root = Path(__file__).parent.parent
    env_file = project_root / ".env"

    if env_file.exists():
        load_dotenv(env_file)


@pytest.fixture
def db(tmp_path: Path) -> Generator[DatabaseConnection, None, None]:
    """SQLite-backed connection with the book table created."""
    connection = DatabaseConnection.from_url(f"sqlite:///{tmp_path / 'books.db'}")
    connection.create_schema()
    yield connection
    connection.close()


@pytest.fixture
def coordinator() -> WriteSequenceCoordinator:
    return WriteSequenceCoordinator()


@pytest.fixture
def sample_book() -> Book:
    return Book(title="A", author="B", isbn="111")


@pytest.fixture
def stored_book(db: DatabaseConnection, sample_book: Book) -> Book:
    """sample_book, already committed to the database."""
    with db.session() as session:
        BookRepository(session).create(sample_book)
    return sample_book


@pytest.fixture
def read_books(db: DatabaseConnection) -> Callable[[], list[Book]]:
    """Read every stored book through a fresh session."""

    def _read() -> list[Book]:
        with db.session() as session:
            return BookRepository(session).read_all()

    return _read

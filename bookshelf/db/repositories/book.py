"""
Book repository for database operations.

Handles book CRUD keyed by ISBN and builds the matching mutation steps for
atomic write sequences.
"""

from typing import Any

from sqlalchemy import Table, delete, select, update
from sqlalchemy.sql import Executable

from bookshelf.db.repositories.base import BaseRepository
from bookshelf.db.tables import books
from bookshelf.models.book import Book
from bookshelf.models.sequence import MutationStep, RowCountPolicy, WriteResult


def _key(isbn: str) -> str:
    """Normalize an ISBN key the way Book normalizes its isbn field."""
    return isbn.strip()


class BookRepository(BaseRepository[Book]):
    """
    Repository for Book operations.

    Write methods return the raw WriteResult. Zero rows affected by an update
    or delete is not an error here; wrap the step in a write sequence to
    enforce a row count.
    """

    @property
    def table(self) -> Table:
        return books

    def _row_to_model(self, row: Any) -> Book:
        """Convert database row to Book model."""
        return Book(title=row.title, author=row.author, isbn=row.isbn)

    def _model_to_dict(self, model: Book) -> dict:
        """Convert Book model to database dict."""
        return {
            "title": model.title,
            "author": model.author,
            "isbn": model.isbn,
        }

    def create(self, book: Book) -> WriteResult:
        """
        Insert a book.

        Args:
            book: Book to insert

        Returns:
            WriteResult (one row on success)

        Raises:
            ConstraintViolation: If a book with the same ISBN exists
            ConnectivityFailure: If the session is unusable
        """
        return self.insert(book)

    def read_all(self) -> list[Book]:
        """
        Read every book.

        Each call re-executes the query.

        Returns:
            List of books in the store's natural order

        Raises:
            QueryFailure: If the query cannot be executed
        """
        return self.list_all()

    def get_by_isbn(self, isbn: str) -> Book | None:
        """
        Get a book by ISBN.

        Args:
            isbn: Book ISBN

        Returns:
            Book or None if not found
        """
        stmt = select(self.table).where(self.table.c.isbn == _key(isbn))
        return self._fetch_optional(stmt)

    def update(self, book: Book, isbn: str) -> WriteResult:
        """
        Rewrite title and author of the book stored under `isbn`.

        `book.isbn` is ignored; the key never changes.

        Args:
            book: Book carrying the new title and author
            isbn: ISBN of the row to update

        Returns:
            WriteResult (zero rows if the ISBN is unknown)
        """
        return self._execute_write(self.update_statement(book, isbn))

    def delete(self, isbn: str) -> WriteResult:
        """
        Delete the book stored under `isbn`.

        Args:
            isbn: ISBN of the row to delete

        Returns:
            WriteResult (zero rows if the ISBN is unknown)
        """
        return self._execute_write(self.delete_statement(isbn))

    def delete_by_author(self, author: str) -> WriteResult:
        """
        Delete every book by an author.

        Args:
            author: Exact author name

        Returns:
            WriteResult with the number of books removed
        """
        return self._execute_write(self.delete_by_author_statement(author))

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def update_statement(self, book: Book, isbn: str) -> Executable:
        return (
            update(self.table)
            .where(self.table.c.isbn == _key(isbn))
            .values(title=book.title, author=book.author)
        )

    def delete_statement(self, isbn: str) -> Executable:
        return delete(self.table).where(self.table.c.isbn == _key(isbn))

    def delete_by_author_statement(self, author: str) -> Executable:
        return delete(self.table).where(self.table.c.author == author)

    # -------------------------------------------------------------------------
    # Mutation steps
    # -------------------------------------------------------------------------

    def create_step(self, book: Book) -> MutationStep:
        """Step inserting `book`, expecting exactly one row."""
        return MutationStep(
            statement=self.insert_statement(book),
            description=f"create book {book.isbn}",
        )

    def update_step(self, book: Book, isbn: str) -> MutationStep:
        """Step updating the book under `isbn`, expecting exactly one row."""
        return MutationStep(
            statement=self.update_statement(book, isbn),
            description=f"update book {isbn}",
        )

    def delete_step(self, isbn: str) -> MutationStep:
        """Step deleting the book under `isbn`, expecting exactly one row."""
        return MutationStep(
            statement=self.delete_statement(isbn),
            description=f"delete book {isbn}",
        )

    def delete_by_author_step(self, author: str) -> MutationStep:
        """Step deleting an author's books, expecting at least one row."""
        return MutationStep(
            statement=self.delete_by_author_statement(author),
            policy=RowCountPolicy.AT_LEAST_ONE,
            description=f"delete books by {author}",
        )

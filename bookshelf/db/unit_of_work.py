"""
Unit of Work pattern for transaction coordination.

Scopes one session to a block of work and guarantees it is released on every
exit path.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from bookshelf.db.repositories.book import BookRepository
from bookshelf.db.write_sequence import WriteSequence, WriteSequenceCoordinator

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from bookshelf.db.connection import DatabaseConnection
    from bookshelf.models.sequence import MutationStep, SequenceResult


class UnitOfWork:
    """
    Unit of Work for managing database sessions.

    Usage:
        with UnitOfWork(db) as uow:
            uow.books.create(book)
            uow.commit()  # Explicit commit

        # Guarded multi-step write:
        with UnitOfWork(db) as uow:
            uow.run_sequence([
                uow.books.update_step(book, "111"),
                uow.books.delete_step("222"),
            ])

        # Auto-rollback on exception:
        with UnitOfWork(db) as uow:
            uow.books.delete("111")
            raise Exception("Something went wrong")
            # Transaction is automatically rolled back
    """

    def __init__(
        self,
        connection: DatabaseConnection,
        coordinator: WriteSequenceCoordinator | None = None,
    ):
        self._connection = connection
        self._coordinator = coordinator or WriteSequenceCoordinator()
        self._session: Session | None = None
        self._books: BookRepository | None = None

    def __enter__(self) -> UnitOfWork:
        self._session = self._connection.get_session()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is not None:
                self.rollback()
        finally:
            self._close()
        return False  # Don't suppress exceptions

    @property
    def session(self) -> Session:
        """Get current session (raises if not in context)."""
        if self._session is None:
            raise RuntimeError("UnitOfWork must be used within a context manager")
        return self._session

    @property
    def books(self) -> BookRepository:
        """Book repository for this unit of work."""
        if self._books is None:
            self._books = BookRepository(self.session)
        return self._books

    def sequence(self) -> WriteSequence:
        """Start an incremental write sequence on this unit's session."""
        return self._coordinator.sequence(self.session)

    def run_sequence(self, steps: Iterable[MutationStep]) -> SequenceResult:
        """Run `steps` atomically on this unit's session."""
        return self._coordinator.run(self.session, steps)

    def commit(self):
        """Commit the current transaction."""
        self.session.commit()

    def rollback(self):
        """Rollback the current transaction."""
        self.session.rollback()

    def _close(self):
        """Close the session."""
        if self._session is not None:
            self._session.close()
            self._session = None
            self._books = None

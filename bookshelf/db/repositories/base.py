"""
Base repository with common CRUD operations.

Provides generic database operations that can be inherited by specific repositories.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import Table, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Executable

from bookshelf.db.errors import translate_error
from bookshelf.models.sequence import WriteResult

ModelT = TypeVar("ModelT", bound=BaseModel)


def execute_write(
    session: Session, statement: Executable, params: dict[str, Any] | None = None
) -> WriteResult:
    """
    Execute a write statement and report its affected-row count.

    The row count is returned as-is; judging it is up to the caller.

    Args:
        session: Session to execute on
        statement: INSERT, UPDATE or DELETE statement
        params: Bound parameters for text() templates

    Returns:
        WriteResult with the affected-row count

    Raises:
        WriteFailure: If the statement fails (ConstraintViolation and
            ConnectivityFailure are subclasses)
    """
    try:
        result = session.execute(statement, params)
    except SQLAlchemyError as e:
        raise translate_error(e, write=True) from e
    return WriteResult(rows_affected=result.rowcount)


class BaseRepository(ABC, Generic[ModelT]):
    """
    Base repository with common CRUD operations.

    Subclasses must implement:
    - table property: Return the SQLAlchemy Table
    - _row_to_model: Convert database row to Pydantic model
    - _model_to_dict: Convert Pydantic model to database dict
    """

    def __init__(self, session: Session):
        self.session = session

    @property
    @abstractmethod
    def table(self) -> Table:
        """SQLAlchemy table for this repository."""
        pass

    @abstractmethod
    def _row_to_model(self, row: Any) -> ModelT:
        """Convert database row to Pydantic model."""
        pass

    @abstractmethod
    def _model_to_dict(self, model: ModelT) -> dict:
        """Convert Pydantic model to database dict."""
        pass

    def _execute_write(
        self, statement: Executable, params: dict[str, Any] | None = None
    ) -> WriteResult:
        return execute_write(self.session, statement, params)

    def _fetch_all(self, statement: Executable) -> list[ModelT]:
        try:
            result = self.session.execute(statement)
            rows = result.fetchall()
        except SQLAlchemyError as e:
            raise translate_error(e, write=False) from e
        return [self._row_to_model(row) for row in rows]

    def _fetch_optional(self, statement: Executable) -> ModelT | None:
        try:
            result = self.session.execute(statement)
            row = result.fetchone()
        except SQLAlchemyError as e:
            raise translate_error(e, write=False) from e

        if row is None:
            return None

        return self._row_to_model(row)

    def list_all(self) -> list[ModelT]:
        """
        List every row in the table.

        Rows come back in the store's natural order, which is not guaranteed
        to be stable across calls.

        Returns:
            List of Pydantic models (empty if the table is empty)
        """
        return self._fetch_all(select(self.table))

    def insert(self, model: ModelT) -> WriteResult:
        """
        Insert a new row.

        Args:
            model: Pydantic model to insert

        Returns:
            WriteResult for the INSERT
        """
        return self._execute_write(self.insert_statement(model))

    def insert_statement(self, model: ModelT) -> Executable:
        """Build the INSERT statement for a model."""
        return self.table.insert().values(**self._model_to_dict(model))

"""
Database error taxonomy.

Wraps SQLAlchemy exceptions in a small, stable hierarchy so callers can react
to what went wrong rather than to which driver reported it.
"""

from sqlalchemy import exc as sa_exc


class DataAccessError(Exception):
    """Base exception for data-access errors."""

    def __init__(
        self,
        message: str,
        original: BaseException | None = None,
        step_index: int | None = None,
    ):
        super().__init__(message)
        self.original = original
        self.step_index = step_index


class WriteFailure(DataAccessError):
    """A write statement could not be applied."""


class QueryFailure(DataAccessError):
    """A read statement could not be executed."""


class ConnectivityFailure(WriteFailure, QueryFailure):
    """The session or its connection is unusable."""


class ConstraintViolation(WriteFailure):
    """Uniqueness or other integrity constraint violated (e.g. duplicate ISBN)."""


class SequenceStateError(DataAccessError):
    """A write sequence was driven through an illegal state transition."""


class SequenceAborted(DataAccessError):
    """A write sequence was rolled back before completing."""

    def __init__(
        self,
        message: str,
        step_index: int | None = None,
        expected: int | None = None,
        actual: int | None = None,
    ):
        super().__init__(message, step_index=step_index)
        self.expected = expected
        self.actual = actual


class RowCountMismatch(SequenceAborted):
    """A step's affected-row count violated its policy."""

    def __init__(self, step_index: int, expected: int, actual: int, policy: str):
        super().__init__(
            f"Step {step_index} affected {actual} row(s), "
            f"expected {expected} ({policy})",
            step_index=step_index,
            expected=expected,
            actual=actual,
        )
        self.policy = policy


class RollbackFailure(DataAccessError):
    """
    Rolling back an aborted sequence failed.

    The transaction outcome is unknown. `original_error` holds the error that
    triggered the rollback; the rollback error itself is chained as __cause__.
    """

    def __init__(
        self,
        original_error: BaseException,
        rollback_error: BaseException,
        step_index: int | None = None,
    ):
        super().__init__(
            f"Rollback failed after {type(original_error).__name__}: {rollback_error}",
            original=rollback_error,
            step_index=step_index,
        )
        self.original_error = original_error


_CONNECTIVITY_ERRORS = (
    sa_exc.OperationalError,
    sa_exc.InterfaceError,
    sa_exc.DisconnectionError,
    sa_exc.PendingRollbackError,
    sa_exc.ResourceClosedError,
)


def translate_error(error: sa_exc.SQLAlchemyError, write: bool) -> DataAccessError:
    """
    Map a SQLAlchemy exception onto the data-access taxonomy.

    Args:
        error: Exception raised by SQLAlchemy or the DBAPI driver
        write: Whether the failing statement was a write

    Returns:
        Translated exception (not raised), with `original` set
    """
    message = str(error).splitlines()[0] if str(error) else type(error).__name__

    if isinstance(error, sa_exc.IntegrityError):
        return ConstraintViolation(message, original=error)

    if isinstance(error, _CONNECTIVITY_ERRORS) or getattr(
        error, "connection_invalidated", False
    ):
        return ConnectivityFailure(message, original=error)

    if write:
        return WriteFailure(message, original=error)
    return QueryFailure(message, original=error)

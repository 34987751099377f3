"""
Atomic write sequences.

Runs an ordered list of mutation steps inside a single transaction and checks
each step's affected-row count. The first step that fails its row-count policy,
or raises, rolls the whole sequence back.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from sqlalchemy.exc import SQLAlchemyError

from bookshelf.db.errors import (
    DataAccessError,
    RollbackFailure,
    RowCountMismatch,
    SequenceAborted,
    SequenceStateError,
    translate_error,
)
from bookshelf.db.repositories.base import execute_write
from bookshelf.models.sequence import (
    MutationStep,
    SequenceResult,
    SequenceState,
    WriteResult,
)

if TYPE_CHECKING:
    from sqlalchemy.orm import Session, SessionTransaction

logger = logging.getLogger(__name__)


class WriteSequence:
    """
    One all-or-nothing run of mutation steps on a session.

    The sequence owns the session's transaction from the first submitted step
    until it commits or rolls back. Both end states are final.

    Usage:
        with WriteSequence(session) as seq:
            seq.submit(repo.update_step(book, "111"))
            seq.submit(repo.delete_by_author_step("Anonymous"))
        # Leaving the block commits; an exception rolls back and propagates.
    """

    def __init__(self, session: Session):
        self._session = session
        self._transaction: SessionTransaction | None = None
        self._state = SequenceState.IDLE
        self._results: list[WriteResult] = []

    def __enter__(self) -> WriteSequence:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            if self._state == SequenceState.IN_TRANSACTION:
                self._rollback(exc_val)
            elif self._state == SequenceState.IDLE:
                self._state = SequenceState.ROLLED_BACK
            return False  # Don't suppress exceptions

        if not self._state.is_terminal:
            self.commit()
        return False

    @property
    def state(self) -> SequenceState:
        """Current lifecycle state."""
        return self._state

    @property
    def results(self) -> list[WriteResult]:
        """Write results of the steps executed so far."""
        return list(self._results)

    def submit(self, step: MutationStep) -> WriteResult:
        """
        Execute one step inside the sequence's transaction.

        The transaction is opened by the first submitted step.

        Args:
            step: Mutation step to execute

        Returns:
            WriteResult of the step

        Raises:
            SequenceStateError: If the sequence already committed or rolled back
            RowCountMismatch: If the row count violates the step policy
            RollbackFailure: If rolling back after a failure also failed
            DataAccessError: Translated execution error (after rollback)
        """
        if self._state.is_terminal:
            raise SequenceStateError(
                f"Cannot submit a step to a {self._state.value} sequence"
            )

        index = len(self._results)
        if self._state == SequenceState.IDLE:
            self._begin()

        try:
            result = execute_write(self._session, step.statement, step.params)
        except BaseException as e:
            if isinstance(e, DataAccessError) and e.step_index is None:
                e.step_index = index
            self._rollback(e, step_index=index)
            raise

        if not step.is_satisfied_by(result.rows_affected):
            error = RowCountMismatch(
                step_index=index,
                expected=step.expected_rows,
                actual=result.rows_affected,
                policy=step.policy.value,
            )
            self._rollback(error, step_index=index)
            raise error

        self._results.append(result)
        logger.debug(
            "Step %d (%s) affected %d row(s)",
            index,
            step.description or "unnamed",
            result.rows_affected,
        )
        return result

    def commit(self) -> SequenceResult:
        """
        Commit the sequence.

        A sequence with no submitted steps commits without touching the session.

        Returns:
            SequenceResult in the committed state

        Raises:
            SequenceStateError: If the sequence already committed or rolled back
            DataAccessError: If the commit fails (after rollback)
        """
        if self._state.is_terminal:
            raise SequenceStateError(f"Cannot commit a {self._state.value} sequence")

        if self._state == SequenceState.IN_TRANSACTION:
            assert self._transaction is not None
            try:
                self._transaction.commit()
            except SQLAlchemyError as e:
                error = translate_error(e, write=True)
                self._rollback(error)
                raise error from e
            except BaseException as e:
                self._rollback(e)
                raise

        self._state = SequenceState.COMMITTED
        logger.info(
            "Write sequence committed",
            extra={"json_fields": {"steps": len(self._results)}},
        )
        return self.result()

    def abort(self, reason: str = "Aborted by caller") -> None:
        """
        Roll the sequence back on the caller's request.

        Raises:
            SequenceStateError: If the sequence already committed or rolled back
            RollbackFailure: If the rollback fails
        """
        if self._state.is_terminal:
            raise SequenceStateError(f"Cannot abort a {self._state.value} sequence")

        if self._state == SequenceState.IDLE:
            self._state = SequenceState.ROLLED_BACK
            return

        self._rollback(SequenceAborted(reason))

    def result(self) -> SequenceResult:
        """Snapshot of the sequence outcome so far."""
        return SequenceResult(
            state=self._state,
            steps_executed=len(self._results),
            results=list(self._results),
        )

    def _begin(self):
        if self._session.in_transaction():
            raise SequenceStateError(
                "Session already has an open transaction; "
                "a write sequence needs exclusive ownership"
            )

        try:
            self._transaction = self._session.begin()
        except SQLAlchemyError as e:
            raise translate_error(e, write=True) from e

        self._state = SequenceState.IN_TRANSACTION
        logger.debug("Write sequence transaction opened")

    def _rollback(self, error: BaseException, step_index: int | None = None):
        """Roll back exactly once; a failing rollback raises RollbackFailure."""
        assert self._transaction is not None
        self._state = SequenceState.ROLLED_BACK

        try:
            self._transaction.rollback()
        except Exception as e:
            logger.exception(
                "Rollback failed, transaction state unknown",
                extra={"json_fields": {"step_index": step_index}},
            )
            raise RollbackFailure(error, e, step_index=step_index) from e

        fields = {"step_index": step_index, "error": type(error).__name__}
        if isinstance(error, SequenceAborted):
            fields.update(expected=error.expected, actual=error.actual)
        logger.warning(
            "Write sequence rolled back: %s", error, extra={"json_fields": fields}
        )


class WriteSequenceCoordinator:
    """
    Runs mutation steps as one atomic unit.

    Usage:
        coordinator = WriteSequenceCoordinator()
        repo = BookRepository(session)
        coordinator.run(
            session,
            [repo.update_step(book, "111"), repo.delete_step("222")],
        )
    """

    def sequence(self, session: Session) -> WriteSequence:
        """Start an incremental write sequence on `session`."""
        return WriteSequence(session)

    def run(self, session: Session, steps: Iterable[MutationStep]) -> SequenceResult:
        """
        Execute `steps` in order inside one transaction.

        Args:
            session: Session with no open transaction
            steps: Ordered mutation steps

        Returns:
            SequenceResult in the committed state

        Raises:
            RowCountMismatch: A step violated its row-count policy (rolled back)
            RollbackFailure: Rolling back also failed
            SequenceStateError: The session already had an open transaction
            DataAccessError: A step failed to execute (rolled back)
        """
        steps = list(steps)
        logger.info("Running write sequence of %d step(s)", len(steps))

        with self.sequence(session) as seq:
            for step in steps:
                seq.submit(step)

        return seq.result()

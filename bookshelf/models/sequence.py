from enum import StrEnum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlalchemy.sql import Executable


class RowCountPolicy(StrEnum):
    """Rule used to judge a step's affected-row count"""

    EXACT = "exact"  # actual must equal expected_rows
    AT_LEAST_ONE = "at_least_one"  # bulk statements, any non-zero count


class SequenceState(StrEnum):
    """Lifecycle of a write sequence"""

    IDLE = "idle"  # No step submitted yet
    IN_TRANSACTION = "in_transaction"  # Transaction open, steps running
    COMMITTED = "committed"  # Terminal: all steps applied
    ROLLED_BACK = "rolled_back"  # Terminal: nothing applied

    @property
    def is_terminal(self) -> bool:
        return self in (SequenceState.COMMITTED, SequenceState.ROLLED_BACK)


class WriteResult(BaseModel):
    """Raw outcome of a single write statement."""

    rows_affected: int = Field(description="Rows modified by the statement")

    model_config = ConfigDict(frozen=True)


class MutationStep(BaseModel):
    """
    One bound statement plus the row count it must affect.

    The statement may be a SQLAlchemy Core construct with values already bound,
    or a text() template whose parameters are given in `params`.
    """

    statement: Executable = Field(description="Statement to execute")
    params: Optional[dict[str, Any]] = Field(
        default=None, description="Bound parameters for text() templates"
    )
    expected_rows: int = Field(default=1, ge=0, description="Expected row count")
    policy: RowCountPolicy = Field(
        default=RowCountPolicy.EXACT, description="How the row count is judged"
    )
    description: Optional[str] = Field(
        default=None, description="Human-readable label used in logs"
    )

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    @model_validator(mode="after")
    def _check_policy(self) -> "MutationStep":
        if self.policy == RowCountPolicy.AT_LEAST_ONE and self.expected_rows != 1:
            raise ValueError("at_least_one policy always expects 1 row")
        return self

    def is_satisfied_by(self, rows_affected: int) -> bool:
        """Check an actual row count against this step's policy."""
        if self.policy == RowCountPolicy.AT_LEAST_ONE:
            return rows_affected >= 1
        return rows_affected == self.expected_rows


class SequenceResult(BaseModel):
    """Outcome of a committed write sequence."""

    state: SequenceState = Field(description="Terminal state of the sequence")
    steps_executed: int = Field(default=0, description="Number of steps run")
    results: list[WriteResult] = Field(
        default_factory=list, description="Per-step write results, in order"
    )

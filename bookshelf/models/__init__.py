"""
Bookshelf data models.

This package contains the Pydantic models for books and write sequences.
"""

# Book models
from bookshelf.models.book import Book

# Write sequence models
from bookshelf.models.sequence import (
    MutationStep,
    RowCountPolicy,
    SequenceResult,
    SequenceState,
    WriteResult,
)

__all__ = [
    "Book",
    "MutationStep",
    "RowCountPolicy",
    "SequenceResult",
    "SequenceState",
    "WriteResult",
]

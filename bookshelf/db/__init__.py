"""
Bookshelf Database Module.

Provides connection management, the book repository and atomic write
sequences. Uses SQLAlchemy Core with Pydantic models.
"""

from bookshelf.db.connection import DatabaseConnection
from bookshelf.db.unit_of_work import UnitOfWork
from bookshelf.db.write_sequence import WriteSequence, WriteSequenceCoordinator

__all__ = [
    "DatabaseConnection",
    "UnitOfWork",
    "WriteSequence",
    "WriteSequenceCoordinator",
]

"""
Repository implementations for the Bookshelf database.

Repositories provide a clean interface for database CRUD operations,
encapsulating SQLAlchemy queries and Pydantic model conversions.
"""

from bookshelf.db.repositories.book import BookRepository

__all__ = [
    "BookRepository",
]

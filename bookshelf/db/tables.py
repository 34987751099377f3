"""
SQLAlchemy Table definitions for the Bookshelf database.

These Table objects mirror the schema defined in migrations/001_create_book.sql.
Uses SQLAlchemy Core (not ORM) for flexibility with Pydantic models.
"""

from sqlalchemy import Column, MetaData, String, Table

metadata = MetaData()

# =============================================================================
# TABLE: book
# =============================================================================

books = Table(
    "book",
    metadata,
    Column("title", String(255), nullable=False),
    Column("author", String(255), nullable=False),
    Column("isbn", String(32), primary_key=True),
)

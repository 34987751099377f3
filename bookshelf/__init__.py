"""
Bookshelf: a small data-access layer for a book catalogue.
"""

__version__ = "0.1.0"

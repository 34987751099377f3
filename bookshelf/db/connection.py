"""
Database connection management.

Builds the SQLAlchemy engine and session factory that hand sessions to the
repositories and write sequences. Connects either from a SQLAlchemy URL or to
Cloud SQL through the Cloud SQL Python Connector with IAM authentication.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Any, Generator

from google.cloud.sql.connector import Connector
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from bookshelf.db.tables import metadata


class DatabaseConnection:
    """
    Owns an engine and hands out sessions.

    Instances are created explicitly and passed to whatever needs sessions;
    there is no process-wide connection state.

    Usage:
        # From DATABASE_URL (or Cloud SQL settings) in the environment
        db = DatabaseConnection.from_env()

        # Use sessions
        with db.session() as session:
            BookRepository(session).create(book)

        # Close at shutdown
        db.close()
    """

    def __init__(self, engine: Engine, connector: Connector | None = None):
        self._engine: Engine | None = engine
        self._connector = connector
        self._session_factory: sessionmaker | None = sessionmaker(bind=engine)

    @classmethod
    def from_url(cls, database_url: str, **engine_kwargs: Any) -> DatabaseConnection:
        """
        Connect using a SQLAlchemy database URL.

        Args:
            database_url: e.g. "postgresql+pg8000://user:pw@host/bookshelf"
            **engine_kwargs: Passed through to create_engine (pool settings etc.)
        """
        engine = create_engine(database_url, pool_pre_ping=True, **engine_kwargs)
        return cls(engine)

    @classmethod
    def from_cloud_sql(
        cls,
        instance_connection_name: str,
        db_user: str,
        db_name: str = "bookshelf",
        **engine_kwargs: Any,
    ) -> DatabaseConnection:
        """
        Connect to Cloud SQL with IAM authentication.

        Args:
            instance_connection_name: Cloud SQL instance (project:region:instance)
            db_user: Database user (service account email for IAM auth)
            db_name: Database name
            **engine_kwargs: Passed through to create_engine (pool settings etc.)
        """
        connector = Connector()

        def getconn():
            return connector.connect(
                instance_connection_name,
                "pg8000",
                user=db_user,
                db=db_name,
                enable_iam_auth=True,
            )

        engine = create_engine(
            "postgresql+pg8000://",
            creator=getconn,
            pool_pre_ping=True,  # Verify connections before use
            **engine_kwargs,
        )
        return cls(engine, connector=connector)

    @classmethod
    def from_env(cls, **engine_kwargs: Any) -> DatabaseConnection:
        """
        Connect using environment configuration.

        DATABASE_URL wins when set. Otherwise INSTANCE_CONNECTION_NAME and
        DB_USER (plus optional DB_NAME) select a Cloud SQL instance.
        """
        database_url = os.getenv("DATABASE_URL")
        if database_url:
            return cls.from_url(database_url, **engine_kwargs)

        instance_connection_name = os.getenv("INSTANCE_CONNECTION_NAME")
        db_name = os.getenv("DB_NAME", "bookshelf")
        db_user = os.getenv("DB_USER")

        if not instance_connection_name:
            raise ValueError(
                "DATABASE_URL or INSTANCE_CONNECTION_NAME environment variable "
                "is required. INSTANCE_CONNECTION_NAME format: project:region:instance"
            )

        if not db_user:
            raise ValueError(
                "DB_USER environment variable is required. "
                "Should be service account email for IAM auth."
            )

        return cls.from_cloud_sql(
            instance_connection_name, db_user, db_name, **engine_kwargs
        )

    @property
    def engine(self) -> Engine:
        """Get the SQLAlchemy engine."""
        if self._engine is None:
            raise RuntimeError("Database connection is closed.")
        return self._engine

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Context manager for database sessions.

        Automatically commits on success and rolls back on exception.

        Yields:
            SQLAlchemy Session
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()

    def get_session(self) -> Session:
        """
        Get a new database session.

        The caller is responsible for committing/rolling back and closing the session.
        For automatic lifecycle management, use the session() context manager instead.
        """
        if self._session_factory is None:
            raise RuntimeError("Database connection is closed.")
        return self._session_factory()

    def create_schema(self):
        """Create any missing tables from the table definitions."""
        metadata.create_all(self.engine)

    def close(self):
        """Dispose of the connection pool and connector."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

        if self._connector is not None:
            self._connector.close()
            self._connector = None

        self._session_factory = None

    @property
    def is_open(self) -> bool:
        """Check whether the connection can still hand out sessions."""
        return self._engine is not None

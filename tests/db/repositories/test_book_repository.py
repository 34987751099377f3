"""Tests for BookRepository."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from bookshelf.db.errors import (
    ConnectivityFailure,
    ConstraintViolation,
    QueryFailure,
    WriteFailure,
)
from bookshelf.db.repositories import BookRepository
from bookshelf.models import Book, RowCountPolicy


class TestRowMapping:
    def test_row_to_model(self):
        repo = BookRepository(MagicMock())

        mock_row = MagicMock()
        mock_row.title = "Dune"
        mock_row.author = "Frank Herbert"
        mock_row.isbn = "978-0441013593"

        book = repo._row_to_model(mock_row)

        assert book == Book(
            title="Dune", author="Frank Herbert", isbn="978-0441013593"
        )

    def test_model_to_dict(self):
        repo = BookRepository(MagicMock())
        data = repo._model_to_dict(Book(title="A", author="B", isbn="111"))
        assert data == {"title": "A", "author": "B", "isbn": "111"}


class TestCrud:
    def test_create_then_read_all_contains_book_once(self, db, sample_book):
        with db.session() as session:
            result = BookRepository(session).create(sample_book)

        assert result.rows_affected == 1

        with db.session() as session:
            books = BookRepository(session).read_all()

        assert [b for b in books if b.isbn == "111"] == [sample_book]

    def test_read_all_empty_table(self, db):
        with db.session() as session:
            assert BookRepository(session).read_all() == []

    def test_read_all_reexecutes_query(self, db, stored_book):
        with db.session() as session:
            repo = BookRepository(session)
            first = repo.read_all()
            repo.create(Book(title="C", author="D", isbn="222"))
            second = repo.read_all()

        assert len(first) == 1
        assert len(second) == 2

    def test_create_duplicate_isbn_raises_constraint_violation(
        self, db, stored_book
    ):
        with pytest.raises(ConstraintViolation) as exc_info:
            with db.session() as session:
                BookRepository(session).create(
                    Book(title="Other", author="Other", isbn=stored_book.isbn)
                )

        assert isinstance(exc_info.value, WriteFailure)
        assert exc_info.value.original is not None

    def test_update_rewrites_title_and_author(self, db, stored_book, read_books):
        with db.session() as session:
            result = BookRepository(session).update(
                Book(title="C", author="D", isbn="ignored"), stored_book.isbn
            )

        assert result.rows_affected == 1
        assert read_books() == [Book(title="C", author="D", isbn="111")]

    def test_update_missing_isbn_affects_no_rows(self, db, stored_book, read_books):
        with db.session() as session:
            result = BookRepository(session).update(
                Book(title="C", author="D", isbn="999"), "999"
            )

        assert result.rows_affected == 0
        assert read_books() == [stored_book]

    def test_delete_existing_isbn(self, db, stored_book, read_books):
        with db.session() as session:
            result = BookRepository(session).delete(stored_book.isbn)

        assert result.rows_affected == 1
        assert read_books() == []

    def test_delete_missing_isbn_is_not_an_error(self, db, stored_book, read_books):
        with db.session() as session:
            result = BookRepository(session).delete("999")

        assert result.rows_affected == 0
        assert read_books() == [stored_book]

    def test_keys_are_normalized_like_book_isbn(self, db, read_books):
        with db.session() as session:
            repo = BookRepository(session)
            repo.create(Book(title="A", author="B", isbn=" 111 "))
            found = repo.get_by_isbn(" 111 ")
            updated = repo.update(Book(title="C", author="B", isbn="111"), " 111 ")

        assert found == Book(title="A", author="B", isbn="111")
        assert updated.rows_affected == 1

        with db.session() as session:
            result = BookRepository(session).delete(" 111 ")

        assert result.rows_affected == 1
        assert read_books() == []

    def test_steps_use_normalized_keys(
        self, db, coordinator, stored_book, read_books
    ):
        with db.session() as session:
            repo = BookRepository(session)
            coordinator.run(
                session,
                [
                    repo.update_step(
                        Book(title="C", author="B", isbn="111"), "111 "
                    ),
                    repo.delete_step(" 111"),
                ],
            )

        assert read_books() == []

    def test_get_by_isbn(self, db, stored_book):
        with db.session() as session:
            repo = BookRepository(session)
            assert repo.get_by_isbn("111") == stored_book
            assert repo.get_by_isbn("999") is None

    def test_delete_by_author(self, db, read_books):
        with db.session() as session:
            repo = BookRepository(session)
            repo.create(Book(title="One", author="Anon", isbn="1"))
            repo.create(Book(title="Two", author="Anon", isbn="2"))
            repo.create(Book(title="Three", author="Known", isbn="3"))

        with db.session() as session:
            result = BookRepository(session).delete_by_author("Anon")

        assert result.rows_affected == 2
        assert [b.isbn for b in read_books()] == ["3"]


class TestFailures:
    def test_read_all_translates_connection_errors(self):
        mock_session = MagicMock()
        mock_session.execute.side_effect = OperationalError(
            "SELECT", {}, Exception("server closed the connection")
        )

        with pytest.raises(ConnectivityFailure) as exc_info:
            BookRepository(mock_session).read_all()

        assert isinstance(exc_info.value, QueryFailure)
        assert isinstance(exc_info.value.__cause__, OperationalError)

    def test_create_translates_connection_errors(self):
        mock_session = MagicMock()
        mock_session.execute.side_effect = OperationalError(
            "INSERT", {}, Exception("server closed the connection")
        )

        with pytest.raises(WriteFailure):
            BookRepository(mock_session).create(
                Book(title="A", author="B", isbn="111")
            )


class TestSteps:
    def test_keyed_steps_expect_exactly_one_row(self):
        repo = BookRepository(MagicMock())
        book = Book(title="A", author="B", isbn="111")

        for step in (
            repo.create_step(book),
            repo.update_step(book, "111"),
            repo.delete_step("111"),
        ):
            assert step.policy == RowCountPolicy.EXACT
            assert step.expected_rows == 1
            assert "111" in step.description

    def test_delete_by_author_step_expects_at_least_one_row(self):
        step = BookRepository(MagicMock()).delete_by_author_step("Anon")
        assert step.policy == RowCountPolicy.AT_LEAST_ONE

    def test_building_steps_does_not_touch_session(self):
        mock_session = MagicMock()
        repo = BookRepository(mock_session)

        repo.create_step(Book(title="A", author="B", isbn="111"))
        repo.delete_step("111")

        mock_session.execute.assert_not_called()

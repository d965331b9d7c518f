"""Book records: create, filtered listing, lookup, owner-only update/delete."""
from datetime import date

from sqlalchemy.exc import IntegrityError

from authorization import ensure_can_modify
from errors import DuplicateTitle, InvalidIdentifier, NotFound, ValidationError
from logging_setup import get_logger
from models import Book, User, db, store_operation
from validators import parse_year

LOG = get_logger("catalog")


def parse_book_id(raw):
    """Reject anything that is not a positive integer id, before any store access."""
    text = str(raw or "").strip()
    if not text.isdigit() or int(text) < 1:
        raise InvalidIdentifier()
    return int(text)


def year_range(year):
    """Inclusive [Jan 1, Dec 31] interval of a year; accepts an int or 4-digit string."""
    if not isinstance(year, int):
        year = parse_year(year)
    return date(year, 1, 1), date(year, 12, 31)


def _title_taken(title, exclude_id=None):
    query = Book.query.filter(Book.title == title)
    if exclude_id is not None:
        query = query.filter(Book.id != exclude_id)
    return db.session.query(query.exists()).scalar()


def _commit_or_duplicate():
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise DuplicateTitle() from exc


def create_book(fields, owner_id):
    """Persist a new book owned by ``owner_id``; ``fields`` is a validated BookFields."""
    with store_operation("create book"):
        if db.session.get(User, owner_id) is None:
            raise ValidationError("Book owner does not exist", fields=["owner"])
        if _title_taken(fields.title):
            raise DuplicateTitle()
        book = Book(
            title=fields.title,
            author=fields.author,
            publication_date=fields.publication_date,
            description=fields.description,
            user_id=owner_id,
        )
        db.session.add(book)
        _commit_or_duplicate()
    LOG.info("book created id=%s owner=%s", book.id, owner_id)
    return book


def list_books(author=None, year=None, owner_id=None):
    query = Book.query
    if author:
        query = query.filter(Book.author == author)
    if year is not None:
        start, end = year_range(year)
        query = query.filter(Book.publication_date >= start, Book.publication_date <= end)
    if owner_id is not None:
        query = query.filter(Book.user_id == owner_id)
    with store_operation("list books"):
        return query.order_by(Book.id).all()


def get_book(book_id):
    with store_operation("get book"):
        return db.session.get(Book, book_id)


def owned_book(book_id, identity):
    """Fetch a book the identity may modify; NotFound before AccessDenied."""
    book = get_book(book_id)
    if book is None:
        raise NotFound()
    ensure_can_modify(identity, book)
    return book


def replace_book_fields(book, fields, identity):
    """Overwrite the editable fields of a book already returned by ``owned_book``."""
    with store_operation("update book"):
        if _title_taken(fields.title, exclude_id=book.id):
            raise DuplicateTitle()
        book.title = fields.title
        book.author = fields.author
        book.publication_date = fields.publication_date
        book.description = fields.description
        _commit_or_duplicate()
    LOG.info("book updated id=%s by user id=%s", book.id, identity.user_id)
    return book


def update_book(book_id, fields, identity):
    """Replace title, author, publication date and description of an owned book."""
    return replace_book_fields(owned_book(book_id, identity), fields, identity)


def delete_book(book_id, identity):
    book = owned_book(book_id, identity)
    with store_operation("delete book"):
        db.session.delete(book)
        db.session.commit()
    LOG.info("book deleted id=%s by user id=%s", book_id, identity.user_id)


def distinct_authors():
    with store_operation("distinct authors"):
        rows = db.session.query(Book.author).distinct().order_by(Book.author).all()
    return [author for (author,) in rows]

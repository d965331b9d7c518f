from contextlib import contextmanager
from datetime import date

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import OperationalError

from errors import StoreUnavailable
from logging_setup import get_logger

db = SQLAlchemy()
LOG = get_logger("store")


# User model
class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    # Books go with their owner
    books = db.relationship("Book", backref="owner", lazy=True, cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.username}>"


# Book model
class Book(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), unique=True, nullable=False)
    author = db.Column(db.String(200), nullable=False, index=True)
    publication_date = db.Column(db.Date, nullable=False, default=date.today)
    description = db.Column(db.Text)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)

    def __repr__(self):
        return f"<Book {self.title!r}>"


@contextmanager
def store_operation(action):
    """Translate lost/locked database connections into StoreUnavailable."""
    try:
        yield db.session
    except OperationalError as exc:
        db.session.rollback()
        LOG.exception("store failure during %s", action)
        raise StoreUnavailable() from exc

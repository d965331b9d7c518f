"""User records: registration, lookup and password checks."""
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from errors import DuplicateIdentity
from logging_setup import get_logger
from models import User, db, store_operation

LOG = get_logger("credentials")

# Checked when the identifier matches nobody, so both failure paths hash once
_DUMMY_HASH = generate_password_hash("catalog-placeholder-password")


def register_user(username, email, password):
    with store_operation("register"):
        clash = User.query.filter(or_(User.username == username, User.email == email)).first()
        if clash is not None:
            raise DuplicateIdentity()

        user = User(username=username, email=email, password_hash=generate_password_hash(password))
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent registration
            db.session.rollback()
            raise DuplicateIdentity() from exc

    LOG.info("registered user id=%s username=%s", user.id, user.username)
    return user


def find_by_identifier(identifier):
    """Look a user up by username or email (one input field serves both)."""
    if not identifier:
        return None
    with store_operation("find user"):
        return User.query.filter(or_(User.username == identifier, User.email == identifier)).first()


def get_user(user_id):
    with store_operation("get user"):
        return db.session.get(User, user_id)


def verify_password(user, password):
    if user is None:
        check_password_hash(_DUMMY_HASH, password or "")
        return False
    return check_password_hash(user.password_hash, password or "")


def delete_user(user_id):
    """Remove a user; their books are deleted with them."""
    with store_operation("delete user"):
        user = db.session.get(User, user_id)
        if user is None:
            return False
        db.session.delete(user)
        db.session.commit()
    LOG.info("deleted user id=%s and their books", user_id)
    return True

from errors import AccessDenied
from logging_setup import get_logger

LOG = get_logger("authorization")


def can_modify(identity, book):
    if identity is None or identity.is_anonymous or book is None:
        return False
    return identity.user_id == book.user_id


def ensure_can_modify(identity, book):
    if not can_modify(identity, book):
        LOG.warning("access denied: user id=%s book id=%s",
                    getattr(identity, "user_id", None), getattr(book, "id", None))
        raise AccessDenied()

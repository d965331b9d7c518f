"""Form validation that runs before anything touches the store."""
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from errors import ValidationError

_YEAR_RE = re.compile(r"^\d{4}$")


@dataclass(frozen=True)
class Registration:
    username: str
    email: str
    password: str

    def __repr__(self):
        # Keep the plaintext password out of logs and tracebacks
        return f"Registration(username={self.username!r}, email={self.email!r})"


@dataclass(frozen=True)
class BookFields:
    title: str
    author: str
    publication_date: date
    description: Optional[str] = None


def _clean(value):
    if value is None:
        return ""
    return str(value).strip()


def _require(form, names, unstripped=()):
    values = {}
    for name in names:
        value = form.get(name)
        if name in unstripped:
            values[name] = "" if value is None else str(value)
        else:
            values[name] = _clean(value)
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}", fields=missing)
    return values


def validate_registration(form):
    # The password is kept exactly as typed; only an absent or empty one is missing
    values = _require(form, ("username", "email", "password"), unstripped=("password",))
    return Registration(values["username"], values["email"], values["password"])


def parse_year(raw):
    """Return the year for a 4-digit string, else raise ValidationError."""
    text = _clean(raw)
    if not _YEAR_RE.match(text) or int(text) < 1:
        raise ValidationError("Publication year must be a 4-digit year", fields=["publicationYear"])
    return int(text)


def parse_publication_date(raw):
    """Accept ``YYYY-MM-DD`` or a bare ``YYYY`` (January 1st); blank means today."""
    text = _clean(raw)
    if not text:
        return date.today()
    if _YEAR_RE.match(text):
        year = int(text)
        if year < 1:
            raise ValidationError("Invalid publication date", fields=["publicationYear"])
        return date(year, 1, 1)
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError as exc:
        raise ValidationError("Invalid publication date", fields=["publicationYear"]) from exc


def validate_book(form):
    values = _require(form, ("title", "author"))
    description = _clean(form.get("description")) or None
    return BookFields(
        title=values["title"],
        author=values["author"],
        publication_date=parse_publication_date(form.get("publicationYear")),
        description=description,
    )

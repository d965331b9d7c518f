from flask import (Blueprint, Flask, abort, current_app, flash, g, jsonify, redirect,
                   render_template, request, session, url_for)

import catalog
import credentials
import logging_setup
from authorization import can_modify
from config import Config
from errors import (AccessDenied, CatalogError, DuplicateTitle, InvalidCredentials,
                    InvalidIdentifier, NotFound, StoreUnavailable, ValidationError)
from models import db
from sessions import ANONYMOUS, SessionManager
from validators import parse_year, validate_book, validate_registration

LOG = logging_setup.get_logger("app")
bp = Blueprint("web", __name__)

SESSION_KEY = "token"


def _sessions():
    return current_app.extensions["session_manager"]


def _form():
    # JSON bodies are accepted wherever a form is; anything but an object counts as empty
    if request.is_json:
        body = request.get_json(silent=True)
        return body if isinstance(body, dict) else {}
    return request.form


def _fail(exc, endpoint, **values):
    """Flash-and-redirect for browsers, a JSON error for JSON clients."""
    if request.is_json:
        return jsonify({"error": exc.message}), exc.status_code
    flash(exc.message, "error")
    return redirect(url_for(endpoint, **values))


# ---------------- IDENTITY ---------------- #

@bp.before_app_request
def load_identity():
    token = session.get(SESSION_KEY)
    identity = _sessions().resolve(token)
    if token and identity.is_anonymous:
        session.pop(SESSION_KEY, None)
    elif identity.is_authenticated and credentials.get_user(identity.user_id) is None:
        # The account behind this session is gone
        _sessions().terminate_user(identity.user_id)
        session.pop(SESSION_KEY, None)
        identity = ANONYMOUS
    g.identity = identity


@bp.app_context_processor
def inject_identity():
    identity = g.get("identity", ANONYMOUS)
    return {"current_user": identity, "is_logged_in": identity.is_authenticated}


@bp.app_errorhandler(StoreUnavailable)
def store_unavailable(exc):
    # Details are already logged where the store failed
    if request.is_json:
        return jsonify({"error": exc.message}), 500
    return exc.message, 500


# ---------------- ROUTES ---------------- #

# Home page - all books, optionally filtered by author and publication year
@bp.route("/")
def home():
    author = request.args.get("author") or None
    raw_year = request.args.get("publicationYear") or None
    year = None
    if raw_year:
        try:
            year = parse_year(raw_year)
        except ValidationError as exc:
            flash(exc.message, "error")
    books = catalog.list_books(author=author, year=year)
    return render_template(
        "home.html",
        books=books,
        authors=catalog.distinct_authors(),
        selected_author=author or "",
        selected_year=raw_year or "",
    )


@bp.route("/register", methods=["GET", "POST"])
def register():
    if request.method == "GET":
        return render_template("register.html")

    try:
        registration = validate_registration(_form())
        credentials.register_user(registration.username, registration.email, registration.password)
    except CatalogError as exc:
        return _fail(exc, "web.register")

    flash("Registration successful! You can now log in to your account.", "success")
    return redirect(url_for("web.home"))


@bp.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "GET":
        if g.identity.is_authenticated:
            return redirect(url_for("web.home"))
        return render_template("login.html")

    form = _form()
    try:
        identity = _sessions().authenticate(form.get("identifier", ""), form.get("password", ""))
    except InvalidCredentials as exc:
        return _fail(exc, "web.login")

    # Never reuse a token issued before this login
    _sessions().terminate(session.pop(SESSION_KEY, None))
    session[SESSION_KEY] = _sessions().establish(identity)
    LOG.info("user id=%s logged in", identity.user_id)
    return redirect(url_for("web.home"))


@bp.route("/logout")
def logout():
    _sessions().terminate(session.pop(SESSION_KEY, None))
    return redirect(url_for("web.login"))


@bp.route("/addbook")
def add_book_form():
    return render_template("upload.html")


@bp.route("/books/upload", methods=["POST"])
def upload_book():
    if g.identity.is_anonymous:
        return _fail(AccessDenied("Please login to upload books"), "web.login")

    try:
        fields = validate_book(_form())
        catalog.create_book(fields, g.identity.user_id)
    except CatalogError as exc:
        return _fail(exc, "web.home")

    flash("Book uploaded successfully", "success")
    return redirect(url_for("web.home"))


@bp.route("/books/<book_id>")
def book_details(book_id):
    try:
        book = catalog.get_book(catalog.parse_book_id(book_id))
    except InvalidIdentifier:
        abort(404)
    if book is None:
        abort(404)
    return render_template("book_details.html", book=book, can_edit=can_modify(g.identity, book))


@bp.route("/books/<book_id>/edit", methods=["GET", "POST"])
def edit_book(book_id):
    try:
        book = catalog.owned_book(catalog.parse_book_id(book_id), g.identity)
    except (InvalidIdentifier, NotFound, AccessDenied) as exc:
        return _fail(exc, "web.home")

    if request.method == "GET":
        return render_template("edit_book.html", book=book)

    try:
        fields = validate_book(_form())
        catalog.replace_book_fields(book, fields, g.identity)
    except (ValidationError, DuplicateTitle) as exc:
        return _fail(exc, "web.edit_book", book_id=book.id)
    except CatalogError as exc:
        return _fail(exc, "web.home")

    flash("Book details updated successfully", "success")
    return redirect(url_for("web.book_details", book_id=book.id))


@bp.route("/books/<book_id>/delete", methods=["POST"])
def delete_book(book_id):
    try:
        catalog.delete_book(catalog.parse_book_id(book_id), g.identity)
    except CatalogError as exc:
        return _fail(exc, "web.home")

    flash("Book deleted successfully", "success")
    return redirect(url_for("web.home"))


# My Books page - only the logged-in user's books
@bp.route("/my-books")
def my_books():
    if g.identity.is_anonymous:
        return _fail(AccessDenied("Please login first to browse"), "web.home")

    books = catalog.list_books(owner_id=g.identity.user_id)
    return render_template("my_books.html", books=books)


def create_app(overrides=None, session_manager=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)
    logging_setup.configure(app.config["LOG_LEVEL"])

    db.init_app(app)
    app.extensions["session_manager"] = session_manager or SessionManager(
        lifetime=app.config["SESSION_LIFETIME"]
    )
    app.register_blueprint(bp)

    # Create DB tables
    with app.app_context():
        db.create_all()
    return app


if __name__ == "__main__":
    app = create_app()
    app.run(port=app.config["PORT"], debug=app.config["DEBUG"])

import os

from dotenv import load_dotenv

# Load .env before anything reads os.environ
load_dotenv()

_TRUE = {"1", "true", "yes", "on"}


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "supersecretkey")  # Change this in production
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///books.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Server-side session lifetime in seconds
    SESSION_LIFETIME = int(os.getenv("SESSION_LIFETIME", "86400"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    PORT = int(os.getenv("PORT", "3000"))
    DEBUG = os.getenv("DEBUG", "false").lower() in _TRUE

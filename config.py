"""
Settings for the portfolio API.

Values come from the environment; a `.env` file in the working directory
is loaded first if present.
"""
import os
import sys
import logging
import secrets
import pathlib
from dotenv import load_dotenv

from codec import DecodePolicy

load_dotenv(pathlib.Path.cwd() / ".env")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///db.sqlite3")

# Shared admin password; the token is what admin requests carry afterwards.
# Without ADMIN_TOKEN each process makes its own, so workers reject each
# other's tokens.
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")
ADMIN_TOKEN_GENERATED = not os.getenv("ADMIN_TOKEN")
ADMIN_TOKEN = os.getenv("ADMIN_TOKEN") or secrets.token_urlsafe(32)

UPLOAD_DIR = pathlib.Path(os.getenv("UPLOAD_DIR", "uploads")).resolve()

ARRAY_DECODE_POLICY = DecodePolicy(os.getenv("ARRAY_DECODE_POLICY", "lenient").lower())

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", 8080))


def setup_logging(level: str = LOG_LEVEL) -> None:
    root = logging.getLogger()
    if root.handlers:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    root.addHandler(handler)
    root.setLevel(level)

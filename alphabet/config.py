import os
import secrets
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent

# Database
DATA_DIRECTORY = Path(os.getenv("DATA_DIRECTORY", BASE_DIR / "data"))
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIRECTORY}/alphabet.db")

# Security
JWT_SECRET = os.getenv("JWT_SECRET", secrets.token_hex(32))
JWT_ALGORITHM = "HS256"
TOKEN_EXPIRE_DAYS = 7
MIN_PASSWORD_LENGTH = 6

# Admin account seeded at startup (only when ADMIN_PASSWORD is set)
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@alphabet.local")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")

# Leaderboard
LEADERBOARD_LIMIT = 50

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("LOG_JSON", "false").lower() in ("1", "true", "yes")
LOG_FILE = os.getenv("LOG_FILE")

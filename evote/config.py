# evote/config.py
# Central place for settings read from the environment
import os

from dotenv import load_dotenv

load_dotenv()


def _parse_origins(value):
    defaults = ["http://localhost:8080", "http://127.0.0.1:8080", "http://localhost:5173"]
    if not value or not value.strip():
        return defaults
    return [origin.strip() for origin in value.split(",") if origin.strip()]


# --- Database ---
MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB = os.getenv("MONGO_DB", "evote")

# Upper bound for every storage call (server selection, connect and socket I/O)
MONGO_TIMEOUT_MS = int(os.getenv("MONGO_TIMEOUT_MS", "5000"))

ELECTIONS_COLLECTION = "elections"
VOTES_COLLECTION = "votes"
USERS_COLLECTION = "users"

# --- Security & JWT ---
SECRET_KEY = os.getenv("SECRET_KEY", "a_very_secret_key_for_dev_only")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# --- HTTP ---
CORS_ORIGINS = _parse_origins(os.getenv("CORS_ORIGINS"))

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- First admin account (see evote.seed_admin) ---
SEED_ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@evote.org")
SEED_ADMIN_NAME = os.getenv("SEED_ADMIN_NAME", "Super Admin")
SEED_ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "Admin1234")
SEED_ADMIN_RESET = os.getenv("SEED_ADMIN_RESET", "false").lower() == "true"

# --- Rate limits (per client IP, see evote.rate_limit) ---
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
RATE_LIMIT_STORAGE_URI = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")
API_RATE_LIMIT = os.getenv("API_RATE_LIMIT", "100/15minutes")
ADMIN_RATE_LIMIT = os.getenv("ADMIN_RATE_LIMIT", "60/15minutes")

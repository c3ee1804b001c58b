import os
from pathlib import Path

# ── Directory & file paths, relative to the working directory by default ──────
BASE_DIR = Path(os.getenv("CATALOG_BASE_DIR") or Path.cwd()).resolve()
DATA_DIR = BASE_DIR / "data"                       # → data/ (JSON documents)
USERS_FILE = DATA_DIR / "users.json"               # → data/users.json (credentials)
PRODUCTS_FILE = DATA_DIR / "products.json"         # → data/products.json (catalog)
UPLOADS_DIR = BASE_DIR / "static" / "uploads"      # → static/uploads/ (image blobs)

# Public prefix under which uploaded blobs are served
UPLOADS_URL = os.getenv("CATALOG_UPLOADS_URL", "/uploads").rstrip("/")

# ── Server ─────────────────────────────────────────────────────────────────────
HOST = os.getenv("CATALOG_HOST", "0.0.0.0")
PORT = int(os.getenv("CATALOG_PORT", "8000"))
RELOAD = os.getenv("CATALOG_RELOAD", "false").lower() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("CATALOG_LOG_LEVEL", "INFO").upper()

# ── Registration rules ─────────────────────────────────────────────────────────
MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6

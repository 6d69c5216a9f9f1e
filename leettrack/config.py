"""Application configuration loaded from environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Paths
DATA_DIR = Path(os.getenv("DATA_DIR", Path(__file__).parent.parent / "data"))
DB_PATH = DATA_DIR / "leettrack.db"
LOG_DIR = DATA_DIR / "logs"

# Scraper HTTP service
SERVICE_HOST = os.getenv("SERVICE_HOST", "127.0.0.1")
SERVICE_PORT = int(os.getenv("SERVICE_PORT", "8031"))
SERVICE_URL = f"http://{SERVICE_HOST}:{SERVICE_PORT}"

# Browser
BROWSER_ENGINE = os.getenv("BROWSER_ENGINE", "camoufox").lower()  # "camoufox" or "chromium"
BROWSER_HEADLESS = os.getenv("BROWSER_HEADLESS", "true").lower() == "true"
BROWSER_TIMEOUT = int(os.getenv("BROWSER_TIMEOUT", "30000"))  # ms, navigation + protocol
PAGE_SETTLE_MS = int(os.getenv("PAGE_SETTLE_MS", "1000"))

# Retry
MAX_SCRAPE_ATTEMPTS = int(os.getenv("MAX_SCRAPE_ATTEMPTS", "2"))
CONNECTION_BACKOFF_SECONDS = float(os.getenv("CONNECTION_BACKOFF_SECONDS", "2.0"))
RETRY_BACKOFF_SECONDS = float(os.getenv("RETRY_BACKOFF_SECONDS", "1.0"))

# Bulk sweep
SWEEP_CONCURRENCY = int(os.getenv("SWEEP_CONCURRENCY", "3"))
SWEEP_DEFAULT_LIMIT = int(os.getenv("SWEEP_DEFAULT_LIMIT", "10"))
STALE_AFTER_MINUTES = int(os.getenv("STALE_AFTER_MINUTES", "60"))


def ensure_dirs():
    """Create required data directories if they don't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    LOG_DIR.mkdir(parents=True, exist_ok=True)

import os
from pathlib import Path

from .constants import DATA_DIR, DEFAULT_API_URL, DEFAULT_TIMEOUT

BASE_DIR = Path(__file__).resolve().parent
DATA_PATH = Path(os.getenv("BIZDESK_DATA_DIR", str(Path.home() / DATA_DIR)))

API_BASE_URL = os.getenv("BIZDESK_API_URL", DEFAULT_API_URL).rstrip("/")
ORG_ID = os.getenv("BIZDESK_ORG_ID", "")
REQUEST_TIMEOUT = float(os.getenv("BIZDESK_TIMEOUT", str(DEFAULT_TIMEOUT)))
LOG_LEVEL = os.getenv("BIZDESK_LOG_LEVEL", "INFO").upper()

# ensure data dir exists early
DATA_PATH.mkdir(parents=True, exist_ok=True)

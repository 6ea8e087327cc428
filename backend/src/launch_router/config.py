"""Load settings from environment (.env and env vars)."""

from __future__ import annotations

import os
from pathlib import Path

# Load .env from backend root if present
_env_path = Path(__file__).resolve().parent.parent.parent / ".env"
if _env_path.exists():
    from dotenv import load_dotenv
    load_dotenv(_env_path)


def _str(key: str, default: str = "") -> str:
    return (os.environ.get(key) or "").strip() or default


# App / device identity sent along with every destination request
LAUNCH_APP_ID = _str("LAUNCH_APP_ID", "6758891050")
LAUNCH_DEV_KEY = _str("LAUNCH_DEV_KEY")
LAUNCH_DEVICE_ID = _str("LAUNCH_DEVICE_ID")
LAUNCH_BUNDLE_ID = _str("LAUNCH_BUNDLE_ID")
LAUNCH_PROJECT_ID = _str("LAUNCH_PROJECT_ID") or None
LAUNCH_LOCALE = _str("LAUNCH_LOCALE", "en")
LAUNCH_USER_AGENT = _str("LAUNCH_USER_AGENT", "launch-router/0.1")

# Remote endpoints
LAUNCH_ATTRIBUTION_BASE_URL = _str(
    "LAUNCH_ATTRIBUTION_BASE_URL", "https://gcdsdk.appsflyer.com/install_data/v4.0"
)
LAUNCH_DESTINATION_URL = _str("LAUNCH_DESTINATION_URL", "https://riigguide.com/config.php")
LAUNCH_VALIDATE_URL = _str("LAUNCH_VALIDATE_URL")
LAUNCH_CONNECTIVITY_URL = _str("LAUNCH_CONNECTIVITY_URL", "https://www.gstatic.com/generate_204")

# Data dir
LAUNCH_DATA_DIR = _str("LAUNCH_DATA_DIR")

# Logging
LAUNCH_LOG_LEVEL = _str("LAUNCH_LOG_LEVEL", "INFO").upper()
LAUNCH_LOG_FILE = _str("LAUNCH_LOG_FILE") or None

# Seconds between connectivity probes; 0 leaves connectivity to POST /api/connectivity
LAUNCH_CONNECTIVITY_INTERVAL = float(_str("LAUNCH_CONNECTIVITY_INTERVAL", "0"))

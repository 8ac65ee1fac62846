"""Environment-driven configuration for the Scholaco backend.

Values are read once at import time from the process environment (and a
``.env`` file when present).  Missing Supabase or Brevo credentials do not
prevent startup; the affected features report themselves as unavailable.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Supabase
# ---------------------------------------------------------------------------
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")

# ---------------------------------------------------------------------------
# Brevo transactional email
# ---------------------------------------------------------------------------
BREVO_API_URL = os.getenv("BREVO_API_URL", "https://api.brevo.com/v3/smtp/email")
BREVO_API_KEY = os.getenv("BREVO_API_KEY", "")
BREVO_SENDER_EMAIL = os.getenv("BREVO_SENDER_EMAIL", "")
BREVO_SENDER_NAME = os.getenv("BREVO_SENDER_NAME", "Scholaco")
BREVO_REQUEST_TIMEOUT = float(os.getenv("BREVO_REQUEST_TIMEOUT", "15"))

# Link target used in email call-to-action buttons
APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:5173").rstrip("/")

# ---------------------------------------------------------------------------
# Session behaviour
# ---------------------------------------------------------------------------
DELETE_CONFIRM_WINDOW_SECONDS = float(os.getenv("DELETE_CONFIRM_WINDOW_SECONDS", "3"))

# ---------------------------------------------------------------------------
# HTTP surface
# ---------------------------------------------------------------------------
ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
IS_PRODUCTION = ENVIRONMENT == "production"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def get_allowed_origins() -> list[str]:
    """Return the CORS origins for the current environment.

    Production only accepts HTTPS, non-localhost origins.
    """
    if IS_PRODUCTION:
        raw = os.getenv("ALLOWED_ORIGINS", "https://scholaco.vercel.app").split(",")
        origins = []
        for origin in raw:
            origin = origin.strip()
            if not origin:
                continue
            if not origin.startswith("https://") or "localhost" in origin:
                logger.warning("Rejecting origin in production: %s", origin)
                continue
            origins.append(origin)
        return origins or ["https://scholaco.vercel.app"]

    raw = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]

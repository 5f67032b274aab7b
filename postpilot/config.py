"""Centralized configuration for the PostPilot backend."""

import os
from pathlib import Path

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

# =============================================================================
# Runtime environment
# =============================================================================

# One of: development, test, production
ENVIRONMENT = os.environ.get("ENVIRONMENT", "development").lower()

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# JSON logs in production, console renderer otherwise
LOG_JSON = os.environ.get("LOG_JSON", str(ENVIRONMENT == "production")).lower() == "true"

# =============================================================================
# Database
# =============================================================================

# SQLite file by default; point DATABASE_URL at PostgreSQL in production
DATABASE_URL = os.environ.get(
    "DATABASE_URL",
    f"sqlite:///{PROJECT_ROOT / 'postpilot.db'}",
)

# =============================================================================
# Identity
# =============================================================================

JWT_SECRET = os.environ.get("JWT_SECRET", "")
JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")

# Shared secret the external cron/automation uses to trigger due-post dispatch
SCHEDULER_SECRET = os.environ.get("SCHEDULER_SECRET", "")

# =============================================================================
# AI enhancement
# =============================================================================

GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY", "")
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-1.5-flash")

# =============================================================================
# Automation webhooks (n8n)
# =============================================================================

N8N_ENHANCE_WEBHOOK = os.environ.get("N8N_ENHANCE_WEBHOOK", "")
N8N_PUBLISH_WEBHOOK = os.environ.get("N8N_PUBLISH_WEBHOOK", "")

# =============================================================================
# Outbound call timeouts (seconds)
# =============================================================================

ENHANCE_TIMEOUT_SECONDS = float(os.environ.get("ENHANCE_TIMEOUT_SECONDS", "30"))
PLATFORM_TIMEOUT_SECONDS = float(os.environ.get("PLATFORM_TIMEOUT_SECONDS", "30"))
WEBHOOK_PUBLISH_TIMEOUT_SECONDS = float(
    os.environ.get("WEBHOOK_PUBLISH_TIMEOUT_SECONDS", "60")
)
WEBHOOK_NOTIFY_TIMEOUT_SECONDS = float(
    os.environ.get("WEBHOOK_NOTIFY_TIMEOUT_SECONDS", "10")
)

# =============================================================================
# Social platforms
# =============================================================================

API_URL = os.environ.get("API_URL", "http://localhost:8000")

LINKEDIN_CLIENT_ID = os.environ.get("LINKEDIN_CLIENT_ID", "")
LINKEDIN_CLIENT_SECRET = os.environ.get("LINKEDIN_CLIENT_SECRET", "")
LINKEDIN_REDIRECT_URI = os.environ.get(
    "LINKEDIN_REDIRECT_URI", f"{API_URL}/api/auth/linkedin/callback"
)

TWITTER_CLIENT_ID = os.environ.get("TWITTER_CLIENT_ID", "")
TWITTER_CLIENT_SECRET = os.environ.get("TWITTER_CLIENT_SECRET", "")
TWITTER_REDIRECT_URI = os.environ.get(
    "TWITTER_REDIRECT_URI", f"{API_URL}/api/auth/twitter/callback"
)

# =============================================================================
# CORS
# =============================================================================

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]


def is_production() -> bool:
    return ENVIRONMENT == "production"


def is_development() -> bool:
    return ENVIRONMENT == "development"

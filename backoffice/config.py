import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./backoffice.db")

# Frontend base URL for payment redirects
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
# Public base URL of this API (used for provider callbacks such as the Cardcom webhook)
PUBLIC_API_URL = os.getenv("PUBLIC_API_URL", "http://localhost:8000")

# Platform admins see and manage every business
ADMIN_EMAILS = {
    e.strip().lower() for e in os.getenv("ADMIN_EMAILS", "").split(",") if e.strip()
}

# Auth - access tokens are HS256 JWTs issued by the auth provider
AUTH_JWT_SECRET = os.getenv("AUTH_JWT_SECRET")
AUTH_JWT_AUDIENCE = os.getenv("AUTH_JWT_AUDIENCE", "authenticated")
AUTH_JWT_ALGORITHM = "HS256"
if not AUTH_JWT_SECRET:
    import warnings

    warnings.warn(
        "AUTH_JWT_SECRET not set! Using insecure default - DO NOT USE IN PRODUCTION",
        RuntimeWarning,
        stacklevel=2,
    )
    AUTH_JWT_SECRET = "INSECURE-DEV-JWT-SECRET"  # noqa: S105 - Dev fallback only

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# Fernet key for CRM tokens stored in business settings
# (generate with: python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())")
SETTINGS_ENCRYPTION_KEY = os.getenv("SETTINGS_ENCRYPTION_KEY")

# Cardcom hosted payment page
CARDCOM_API_URL = os.getenv("CARDCOM_API_URL", "https://secure.cardcom.solutions/api/v11")
CARDCOM_TIMEOUT_SECONDS = float(os.getenv("CARDCOM_TIMEOUT_SECONDS", "10"))
# Optional platform-wide terminal; when set, webhook notifications for other terminals are rejected
CARDCOM_TERMINAL_NUMBER = os.getenv("CARDCOM_TERMINAL_NUMBER")
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "ILS")

# GoHighLevel CRM
CRM_API_URL = os.getenv("CRM_API_URL", "https://services.leadconnectorhq.com")
CRM_API_VERSION = os.getenv("CRM_API_VERSION", "2021-07-28")
GO_HIGH_LEVEL_API_KEY = os.getenv("GO_HIGH_LEVEL_API_KEY")

# Outbound webhooks
WEBHOOK_SIGNING_SECRET = os.getenv("WEBHOOK_SIGNING_SECRET")
WEBHOOK_MAX_ATTEMPTS = int(os.getenv("WEBHOOK_MAX_ATTEMPTS", "3"))
WEBHOOK_TIMEOUT_SECONDS = float(os.getenv("WEBHOOK_TIMEOUT_SECONDS", "10"))
WEBHOOK_BATCH_SIZE = int(os.getenv("WEBHOOK_BATCH_SIZE", "10"))

# Dashboard
LOW_STOCK_THRESHOLD = int(os.getenv("LOW_STOCK_THRESHOLD", "5"))
QUOTE_VALIDITY_DAYS = int(os.getenv("QUOTE_VALIDITY_DAYS", "30"))

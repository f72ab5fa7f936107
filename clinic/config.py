import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinic.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET") or f"{SECRET_KEY}-refresh"
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "15"))
JWT_REFRESH_EXPIRES_DAYS = int(os.getenv("JWT_REFRESH_EXPIRES_DAYS", "7"))

# Frontend base URL for CORS
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Clinic details (printed on invoices and prescriptions)
CLINIC_NAME = os.getenv("CLINIC_NAME", "Mahesh Superspecialty Dental Clinic")
CLINIC_ADDRESS = os.getenv(
    "CLINIC_ADDRESS", "Ashok Nagar, Ganjipeta, Krishna Nagar, Gadwal-509125, Telangana"
)
CLINIC_CURRENCY = os.getenv("CLINIC_CURRENCY", "INR")
CLINIC_TAX_RATE = float(os.getenv("CLINIC_TAX_RATE", "18"))

# Scheduling - number of treatment chairs, numbered 1..N
CLINIC_CHAIR_COUNT = int(os.getenv("CLINIC_CHAIR_COUNT", "3"))

# Inventory - items expiring within this many days are flagged
EXPIRY_WARNING_DAYS = int(os.getenv("LOW_STOCK_EXPIRY_DAYS", "30"))

AUDIT_LOG_ENABLED = os.getenv("AUDIT_LOG_ENABLED", "true").lower() == "true"

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"

# CORS - comma separated; the frontend URL is always allowed
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", FRONTEND_URL).split(",")
    if origin.strip()
]
if FRONTEND_URL not in ALLOWED_ORIGINS:
    ALLOWED_ORIGINS.append(FRONTEND_URL)

# Rate limiting - requests per client IP per window under /api
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
RATE_LIMIT_MAX = int(os.getenv("RATE_LIMIT_MAX", "100"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "900"))

# Patient documents - stored on local disk
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "./uploads")
MAX_FILE_SIZE = int(os.getenv("MAX_FILE_SIZE", str(10 * 1024 * 1024)))

import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    APP_NAME: str = os.getenv("APP_NAME", "HotelBook")
    # Core settings
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-key-change-me")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development").lower()
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    BASE_URL: str = os.getenv("BASE_URL", "http://localhost:8000")

    # Auth & Session
    SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "hotelbook_identity")
    SESSION_MAX_AGE_DAYS: int = int(os.getenv("SESSION_MAX_AGE_DAYS", "30"))

    # Backend canister
    BACKEND_URL: str = os.getenv("BACKEND_URL", "http://localhost:4943")
    BACKEND_TIMEOUT_SECONDS: float = float(os.getenv("BACKEND_TIMEOUT_SECONDS", "15"))

    # Query cache
    QUERY_STALE_SECONDS: float = float(os.getenv("QUERY_STALE_SECONDS", "5"))
    QUERY_RETRY: int = int(os.getenv("QUERY_RETRY", "1"))

    # Delay before leaving the activation screen, lets role queries refetch
    ACTIVATION_REDIRECT_DELAY_SECONDS: float = float(os.getenv("ACTIVATION_REDIRECT_DELAY_SECONDS", "1.5"))

    # Cloudinary
    CLOUDINARY_URL: str = os.getenv("CLOUDINARY_URL", "")

    # Upload constraints
    UPLOAD_IMAGE_MAX_MB: int = int(os.getenv("UPLOAD_IMAGE_MAX_MB", "5"))
    UPLOAD_IMAGE_MAX_BYTES: int = UPLOAD_IMAGE_MAX_MB * 1024 * 1024

    # Shown to hotel owners whose subscription is not active
    ADMIN_CONTACT_EMAIL: str = os.getenv("ADMIN_CONTACT_EMAIL", "")
    ADMIN_CONTACT_WHATSAPP: str = os.getenv("ADMIN_CONTACT_WHATSAPP", "")

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    RATE_LIMIT_DEFAULT: str = os.getenv("RATE_LIMIT_DEFAULT", "100/minute")
    RATE_LIMIT_AUTH: str = os.getenv("RATE_LIMIT_AUTH", "5/minute")
    RATE_LIMIT_ACTIVATION: str = os.getenv("RATE_LIMIT_ACTIVATION", "10/minute")

settings = Settings()

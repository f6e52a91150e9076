import os
from pathlib import Path
from dotenv import load_dotenv

# Ensure .env is loaded from project root even if server is started elsewhere
BASE_DIR = Path(__file__).resolve().parents[2]
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


class Settings:
    # Application
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "ShareLink").strip()
    VERSION: str = "1.0.0"
    API_PREFIX: str = os.getenv("API_PREFIX", "/api").strip()
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:3000")

    # Security
    # Strip values to avoid accidental whitespace or surrounding quotes from .env
    SECRET_KEY: str = os.getenv("SECRET_KEY", "change-me").strip()
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256").strip()
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))
    ADMIN_API_KEY: str = os.getenv("ADMIN_API_KEY", "").strip()
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "admin@example.com").strip()
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "").strip()

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./sharelink.db")
    DB_ECHO: bool = _env_bool("DB_ECHO", "false")

    # Free tier / expiry
    DEFAULT_FILE_SIZE_LIMIT: float = float(os.getenv("DEFAULT_FILE_SIZE_LIMIT", "2"))  # GB
    DEFAULT_FILE_VALIDITY_HOURS: int = int(os.getenv("DEFAULT_FILE_VALIDITY_HOURS", "4"))
    UPLOAD_URL_EXPIRY_SECONDS: int = int(os.getenv("UPLOAD_URL_EXPIRY_SECONDS", "3600"))
    EXPIRY_SWEEP_INTERVAL_SECONDS: int = int(os.getenv("EXPIRY_SWEEP_INTERVAL_SECONDS", "300"))

    # Object storage (S3)
    AWS_REGION: str = os.getenv("AWS_REGION", "ap-south-1").strip()
    AWS_ACCESS_KEY_ID: str = os.getenv("AWS_ACCESS_KEY_ID", "").strip()
    AWS_SECRET_ACCESS_KEY: str = os.getenv("AWS_SECRET_ACCESS_KEY", "").strip()
    S3_BUCKET_NAME: str = os.getenv("S3_BUCKET_NAME", "").strip()
    S3_UPLOAD_PREFIX: str = os.getenv("S3_UPLOAD_PREFIX", "uploads/").strip()

    # Payment gateways
    RAZORPAY_KEY_ID: str = os.getenv("RAZORPAY_KEY_ID", "").strip()
    RAZORPAY_KEY_SECRET: str = os.getenv("RAZORPAY_KEY_SECRET", "").strip()
    STRIPE_SECRET_KEY: str = os.getenv("STRIPE_SECRET_KEY", "").strip()
    STRIPE_PUBLIC_KEY: str = os.getenv("STRIPE_PUBLIC_KEY", "").strip()
    STRIPE_WEBHOOK_SECRET: str = os.getenv("STRIPE_WEBHOOK_SECRET", "").strip()
    # Fixed divisor, not a live exchange rate
    INR_PER_USD: float = float(os.getenv("INR_PER_USD", "75"))

    # Email
    SMTP_HOST: str = os.getenv("SMTP_HOST", "smtp.gmail.com").strip()
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER: str = os.getenv("SMTP_USER", "").strip()
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "").strip()
    SMTP_FROM: str = os.getenv("SMTP_FROM", "").strip()
    SEND_NOTIFICATIONS: bool = _env_bool("SEND_NOTIFICATIONS", "true")

    def get_cors_origins_list(self):
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

settings = Settings()

# campus_sdk/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "Campus SDK API"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    # CORS origins for frontend
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Remote storage location (GitHub repository contents API)
    remote_api_base: str = os.getenv("REMOTE_API_URL", "https://api.github.com")
    remote_owner: str = os.getenv("REMOTE_OWNER", "your-github-username")
    remote_repo: str = os.getenv("REMOTE_REPO", "ai-institution-db")
    remote_token: str | None = os.getenv("REMOTE_TOKEN")
    remote_branch: str = os.getenv("REMOTE_BRANCH", "main")
    data_dir: str = os.getenv("DATA_DIR", "data")

    # Remote behaviour
    # The API is rate limited: keep reads cached briefly, retry writes on version mismatch
    remote_timeout_seconds: float = float(os.getenv("REMOTE_TIMEOUT_SECONDS", "30"))
    cache_ttl_seconds: float = float(os.getenv("CACHE_TTL_SECONDS", "30"))
    max_commit_retries: int = int(os.getenv("MAX_COMMIT_RETRIES", "5"))
    max_remote_retries: int = int(os.getenv("MAX_REMOTE_RETRIES", "3"))
    retry_backoff_seconds: float = float(os.getenv("RETRY_BACKOFF_SECONDS", "0.5"))

    # Sessions & password recovery
    session_ttl_minutes: int = int(os.getenv("SESSION_TTL_MINUTES", str(60 * 24)))  # 0 = never expires
    otp_ttl_minutes: int = int(os.getenv("OTP_TTL_MINUTES", "10"))
    otp_length: int = int(os.getenv("OTP_LENGTH", "6"))
    otp_max_attempts: int = int(os.getenv("OTP_MAX_ATTEMPTS", "5"))  # wrong guesses before a passcode is discarded

    # Demo accounts (student/instructor/admin @demo.com) for local development only;
    # they share a well-known password
    seed_demo_users: bool = _flag("SEED_DEMO_USERS", "false")
    demo_password: str = os.getenv("DEMO_PASSWORD", "password123")

    # Register the academic/financial administration collections too
    enable_extended_collections: bool = _flag("ENABLE_EXTENDED_COLLECTIONS", "false")

settings = Settings()  # Instantiate configuration

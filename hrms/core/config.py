import os
import logging
from pydantic import BaseModel, Field
from typing import List
from dotenv import load_dotenv

load_dotenv()


class Config(BaseModel):
    app_name: str = "HRMS Leave API"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./hrms.db")

    # Auth
    secret_key: str = os.getenv("SECRET_KEY", "dev-only-insecure-key-DO-NOT-USE-IN-PROD")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

    version: str = "1.0.0"
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    request_id_header: str = "X-Request-ID"

    # CORS: comma-separated origins loaded from env
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:5173,"
                "http://127.0.0.1:3000,http://127.0.0.1:5173",
            ).split(",")
            if o.strip()
        ]
    )

    rate_limit_per_minute: int = int(os.getenv("RATE_LIMIT_PER_MINUTE", "60"))

    # Leave approval routing
    hr_role: str = os.getenv("HR_ROLE", "HR_MANAGER")
    fallback_approver_role: str = os.getenv("FALLBACK_APPROVER_ROLE", "HR")

    # Demo accounts get fixture data instead of live queries
    demo_mode_enabled: bool = os.getenv("DEMO_MODE_ENABLED", "true").lower() == "true"
    default_page_size: int = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))


settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment not in ("development", "testing"):
    if "dev-only" in settings.secret_key:
        raise RuntimeError(
            "FATAL: SECRET_KEY must be set for non-development environments. "
            "Set it as an environment variable."
        )
elif "dev-only" in settings.secret_key:
    _logger.warning("Using insecure default SECRET_KEY, only acceptable in development.")

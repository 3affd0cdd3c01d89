import os
from dotenv import load_dotenv
from pydantic import BaseModel

# Load variables from .env
load_dotenv()


class Settings(BaseModel):
    project_name: str = "Apartment Booking API"
    database_url: str = "sqlite+aiosqlite:///./apartments.db"

    # JWT
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    # Frontend origins allowed by CORS (comma separated)
    cors_origins: str = "http://localhost:5173"

    # Rate limiting settings
    rate_limit_enabled: bool = True  # Killswitch for quick disable
    rate_limit_writes: str = "20/minute"  # Per IP on booking/block writes

    # Logging settings
    log_format: str = "console"  # Options: "console", "json"
    log_slow_request_threshold_ms: int = 500  # Log timing only if duration > threshold

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings(
    database_url=os.environ.get("DATABASE_URL", "sqlite+aiosqlite:///./apartments.db"),
    jwt_secret=os.environ.get("JWT_SECRET", "change-me"),
    jwt_algorithm=os.environ.get("JWT_ALGORITHM", "HS256"),
    access_token_expire_minutes=int(
        os.environ.get("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24))
    ),
    cors_origins=os.environ.get("CORS_ORIGINS", "http://localhost:5173"),
    rate_limit_enabled=os.environ.get("RATE_LIMIT_ENABLED", "true").lower() == "true",
    rate_limit_writes=os.environ.get("RATE_LIMIT_WRITES", "20/minute"),
    log_format=os.environ.get("LOG_FORMAT", "console"),
    log_slow_request_threshold_ms=int(
        os.environ.get("LOG_SLOW_REQUEST_THRESHOLD_MS", "500")
    ),
)

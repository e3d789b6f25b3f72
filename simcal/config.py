from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # ─── Application ───────────────────────────────────────────────────────────
    APP_NAME: str = "SimCal Simulator Booking"
    APP_ENV:  str = "development"
    APP_DEBUG: bool = True
    APP_HOST:  str = "0.0.0.0"
    APP_PORT:  int = 8000

    # ─── Database ──────────────────────────────────────────────────────────────
    DATABASE_URL:          str
    DATABASE_POOL_SIZE:    int  = 10
    DATABASE_MAX_OVERFLOW: int  = 20
    DATABASE_POOL_TIMEOUT: int  = 30
    DATABASE_ECHO:         bool = False

    # ─── JWT ───────────────────────────────────────────────────────────────────
    SECRET_KEY:                    str
    ALGORITHM:                     str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES:   int = 60 * 24

    # ─── Password reset ────────────────────────────────────────────────────────
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60
    FRONTEND_URL:                  str = "http://localhost:5173"

    # ─── SMTP ──────────────────────────────────────────────────────────────────
    SMTP_ENABLED:  bool = False
    SMTP_HOST:     str  = "localhost"
    SMTP_PORT:     int  = 587
    SMTP_USER:     str  = ""
    SMTP_PASSWORD: str  = ""
    SMTP_USE_TLS:  bool = True
    SMTP_FROM:     str  = "SimCal <no-reply@simcal.local>"

    # ─── Reminders ─────────────────────────────────────────────────────────────
    REMINDER_LEAD_MINUTES:     int  = 10
    REMINDER_DISPATCH_ENABLED: bool = True
    REMINDER_POLL_SECONDS:     int  = 30

    # ─── CORS ──────────────────────────────────────────────────────────────────
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    def get_cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    model_config = {"env_file": ".env", "case_sensitive": True, "extra": "ignore"}


settings = Settings()

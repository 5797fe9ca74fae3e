import os
from typing import Optional

from rovigram.exceptions import SessionConfigError


class Settings:
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./rovigram.db")
    SECRET_KEY: Optional[str] = os.getenv("SECRET_KEY") or None
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 30)))
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "10"))
    AUTH_COOKIE_NAME: str = "auth-token"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    APP_NAME: str = "Rovigram"
    VERSION: str = "1.0.0"
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    ALLOWED_ORIGINS: list = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()]

    @property
    def cookie_secure(self) -> bool:
        return self.ENVIRONMENT == "production"

    def require_secret_key(self) -> str:
        """Signing secret for session tokens. There is no fallback value."""
        if not self.SECRET_KEY:
            raise SessionConfigError("SECRET_KEY is not configured")
        return self.SECRET_KEY

settings = Settings()

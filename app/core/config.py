from datetime import timedelta
from pathlib import Path

from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Runtime configuration, overridable through environment variables or .env"""

    APP_NAME: str = "ResCare"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"

    DATABASE_URL: str = f"sqlite:///{BASE_DIR}/rescare.db"

    # DEV ONLY default; set JWT_SECRET_KEY in production.
    JWT_SECRET_KEY: str = "rescare-development-secret-change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7
    BCRYPT_ROUNDS: int = 12

    ADMIN_EMAIL: str = "admin@rescare.com"
    ADMIN_PASSWORD: str = "admin123"

    CORS_ORIGINS: list[str] = ["http://localhost:5173", "https://rescare.vercel.app"]

    # only allow Pending -> Approved -> Completed one step at a time
    STRICT_STATUS_FLOW: bool = False

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


settings = Settings()

ALGORITHM = settings.JWT_ALGORITHM
ACCESS_TOKEN_EXPIRE = timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)

# Request lifecycle
STATUS_PENDING = "Pending"
STATUS_APPROVED = "Approved"
STATUS_COMPLETED = "Completed"
VALID_STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_COMPLETED)

SUBJECT_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 1000
PASSWORD_MIN_LENGTH = 6

# column sizes in app/models/student.py
FULL_NAME_MAX_LENGTH = 255
EMAIL_MAX_LENGTH = 255
RESIDENCE_MAX_LENGTH = 100
BLOCK_MAX_LENGTH = 50

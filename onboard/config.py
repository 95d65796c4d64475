from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env into os.environ before pydantic reads it
load_dotenv()


class Settings(BaseSettings):
    # Database
    MONGO_URI: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "onboard"

    # Auth
    SECRET_KEY: str = "super_secret_random_key_CHANGE_THIS"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Comma-separated list, e.g. "http://localhost:5173,https://app.example.com"
    ALLOWED_ORIGINS: str = ""

    # Sessions starting within this window get a reminder notification
    REMINDER_WINDOW_MINUTES: int = 30
    DISCOVER_PAGE_SIZE: int = 12
    # Job seekers notified concurrently per new-session broadcast batch
    BROADCAST_BATCH_SIZE: int = 100

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def allowed_origins(self) -> List[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]


settings = Settings()

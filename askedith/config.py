from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    DB_URL: str = "sqlite:///./data/askedith.db"
    DATA_DIR: str = "./data"
    EXPORT_DIR: str = "./exports"
    STATE_DIR: str = "./data/state"
    SIMULATION_LOG_PATH: str = "./data/simulated_emails.jsonl"
    LOG_LEVEL: str = "INFO"

    # Transactional email (SendGrid v3 REST)
    SENDGRID_API_KEY: str | None = None
    SENDGRID_API_URL: str = "https://api.sendgrid.com/v3"
    PLATFORM_FROM_EMAIL: str = "noreply@askedith.org"
    PLATFORM_FROM_NAME: str = "AskEdith"

    # Connected mailbox (Nylas v3)
    NYLAS_CLIENT_ID: str | None = None
    NYLAS_API_KEY: str | None = None
    NYLAS_API_URI: str = "https://api.us.nylas.com"
    NYLAS_REDIRECT_URI: str = "http://localhost:8000/email/callback"
    MAILBOX_ROOT_FOLDER: str = "AskEdith"

    OAUTH_STATE_TTL_SECONDS: int = 600

    SEND_TIMEOUT_SECONDS: float = 15.0
    SESSION_COOKIE_NAME: str = "askedith_session"
    cors_allow_origins: List[str] = ["*"]
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @property
    def mailbox_configured(self) -> bool:
        return bool(self.NYLAS_CLIENT_ID and self.NYLAS_API_KEY)

settings = Settings()

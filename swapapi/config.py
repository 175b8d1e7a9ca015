from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from urllib.parse import quote_plus


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="swapapi/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "Battery Swap API"
    PROJECT_NAME: str = "Battery Swap Station API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: List[str] = ["*"]

    # Database
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USERNAME: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DATABASE: str = "swap"
    POSTGRES_SCHEMA: str = "public"

    # Takes precedence over POSTGRES_* when set (e.g. sqlite:///./swap.db)
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    @property
    def database_url(self) -> str:
        """Construct database URL from individual components"""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        # URL encode the password to handle special characters
        encoded_password = quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql+psycopg2://{self.POSTGRES_USERNAME}:{encoded_password}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DATABASE}"

    # Security (tokens are minted by the identity service)
    SECRET_KEY: str = "dev-secret-change-me"
    JWT_ALGORITHM: str = "HS256"

    # Business Rules
    CURRENCY: str = "VND"
    BOOKING_MIN_LEAD_MINUTES: int = 30
    BOOKING_MAX_LEAD_HOURS: int = 12
    # Drivers may not cancel inside this many minutes before the slot
    BOOKING_LATE_CANCEL_MINUTES: int = 15
    # Open bookings this close to a slot hold a battery of the same model
    BOOKING_RESERVATION_WINDOW_MINUTES: int = 30
    # Charging batteries count as available for slots at least this far ahead
    BATTERY_CHARGE_HOURS: int = 1
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100


settings = Settings()

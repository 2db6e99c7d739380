from decimal import Decimal
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from pydantic import field_validator

class Settings(BaseSettings):
    # Database settings
    POSTGRES_USER: str = 'caja_user'
    POSTGRES_PASSWORD: str = 'caja_pass'
    POSTGRES_DB: str = 'caja_db'
    POSTGRES_HOST: str = 'postgres'
    POSTGRES_PORT: int = 5432

    # Overrides the Postgres URL (tests use sqlite://)
    DATABASE_URL: Optional[str] = None

    # Cash handling
    CASH_PAYMENT_METHOD_NAME: str = 'Efectivo'  # Etiqueta del bucket de efectivo
    CURRENCY_EPSILON: Decimal = Decimal('0.01')
    MOVEMENT_DELETE_ROLES: List[str] = ["owner", "admin", "supervisor"]

    # Pagination
    DEFAULT_PAGE_SIZE: int = 15
    MAX_PAGE_SIZE: int = 100

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @field_validator("DEBUG", mode="before")
    @classmethod
    def parse_debug(cls, v):
        if isinstance(v, str):
            return v.lower().strip('"').strip("'") in ("true", "1", "yes", "on")
        return bool(v)

    @field_validator("CURRENCY_EPSILON")
    @classmethod
    def validate_epsilon(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("CURRENCY_EPSILON must be positive")
        return v

settings = Settings()

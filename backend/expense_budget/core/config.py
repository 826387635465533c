import os
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "Expense Budget Manager"

    # Postgres in production, SQLite file locally
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./expense_budget.db")
    AUTO_CREATE_TABLES: bool = True

    HOST: str = "0.0.0.0"
    PORT: int = 3001
    CORS_ORIGINS: str = "*"

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    @property
    def cors_origins(self) -> list:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

settings = Settings()

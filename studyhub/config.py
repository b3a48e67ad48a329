from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    PROJECT_NAME: str = "StudyHub API"
    API_VERSION: str = "1.0.0"
    ENV: str = "development"
    FRONTEND_URL: str = "http://localhost:3000"

    # Database
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "studyhub"
    # full URL override, e.g. sqlite:///./studyhub.db
    DATABASE_URL: Optional[str] = None
    SQL_ECHO: bool = False

    LOG_LEVEL: str = "INFO"

    # "strict" divides by every question of the quiz,
    # "legacy" only by the questions present in the submission
    SCORING_POLICY: Literal["strict", "legacy"] = "strict"


settings = Settings()

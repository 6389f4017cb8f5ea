from pydantic_settings import BaseSettings
from typing import List
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

class Settings(BaseSettings):
    PROJECT_NAME: str = "Fraud Rules Studio"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # Storage
    DATABASE_URL: str = "sqlite:///./fraud_rules.db"
    STORAGE_BACKEND: str = "database"  # "database" or "memory"
    STORAGE_KEY: str = "fraud_rules"

    # Fixed per-operation delays that mimic a remote API
    SIMULATE_LATENCY: bool = False

    # Actor recorded on rules and versions when none is supplied
    DEFAULT_ACTOR: str = "You"

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    class Config:
        env_file = ".env"

settings = Settings()

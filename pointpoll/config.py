# pointpoll/config.py
from typing import Literal
from pydantic_settings import BaseSettings
from pydantic import field_validator

class Settings(BaseSettings):
    """Environment settings"""

    # API
    app_name: str = "PointPoll API"
    debug: bool = False
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Database
    database_url: str = "sqlite:///./pointpoll.db"

    # JWT
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # Voting
    vote_budget: int = 100
    completion_policy: Literal["full", "at_least_one"] = "full"
    single_choice_consensus: int = 100

    # Logging
    log_dir: str = "logs"

    @field_validator('secret_key')
    def validate_secret_key(cls, v):
        if len(v) < 32:
            raise ValueError('SECRET_KEY must be at least 32 characters long')
        return v

    @field_validator('vote_budget')
    def validate_vote_budget(cls, v):
        if v < 1:
            raise ValueError('VOTE_BUDGET must be positive')
        return v

    class Config:
        env_file = ".env"
        case_sensitive = False

# singleton
settings = Settings()

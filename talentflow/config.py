from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/talentflow.db"
    log_level: str = "INFO"

    # CORS configuration for the frontend dev server
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Simulated network: latency window and transient failure rate
    latency_min_ms: int = 200
    latency_max_ms: int = 1200
    failure_rate: float = 0.1  # Only applied to mutating requests
    network_seed: Optional[int] = None

    # Actors recorded on timeline events
    default_actor: str = "HR Team"
    system_actor: str = "System"

    # Pagination defaults
    jobs_page_size: int = 10
    candidates_page_size: int = 50

    # Reject single/multi-choice answers that are not among the declared options
    strict_choice_options: bool = False

    class Config:
        env_file = ".env"
        env_prefix = "TALENTFLOW_"


@lru_cache
def get_settings() -> Settings:
    return Settings()

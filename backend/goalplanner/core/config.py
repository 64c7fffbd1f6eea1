"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Goal Task Planner"
    debug: bool = False
    log_level: str = "INFO"
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "goal-task-planner"

    # Planner backend selection; "rules" keeps planning fully offline.
    goal_planner_provider: str = "rules"
    goal_planner_model: str | None = None
    goal_planner_timeout_ms: int = 20000
    goal_planner_api_url: str | None = None
    goal_planner_api_key: str | None = None

    openai_api_key: str | None = None
    openai_base_url: str | None = None
    ollama_base_url: str | None = None
    ollama_model: str | None = None
    anthropic_api_key: str | None = None
    anthropic_base_url: str | None = None


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()

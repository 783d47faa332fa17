from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cvforge.types import GenerationConfig

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "CVForge"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 8790
    log_level: str = "INFO"

    database_url: str = "sqlite:///./data/cvforge.db"
    data_dir: Path = Path("./data")

    fetch_timeout_sec: int = 30
    fetch_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    )

    openai_base_url: str = "https://api.openai.com/v1"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    groq_base_url: str = "https://api.groq.com/openai/v1"
    deepseek_base_url: str = "https://api.deepseek.com/v1"
    anthropic_base_url: str = "https://api.anthropic.com"
    cloud_timeout_sec: int = 100
    anthropic_max_tokens: int = 4096

    local_llm_enabled: bool = True
    local_llm_base_url: str = "http://localhost:11434"
    local_llm_timeout_sec: int = 600

    generation_temperature: float = 0.7
    default_model: str = "gpt-4o"

    model_cache_ttl_sec: int = 300

    cors_origins: str = "http://127.0.0.1:8790"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("generation_temperature")
    @classmethod
    def validate_temperature(cls, value: float) -> float:
        if value < 0 or value > 2:
            raise ValueError("generation_temperature must be between 0 and 2")
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def local_tags_url(self) -> str:
        return f"{self.local_llm_base_url.rstrip('/')}/api/tags"

    def generation_config(self) -> GenerationConfig:
        return GenerationConfig(temperature=self.generation_temperature)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()

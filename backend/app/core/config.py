from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    project_name: str = "StreetHunt"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO")

    # Public app origin: magic link redirect target and base URL for reference artwork
    app_url: str = Field(default="http://localhost:3000")

    supabase_url: str = Field(default="")
    supabase_anon: str = Field(default="")
    request_timeout: float = Field(default=10.0)

    redis_url: str = Field(default="redis://redis:6379/0")

    cache_key: str = Field(default="streethunt_cache_v1")
    session_key: str = Field(default="sb_session")
    max_device_sessions: int = Field(default=1000)

    cors_origins: str = Field(default="http://localhost:3000,http://localhost")

    gemini_api_key: str = Field(default="", description="Gemini API key (env: GEMINI_API_KEY)")
    gemini_model: str = Field(default="gemini-2.5-flash")
    gemini_max_output_tokens: int = Field(default=200)

    demo_validation_delay: float = Field(default=2.2)

    default_city: str = Field(default="Jakarta, ID")
    default_lat: float = Field(default=-6.2088)
    default_lng: float = Field(default=106.8456)
    drop_jitter: float = Field(default=0.06)

    @property
    def is_demo(self) -> bool:
        return not self.supabase_url or not self.supabase_anon

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()

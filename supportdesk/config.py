"""
Support Desk AI - Configuration Management
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings"""

    # FastAPI
    app_env: str = "development"
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: str = ""

    # Gemini drafting
    google_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    ai_draft_timeout_seconds: float = 25.0
    ai_draft_temperature: float = 0.4

    # Worker hand-off
    worker_api_key: str = ""
    worker_url: str = ""
    run_dispatch_mode: str = "inline"  # inline | http
    run_worker_concurrency: int = 4

    # Stale run sweep
    run_sweep_enabled: bool = False
    run_sweep_interval_seconds: float = 60.0
    run_sweep_stale_seconds: float = 120.0
    run_sweep_batch_size: int = 50

    # Ticket writes
    ticket_cas_max_attempts: int = 3

    # Org scoping fallback for local development
    default_org_id: str = ""

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False
    )

    @property
    def supabase_admin_key(self) -> str:
        """Service role key when configured, anon key otherwise"""
        return self.supabase_service_role_key or self.supabase_key

    @property
    def is_development(self) -> bool:
        return self.app_env.lower() == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()

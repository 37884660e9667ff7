from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Used by the realtime listener; bypasses RLS

    # Invites
    app_origin: str = "http://localhost:3000"  # Origin used to build /join links
    invite_token_length: int = 16
    invite_password_length: int = 8
    invite_token_ttl_minutes: int = 60

    # Family switcher
    selected_family_key: str = "kyn-selected-family"

    # Optional feature pages (each gated on its key being present)
    maps_api_key: Optional[str] = None
    weather_api_key: Optional[str] = None
    video_server_url: Optional[str] = None

    # App
    app_name: str = "kyn-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"
    join_rate_limit: str = "10/minute"
    rate_limit_enabled: bool = True

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def get_enabled_features(self) -> dict:
        return {
            "maps": bool(self.maps_api_key),
            "weather": bool(self.weather_api_key),
            "video": bool(self.video_server_url),
        }

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()

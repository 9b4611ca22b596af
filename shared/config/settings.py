"""
Application settings loaded from environment variables.
Uses pydantic-settings for type-safe configuration.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with defaults for development."""

    # Server
    bridge_host: str = "0.0.0.0"
    bridge_port: int = 8002

    # Comma-separated list of allowed origins (empty allows the localhost defaults)
    allowed_origins: str = ""

    # Environment
    environment: str = "development"
    debug: bool = True

    # Endpoint defaults, applied when a mount does not override them
    bridge_data_channel: str = "bridge"
    bridge_control_channel: str = "bridgeControl"
    bridge_allow_scripts: bool = False
    bridge_allow_styles: bool = False
    bridge_fwd_in_messages: bool = False
    bridge_default_topic: str = ""

    # Comma-separated list of base paths mounted at startup (e.g. "/dashboard,/kiosk")
    bridge_endpoints: str = ""
    # Directory with front-end files served under each endpoint url (empty = none)
    bridge_static_dir: str = ""

    # WebSocket
    ws_max_message_size: int = 64 * 1024  # 64 KB
    ws_receive_timeout: float = 90.0  # Close idle clients after this many seconds
    ws_send_timeout: float = 5.0  # A send slower than this counts as a dead client

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    def endpoint_urls(self) -> list[str]:
        """Base paths from BRIDGE_ENDPOINTS, blanks removed."""
        return [u.strip() for u in self.bridge_endpoints.split(",") if u.strip()]

    def validate_production(self) -> list[str]:
        """
        Validate settings that must be explicit in production.
        Returns a list of validation errors. Empty list means all checks pass.
        """
        errors = []

        if self.environment == "production":
            if self.debug:
                errors.append("DEBUG must be False in production")

            if not self.allowed_origins:
                errors.append(
                    "ALLOWED_ORIGINS must be set in production (comma-separated list of allowed domains)"
                )

            if self.bridge_allow_scripts:
                errors.append(
                    "BRIDGE_ALLOW_SCRIPTS lets flows push executable script to browsers; "
                    "disable it in production"
                )

        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience exports
settings = get_settings()

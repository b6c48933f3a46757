"""Client configuration using Pydantic Settings."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_ENDPOINT = "https://api.dydx.exchange"
DEFAULT_API_TIMEOUT_MS = 10000


class Settings(BaseSettings):
    """Client settings loaded from DEXRELAY_* environment variables."""

    # Relay API
    api_endpoint: str = DEFAULT_API_ENDPOINT
    api_timeout_ms: int = Field(
        default=DEFAULT_API_TIMEOUT_MS,
        ge=1,
        le=600_000,
        description="Timeout applied to every HTTP request, in milliseconds",
    )

    # Signing domain
    chain_id: int = Field(default=1, ge=1)
    limit_orders_address: str = "0xDEf136D9884528e1EB302f39457af0E4d3AD24EB"
    stop_limit_orders_address: str = "0xbFb635e8c6689ac3874aD9A60FaB1c29270f7a62"

    @field_validator("api_endpoint", mode="before")
    @classmethod
    def validate_api_endpoint(cls, v: str) -> str:
        """Validate the relay endpoint.

        Args:
            v: The endpoint value to validate

        Returns:
            str: The endpoint without a trailing slash

        Raises:
            ValueError: If the endpoint is empty or not an http(s) URL
        """
        if not v:
            raise ValueError("api_endpoint cannot be empty")

        if not v.startswith(("http://", "https://")):
            raise ValueError(
                "api_endpoint must be a full URL (e.g., 'https://api.dydx.exchange')"
            )

        return v.rstrip("/")

    model_config = SettingsConfigDict(
        env_prefix="DEXRELAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Module-level singleton instance
_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get client settings instance (singleton pattern)."""
    global _settings_instance
    if _settings_instance is None:
        try:
            _settings_instance = Settings()
        except Exception as e:
            msg = (
                "Failed to initialize settings. "
                "Check DEXRELAY_* environment variables."
            )
            raise RuntimeError(msg) from e
    return _settings_instance

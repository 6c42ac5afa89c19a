import logging
from dataclasses import dataclass
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

BUNDLED_FALLBACK_PATH = Path(__file__).resolve().parent.parent / "data" / "llm-data.json"


class Settings(BaseSettings):
    """
    Application settings, loaded from environment variables and .env file.

    Remote pricing source (optional; the bundled snapshot is used without it):
        SUPABASE_URL            - project URL (also NEXT_PUBLIC_/DEFAULT_ prefixed)
        SUPABASE_ANON_KEY       - anon API key (also NEXT_PUBLIC_/DEFAULT_ prefixed)
        SUPABASE_PRICING_TABLE  - table to select pricing rows from
        SUPABASE_PRICING_VIEW   - view to use when no table is named
    """

    model_config = {"env_file": ".env", "extra": "ignore", "populate_by_name": True}

    # Remote pricing source
    supabase_url: str = Field(
        default="",
        validation_alias=AliasChoices(
            "supabase_url", "SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL", "DEFAULT_SUPABASE_URL"
        ),
    )
    supabase_anon_key: str = Field(
        default="",
        validation_alias=AliasChoices(
            "supabase_anon_key",
            "SUPABASE_ANON_KEY",
            "NEXT_PUBLIC_SUPABASE_ANON_KEY",
            "DEFAULT_SUPABASE_ANON_KEY",
        ),
    )
    supabase_pricing_table: str = ""
    supabase_pricing_view: str = ""
    remote_query_limit: int = 1000
    remote_timeout_seconds: float = 10.0

    # Bundled snapshot served when the remote source is unusable
    fallback_data_path: Path = BUNDLED_FALLBACK_PATH

    # Emission heuristics (g CO2e per token)
    co2e_baseline_factor: float = 0.0002
    co2e_max_multiplier: float = 1.5
    default_output_tokens: int = 4096

    tokenizer_encoding: str = "cl100k_base"

    # Production settings
    environment: str = "development"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"  # comma-separated origins
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    @field_validator(
        "supabase_url", "supabase_anon_key", "supabase_pricing_table", "supabase_pricing_view"
    )
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    @property
    def pricing_source_name(self) -> str:
        """Table wins over view; both fall back to ``model_pricing``."""
        return self.supabase_pricing_table or self.supabase_pricing_view or "model_pricing"

    @property
    def has_remote_source(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@dataclass(frozen=True)
class SourceConfig:
    """Connection details for the remote pricing table, resolved once at startup."""

    endpoint: str
    api_key: str
    table: str = "model_pricing"
    limit: int = 1000
    timeout: float = 10.0


def source_config_from_settings(s: Settings) -> SourceConfig | None:
    """Return the remote source config, or None when credentials are missing."""
    if not s.has_remote_source:
        return None
    return SourceConfig(
        endpoint=s.supabase_url.rstrip("/"),
        api_key=s.supabase_anon_key,
        table=s.pricing_source_name,
        limit=s.remote_query_limit,
        timeout=s.remote_timeout_seconds,
    )


settings = Settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

if not settings.has_remote_source:
    logger.info("Supabase credentials not set; serving the bundled pricing snapshot")

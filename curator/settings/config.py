from pathlib import Path
from pydantic import EmailStr, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, Dict

from .types import LogLevel, MuseumConfig, MuseumInfo

class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Common Settings
    user_agent: str = Field(
        default="Exhibition-Curator/1.0 (Educational Project)",
        description="User-Agent sent to every upstream museum API"
    )
    contact_email: Optional[EmailStr] = Field(
        default=None,
        description="Sent as the From header so upstream operators can reach us"
    )

    # Metropolitan Museum of Art (clean REST)
    met_api_base_url: str = Field(default="https://collectionapi.metmuseum.org/public/collection/v1")
    met_search_timeout: float = Field(default=15.0)
    met_fetch_timeout: float = Field(default=10.0)
    met_max_consecutive_failures: int = Field(default=5)
    met_cooldown_period: float = Field(default=60.0)
    met_fetch_attempts: int = Field(default=3)
    met_batch_fetch_attempts: int = Field(default=2)
    met_rate_limit_delay_cap: float = Field(default=2.0)
    met_server_error_delay_cap: float = Field(default=1.5)

    # Rijksmuseum (Linked Art graph)
    rijks_api_base_url: str = Field(default="https://data.rijksmuseum.nl")
    rijks_search_timeout: float = Field(default=15.0)
    rijks_fetch_timeout: float = Field(default=10.0)
    rijks_iiif_host: str = Field(default="iiif.micr.io")
    rijks_fallback_type: str = Field(default="painting")
    rijks_max_workers: int = Field(default=10)

    # Victoria and Albert Museum (faceted search)
    va_api_base_url: str = Field(default="https://api.vam.ac.uk/v2")
    va_timeout: float = Field(default=15.0)
    va_iiif_base_url: str = Field(default="https://framemark.vam.ac.uk/collections")

    # Fitzwilliam Museum (nested JSON, bearer token)
    fitzwilliam_api_base_url: str = Field(default="https://data.fitzmuseum.cam.ac.uk/api/v1")
    fitzwilliam_api_key: Optional[str] = Field(default=None)
    fitzwilliam_username: Optional[str] = Field(default=None)
    fitzwilliam_password: Optional[str] = Field(default=None)
    fitzwilliam_timeout: float = Field(default=15.0)

    # Batch hydration heuristics
    batch_size: int = Field(default=5)
    batch_delay: float = Field(default=1.0, description="Base pause between batches, scaled by upstream failures")
    batch_stagger: float = Field(default=0.2, description="Start offset per item position inside a batch")
    batch_failure_backoff_steps: int = Field(default=3, description="Upstream failures counted towards the batch delay")
    batch_failure_backoff_factor: float = Field(default=0.5, description="Extra batch delay per counted failure")
    early_exit_min_results: int = Field(default=10)
    early_exit_result_fraction: float = Field(default=0.25)
    early_exit_min_success_rate: float = Field(default=0.5)
    early_exit_min_successes: int = Field(default=5)
    early_exit_min_attempted: int = Field(default=20)
    selection_head_fraction: float = Field(default=0.6)
    selection_band_start: float = Field(default=0.2)
    selection_band_end: float = Field(default=0.6)

    # Aggregation
    aggregator_timeout: float = Field(default=20.0)
    default_limit: int = Field(default=20)
    max_limit: int = Field(default=100)

    # Logging
    log_level: LogLevel = Field(default=LogLevel.PROGRESS)
    logs_dir: Optional[Path] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def museums(self) -> Dict[str, MuseumConfig]:
        """Create museum configurations using the settings."""
        contact_email = str(self.contact_email) if self.contact_email else None
        return {
            'met': MuseumConfig(
                api_base_url=self.met_api_base_url,
                user_agent=self.user_agent,
                contact_email=contact_email,
                code='met',
                name='Metropolitan Museum of Art'
            ),
            'rijks': MuseumConfig(
                api_base_url=self.rijks_api_base_url,
                user_agent=self.user_agent,
                contact_email=contact_email,
                code='rijks',
                name='Rijksmuseum'
            ),
            'va': MuseumConfig(
                api_base_url=self.va_api_base_url,
                user_agent=self.user_agent,
                contact_email=contact_email,
                code='va',
                name='Victoria and Albert Museum'
            ),
            'fitzwilliam': MuseumConfig(
                api_base_url=self.fitzwilliam_api_base_url,
                user_agent=self.user_agent,
                contact_email=contact_email,
                api_key=self.fitzwilliam_api_key,
                code='fitzwilliam',
                name='Fitzwilliam Museum'
            )
        }

    def get_museum_info(self, museum_id: str) -> MuseumInfo:
        """Get MuseumInfo for a specific museum"""
        museums = self.museums
        if museum_id not in museums:
            raise ValueError(f"Unknown museum ID: {museum_id}")

        return museums[museum_id].to_museum_info()

# Create global settings instance
settings = Settings()

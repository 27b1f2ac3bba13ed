"""Application configuration using pydantic-settings."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_HOME_DIR = Path.home() / ".tims"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # NHL APIs
    nhl_stats_api_url: str = "https://api.nhle.com/stats/rest/en"
    nhl_web_api_url: str = "https://api-web.nhle.com/v1"
    standings_fallback_date: str = "2024-10-01"
    requests_per_second: float = 10.0

    # Seasons - comma-separated list of completed seasons (cached permanently)
    current_season: str = "20252026"
    completed_seasons: str = "20242025"
    combine_seasons: bool = True

    # Ranking behaviour
    default_ranking_method: str = "original"
    show_method_comparison: bool = True
    show_method_descriptions: bool = True
    comparison_size: int = 5

    # Caching / output
    data_dir: Path = DEFAULT_HOME_DIR / "data"
    picks_dir: Path = DEFAULT_HOME_DIR / "picks"
    force_refresh_schedules: bool = False
    save_picks_to_files: bool = True
    reporting_timezone: str = "America/Toronto"

    # Scraped sources
    injuries_url: str = "https://www.espn.com/nhl/injuries"
    pick_rounds_url: str = "https://hockeychallengehelper.com/"

    # Email report
    email_enabled: bool = True
    email_user: str = ""
    email_app_password: str = ""
    email_recipients: str = ""
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465

    # CORS - comma-separated list of allowed origins
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # Logging
    log_level: str = "INFO"

    @property
    def completed_seasons_list(self) -> list[str]:
        """Parse completed seasons from comma-separated string."""
        return [s.strip() for s in self.completed_seasons.split(",") if s.strip()]

    @property
    def season_ids(self) -> list[str]:
        """Seasons that make up the ranking pool, oldest first."""
        if not self.combine_seasons:
            return [self.current_season]
        seasons = [s for s in self.completed_seasons_list if s != self.current_season]
        return sorted(seasons) + [self.current_season]

    @property
    def email_recipients_list(self) -> list[str]:
        """Parse email recipients from comma-separated string."""
        return [r.strip() for r in self.email_recipients.split(",") if r.strip()]

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

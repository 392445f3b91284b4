"""Runtime configuration for map markers."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="MAP_MARKERS_", env_file=".env", extra="ignore")

    app_name: str = "map-markers"
    log_level: str = "INFO"
    config_dir: Path = Field(
        default=Path("~/.map_markers"),
        description="User-editable directory holding the waypoint rule file.",
    )
    config_file_name: str = "waypoints.json"
    channel_name: str = "mapmarkers-waypointspackets"

    @property
    def rules_path(self) -> Path:
        return self.config_dir.expanduser() / self.config_file_name


settings = Settings()

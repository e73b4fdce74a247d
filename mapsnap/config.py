"""Configuration management for map snapshots."""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field

# Tile server location per deployment profile
BACKEND_PROFILES = {
    "docker": "http://tile-server:80",
    "local": "http://localhost:8080",
}


class AppConfig(BaseModel):
    """Application-level configuration."""

    # Tile backend
    build_environment: str = Field(
        default="local",
        description="Deployment profile used to pick the tile server",
    )
    tile_server_url: Optional[str] = Field(
        default=None,
        description="Explicit tile server base URL (overrides the profile)",
    )
    tile_timeout: float = Field(default=10.0, gt=0, description="Per-tile timeout in seconds")
    max_concurrent_fetches: int = Field(default=16, ge=1, description="Tile fetch fan-out limit")
    max_tiles: int = Field(default=1024, ge=1, description="Largest tile grid a snapshot may request")

    # Snapshot defaults
    zoom: int = Field(default=19, ge=0, le=24, description="Zoom level for snapshots")
    output_width: int = Field(default=100, ge=1, description="Snapshot width in pixels")
    output_height: int = Field(default=100, ge=1, description="Snapshot height in pixels")

    @property
    def backend_url(self) -> str:
        """Base URL of the tile server."""
        if self.tile_server_url:
            return self.tile_server_url.rstrip("/")
        return BACKEND_PROFILES.get(self.build_environment, BACKEND_PROFILES["local"])

    @property
    def output_size(self) -> tuple[int, int]:
        return (self.output_width, self.output_height)

    @classmethod
    def from_yaml(cls, path: Path) -> "AppConfig":
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    @classmethod
    def load(cls) -> "AppConfig":
        """Load configuration from an optional YAML file, then environment."""
        values: dict[str, Any] = {}

        config_file = os.environ.get("MAPSNAP_CONFIG")
        if config_file:
            values.update(cls.from_yaml(Path(config_file)).model_dump(exclude_unset=True))

        env_map = {
            "BUILD_ENVIRONMENT": "build_environment",
            "MAPSNAP_TILE_SERVER_URL": "tile_server_url",
            "MAPSNAP_TILE_TIMEOUT": "tile_timeout",
            "MAPSNAP_MAX_CONCURRENT_FETCHES": "max_concurrent_fetches",
            "MAPSNAP_MAX_TILES": "max_tiles",
            "MAPSNAP_ZOOM": "zoom",
        }
        for env_var, field_name in env_map.items():
            if env_var in os.environ:
                values[field_name] = os.environ[env_var]

        output_size = os.environ.get("MAPSNAP_OUTPUT_SIZE")
        if output_size:
            values["output_width"], values["output_height"] = parse_size(output_size)

        return cls(**values)


def parse_size(text: str) -> tuple[int, int]:
    """Parse a ``WIDTHxHEIGHT`` string."""
    try:
        width, height = text.lower().split("x")
        return int(width), int(height)
    except ValueError:
        raise ValueError(f"Expected size as WIDTHxHEIGHT, got {text!r}") from None


# Global config instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get or create global configuration."""
    global _config
    if _config is None:
        _config = AppConfig.load()
    return _config

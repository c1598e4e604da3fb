"""
Configuration - hub credentials, client settings and import options
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

# Schedule timing allowances (seconds)
SCHEDULE_START_ALLOWANCE_SECONDS = 10
SCHEDULE_MIN_DURATION_SECONDS = 60
INSTANT_ALLOWANCE_SECONDS = 5

ENV_OVERRIDES = {
    "HUBSYNC_CLIENT_ID": "client_id",
    "HUBSYNC_CLIENT_SECRET": "client_secret",
    "HUBSYNC_HUB_ID": "hub_id",
    "HUBSYNC_API_URL": "api_url",
    "HUBSYNC_AUTH_URL": "auth_url",
}


class ConfigurationError(Exception):
    """Missing or invalid configuration"""
    pass


class HubConfig(BaseModel):
    """Hub connection settings"""
    client_id: str
    client_secret: str
    hub_id: str
    api_url: str = "https://api.amplience.net/v2/content"
    auth_url: str = "https://auth.amplience.net"
    timeout_seconds: float = 30.0
    max_retry_attempts: int = 3


class ImportOptions(BaseModel):
    """Event import behaviour"""
    original_ids: bool = Field(False, description="Match destination resources by source id")
    schedule: bool = Field(True, description="Schedule editions that are scheduled at the source")
    catchup: bool = Field(False, description="Schedule editions that have already ended")
    unschedule_poll_attempts: int = Field(10, description="Refetches while waiting for UNSCHEDULING to finish")
    unschedule_poll_delay_seconds: float = Field(1.0, description="First poll delay, doubled per attempt")
    unschedule_poll_max_delay_seconds: float = 10.0


def default_config_path() -> Path:
    return Path.home() / ".hubsync" / "config.yaml"


def load_config(path: Optional[Union[str, Path]] = None, hub_id: Optional[str] = None) -> HubConfig:
    """
    Load hub settings.

    Args:
        path: YAML file, defaults to ~/.hubsync/config.yaml
        hub_id: Overrides the configured hub

    Returns:
        Validated configuration; environment variables win over the file
    """
    config_path = Path(path) if path else default_config_path()
    data: Dict[str, Any] = {}

    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Could not read configuration {config_path}: {e}")
        logger.debug(f"Configuration loaded from {config_path}")

    for env_name, key in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            data[key] = value

    if hub_id:
        data["hub_id"] = hub_id

    try:
        return HubConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration (run 'hubsync configure' or set HUBSYNC_* variables): {e}"
        )


def save_config(config: HubConfig, path: Optional[Union[str, Path]] = None) -> Path:
    config_path = Path(path) if path else default_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config.model_dump(), f, sort_keys=False)

    return config_path

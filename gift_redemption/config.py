"""
Configuration loader
"""
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field


VERSION = "1.0.0"
DEFAULT_CONFIG_PATH = "config/settings.yaml"


class CorsSettings(BaseModel):
    """Cross-origin policy for the web counter"""
    allow_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "https://lczm.github.com/gifts"]
    )
    allow_methods: List[str] = Field(default_factory=lambda: ["GET", "POST", "OPTIONS"])
    allow_headers: List[str] = Field(default_factory=lambda: ["Content-Type"])


class Settings(BaseModel):
    db_path: str = "gifts.db"
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    busy_timeout: float = 30.0    # seconds a ledger writer waits for the lock
    cors: CorsSettings = Field(default_factory=CorsSettings)


def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load settings from a YAML file

    Args:
        config_path: Path to config file. When None, the default path is
            used if it exists, otherwise built-in defaults apply.

    Returns:
        Settings object

    Raises:
        FileNotFoundError: If an explicitly given config file is missing
    """
    if config_path is None:
        path = Path(DEFAULT_CONFIG_PATH)
        if not path.exists():
            return Settings()
    else:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    return Settings(**data)

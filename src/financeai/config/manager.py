"""Configuration manager for secrets kept outside config.yaml."""
import json
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

from .settings import get_settings
from financeai.utils.exceptions import ConfigError


@dataclass
class Config:
    """Runtime secrets and deployment overrides."""
    gemini_api_key: str
    model_name: Optional[str] = None
    storage_backend: Optional[str] = None


VALID_BACKENDS = ("json", "sqlite", "memory")


class ConfigManager:
    """Manages the local config.json with environment fallback."""

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = config_file or get_settings().config_path
        self.config_dir = self.config_file.parent

    def load_config(self) -> Optional[Config]:
        """Load configuration from file, falling back to GEMINI_API_KEY."""
        if not self.config_file.exists():
            api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
            if api_key:
                return Config(gemini_api_key=api_key)
            return None

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                config_dict = json.load(f)
            return Config(**config_dict)
        except (OSError, ValueError, TypeError) as e:
            raise ConfigError(f"Failed to load configuration: {e}")

    def save_config(self, config: Config) -> None:
        """Save configuration to file."""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(asdict(config), f, indent=2)
        except OSError as e:
            raise ConfigError(f"Failed to save configuration: {e}")

    def validate_config(self, config: Config) -> tuple[bool, str]:
        """Validate configuration values."""
        if not config.gemini_api_key:
            return False, "Gemini API key is required"

        if config.storage_backend and config.storage_backend not in VALID_BACKENDS:
            return False, f"Storage backend must be one of: {', '.join(VALID_BACKENDS)}"

        return True, "Configuration is valid"

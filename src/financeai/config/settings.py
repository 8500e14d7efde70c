"""Application settings loader from YAML configuration."""
import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional
from dataclasses import dataclass, field


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent.parent / "config.yaml"

DEFAULT_BUDGET_LIMITS = {
    "Food & Dining": 500,
    "Transportation": 200,
    "Shopping": 300,
    "Entertainment": 150,
    "Bills & Utilities": 400,
}


@dataclass
class AppSettings:
    """Application-wide settings loaded from config.yaml."""

    # App info
    app_name: str = "FinanceAI"
    app_version: str = "0.1.0"

    # Logging
    log_level: str = "INFO"
    log_max_file_size_mb: int = 10
    log_backup_count: int = 30
    log_to_file: bool = True

    # LLM
    llm_model_name: str = "gemini-2.5-flash-lite"
    llm_recent_transactions: int = 10
    llm_notify_dropped_transaction: bool = False

    # Storage
    storage_backend: str = "json"

    # Paths
    data_dir: str = "~/.financeai"
    logs_dir: str = "logs"
    log_file: str = "service.log"
    config_file: str = "config.json"
    records_dir: str = "records"
    database_file: str = "financeai.db"

    # Budget overview
    budget_limits: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_BUDGET_LIMITS))
    budget_top_categories: int = 5

    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    @classmethod
    def load(cls, config_path: Path = None) -> "AppSettings":
        """Load settings from YAML file."""
        if config_path is None:
            env_path = os.getenv("FINANCEAI_CONFIG")
            if env_path:
                config_path = Path(env_path)
            else:
                config_path = DEFAULT_CONFIG_PATH
                # Installed without a project checkout: run on defaults
                if not config_path.exists():
                    return cls._with_env_overrides(cls())

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}

        return cls._with_env_overrides(cls.from_dict(config))

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "AppSettings":
        """Build settings from the parsed YAML structure, keeping defaults for missing keys."""
        defaults = cls()

        def section(name: str) -> Dict[str, Any]:
            return config.get(name) or {}

        app = section("app")
        logging_cfg = section("logging")
        llm = section("llm")
        storage = section("storage")
        paths = section("paths")
        budget = section("budget")
        api = section("api")

        return cls(
            app_name=app.get("name", defaults.app_name),
            app_version=str(app.get("version", defaults.app_version)),
            log_level=logging_cfg.get("level", defaults.log_level),
            log_max_file_size_mb=logging_cfg.get("max_file_size_mb", defaults.log_max_file_size_mb),
            log_backup_count=logging_cfg.get("backup_count", defaults.log_backup_count),
            log_to_file=logging_cfg.get("to_file", defaults.log_to_file),
            llm_model_name=llm.get("model_name", defaults.llm_model_name),
            llm_recent_transactions=llm.get("recent_transactions", defaults.llm_recent_transactions),
            llm_notify_dropped_transaction=llm.get(
                "notify_dropped_transaction", defaults.llm_notify_dropped_transaction
            ),
            storage_backend=storage.get("backend", defaults.storage_backend),
            data_dir=paths.get("data_dir", defaults.data_dir),
            logs_dir=paths.get("logs_dir", defaults.logs_dir),
            log_file=paths.get("log_file", defaults.log_file),
            config_file=paths.get("config_file", defaults.config_file),
            records_dir=paths.get("records_dir", defaults.records_dir),
            database_file=paths.get("database_file", defaults.database_file),
            budget_limits=dict(budget.get("limits", defaults.budget_limits)),
            budget_top_categories=budget.get("top_categories", defaults.budget_top_categories),
            api_host=api.get("host", defaults.api_host),
            api_port=api.get("port", defaults.api_port),
        )

    @classmethod
    def _with_env_overrides(cls, settings: "AppSettings") -> "AppSettings":
        home = os.getenv("FINANCEAI_HOME")
        if home:
            settings.data_dir = home
        return settings

    def resolve_path(self, name: str) -> Path:
        """Resolve a configured path relative to the data directory."""
        path = Path(os.path.expanduser(name))
        if path.is_absolute():
            return path
        return Path(os.path.expanduser(self.data_dir)) / path

    @property
    def logs_path(self) -> Path:
        return self.resolve_path(self.logs_dir)

    @property
    def config_path(self) -> Path:
        return self.resolve_path(self.config_file)

    @property
    def records_path(self) -> Path:
        return self.resolve_path(self.records_dir)

    @property
    def database_path(self) -> Path:
        return self.resolve_path(self.database_file)


# Global settings instance
_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = AppSettings.load()
    return _settings

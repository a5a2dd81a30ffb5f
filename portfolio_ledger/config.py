"""
Configuration Module

Runtime settings for the portfolio ledger, loaded from an optional JSON file
and overridden by ``PORTFOLIO_LEDGER_*`` environment variables.
"""

from pathlib import Path
from typing import Dict, Optional, Any
import json

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "PORTFOLIO_LEDGER_"


class LedgerConfig(BaseSettings):
    """
    Portfolio ledger settings.

    Every field can be overridden by an environment variable named after it,
    e.g. ``PORTFOLIO_LEDGER_RISK_FREE_RATE=3.5``. Environment variables take
    precedence over constructor values and the JSON file.
    """
    default_portfolio_name: str = "My Portfolio"
    risk_free_rate: float = 2.0  # percent
    refresh_interval_seconds: float = 30.0
    data_directory: Optional[str] = None
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX, case_sensitive=False, extra="forbid", frozen=True
    )

    @field_validator("default_portfolio_name")
    @classmethod
    def validate_portfolio_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("default_portfolio_name must not be empty")
        return v.strip()

    @field_validator("refresh_interval_seconds")
    @classmethod
    def validate_refresh_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"refresh_interval_seconds must be positive, got {v}")
        return v

    @classmethod
    def settings_customise_sources(cls, settings_cls, init_settings, env_settings,
                                   dotenv_settings, file_secret_settings):
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @staticmethod
    def load_config(config_path: str) -> Dict[str, Any]:
        """Load configuration from JSON file."""
        with open(config_path, 'r') as f:
            return json.load(f)

    @classmethod
    def load(cls, config_path: str = None) -> 'LedgerConfig':
        """
        Build settings from defaults, a JSON file and the environment.

        Args:
            config_path: Optional path to a JSON configuration file

        Returns:
            LedgerConfig instance

        Raises:
            ValueError: On unknown keys or invalid values
        """
        file_values: Dict[str, Any] = {}
        if config_path and Path(config_path).exists():
            file_values = cls.load_config(config_path)
        return cls(**file_values)

"""Engine configuration for dmn-engine.

Defines the settings of a DmnEngine instance: compile cache, default hit
policy, typeRef strictness and CLI log level. Config is stored as JSON at
the OS-appropriate location (via platformdirs), or any path given to the CLI.

Example usage:
    # Load from config file
    config = EngineConfig.load_from_file(config_path)

    # Save configuration
    config.save_to_file(config_path)

    engine = DmnEngine(config)
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dmn_engine.constants import (
    CONFIG_DIR,
    CONFIG_FILE_NAME,
    DEFAULT_CACHE_CAPACITY,
    DEFAULT_HIT_POLICY,
    MAX_CACHE_CAPACITY,
    MIN_CACHE_CAPACITY,
)
from dmn_engine.table.hit_policy import parse_hit_policy
from dmn_engine.utils.file_helpers import load_validated_json, require_file_exists

__all__ = [
    "EngineConfig",
    "get_config_path",
]


def get_config_path() -> Path:
    """Get the default path of the engine configuration file.

    - macOS: ~/Library/Application Support/dmn-engine/dmn_engine_config.json
    - Linux: ~/.config/dmn-engine/dmn_engine_config.json
    - Windows: C:\\Users\\<user>\\AppData\\Local\\dmn-engine\\dmn_engine_config.json
    """
    return Path(CONFIG_DIR) / CONFIG_FILE_NAME


class EngineConfig(BaseModel):
    """Settings for a DmnEngine instance.

    Attributes:
        cache_enabled: Keep compiled decisions for reuse across parse calls.
        cache_capacity: Maximum number of compiled decisions kept (LRU).
        default_hit_policy: Hit policy for tables that omit the attribute.
        strict_types: Fail evaluation when a value cannot be coerced to
            its column's typeRef instead of passing it through.
        log_level: Log level used by the CLI.
    """

    cache_enabled: bool = True
    cache_capacity: int = Field(
        default=DEFAULT_CACHE_CAPACITY,
        ge=MIN_CACHE_CAPACITY,
        le=MAX_CACHE_CAPACITY,
    )
    default_hit_policy: str = DEFAULT_HIT_POLICY
    strict_types: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING"] = "WARNING"

    model_config = ConfigDict(frozen=True)

    @field_validator("default_hit_policy")
    @classmethod
    def known_hit_policy(cls, value: str) -> str:
        """Reject hit policies the compiler would not accept."""
        policy, aggregation = parse_hit_policy(value)
        if aggregation is not None:
            raise ValueError("the default hit policy cannot carry an aggregation")
        return policy.value

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to JSON file.

        Creates parent directories if they don't exist.

        Args:
            config_path: Path where dmn_engine_config.json should be saved.
        """
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(self.model_dump(), f, indent=2)
            f.write("\n")

    @classmethod
    def load_from_file(cls, config_path: Path) -> "EngineConfig":
        """Load configuration from JSON file.

        Args:
            config_path: Path to the config file.

        Returns:
            EngineConfig instance with loaded configuration.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            InvalidConfigurationError: If config file is invalid.
        """
        require_file_exists(config_path, file_type="configuration")
        return load_validated_json(
            config_path,
            cls,
            file_type="config",
            recovery_hint="Fix the file or delete it to use the defaults.",
            encoding="utf-8",
        )

"""
Configuration management for Foliot.

This module handles user configuration, data directories, and settings.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, cast

from platformdirs import user_config_dir, user_data_dir

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages Foliot configuration and data directories."""

    def __init__(self) -> None:
        """Initialize configuration manager."""
        self.app_name = "foliot"
        self.config_dir = Path(user_config_dir(self.app_name))
        self.data_dir = Path(user_data_dir(self.app_name))
        self.config_file = self.config_dir / "config.json"

        # Ensure directories exist
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        # Default configuration
        self.default_config = {
            "data_directory": str(self.data_dir),
            "default_namespace": "default",
            "date_format": "%Y-%m-%d",
            "time_format": "%H:%M",
            "lock_timeout_seconds": 10.0,
            "colors": {
                "duration": "cyan",
                "table": "green",
            },
            "display": {
                "show_seconds": False,
                "tail": 30,
                "wrap": 80,
            },
            "summary": {
                "granularity": "month",
            },
            "git": {
                "binary": "git",
                "auto_commit": False,
                "auto_push": False,
            },
        }

        # Load existing configuration
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file, creating default if it doesn't exist."""
        if self.config_file.exists():
            try:
                with open(self.config_file, "r") as f:
                    loaded_config = json.load(f)

                # Merge with defaults to ensure all keys exist
                config = copy.deepcopy(self.default_config)
                config.update(loaded_config)
                return config

            except (json.JSONDecodeError, IOError) as e:
                logger.warning("Could not load config file %s: %s", self.config_file, e)
                logger.warning("Using default configuration")
                return copy.deepcopy(self.default_config)

        # Create default config file
        self._save_config(self.default_config)
        return copy.deepcopy(self.default_config)

    def _save_config(self, config: Dict[str, Any]) -> None:
        """Save configuration to file."""
        try:
            with open(self.config_file, "w") as f:
                json.dump(config, f, indent=2, sort_keys=True)
        except IOError as e:
            logger.warning("Could not save config file %s: %s", self.config_file, e)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by key, with optional default."""
        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by key."""
        keys = key.split(".")
        config = self._config

        # Navigate to the parent dictionary
        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        # Set the value
        config[keys[-1]] = value

        # Save configuration
        self._save_config(self._config)

    def get_data_dir(self) -> Path:
        """Get the data directory path."""
        data_dir_str = self.get("data_directory", str(self.data_dir))
        return Path(data_dir_str).expanduser()

    def get_default_namespace(self) -> str:
        """Get the namespace used when none is given."""
        return cast(str, self.get("default_namespace", "default"))

    def get_date_format(self) -> str:
        """Get the date format string."""
        return cast(str, self.get("date_format", "%Y-%m-%d"))

    def get_time_format(self) -> str:
        """Get the time format string."""
        return cast(str, self.get("time_format", "%H:%M"))

    def get_color(self, element: str) -> str:
        """Get color for a UI element."""
        return cast(str, self.get(f"colors.{element}", "white"))

    def show_seconds(self) -> bool:
        """Check if seconds should be shown in duration displays."""
        return cast(bool, self.get("display.show_seconds", False))

    def get_tail(self) -> int:
        """Get the default number of rows shown by show and summarize."""
        return cast(int, self.get("display.tail", 30))

    def get_wrap(self) -> int:
        """Get the column width at which comments are wrapped."""
        return cast(int, self.get("display.wrap", 80))

    def get_summary_granularity(self) -> str:
        """Get the default period used by summarize."""
        return cast(str, self.get("summary.granularity", "month"))

    def get_lock_timeout(self) -> float:
        """Get the number of seconds to wait for a namespace lock."""
        return float(self.get("lock_timeout_seconds", 10.0))

    def get_git_binary(self) -> str:
        """Get the git executable used for history snapshots."""
        return cast(str, self.get("git.binary", "git"))

    def is_auto_commit_enabled(self) -> bool:
        """Check if every change should be committed to git."""
        return cast(bool, self.get("git.auto_commit", False))

    def is_auto_push_enabled(self) -> bool:
        """Check if every commit should be pushed."""
        return cast(bool, self.get("git.auto_push", False))


# Global configuration manager instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager

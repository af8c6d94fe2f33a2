"""Configuration management for the todo store."""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from .projection import SortOrder


logger = logging.getLogger(__name__)

DATA_DIR_ENV = "TODO_STORE_DATA_DIR"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ConfigModel:
    """Global configuration model for the todo store."""

    # Storage
    data_dir: str = "~/.todo-store"
    storage_file: str = "storage.json"
    todos_key: str = "todos"
    filter_key: str = "todoFilter"

    # Display preferences
    default_sort: SortOrder = SortOrder.NEWEST
    use_emoji: bool = True

    # Behavior settings
    confirm_destructive: bool = True
    log_level: str = "WARNING"

    def __post_init__(self):
        """Post-initialization setup."""
        self.data_dir = os.path.expanduser(self.data_dir)

        if isinstance(self.default_sort, str):
            try:
                self.default_sort = SortOrder(self.default_sort)
            except ValueError:
                logger.warning(f"Unknown default_sort {self.default_sort!r}, using 'newest'")
                self.default_sort = SortOrder.NEWEST

        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            logger.warning(f"Unknown log_level {self.log_level!r}, using WARNING")
            self.log_level = "WARNING"

    def to_yaml(self) -> str:
        """Serialize config to YAML."""
        data = {
            "data_dir": self.data_dir,
            "storage_file": self.storage_file,
            "todos_key": self.todos_key,
            "filter_key": self.filter_key,
            "default_sort": self.default_sort.value,
            "use_emoji": self.use_emoji,
            "confirm_destructive": self.confirm_destructive,
            "log_level": self.log_level,
        }
        return yaml.dump(data, default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "ConfigModel":
        """Deserialize config from YAML, ignoring unknown keys."""
        data = yaml.safe_load(yaml_str) or {}
        if not isinstance(data, dict):
            raise ValueError("config file must contain a mapping")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")

        return cls(**{key: value for key, value in data.items() if key in known})

    def get_storage_path(self) -> Path:
        """Get the file path of the key-value storage."""
        return Path(self.data_dir) / self.storage_file

    def get_config_path(self) -> Path:
        """Get the config file path."""
        return Path(self.data_dir) / "config.yaml"


def _default_config() -> ConfigModel:
    data_dir = os.environ.get(DATA_DIR_ENV)
    return ConfigModel(data_dir=data_dir) if data_dir else ConfigModel()


class Config:
    """Configuration manager for the todo store."""

    _instance: Optional[ConfigModel] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> ConfigModel:
        """Load configuration from file or fall back to defaults."""
        if cls._instance is not None and config_path is None:
            return cls._instance

        config = _default_config()

        if config_path is None:
            config_path = config.get_config_path()

        if config_path.exists():
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    config = ConfigModel.from_yaml(f.read())
                if os.environ.get(DATA_DIR_ENV):
                    config.data_dir = os.path.expanduser(os.environ[DATA_DIR_ENV])
                logger.debug(f"Loaded configuration from {config_path}")
            except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {config_path}: {e}")
                logger.warning("Using default configuration.")
                config = _default_config()

        cls._instance = config
        return config

    @classmethod
    def save(cls, config: ConfigModel, config_path: Optional[Path] = None) -> bool:
        """Save configuration to file."""
        if config_path is None:
            config_path = config.get_config_path()

        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, "w", encoding="utf-8") as f:
                f.write(config.to_yaml())
            logger.debug(f"Configuration saved to {config_path}")
            return True
        except OSError as e:
            logger.error(f"Failed to save config to {config_path}: {e}")
            return False

    @classmethod
    def get(cls) -> ConfigModel:
        """Get the current configuration instance."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reload(cls) -> ConfigModel:
        """Reload configuration from file."""
        cls._instance = None
        return cls.load()


def get_config() -> ConfigModel:
    """Get the current configuration."""
    return Config.get()


def load_config(config_path: Optional[Path] = None) -> ConfigModel:
    """Load configuration from file."""
    return Config.load(config_path)


def save_config(config: ConfigModel, config_path: Optional[Path] = None) -> bool:
    """Save configuration to file."""
    return Config.save(config, config_path)

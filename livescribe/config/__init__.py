"""Simple YAML configuration loader for LiveScribe."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "livescribe.yaml"

DEFAULT_CONFIG: Dict[str, Any] = {
    "recognition": {
        "default_language": "pt-BR",
        "languages": ["pt-BR", "en-US", "es-ES", "fr-FR", "de-DE", "ja-JP", "it-IT", "ru-RU"],
    },
    "google_cloud": {
        "use_enhanced_model": True,
        "enable_automatic_punctuation": True,
        "model": "latest_long",
    },
    "audio": {
        "sample_rate": 16000,
        "chunk_size": 1024,
        "channels": 1,
    },
    "session": {
        "speaking_indicator_seconds": 0.5,
        "max_restarts": 10,
        "restart_window_seconds": 5.0,
    },
    "storage": {
        "data_directory": "data",
        "autosave_debounce_seconds": 0.5,
    },
    "history": {
        "date_format": "%d/%m/%Y, %H:%M:%S",
    },
    "logging": {
        "level": "INFO",
        "file_path": "data/logs/livescribe.log",
        "console_output": True,
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def find_config_file(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Look for livescribe.yaml in ``start_dir`` (default: cwd) and its parents."""
    directory = (start_dir or Path.cwd()).resolve()
    for candidate_dir in [directory, *directory.parents]:
        candidate = candidate_dir / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


class LiveScribeConfig:
    """LiveScribe configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, looks for livescribe.yaml
                        in current directory and parent directories, falling back
                        to built-in defaults.
        """
        if config_path:
            self.config_file: Optional[Path] = Path(config_path)
            if not self.config_file.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_file}")
        else:
            self.config_file = find_config_file()

        if self.config_file:
            logger.info(f"Loading configuration from: {self.config_file}")
            self.config = self._load_config()
        else:
            logger.info("No configuration file found, using defaults")
            self.config = copy.deepcopy(DEFAULT_CONFIG)

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ValueError(f"Failed to load configuration: {e}")

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping")

        config = _deep_merge(DEFAULT_CONFIG, loaded)

        # Resolve relative paths
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        for section, key in (("google_cloud", "credentials_path"),
                             ("storage", "data_directory"),
                             ("logging", "file_path")):
            value = config.get(section, {}).get(key)
            if value and not os.path.isabs(value):
                config[section][key] = str(config_dir / value)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'session.max_restarts').

        Args:
            key_path: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'recognition.default_language')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_google_credentials_path(self) -> Optional[str]:
        """Get Google credentials path, or None when not configured or missing."""
        creds_path = self.get('google_cloud.credentials_path')
        if not creds_path:
            logger.warning("Google credentials path not configured")
            return None

        creds_file = Path(creds_path)
        if not creds_file.exists():
            logger.warning(f"Google credentials file not found: {creds_path}")
            return None

        return str(creds_file.absolute())

    def get_data_directory(self) -> str:
        """Get data directory path."""
        data_dir = self.get('storage.data_directory', 'data')
        return str(Path(data_dir).absolute())

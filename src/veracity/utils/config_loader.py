# ============================================
# Veracity - src/veracity/utils/config_loader.py
# YAML + environment configuration management
# ============================================

import copy
import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError

# Load environment variables
load_dotenv()

CONFIG_DIR_ENV = "VERACITY_CONFIG_DIR"

@dataclass
class ConfigMetadata:
    """Where a configuration section was loaded from"""
    config_name: str
    file_path: Path
    last_modified: datetime
    environment: str = "development"

class ConfigLoader:
    """
    Configuration management for Veracity

    Features:
    - In-memory defaults for every known section
    - YAML files merged over the defaults
    - ${VAR} and ${VAR:default} environment substitution
    - Runtime overrides via set()
    """

    CONFIG_FILES = [
        "model_config.yaml",
        "logging.yaml"
    ]

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        """
        Initialize ConfigLoader

        Args:
            config_dir: Path to configuration directory. If None, taken from
                VERACITY_CONFIG_DIR or the project's config/ directory.
        """
        self.project_root = self._find_project_root()
        env_dir = os.getenv(CONFIG_DIR_ENV)
        if config_dir:
            self.config_dir = Path(config_dir)
        elif env_dir:
            self.config_dir = Path(env_dir)
        else:
            self.config_dir = self.project_root / "config"
        self.environment = os.getenv("ENVIRONMENT", "development")

        self.configs: Dict[str, Dict[str, Any]] = {}
        self.metadata: Dict[str, ConfigMetadata] = {}

        # Plain stdlib logger; logger.py depends on this module
        self.logger = logging.getLogger(__name__)

        self._load_all_configs()

    def _find_project_root(self) -> Path:
        """Find project root directory by looking for key files"""
        current = Path(__file__).resolve()
        markers = ['setup.py', '.git', 'requirements.txt']

        for parent in current.parents:
            if any((parent / marker).exists() for marker in markers):
                return parent

        return current.parents[3]

    def _load_all_configs(self):
        """Load defaults, then overlay every configuration file found"""
        for config_file in self.CONFIG_FILES:
            config_name = config_file.replace('.yaml', '').replace('.yml', '')
            self.configs[config_name] = self._get_defaults(config_name)

            config_path = self.config_dir / config_file
            if not config_path.exists():
                self.logger.debug(f"No {config_file} in {self.config_dir}, using defaults")
                continue

            self._load_config_file(config_path, config_name)

    def _load_config_file(self, config_path: Path, config_name: str):
        """Load a single configuration file over the current values"""
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path.name}: {e}", config_name=config_name, cause=e) from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read {config_path}: {e}", config_name=config_name, cause=e) from e

        if not isinstance(config_data, dict):
            raise ConfigurationError(
                f"Top level of {config_path.name} must be a mapping",
                config_name=config_name
            )

        config_data = self._process_environment_variables(config_data)

        if config_name == 'logging':
            # dictConfig payloads replace the default outright
            self.configs[config_name] = config_data
        else:
            self.configs[config_name] = self._deep_merge(self.configs.get(config_name, {}), config_data)

        stat = config_path.stat()
        self.metadata[config_name] = ConfigMetadata(
            config_name=config_name,
            file_path=config_path,
            last_modified=datetime.fromtimestamp(stat.st_mtime),
            environment=self.environment
        )

        self.logger.debug(f"Loaded configuration: {config_name}")

    @staticmethod
    def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        merged = copy.deepcopy(base)
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = ConfigLoader._deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def _process_environment_variables(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Process environment variable substitutions in config

        Supports formats:
        - ${VAR_NAME}
        - ${VAR_NAME:default_value}
        """
        def process_value(value):
            if isinstance(value, str):
                if value.startswith('${') and value.endswith('}'):
                    env_spec = value[2:-1]

                    if ':' in env_spec:
                        var_name, default_value = env_spec.split(':', 1)
                        return os.getenv(var_name, default_value)
                    return os.getenv(env_spec, value)

                return value
            elif isinstance(value, dict):
                return {k: process_value(v) for k, v in value.items()}
            elif isinstance(value, list):
                return [process_value(item) for item in value]
            return value

        return process_value(config_data)

    def get_config(self, config_name: str) -> Dict[str, Any]:
        """
        Get complete configuration by name

        Args:
            config_name: Name of configuration (without .yaml extension)

        Returns:
            Copy of the configuration dictionary
        """
        if config_name not in self.configs:
            self.logger.warning(f"Configuration '{config_name}' not found")
            return {}

        return copy.deepcopy(self.configs[config_name])

    def get(self, config_name: str, key_path: str, default: Any = None) -> Any:
        """
        Get specific configuration value using dot notation

        Args:
            config_name: Name of configuration
            key_path: Dot-separated path to key (e.g., 'knn.n_neighbors')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        current = self.configs.get(config_name, {})

        try:
            for key in key_path.split('.'):
                current = current[key]
            return copy.deepcopy(current)
        except (KeyError, TypeError):
            return default

    def set(self, config_name: str, key_path: str, value: Any):
        """
        Set configuration value (runtime only, not persisted)

        Args:
            config_name: Name of configuration
            key_path: Dot-separated path to key
            value: Value to set
        """
        if config_name not in self.configs:
            self.configs[config_name] = {}

        keys = key_path.split('.')
        current = self.configs[config_name]

        for key in keys[:-1]:
            if key not in current or not isinstance(current[key], dict):
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value
        self.logger.debug(f"Set config {config_name}.{key_path} = {value}")

    def reload_config(self):
        """Reload every configuration file from disk, dropping runtime overrides"""
        self.configs.clear()
        self.metadata.clear()
        self._load_all_configs()
        self.logger.info("Reloaded all configurations")

    def get_metadata(self, config_name: str) -> Optional[ConfigMetadata]:
        return self.metadata.get(config_name)

    def list_configs(self) -> List[str]:
        return list(self.configs.keys())

    def export_config(self, config_name: str, format: str = 'yaml') -> str:
        """
        Export configuration in specified format

        Args:
            config_name: Name of configuration to export
            format: Export format ('yaml', 'json')

        Returns:
            Configuration as formatted string
        """
        config_data = self.get_config(config_name)

        if format.lower() == 'json':
            return json.dumps(config_data, indent=2, default=str)
        elif format.lower() == 'yaml':
            return yaml.dump(config_data, default_flow_style=False, indent=2, sort_keys=False)
        raise ConfigurationError(f"Unsupported export format: {format}", config_name=config_name)

    # Default configuration templates
    def _get_defaults(self, config_name: str) -> Dict[str, Any]:
        if config_name == 'model_config':
            return self._get_model_config_defaults()
        if config_name == 'logging':
            return {}
        return {}

    def _get_model_config_defaults(self) -> Dict[str, Any]:
        """Get default model configuration"""
        return {
            'knn': {
                'n_neighbors': 5,
                'weights': 'uniform',
                'p': 2,
                'metric': 'euclidean',
                'score_metric': 'accuracy',
                'n_jobs': None,
                'chunk_size': 1024
            },
            'csv': {
                'separator': ',',
                'skip_initial_space': True,
                'skip_blank_lines': True
            }
        }

# Global configuration instance
config = ConfigLoader()

# Convenience functions for common operations
def get_config(config_name: str) -> Dict[str, Any]:
    """Get complete configuration by name"""
    return config.get_config(config_name)

def get(config_name: str, key_path: str, default: Any = None) -> Any:
    """Get specific configuration value using dot notation"""
    return config.get(config_name, key_path, default)

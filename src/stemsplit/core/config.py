"""
Configuration management for stemsplit
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

# Environment override for the model asset location
MODELS_DIR_ENV = 'STEMSPLIT_MODELS_DIR'


class Config:
    """Configuration manager for the application"""

    CONFIG_FILE = Path.home() / '.stemsplit' / 'config.json'
    DEFAULT_CONFIG = {
        'paths': {
            # None lets the engine fall back to its own model cache
            'models_dir': None,
            # None means the current working directory
            'output_dir': None,
            'log_dir': str(Path.home() / '.stemsplit' / 'logs'),
        },
        'engine': {
            'device': 'auto',
            'shifts': 1,
            'overlap': 0.25,
            'models': {
                '2stems': 'htdemucs',
                '4stems': 'htdemucs',
                '5stems': 'htdemucs_6s',
            },
        },
        'output': {
            'subtype': 'FLOAT',
            'staged_writes': True,
            'max_workers': 1,
            'min_free_space_mb': 0,
        },
        'logging': {
            # Console level; the log file always records DEBUG
            'level': 'WARNING',
            'file_enabled': True,
        },
    }

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        """Initialize configuration"""
        if config_file is not None:
            self.config_file = Path(config_file)
        else:
            self.config_file = self.CONFIG_FILE
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file or create default"""
        config = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as handle:
                    data = json.load(handle)
                    if isinstance(data, dict):
                        self._merge_dicts(config, data)
                    else:
                        logger.warning(f"Ignoring config {self.config_file}: top level is not an object")
            except (OSError, ValueError) as exc:
                logger.warning(f"Could not load config {self.config_file}: {exc}")

        env_models = os.environ.get(MODELS_DIR_ENV)
        if env_models and env_models.strip():
            config['paths']['models_dir'] = env_models.strip()

        return config

    def _merge_dicts(self, base: Dict[str, Any], updates: Dict[str, Any]):
        """Recursively merge updates into base dictionary"""
        for key, value in updates.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                self._merge_dicts(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'engine.device')"""
        keys = key.split('.')
        value: Any = self._config

        for part in keys:
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return value

    def set(self, key: str, value: Any):
        """Set configuration value using dot notation"""
        keys = key.split('.')
        target = self._config

        for part in keys[:-1]:
            if part not in target or not isinstance(target[part], dict):
                target[part] = {}
            target = target[part]

        target[keys[-1]] = value

    def get_path(self, key: str) -> Optional[Path]:
        """Get a path-valued setting, expanding `~`; None when unset"""
        value = self.get(key)
        if value is None or value == '':
            return None
        return Path(value).expanduser()

    def save(self):
        """Save configuration to file"""
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, 'w', encoding='utf-8') as handle:
                json.dump(self._config, handle, indent=2)
        except OSError as exc:
            logger.warning(f"Could not save config: {exc}")

    def reset(self):
        """Reset configuration to defaults"""
        self._config = copy.deepcopy(self.DEFAULT_CONFIG)
        self.save()

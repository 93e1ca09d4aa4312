"""
Configuration loading for sctool.

Reads an optional YAML file (``sctool.yaml`` in the working directory, or the
path in ``SCTOOL_CONFIG``) and validates it into SctoolConfig. A missing file
yields the defaults the installer has always used.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from .errors import ConfigurationError
from .models import SctoolConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "sctool.yaml"
CONFIG_ENV = "SCTOOL_CONFIG"

M = TypeVar("M", bound=BaseModel)


def default_config_path() -> Path:
    env = os.environ.get(CONFIG_ENV)
    if env:
        return Path(env)
    return Path.cwd() / DEFAULT_CONFIG_NAME


class ConfigurationLoader:
    """YAML configuration file loader and validator."""

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path) if config_path else default_config_path()
        self.config_dir = self.config_path.parent

    def load_configuration(self) -> SctoolConfig:
        """Load and validate the YAML configuration; defaults when the file is absent."""
        if not self.config_path.exists():
            logger.info(f"No configuration at {self.config_path}; using defaults")
            return SctoolConfig()

        logger.info(f"Loading configuration from {self.config_path}")
        try:
            with open(self.config_path, 'r') as f:
                raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e

        raw_config = self._validate_configuration(raw_config)
        try:
            config = SctoolConfig.model_validate(raw_config)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {self.config_path}: {e}") from e

        work_dir = config.install.work_dir
        if work_dir is not None and not work_dir.is_absolute():
            # relative work dirs are relative to the config file
            config.install = with_overrides(config.install, work_dir=(self.config_dir / work_dir).resolve())
        return config

    def _validate_configuration(self, config: Any) -> Dict[str, Any]:
        """Validate top-level structure."""
        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {self.config_path}")
        unknown = set(config) - {"install", "broker"}
        if unknown:
            raise ConfigurationError(f"Unknown configuration sections: {', '.join(sorted(unknown))}")
        return config


def load_config(config_path: Optional[Path] = None) -> SctoolConfig:
    return ConfigurationLoader(config_path).load_configuration()


def with_overrides(model: M, **values: Any) -> M:
    """Return a validated copy of ``model`` with the non-None ``values`` applied."""
    updates = {k: v for k, v in values.items() if v is not None}
    if not updates:
        return model
    try:
        return type(model).model_validate({**model.model_dump(), **updates})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid override {updates}: {e}") from e

"""
Core modules: dependency checks, the process pipeline runner, configuration,
and the install/broker flows built on them.
"""

from .errors import (
    SctoolError, ConfigurationError, MissingBinariesError,
    PipelineError, StageStartError, StageWaitError, TemplateError,
)
from .dependencies import REQUIRED_BINARIES, check_dependencies, resolve_dependencies
from .pipeline import ProcessSpec, PipelineResult, run_pipeline, run_command
from .models import SctoolConfig, InstallConfig, BrokerConfig
from .configuration import ConfigurationLoader, load_config
from .template_engine import TemplateProcessor

# installer and broker import sctool.tools, which imports this package;
# import them from their modules directly.

__all__ = [
    "SctoolError",
    "ConfigurationError",
    "MissingBinariesError",
    "PipelineError",
    "StageStartError",
    "StageWaitError",
    "TemplateError",
    "REQUIRED_BINARIES",
    "check_dependencies",
    "resolve_dependencies",
    "ProcessSpec",
    "PipelineResult",
    "run_pipeline",
    "run_command",
    "SctoolConfig",
    "InstallConfig",
    "BrokerConfig",
    "ConfigurationLoader",
    "load_config",
    "TemplateProcessor",
]

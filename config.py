"""
Armature - Configuration

Centralized configuration for the kernel and the observability stack.
Uses environment variables (and a .env file, if present) with sensible
defaults.
"""
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from observability.logging import LoggingConfig
from observability.metrics import MetricsConfig
from observability.tracing import TracingConfig

# Load environment variables from .env file
load_dotenv()


class Environment(Enum):
    """Well-known kernel environments. Any other name is accepted too."""
    DEV = "dev"
    TEST = "test"
    PROD = "prod"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


@dataclass
class ArmatureConfig:
    """Main configuration class combining all sub-configs."""
    environment: str = field(default_factory=lambda: os.getenv("ARMATURE_ENV", Environment.DEV.value))
    debug: bool = field(default_factory=lambda: _env_flag("ARMATURE_DEBUG"))
    project_dir: Path = field(default_factory=lambda: Path(os.getenv("ARMATURE_PROJECT_DIR", ".")).resolve())

    # Sub-configurations
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == Environment.PROD.value

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to a plain dictionary."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "project_dir": str(self.project_dir),
            "logging": {
                "level": self.logging.level,
                "json_format": self.logging.json_format,
            },
            "tracing": {
                "enabled": self.tracing.enabled,
                "exporter": self.tracing.exporter,
            },
            "metrics": {
                "enabled": self.metrics.enabled,
            },
        }


# Singleton configuration instance
_config: Optional[ArmatureConfig] = None


def get_config() -> ArmatureConfig:
    """Get or create configuration singleton."""
    global _config
    if _config is None:
        _config = ArmatureConfig()
    return _config


def reload_config() -> ArmatureConfig:
    """Re-read the environment, replacing the singleton."""
    global _config
    load_dotenv(override=True)
    _config = ArmatureConfig()
    return _config

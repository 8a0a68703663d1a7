"""
Runtime Configuration

Central configuration for allowlist hashing, admission limits and logging.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

load_dotenv()


ENV_PREFIX = "CLAIMS_"

# 30 days
DEFAULT_MAX_CAMPAIGN_DURATION_S = 30 * 24 * 60 * 60


@dataclass
class HashingConfig:
    """Leaf encoding shared by the tree builder and the verifier."""
    encoding: str = "padded"


@dataclass
class AdmissionConfig:
    """Limits and roles for the admission path."""
    max_proof_depth: int = 32
    max_campaign_duration_s: int = DEFAULT_MAX_CAMPAIGN_DURATION_S
    authorized_submitter: Optional[str] = None


@dataclass
class LoggingConfig:
    """Logging settings applied by the CLI."""
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration.

    Can be loaded from:
    - Environment variables (a .env file is honoured)
    - YAML file
    - Programmatic construction
    """
    hashing: HashingConfig = field(default_factory=HashingConfig)
    admission: AdmissionConfig = field(default_factory=AdmissionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        This is the SINGLE source of truth for all env var reading.

        Supported variables:
        - CLAIMS_LEAF_ENCODING: "padded" or "packed"
        - CLAIMS_MAX_PROOF_DEPTH: maximum accepted proof length
        - CLAIMS_MAX_CAMPAIGN_DURATION: maximum campaign duration in seconds
        - CLAIMS_AUTHORIZED_SUBMITTER: address allowed to submit claims
        - CLAIMS_LOG_LEVEL: log level
        - CLAIMS_LOG_FILE: optional log file path
        """
        overrides: dict[str, Any] = {}

        if os.getenv(f"{ENV_PREFIX}LEAF_ENCODING"):
            overrides.setdefault("hashing", {})["encoding"] = os.getenv(f"{ENV_PREFIX}LEAF_ENCODING")

        if os.getenv(f"{ENV_PREFIX}MAX_PROOF_DEPTH"):
            overrides.setdefault("admission", {})["max_proof_depth"] = int(
                os.getenv(f"{ENV_PREFIX}MAX_PROOF_DEPTH", "32")
            )
        if os.getenv(f"{ENV_PREFIX}MAX_CAMPAIGN_DURATION"):
            overrides.setdefault("admission", {})["max_campaign_duration_s"] = int(
                os.getenv(f"{ENV_PREFIX}MAX_CAMPAIGN_DURATION", str(DEFAULT_MAX_CAMPAIGN_DURATION_S))
            )
        if os.getenv(f"{ENV_PREFIX}AUTHORIZED_SUBMITTER"):
            overrides.setdefault("admission", {})["authorized_submitter"] = os.getenv(
                f"{ENV_PREFIX}AUTHORIZED_SUBMITTER"
            )

        if os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
            overrides.setdefault("logging", {})["level"] = os.getenv(f"{ENV_PREFIX}LOG_LEVEL")
        if os.getenv(f"{ENV_PREFIX}LOG_FILE"):
            overrides.setdefault("logging", {})["file"] = os.getenv(f"{ENV_PREFIX}LOG_FILE")

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """
        Load configuration purely from environment variables.

        Uses defaults for any values not specified in env vars.
        """
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        hashing_data = data.get("hashing", {})
        admission_data = data.get("admission", {})
        logging_data = data.get("logging", {})

        hashing = HashingConfig(**hashing_data) if hashing_data else HashingConfig()
        admission = AdmissionConfig(**admission_data) if admission_data else AdmissionConfig()
        logging_config = LoggingConfig(**logging_data) if logging_data else LoggingConfig()

        return cls(
            hashing=hashing,
            admission=admission,
            logging=logging_config,
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        new_config = copy.deepcopy(self)
        for section, values in overrides.items():
            target = getattr(new_config, section)
            for key, value in values.items():
                setattr(target, key, value)

        return new_config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary."""
        return {
            "hashing": {
                "encoding": self.hashing.encoding,
            },
            "admission": {
                "max_proof_depth": self.admission.max_proof_depth,
                "max_campaign_duration_s": self.admission.max_campaign_duration_s,
                "authorized_submitter": self.admission.authorized_submitter,
            },
            "logging": {
                "level": self.logging.level,
                "file": self.logging.file,
            },
        }


def get_default_config_template() -> str:
    """Get a template YAML configuration file."""
    return """hashing:
  encoding: padded          # padded (abi.encode) or packed (abi.encodePacked)

admission:
  max_proof_depth: 32
  max_campaign_duration_s: 2592000
  authorized_submitter: null  # 0x-address of the relayer

logging:
  level: INFO
  file: null
"""


# Global default configuration
_default_config: Optional[RuntimeConfig] = None


def get_default_config() -> RuntimeConfig:
    """Get the default runtime configuration."""
    global _default_config
    if _default_config is None:
        _default_config = RuntimeConfig.from_env()
    return _default_config


def set_default_config(config: RuntimeConfig) -> None:
    """Set the default runtime configuration."""
    global _default_config
    _default_config = config

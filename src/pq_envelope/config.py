"""
Environment-driven configuration.

Settings are read from the process environment, optionally seeded from a
``.env`` file:

    PQ_ENVELOPE_KEM            ML-KEM-512 | ML-KEM-768 | ML-KEM-1024 (default)
    PQ_ENVELOPE_SIGNATURE      ML-DSA-44 | ML-DSA-65 (default) | ML-DSA-87
    PQ_ENVELOPE_LOG_LEVEL      DEBUG | INFO | WARNING (default) | ERROR | CRITICAL
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

from dotenv import load_dotenv

from .errors import ConfigError
from .primitives import (
    DEFAULT_KEM_ALGORITHM,
    DEFAULT_SIGNATURE_ALGORITHM,
    KEM_ALGORITHMS,
    SIGNATURE_ALGORITHMS,
)

ENV_KEM = "PQ_ENVELOPE_KEM"
ENV_SIGNATURE = "PQ_ENVELOPE_SIGNATURE"
ENV_LOG_LEVEL = "PQ_ENVELOPE_LOG_LEVEL"

DEFAULT_LOG_LEVEL = "WARNING"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    """Resolved configuration."""

    kem_algorithm: str = DEFAULT_KEM_ALGORITHM
    signature_algorithm: str = DEFAULT_SIGNATURE_ALGORITHM
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_mapping(cls, env: Mapping[str, str]) -> Settings:
        """
        Build settings from an environment-like mapping.

        Raises:
            ConfigError: If an algorithm or log level name is not recognised
        """
        kem = env.get(ENV_KEM, DEFAULT_KEM_ALGORITHM).strip().upper()
        signature = env.get(ENV_SIGNATURE, DEFAULT_SIGNATURE_ALGORITHM).strip().upper()
        log_level = env.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).strip().upper()

        if kem not in KEM_ALGORITHMS:
            raise ConfigError(
                f"{ENV_KEM}={kem!r} is not supported; expected one of {', '.join(KEM_ALGORITHMS)}"
            )
        if signature not in SIGNATURE_ALGORITHMS:
            raise ConfigError(
                f"{ENV_SIGNATURE}={signature!r} is not supported; "
                f"expected one of {', '.join(SIGNATURE_ALGORITHMS)}"
            )
        if log_level not in _LOG_LEVELS:
            raise ConfigError(f"{ENV_LOG_LEVEL}={log_level!r} is not a logging level")

        return cls(kem_algorithm=kem, signature_algorithm=signature, log_level=log_level)


def load_settings(env_file: Optional[Union[str, Path]] = None) -> Settings:
    """
    Load settings from the environment.

    Variables already set in the process environment take precedence over
    values from the ``.env`` file.

    Args:
        env_file: Optional path to a .env file (defaults to dotenv's search)
    """
    if env_file is not None:
        load_dotenv(env_file)
    else:
        load_dotenv()
    return Settings.from_mapping(os.environ)


def configure_logging(settings: Settings) -> None:
    """Configure root logging for applications embedding the library."""
    logging.basicConfig(level=getattr(logging, settings.log_level), format=LOG_FORMAT)

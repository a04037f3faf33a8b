"""
Configuration for MP-PCA denoising runs.

Run parameters are validated with pydantic before any image is touched, so
a bad window size or thread count never reaches the threaded loop. Defaults
can also be read from a YAML file, either passed explicitly or from the
per-user configuration file.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, Field, validator

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = 5
MIN_WINDOW_SIZE = 0
MAX_WINDOW_SIZE = 50

CONFIG_ENV_VAR = "MPDENOISE_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".mpdenoise.yaml"


class DenoiseConfig(BaseModel):
    """Validated parameters of a denoising run."""

    window_size: int = Field(DEFAULT_WINDOW_SIZE, description="Side length of the cubic window")
    noise_map: Optional[str] = Field(None, description="Output path of the noise level map")
    nthreads: Optional[int] = Field(None, description="Number of worker threads")

    class Config:
        validate_assignment = True
        extra = 'forbid'

    @validator('window_size')
    def validate_window_size(cls, v):
        """Validate window size is in range and odd."""
        if v < MIN_WINDOW_SIZE or v > MAX_WINDOW_SIZE:
            raise ValueError(
                f"window_size must be in range [{MIN_WINDOW_SIZE}, {MAX_WINDOW_SIZE}], got {v}"
            )
        if v % 2 == 0:
            raise ValueError(f"window_size must be odd, got {v}")
        return v

    @validator('nthreads')
    def validate_nthreads(cls, v):
        """Validate thread count is positive if provided."""
        if v is not None and v <= 0:
            raise ValueError("nthreads must be positive if provided")
        return v

    @property
    def wants_noise_map(self) -> bool:
        return self.noise_map is not None


def load_config(config_path: Union[str, Path]) -> DenoiseConfig:
    """
    Load a denoising configuration from a YAML file.

    Args:
        config_path: Path to YAML file

    Returns:
        Validated DenoiseConfig

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not valid YAML, is not a mapping or fails validation
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            content = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {str(e)}") from e

    if not isinstance(content, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    logger.debug(f"Loaded config from {config_path}: {content}")
    return DenoiseConfig(**content)


def user_config() -> Dict[str, Any]:
    """Read the per-user configuration file, or return an empty dict."""
    path = Path(os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH))
    if not path.exists():
        return {}

    try:
        with open(path, 'r', encoding='utf-8') as f:
            content = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Ignoring unreadable config file {path}: {str(e)}")
        return {}

    if not isinstance(content, dict):
        logger.warning(f"Ignoring config file {path}: expected a mapping")
        return {}
    return content

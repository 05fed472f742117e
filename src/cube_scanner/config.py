"""
CubeScanner Configuration
=========================

This module handles configuration loading for the cube scanner.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    CUBESCAN_STREAM_URL           -> stream.url
    CUBESCAN_MAX_QUEUE_SIZE       -> stream.max_queue_size
    CUBESCAN_HISTORY_LENGTH       -> stabilizer.history_length
    CUBESCAN_QUORUM_POLICY        -> stabilizer.quorum_policy
    CUBESCAN_REJECTION_THRESHOLD  -> classifier.rejection_threshold
    CUBESCAN_PORT                 -> server.port
    CUBESCAN_LOG_LEVEL            -> logging.level
    PORT                          -> server.port (container platforms)

Example:
    from cube_scanner.config import settings

    print(settings.stabilizer.history_length)
    print(settings.classifier.rejection_threshold)
"""

import os
import logging
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ScannerConfig(BaseModel):
    """Scanner identification configuration."""

    name: str = Field(default="cube-scanner", description="Service name")
    version: str = Field(default="v0.1.0", description="Service version")


class SamplerConfig(BaseModel):
    """Grid geometry and patch sampling configuration."""

    grid_divisions: int = Field(
        default=4,
        ge=2,
        description="Frame dimension is divided by this to get the cell step",
    )
    min_patch_half_width: int = Field(
        default=2,
        ge=0,
        description="Lower bound for the patch half-width in pixels",
    )
    patch_divisor: int = Field(
        default=6,
        ge=1,
        description="Patch half-width = min(step_x, step_y) // patch_divisor",
    )


class ClassifierConfig(BaseModel):
    """Palette distance configuration."""

    hue_weight: float = Field(default=2.0, ge=0, description="Weight of circular hue distance")
    saturation_weight: float = Field(default=1.0, ge=0, description="Weight of saturation distance")
    value_weight: float = Field(default=1.0, ge=0, description="Weight of value distance")
    min_value: float = Field(
        default=0.1,
        ge=0,
        le=1.0,
        description="Samples at or below this brightness are Unknown",
    )
    rejection_threshold: float = Field(
        default=0.6,
        gt=0,
        description="Nearest-palette distances above this are Unknown",
    )


class StabilizerConfig(BaseModel):
    """Temporal consensus configuration."""

    history_length: int = Field(
        default=5,
        ge=1,
        description="Number of classified frames kept for voting",
    )
    quorum_policy: Literal["near_unanimous", "unanimous"] = Field(
        default="near_unanimous",
        description="near_unanimous: N-1 of N must agree; unanimous: all N",
    )


class StreamConfig(BaseModel):
    """Frame stream ingestion configuration."""

    url: str = Field(
        default="",
        description="WebSocket URL of a frame stream (empty disables the consumer)",
    )
    reconnect_backoff_ms: int = Field(
        default=500,
        ge=100,
        description="Backoff in milliseconds between reconnect attempts",
    )
    max_reconnect_attempts: int = Field(
        default=0,
        ge=0,
        description="Maximum reconnection attempts (0 = unlimited)",
    )
    max_queue_size: int = Field(
        default=8,
        ge=1,
        description="Maximum size of internal frame buffer",
    )


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for CubeScanner.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    scanner: ScannerConfig = Field(default_factory=ScannerConfig)
    sampler: SamplerConfig = Field(default_factory=SamplerConfig)
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    stabilizer: StabilizerConfig = Field(default_factory=StabilizerConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration

    Raises:
        pydantic.ValidationError: If any value is out of range
    """
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Stream settings
    if env_url := os.environ.get("CUBESCAN_STREAM_URL"):
        config_data.setdefault("stream", {})["url"] = env_url
    if env_queue := os.environ.get("CUBESCAN_MAX_QUEUE_SIZE"):
        config_data.setdefault("stream", {})["max_queue_size"] = int(env_queue)

    # Stabilizer settings
    if env_history := os.environ.get("CUBESCAN_HISTORY_LENGTH"):
        config_data.setdefault("stabilizer", {})["history_length"] = int(env_history)
    if env_policy := os.environ.get("CUBESCAN_QUORUM_POLICY"):
        config_data.setdefault("stabilizer", {})["quorum_policy"] = env_policy

    # Classifier settings
    if env_reject := os.environ.get("CUBESCAN_REJECTION_THRESHOLD"):
        config_data.setdefault("classifier", {})["rejection_threshold"] = float(env_reject)

    # Server settings (container platforms use PORT)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("CUBESCAN_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("CUBESCAN_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

settings = load_config()
setup_logging(settings)

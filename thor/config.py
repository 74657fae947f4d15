"""
THOR Configuration Management

Handles loading and validation of configuration from TOML file.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional
from dataclasses import dataclass, field

import toml

from . import (
    MAX_TTL,
    CONTROL_TTL,
    DEFAULT_DATA_TTL,
    DEFAULT_QUEUE_CAPACITY,
    DEFAULT_NEIGHBOR_TIMEOUT,
)


# Default configuration path
DEFAULT_CONFIG_PATH = Path("/etc/thor/config.toml")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class RoutingConfig:
    """Packet lifecycle configuration."""
    data_ttl: int = DEFAULT_DATA_TTL
    control_ttl: int = CONTROL_TTL
    neighbor_timeout: float = DEFAULT_NEIGHBOR_TIMEOUT  # seconds


@dataclass
class QueueConfig:
    """Store-and-forward queue configuration."""
    capacity: int = DEFAULT_QUEUE_CAPACITY


@dataclass
class Config:
    """
    Complete THOR node configuration.
    """
    # Node identity on the wire
    node_id: int = 0

    # Sub-configurations
    routing: RoutingConfig = field(default_factory=RoutingConfig)
    queue: QueueConfig = field(default_factory=QueueConfig)

    config_path: Path = field(default_factory=lambda: DEFAULT_CONFIG_PATH)

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """
        Load configuration from file.

        Args:
            config_path: Path to config file (default: /etc/thor/config.toml)

        Returns:
            Loaded configuration (defaults if the file does not exist)

        Raises:
            ValueError: If the file is not valid TOML
        """
        path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        config = cls()
        config.config_path = path

        if not path.exists():
            return config

        try:
            data = toml.load(path)
        except toml.TomlDecodeError as e:
            raise ValueError(f"Invalid config file {path}: {e}") from e

        config._apply_dict(data)
        return config

    def _apply_dict(self, data: Dict[str, Any]) -> None:
        """Apply dictionary data to config."""
        # Top-level settings
        if "node_id" in data:
            self.node_id = int(data["node_id"])
        if "log_level" in data:
            self.log_level = str(data["log_level"]).upper()
        if "log_file" in data:
            self.log_file = Path(data["log_file"])

        # Routing config
        if "routing" in data:
            r = data["routing"]
            if "data_ttl" in r:
                self.routing.data_ttl = int(r["data_ttl"])
            if "control_ttl" in r:
                self.routing.control_ttl = int(r["control_ttl"])
            if "neighbor_timeout" in r:
                self.routing.neighbor_timeout = float(r["neighbor_timeout"])

        # Queue config
        if "queue" in data:
            q = data["queue"]
            if "capacity" in q:
                self.queue.capacity = int(q["capacity"])

    def validate(self) -> None:
        """
        Validate configuration.

        Raises:
            ValueError: If configuration is invalid
        """
        if not 0 <= self.node_id <= 0xFFFFFFFF:
            raise ValueError(f"Invalid node ID: {self.node_id}")

        if self.routing.data_ttl < 1 or self.routing.data_ttl > MAX_TTL:
            raise ValueError(f"Invalid data TTL: {self.routing.data_ttl}")

        if self.routing.control_ttl < 1 or self.routing.control_ttl > MAX_TTL:
            raise ValueError(f"Invalid control TTL: {self.routing.control_ttl}")

        if self.routing.neighbor_timeout <= 0:
            raise ValueError(f"Invalid neighbor timeout: {self.routing.neighbor_timeout}")

        if self.queue.capacity < 1:
            raise ValueError(f"Invalid queue capacity: {self.queue.capacity}")

        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")

    def configure_logging(self) -> None:
        """Set up root logging from log_level and log_file."""
        kwargs: Dict[str, Any] = {
            "level": getattr(logging, self.log_level),
            "format": LOG_FORMAT,
        }
        if self.log_file:
            kwargs["filename"] = str(self.log_file)

        logging.basicConfig(**kwargs)

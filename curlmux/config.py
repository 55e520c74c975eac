"""
Configuration Management

Handles loading configuration from environment variables and config files.
"""

import os
from pathlib import Path
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional
import json

import pycurl
from dotenv import load_dotenv

from .constants import DEFAULT_LOOP_TIMEOUT, DEFAULT_LOOP_WAIT_TIME
from .request import Request

ENV_PREFIX = 'CURLMUX_'


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def _coerce(field_type: type, value: Any) -> Any:
    """Convert a raw env or JSON value to a config field's type."""
    if field_type is bool:
        return _parse_bool(value)
    return field_type(value)


@dataclass
class MultiConfig:
    """
    Multiplexor Configuration.

    Configuration priority (highest to lowest):
    1. Environment variables (CURLMUX_*)
    2. Config file (config.json)
    3. Default values
    """
    # Loop pacing (seconds)
    loop_wait_time: float = DEFAULT_LOOP_WAIT_TIME
    loop_timeout: float = DEFAULT_LOOP_TIMEOUT

    # Engine limits (0 = libcurl default)
    max_host_connections: int = 0
    max_total_connections: int = 0
    multiplex: bool = True

    # Per-transfer defaults (seconds)
    timeout: float = 30.0
    connect_timeout: float = 10.0
    follow_redirects: bool = True
    user_agent: str = 'curlmux/1.0'

    # Logging
    log_level: str = 'INFO'

    @classmethod
    def env_overrides(cls) -> Dict[str, Any]:
        """
        Values of the CURLMUX_* variables that are actually set.

        Each field maps to ``CURLMUX_<FIELD NAME>``, e.g. ``loop_wait_time``
        to ``CURLMUX_LOOP_WAIT_TIME``.
        """
        load_dotenv()

        overrides: Dict[str, Any] = {}
        for item in fields(cls):
            raw = os.getenv(ENV_PREFIX + item.name.upper())
            if raw is not None:
                overrides[item.name] = _coerce(item.type, raw)

        return overrides

    @classmethod
    def from_env(cls) -> 'MultiConfig':
        """Load configuration from environment variables."""
        config = cls()
        for name, value in cls.env_overrides().items():
            setattr(config, name, value)
        return config

    @classmethod
    def from_file(cls, path: Path) -> 'MultiConfig':
        """Load configuration from a JSON file."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = json.load(f)

        config = cls()
        for item in fields(cls):
            if item.name in data:
                setattr(config, item.name, _coerce(item.type, data[item.name]))

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def save(self, path: Path):
        """Save configuration to a JSON file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def engine_options(self) -> Dict[int, Any]:
        """Flat multi option map for ``Multi(options)``."""
        options: Dict[int, Any] = {
            pycurl.M_PIPELINING: pycurl.PIPE_MULTIPLEX if self.multiplex else pycurl.PIPE_NOTHING,
        }
        if self.max_host_connections > 0:
            options[pycurl.M_MAX_HOST_CONNECTIONS] = self.max_host_connections
        if self.max_total_connections > 0:
            options[pycurl.M_MAX_TOTAL_CONNECTIONS] = self.max_total_connections
        return options

    def apply(self, multi) -> None:
        """Copy the loop pacing settings onto a Multiplexor."""
        multi.loop_wait_time = self.loop_wait_time
        multi.loop_timeout = self.loop_timeout

    def make_request(self, url: str, **kwargs) -> Request:
        """A Request carrying this configuration's per-transfer defaults."""
        kwargs.setdefault('timeout', self.timeout)
        kwargs.setdefault('connect_timeout', self.connect_timeout)
        kwargs.setdefault('follow_redirects', self.follow_redirects)
        kwargs.setdefault('user_agent', self.user_agent)
        return Request(url=url, **kwargs)


def load_config(config_path: Optional[Path] = None) -> MultiConfig:
    """
    Load configuration from file and environment.

    Environment variables override file settings.
    """
    # Start with defaults
    config = MultiConfig()

    # Load from file if provided
    if config_path and config_path.exists():
        config = MultiConfig.from_file(config_path)

    # Override with every variable that is set, even if it equals the default
    for name, value in MultiConfig.env_overrides().items():
        setattr(config, name, value)

    return config


# Example config file template
EXAMPLE_CONFIG = """
{
  "loop_wait_time": 0.001,
  "loop_timeout": 1.0,
  "max_host_connections": 6,
  "max_total_connections": 0,
  "multiplex": true,
  "timeout": 30.0,
  "connect_timeout": 10.0,
  "follow_redirects": true,
  "user_agent": "curlmux/1.0",
  "log_level": "INFO"
}
"""

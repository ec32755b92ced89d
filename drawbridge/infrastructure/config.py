"""
Configuration Module

Architectural Intent:
- Centralized configuration loading from a JSON file
- Provides typed access to all drawbridge settings
- Falls back to sensible defaults when config file is absent
- Environment variables override file-based config

Design Decisions:
- Config is a frozen dataclass for immutability after load
- Nested config sections map to sub-dataclasses
- Built once at the process boundary and passed into adapter
  constructors; nothing below the composition root reads the environment
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional
import dataclasses
import json
import logging
import os

from drawbridge.domain.exceptions import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AWSConfig:
    """AWS provider configuration."""
    region: str = ""
    profile: str = ""
    tag_key: str = "drawbridge"
    dns_region: str = "us-east-1"


@dataclass(frozen=True)
class LifecycleConfig:
    """Instance convergence loop configuration."""
    poll_interval: float = 1.0
    timeout: int = 0  # seconds; 0 waits forever


@dataclass(frozen=True)
class DNSConfig:
    """DNS record configuration."""
    ttl: int = 60


@dataclass(frozen=True)
class CheckIPConfig:
    """Public address lookup used for the "self" source."""
    url: str = "http://checkip.amazonaws.com/"
    timeout: int = 10


@dataclass(frozen=True)
class TelemetryConfig:
    """OpenTelemetry configuration."""
    endpoint: str = ""
    insecure: bool = False


@dataclass(frozen=True)
class DrawbridgeConfig:
    """Root configuration for the drawbridge application."""
    aws: AWSConfig = field(default_factory=AWSConfig)
    lifecycle: LifecycleConfig = field(default_factory=LifecycleConfig)
    dns: DNSConfig = field(default_factory=DNSConfig)
    checkip: CheckIPConfig = field(default_factory=CheckIPConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
    provider: str = "aws"
    tag: str = ""
    log_level: str = "WARNING"


_SECTIONS = {
    "aws": AWSConfig,
    "lifecycle": LifecycleConfig,
    "dns": DNSConfig,
    "checkip": CheckIPConfig,
    "telemetry": TelemetryConfig,
}


def _env_override(
    data: dict, prefix: str = "DRAWBRIDGE", environ: Optional[Mapping[str, str]] = None
) -> dict:
    """Override config values with environment variables.

    Environment variables follow the pattern DRAWBRIDGE_SECTION_KEY.
    For example: DRAWBRIDGE_AWS_REGION=eu-west-1, DRAWBRIDGE_LIFECYCLE_TIMEOUT=300.
    Top-level keys use DRAWBRIDGE_KEY, e.g. DRAWBRIDGE_TAG=bastion.
    """
    environ = os.environ if environ is None else environ
    for key, value in environ.items():
        if not key.startswith(f"{prefix}_"):
            continue
        name = key[len(prefix) + 1:].lower()
        parts = name.split("_", 1)
        if len(parts) == 2 and parts[0] in _SECTIONS:
            section, field_name = parts
            if not isinstance(data.get(section), dict):
                data[section] = {}
            data[section][field_name] = value
        else:
            data[name] = value
    return data


def _parse_config_file(path: Path) -> dict:
    """Parse a JSON config file. Returns empty dict on failure."""
    try:
        with open(path) as f:
            return json.load(f)
    except FileNotFoundError:
        logger.debug("Config file not found: %s", path)
        return {}
    except json.JSONDecodeError as e:
        logger.warning("Invalid config file %s: %s", path, e)
        return {}


def _build_sub_config(cls, data: dict):
    """Build a sub-config dataclass from a dict, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}

    # Convert string numbers to int/float/bool
    for f in dataclasses.fields(cls):
        if f.name in filtered and isinstance(filtered[f.name], str):
            try:
                if f.type == "int":
                    filtered[f.name] = int(filtered[f.name])
                elif f.type == "float":
                    filtered[f.name] = float(filtered[f.name])
                elif f.type == "bool":
                    filtered[f.name] = filtered[f.name].lower() in ("true", "1", "yes")
            except ValueError:
                raise ConfigError(
                    f"invalid value for {cls.__name__}.{f.name}: {filtered[f.name]!r}"
                ) from None

    return cls(**filtered)


def load_config(
    path: Optional[str] = None,
    env_prefix: str = "DRAWBRIDGE",
    environ: Optional[Mapping[str, str]] = None,
) -> DrawbridgeConfig:
    """Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (DRAWBRIDGE_SECTION_KEY)
    2. Config file values
    3. Defaults

    The AWS region falls back to AWS_DEFAULT_REGION when not configured.

    Args:
        path: Path to config file (JSON). Defaults to drawbridge.json in CWD.
        env_prefix: Environment variable prefix. Defaults to DRAWBRIDGE.
        environ: Environment mapping. Defaults to os.environ.
    """
    environ = os.environ if environ is None else environ
    config_path = Path(path) if path else Path("drawbridge.json")
    data = _parse_config_file(config_path)
    data = _env_override(data, env_prefix, environ)

    aws_data = dict(data.get("aws", {}))
    if not aws_data.get("region") and environ.get("AWS_DEFAULT_REGION"):
        aws_data["region"] = environ["AWS_DEFAULT_REGION"]

    return DrawbridgeConfig(
        aws=_build_sub_config(AWSConfig, aws_data),
        lifecycle=_build_sub_config(LifecycleConfig, data.get("lifecycle", {})),
        dns=_build_sub_config(DNSConfig, data.get("dns", {})),
        checkip=_build_sub_config(CheckIPConfig, data.get("checkip", {})),
        telemetry=_build_sub_config(TelemetryConfig, data.get("telemetry", {})),
        provider=data.get("provider", "aws"),
        tag=data.get("tag", ""),
        log_level=data.get("log_level", "WARNING"),
    )

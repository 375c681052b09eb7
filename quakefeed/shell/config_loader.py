"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (LoaderConfig, ProfileSettings, RelayEndpoint) are defined in
quakefeed/core/config.py to avoid information leakage between layers.
"""

import logging
import os
from dataclasses import fields, replace
from pathlib import Path
from typing import Any

import yaml

from quakefeed.core.admission import AdmissionTier
from quakefeed.core.config import (
    LoaderConfig,
    ProfileSettings,
    RelayEndpoint,
    validate_config,
)
from quakefeed.core.geo import ReferencePoint
from quakefeed.exceptions import ConfigError


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "config/config.yaml"

# Environment variable -> (LoaderConfig field, converter)
ENV_OVERRIDES: dict[str, tuple[str, type]] = {
    "QUAKEFEED_TTL_MS": ("ttl_ms", int),
    "QUAKEFEED_MOBILE_BREAKPOINT_PX": ("mobile_breakpoint_px", int),
    "QUAKEFEED_MAGNITUDE_FLOOR": ("magnitude_floor", float),
}


def _parse_relay(data: dict[str, Any]) -> RelayEndpoint:
    """Parse a relay endpoint from config data."""
    return RelayEndpoint(
        name=data["name"],
        template=data["template"],
        encode=bool(data.get("encode", True)),
        json_field=data.get("json_field"),
    )


def _parse_tier(data: dict[str, Any]) -> AdmissionTier:
    """Parse an admission tier from config data."""
    return AdmissionTier(
        min_magnitude=float(data["min_magnitude"]),
        max_distance_km=float(data["max_distance_km"]),
        inclusive=bool(data.get("inclusive", True)),
    )


def _parse_reference_point(data: dict[str, Any]) -> ReferencePoint:
    """Parse a reference point from config data."""
    return ReferencePoint(
        name=data.get("name", "reference"),
        latitude=float(data["latitude"]),
        longitude=float(data["longitude"]),
    )


def _parse_profile(data: dict[str, Any], base: ProfileSettings) -> ProfileSettings:
    """Overlay profile settings from config data onto defaults."""
    known = {f.name for f in fields(ProfileSettings)}
    updates = {k: int(v) for k, v in data.items() if k in known}

    unknown = set(data) - known
    if unknown:
        logger.warning("Ignoring unknown profile settings: %s", ", ".join(sorted(unknown)))

    return replace(base, **updates)


def load_config_from_dict(data: dict[str, Any]) -> LoaderConfig:
    """Load configuration from a dictionary.

    Missing keys keep their defaults.

    Args:
        data: Configuration dictionary

    Returns:
        Parsed LoaderConfig object

    Raises:
        ConfigError: If a section is malformed
    """
    defaults = LoaderConfig()

    try:
        relays = defaults.relays
        if "relays" in data:
            relays = tuple(_parse_relay(r) for r in data["relays"])

        tiers = defaults.tiers
        if "tiers" in data:
            tiers = tuple(_parse_tier(t) for t in data["tiers"])

        reference_point = defaults.reference_point
        if "reference_point" in data:
            reference_point = _parse_reference_point(data["reference_point"])

        priority_countries = defaults.priority_countries
        if "priority_countries" in data:
            priority_countries = tuple(str(c).lower() for c in data["priority_countries"])

        return LoaderConfig(
            ttl_ms=int(data.get("ttl_ms", defaults.ttl_ms)),
            mobile_breakpoint_px=int(data.get("mobile_breakpoint_px", defaults.mobile_breakpoint_px)),
            magnitude_floor=float(data.get("magnitude_floor", defaults.magnitude_floor)),
            tmd_url=data.get("tmd_url", defaults.tmd_url),
            usgs_url=data.get("usgs_url", defaults.usgs_url),
            relays=relays,
            priority_countries=priority_countries,
            tiers=tiers,
            reference_point=reference_point,
            mobile=_parse_profile(data.get("mobile") or {}, defaults.mobile),
            desktop=_parse_profile(data.get("desktop") or {}, defaults.desktop),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def apply_env_overrides(config: LoaderConfig) -> LoaderConfig:
    """Override scalar settings from environment variables.

    Unparseable values are logged and ignored.

    Args:
        config: Base configuration

    Returns:
        New LoaderConfig with overrides applied
    """
    updates: dict[str, Any] = {}

    for env_var, (field_name, convert) in ENV_OVERRIDES.items():
        raw = os.environ.get(env_var)
        if raw is None or raw == "":
            continue
        try:
            updates[field_name] = convert(raw)
        except ValueError:
            logger.warning("Ignoring invalid %s=%r", env_var, raw)

    if not updates:
        return config

    return replace(config, **updates)


def load_config(config_path: str | Path | None = None) -> LoaderConfig:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed LoaderConfig object, with environment overrides applied

    Raises:
        ConfigError: If the file content is malformed or fails validation
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return apply_env_overrides(LoaderConfig())

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return apply_env_overrides(LoaderConfig())

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    config = apply_env_overrides(load_config_from_dict(data))

    result = validate_config(config)
    for warning in result.warnings:
        logger.warning("Config warning (%s): %s", warning.field, warning.message)
    if not result.valid:
        problems = "; ".join(f"{e.field}: {e.message}" for e in result.critical_errors)
        raise ConfigError(f"Invalid configuration in {path}: {problems}")

    logger.info(
        "Loaded config: %d relays, TTL %d ms, breakpoint %d px",
        len(config.relays),
        config.ttl_ms,
        config.mobile_breakpoint_px,
    )

    return config


def load_config_from_env() -> LoaderConfig:
    """Load configuration from defaults plus environment variables only.

    Environment variables:
        QUAKEFEED_TTL_MS: Cache lifetime in milliseconds
        QUAKEFEED_MOBILE_BREAKPOINT_PX: Constrained-client viewport cutoff
        QUAKEFEED_MAGNITUDE_FLOOR: Exclusive magnitude floor

    Returns:
        LoaderConfig object from environment
    """
    return apply_env_overrides(LoaderConfig())

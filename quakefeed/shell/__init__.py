"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- Relay client (HTTP through fallback relay endpoints)
- Configuration loading (YAML files and environment)

Keep this layer thin and simple. All business logic should be in core.
"""

from quakefeed.shell.relay_client import RelayClient
from quakefeed.shell.config_loader import load_config, load_config_from_dict

__all__ = [
    "RelayClient",
    "load_config",
    "load_config_from_dict",
]

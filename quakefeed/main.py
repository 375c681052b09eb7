"""Cloud Function Entry Point.

This module provides the entry point for Google Cloud Functions.
It's a thin wrapper that loads configuration and serves the normalized
earthquake list as JSON.
"""

import asyncio
import json
import logging
import os
import threading
from collections.abc import Coroutine
from typing import Any

import functions_framework
from flask import Request

from quakefeed.core.config import ClientProfile, LoaderConfig
from quakefeed.loader import DEFAULT_VIEWPORT_WIDTH, EarthquakeDataLoader, normalize_source
from quakefeed.shell.config_loader import load_config


# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# One loader per client profile, reused across warm invocations
_loaders: dict[ClientProfile, EarthquakeDataLoader] = {}
_config: LoaderConfig | None = None
_lock = threading.Lock()

# Request threads hand their loads to this one loop, so loader state is
# only ever touched from the loop's thread
_loop: asyncio.AbstractEventLoop | None = None


def _get_loop() -> asyncio.AbstractEventLoop:
    """Start the shared event loop thread on first use."""
    global _loop
    with _lock:
        if _loop is None:
            _loop = asyncio.new_event_loop()
            threading.Thread(
                target=_loop.run_forever,
                name="quakefeed-loop",
                daemon=True,
            ).start()
        return _loop


def run_on_loop(coro: Coroutine[Any, Any, Any]) -> Any:
    """Run a coroutine on the shared event loop and wait for its result.

    Safe to call from many request threads at once. Returns as soon as the
    coroutine finishes; relay attempts that lost a deadline keep running in
    the loop's executor without holding up the caller.
    """
    return asyncio.run_coroutine_threadsafe(coro, _get_loop()).result()


def _get_config() -> LoaderConfig:
    """Load configuration once per process."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def get_loader(viewport_width: int) -> EarthquakeDataLoader:
    """Get the shared loader for a viewport width's client profile."""
    with _lock:
        config = _get_config()
        profile = config.profile_for(viewport_width)
        loader = _loaders.get(profile)
        if loader is None:
            loader = EarthquakeDataLoader(config, viewport_width=viewport_width)
            _loaders[profile] = loader
        return loader


def _parse_viewport_width(value: str | None) -> int:
    if not value:
        return DEFAULT_VIEWPORT_WIDTH
    try:
        return max(int(value), 0)
    except ValueError:
        return DEFAULT_VIEWPORT_WIDTH


@functions_framework.http
def earthquake_feed(request: Request) -> tuple[dict[str, Any], int]:
    """HTTP Cloud Function entry point.

    Query parameters:
        source: "tmd", "usgs" or "combined" (default)
        viewport_width: Client viewport width in pixels

    Args:
        request: Flask request object

    Returns:
        Tuple of (response dict, HTTP status code)
    """
    source = normalize_source(request.args.get("source"))
    viewport_width = _parse_viewport_width(request.args.get("viewport_width"))

    logger.info("Serving %s earthquakes (viewport %d px)", source, viewport_width)

    try:
        loader = get_loader(viewport_width)
        records = run_on_loop(loader.load_data(source))

        return {
            "status": "success",
            "source": source,
            "count": len(records),
            "earthquakes": [r.to_dict() for r in records],
        }, 200

    except Exception as e:
        logger.exception("Unexpected error serving earthquake feed")
        return {
            "status": "error",
            "message": str(e),
        }, 500


# For local testing
if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Print recent earthquakes near Thailand")
    parser.add_argument("--source", default="combined", choices=["tmd", "usgs", "combined"])
    parser.add_argument("--viewport-width", type=int, default=DEFAULT_VIEWPORT_WIDTH)
    parser.add_argument("--config", help="Path to YAML config file")
    args = parser.parse_args()

    loader = EarthquakeDataLoader(load_config(args.config), viewport_width=args.viewport_width)
    records = asyncio.run(loader.load_data(args.source))

    print(json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False))

"""Relay Client - Imperative Shell.

Fetches an upstream resource through an ordered list of relay endpoints,
returning the first successful body. All HTTP I/O is contained here.
"""

import asyncio
import json
import logging
import time

import requests

from quakefeed.core.config import DEFAULT_RELAYS, RelayEndpoint
from quakefeed.exceptions import ProxyExhaustedError


logger = logging.getLogger(__name__)


# Per-attempt timeout when the caller gives no deadline (seconds)
DEFAULT_TIMEOUT = 10

USER_AGENT = "quakefeed/1.0 (+https://earthquake.tmd.go.th)"


class RelayClient:
    """Client that fetches URLs through fallback relay endpoints.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        relays: tuple[RelayEndpoint, ...] = DEFAULT_RELAYS,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize relay client.

        Args:
            relays: Relay endpoints, tried in order
            timeout: Per-attempt timeout in seconds
            session: HTTP session (created if not provided)
        """
        self.relays = relays
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)

    def _unwrap(self, relay: RelayEndpoint, response: requests.Response) -> str:
        """Extract the upstream body from a relay response.

        Raises:
            ValueError: If an enveloped relay response is malformed
        """
        if relay.json_field is None:
            return response.text

        envelope = json.loads(response.text)
        contents = envelope.get(relay.json_field) if isinstance(envelope, dict) else None
        if not isinstance(contents, str):
            raise ValueError(f"Relay envelope has no '{relay.json_field}' string")
        return contents

    def fetch_via_relay(
        self,
        relay: RelayEndpoint,
        target_url: str,
        timeout: float | None = None,
    ) -> str:
        """Fetch a target URL through one relay.

        This method performs HTTP I/O.

        Args:
            relay: Relay endpoint to use
            target_url: Upstream URL
            timeout: Request timeout in seconds (client default if None)

        Returns:
            Upstream body text

        Raises:
            requests.RequestException: If the request fails or the
                status is not 2xx
            ValueError: If an enveloped response is malformed
        """
        url = relay.build_url(target_url)
        response = self.session.get(url, timeout=timeout or self.timeout)

        if not 200 <= response.status_code < 300:
            raise requests.HTTPError(
                f"HTTP {response.status_code} from {relay.name}",
                response=response,
            )

        return self._unwrap(relay, response)

    async def fetch(self, target_url: str, timeout: float | None = None) -> str:
        """Fetch a target URL without blocking the event loop.

        Relay attempts run one at a time in a worker thread. If the awaiting
        task is cancelled, no further relay is tried; the attempt already in
        progress ends by its own request timeout.

        Args:
            target_url: Upstream URL
            timeout: Overall budget in seconds (optional)

        Returns:
            Body from the first relay that succeeded

        Raises:
            ProxyExhaustedError: If every relay failed
        """
        deadline = time.monotonic() + timeout if timeout is not None else None
        failures: list[tuple[str, str]] = []

        for relay in self.relays:
            attempt_timeout = self.timeout
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    failures.append((relay.name, "deadline passed"))
                    break
                attempt_timeout = min(attempt_timeout, remaining)

            logger.debug("Trying relay %s for %s", relay.name, target_url)

            try:
                body = await asyncio.to_thread(
                    self.fetch_via_relay, relay, target_url, attempt_timeout,
                )
            except requests.Timeout:
                logger.warning("Relay %s timed out for %s", relay.name, target_url)
                failures.append((relay.name, "timed out"))
                continue
            except (requests.RequestException, ValueError) as e:
                logger.warning("Relay %s failed for %s: %s", relay.name, target_url, e)
                failures.append((relay.name, str(e)))
                continue

            logger.info("Fetched %s via relay %s", target_url, relay.name)
            return body

        raise ProxyExhaustedError(target_url, failures)

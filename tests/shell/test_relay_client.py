"""Tests for the Relay Client module.

Uses the `responses` library to mock HTTP requests.
"""

import asyncio

import pytest
import requests
import responses

from quakefeed.core.config import RelayEndpoint
from quakefeed.exceptions import ProxyExhaustedError
from quakefeed.shell.relay_client import RelayClient


TARGET = "https://feeds.example.com/rss.xml"

FIRST = RelayEndpoint(name="first", template="https://first.test/raw?url={url}")
SECOND = RelayEndpoint(name="second", template="https://second.test/{url}", encode=False)
ENVELOPE = RelayEndpoint(
    name="envelope",
    template="https://envelope.test/get?url={url}",
    json_field="contents",
)


def fetch(client: RelayClient, timeout: float | None = None) -> str:
    return asyncio.run(client.fetch(TARGET, timeout=timeout))


class TestFetchViaRelay:
    """Tests for single-relay requests."""

    @responses.activate
    def test_returns_body(self):
        responses.add(responses.GET, FIRST.build_url(TARGET), body="<rss/>", status=200)

        client = RelayClient(relays=(FIRST,))

        assert client.fetch_via_relay(FIRST, TARGET) == "<rss/>"

    @responses.activate
    def test_non_2xx_raises_http_error(self):
        responses.add(responses.GET, FIRST.build_url(TARGET), status=503)

        client = RelayClient(relays=(FIRST,))

        with pytest.raises(requests.HTTPError, match="503"):
            client.fetch_via_relay(FIRST, TARGET)

    @responses.activate
    def test_sends_user_agent(self):
        responses.add(responses.GET, FIRST.build_url(TARGET), body="ok")

        RelayClient(relays=(FIRST,)).fetch_via_relay(FIRST, TARGET)

        assert "quakefeed" in responses.calls[0].request.headers["User-Agent"]

    @responses.activate
    def test_unwraps_json_envelope(self):
        responses.add(
            responses.GET,
            ENVELOPE.build_url(TARGET),
            json={"contents": "<rss/>", "status": {"http_code": 200}},
        )

        client = RelayClient(relays=(ENVELOPE,))

        assert client.fetch_via_relay(ENVELOPE, TARGET) == "<rss/>"

    @responses.activate
    def test_malformed_envelope_raises(self):
        responses.add(responses.GET, ENVELOPE.build_url(TARGET), json={"status": "error"})

        client = RelayClient(relays=(ENVELOPE,))

        with pytest.raises(ValueError, match="contents"):
            client.fetch_via_relay(ENVELOPE, TARGET)


class TestFetch:
    """Tests for the ordered relay fallback."""

    @responses.activate
    def test_first_success_wins(self):
        responses.add(responses.GET, FIRST.build_url(TARGET), body="from first")
        responses.add(responses.GET, SECOND.build_url(TARGET), body="from second")

        body = fetch(RelayClient(relays=(FIRST, SECOND)))

        assert body == "from first"
        assert len(responses.calls) == 1

    @responses.activate
    def test_falls_back_after_server_error(self):
        responses.add(responses.GET, FIRST.build_url(TARGET), status=500)
        responses.add(responses.GET, SECOND.build_url(TARGET), body="from second")

        body = fetch(RelayClient(relays=(FIRST, SECOND)))

        assert body == "from second"
        assert len(responses.calls) == 2

    @responses.activate
    def test_falls_back_after_timeout(self):
        responses.add(responses.GET, FIRST.build_url(TARGET), body=requests.Timeout())
        responses.add(responses.GET, SECOND.build_url(TARGET), body="from second")

        assert fetch(RelayClient(relays=(FIRST, SECOND))) == "from second"

    @responses.activate
    def test_falls_back_after_connection_error(self):
        # Nothing registered for FIRST, so responses refuses the connection
        responses.add(responses.GET, SECOND.build_url(TARGET), body="from second")

        assert fetch(RelayClient(relays=(FIRST, SECOND))) == "from second"

    @responses.activate
    def test_all_relays_failing_raises(self):
        responses.add(responses.GET, FIRST.build_url(TARGET), status=502)
        responses.add(responses.GET, SECOND.build_url(TARGET), body=requests.Timeout())

        with pytest.raises(ProxyExhaustedError) as exc_info:
            fetch(RelayClient(relays=(FIRST, SECOND)))

        error = exc_info.value
        assert error.target_url == TARGET
        assert [name for name, _ in error.failures] == ["first", "second"]
        assert error.failures[1][1] == "timed out"

    def test_empty_relay_list_raises(self):
        with pytest.raises(ProxyExhaustedError):
            fetch(RelayClient(relays=()))

    @responses.activate
    def test_expired_budget_stops_trying(self):
        responses.add(responses.GET, FIRST.build_url(TARGET), body="never")

        with pytest.raises(ProxyExhaustedError) as exc_info:
            fetch(RelayClient(relays=(FIRST,)), timeout=0)

        assert exc_info.value.failures == [("first", "deadline passed")]
        assert len(responses.calls) == 0

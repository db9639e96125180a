from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import pytest
import requests
import responses
from responses import matchers

from aw_watcher_lastfm.lastfm_client import (
    API_ROOT,
    USER_AGENT,
    LastFMAPIError,
    LastFMClient,
    LastFMNetworkError,
    LastFMParseError,
)


@pytest.fixture()
def client() -> LastFMClient:
    return LastFMClient("someone", "k3y")


def test_live_and_history_urls(client: LastFMClient) -> None:
    live = parse_qs(urlparse(client.recent_tracks_url(limit=1)).query)
    assert live == {
        "method": ["user.getrecenttracks"],
        "user": ["someone"],
        "api_key": ["k3y"],
        "format": ["json"],
        "limit": ["1"],
    }

    history = parse_qs(urlparse(client.recent_tracks_url(limit=200, from_ts=1700000000)).query)
    assert history["limit"] == ["200"]
    assert history["from"] == ["1700000000"]


@responses.activate
def test_fetch_returns_document_with_user_agent_and_timeout(client: LastFMClient) -> None:
    doc = {"recenttracks": {"track": []}}
    responses.add(
        responses.GET,
        API_ROOT,
        json=doc,
        match=[
            matchers.query_param_matcher({"limit": "1", "user": "someone"}, strict_match=False),
            matchers.header_matcher({"User-Agent": USER_AGENT}),
            matchers.request_kwargs_matcher({"timeout": 5}),
        ],
    )

    assert client.get_recent_tracks(limit=1) == doc
    assert USER_AGENT.startswith("aw-watcher-lastfm/")


@responses.activate
def test_connection_failure_is_network_error(client: LastFMClient) -> None:
    responses.add(responses.GET, API_ROOT, body=requests.ConnectionError("no route"))
    with pytest.raises(LastFMNetworkError):
        client.get_recent_tracks()


@responses.activate
def test_timeout_is_network_error(client: LastFMClient) -> None:
    responses.add(responses.GET, API_ROOT, body=requests.Timeout("slow"))
    with pytest.raises(LastFMNetworkError):
        client.get_recent_tracks()


@responses.activate
def test_invalid_json_is_parse_error(client: LastFMClient) -> None:
    responses.add(responses.GET, API_ROOT, body="<html>oops</html>", status=200)
    with pytest.raises(LastFMParseError):
        client.get_recent_tracks()


@responses.activate
def test_non_object_json_is_parse_error(client: LastFMClient) -> None:
    responses.add(responses.GET, API_ROOT, json=[1, 2, 3])
    with pytest.raises(LastFMParseError):
        client.get_recent_tracks()


@responses.activate
def test_error_field_is_api_error_even_with_4xx(client: LastFMClient) -> None:
    responses.add(responses.GET, API_ROOT, json={"error": 10, "message": "Invalid API key"}, status=403)
    with pytest.raises(LastFMAPIError) as exc:
        client.get_recent_tracks()
    assert exc.value.code == 10
    assert exc.value.message == "Invalid API key"
    assert "Invalid API key" in str(exc.value)


@responses.activate
def test_error_without_message(client: LastFMClient) -> None:
    responses.add(responses.GET, API_ROOT, json={"error": 8})
    with pytest.raises(LastFMAPIError, match="unknown error"):
        client.get_recent_tracks()


@responses.activate
def test_server_error_without_json_is_network_error(client: LastFMClient) -> None:
    responses.add(responses.GET, API_ROOT, body="Bad Gateway", status=502)
    with pytest.raises(LastFMNetworkError, match="502"):
        client.get_recent_tracks()


def test_user_agent_carries_package_version() -> None:
    import aw_watcher_lastfm

    assert USER_AGENT == f"aw-watcher-lastfm/{aw_watcher_lastfm.__version__}"

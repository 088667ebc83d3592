from __future__ import annotations

import httpx
import pytest
from landing_build.core.errors import NetworkError
from landing_build.stages.avatar.fetch import fetch, make_http_client

URL = "https://github.com/bmarwell.png"
CDN = "https://avatars.githubusercontent.com/u/1?v=4"


def _client(handler) -> httpx.Client:
    return make_http_client(transport=httpx.MockTransport(handler))


def test_follows_redirect_to_payload() -> None:
    body = b"\x89PNG" + bytes(49_996)
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        if str(request.url) == URL:
            return httpx.Response(302, headers={"Location": CDN})
        return httpx.Response(200, content=body)

    with _client(handler) as client:
        raw = fetch(URL, client=client)

    assert seen == [URL, CDN]
    assert raw.data == body
    assert raw.size == 50_000
    assert raw.url == URL
    assert raw.final_url == CDN


def test_non_2xx_raises_network_error_with_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="nope")

    with _client(handler) as client:
        with pytest.raises(NetworkError) as ei:
            fetch(URL, client=client)

    assert ei.value.status_code == 404
    assert "404" in str(ei.value)


def test_redirect_loop_is_bounded() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(302, headers={"Location": URL})

    client = make_http_client(
        transport=httpx.MockTransport(handler), max_redirects=3
    )
    with client:
        with pytest.raises(NetworkError, match="redirect"):
            fetch(URL, client=client)

    assert 1 < calls <= 4


def test_transport_failure_raises_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with _client(handler) as client:
        with pytest.raises(NetworkError) as ei:
            fetch(URL, client=client)

    assert ei.value.status_code is None
    assert ei.value.url == URL

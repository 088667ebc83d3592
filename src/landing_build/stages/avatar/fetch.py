from __future__ import annotations

import httpx
import structlog
from landing_build.core.errors import NetworkError

from .models import RawAsset

log = structlog.get_logger(__name__)

DEFAULT_MAX_REDIRECTS = 5


def make_http_client(
    *,
    timeout: float = 30.0,
    max_redirects: int = DEFAULT_MAX_REDIRECTS,
    user_agent: str = "landing-build/0.1",
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    t = httpx.Timeout(connect=5.0, read=timeout, write=timeout, pool=5.0)

    def _log_redirect(resp: httpx.Response) -> None:
        if resp.is_redirect:
            log.info(
                "avatar.fetch.redirect",
                status_code=resp.status_code,
                location=resp.headers.get("Location"),
            )

    return httpx.Client(
        timeout=t,
        follow_redirects=True,
        max_redirects=max_redirects,
        headers={"User-Agent": user_agent},
        transport=transport,
        event_hooks={"response": [_log_redirect]},
    )


def fetch(url: str, *, client: httpx.Client | None = None) -> RawAsset:
    """
    GET `url`, following redirects, and return the body of the terminal 2xx
    response. Every other outcome raises NetworkError. No retries.
    """
    owned = client is None
    c = client or make_http_client()
    try:
        try:
            resp = c.get(url)
        except httpx.TooManyRedirects as exc:
            raise NetworkError(f"Too many redirects for {url}: {exc}", url=url) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"Request failed for {url}: {exc}", url=url) from exc

        if not resp.is_success:
            raise NetworkError(
                f"HTTP {resp.status_code}: {resp.reason_phrase}",
                url=str(resp.url),
                status_code=resp.status_code,
            )

        asset = RawAsset(url=url, final_url=str(resp.url), data=resp.content)
        log.info(
            "avatar.fetch.done",
            url=url,
            final_url=asset.final_url,
            redirects=len(resp.history),
            bytes=asset.size,
        )
        return asset
    finally:
        if owned:
            c.close()

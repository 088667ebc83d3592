from __future__ import annotations

from typing import Any

from landing_build.core.errors import NetworkError
from landing_build.pipeline.context import RunContext
from landing_build.pipeline.events import EventType

from .fetch import make_http_client
from .runner import build_avatar


def stage_avatar(ctx: RunContext) -> dict[str, Any]:
    """
    Local avatar with derived renditions. Never fails the build: on any
    avatar error the page keeps loading the remote image.
    """
    s = ctx.settings
    layout = ctx.layout
    log = ctx.stage_logger("avatar")

    client = make_http_client(timeout=s.fetch_timeout_s, max_redirects=s.max_redirects)
    try:
        res = build_avatar(
            url=s.avatar_url,
            dist_dir=layout.dist,
            document=layout.index_html(),
            site_url=s.site_url,
            client=client,
        )
    except Exception as exc:
        status = exc.status_code if isinstance(exc, NetworkError) else None
        ctx.emit(
            EventType.AVATAR_FALLBACK,
            stage="avatar",
            url=s.avatar_url,
            status_code=status,
            error=str(exc),
        )
        log.warning("avatar.fallback", url=s.avatar_url, error=str(exc))
        return {
            "fallback": True,
            "_warnings": [
                f"Avatar unavailable ({exc}); keeping external URL {s.avatar_url}"
            ],
        }
    finally:
        client.close()

    ctx.emit(
        EventType.AVATAR_FETCHED,
        stage="avatar",
        url=res.fetched.url,
        final_url=res.fetched.final_url,
        bytes=res.fetched.size,
    )
    ctx.emit(
        EventType.AVATAR_OPTIMIZED,
        stage="avatar",
        file=res.master.filename,
        original_bytes=res.optimize.original_bytes,
        bytes=res.master.size,
        kept=res.optimize.kept,
    )
    ctx.emit(
        EventType.AVATAR_VARIANTS,
        stage="avatar",
        alternate=res.variants.alternate.filename if res.variants.alternate else None,
        attempts=[a.quality for a in res.variants.attempts],
        sized=[v.filename for v in res.variants.sized],
    )
    ctx.emit(
        EventType.AVATAR_REWRITTEN,
        stage="avatar",
        replacements=res.rewrite.replacements,
        contexts=list(res.rewrite.contexts),
    )

    paths = [res.master.path]
    if res.variants.alternate is not None:
        paths.append(res.variants.alternate.path)
    paths.extend(v.path for v in res.variants.sized)
    built = [ctx.record_file(p, stage="avatar") for p in paths]

    warnings: list[str] = []
    if res.variants.alternate is None:
        warnings.append(
            f"No WebP quality level beat {res.master.size} bytes; serving {res.master.filename} only"
        )

    width, height = res.dimensions or (None, None)
    return {
        "fallback": False,
        "master": res.master.filename,
        "alternate": res.variants.alternate.filename if res.variants.alternate else None,
        "width": width,
        "height": height,
        "_metrics": {
            "original_bytes": res.optimize.original_bytes,
            "master_bytes": res.master.size,
            "variants": len(res.variants.sized),
            "replacements": res.rewrite.replacements,
        },
        "_warnings": warnings,
        "_files": built,
    }

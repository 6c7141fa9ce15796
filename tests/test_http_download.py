import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from loguru import logger

from debsync.download import DownloadManager
from debsync.exceptions import DownloadChecksumError, DownloadNetworkError

from tests.conftest import digests_of

PAYLOAD = bytes(range(256)) * 96


def make_app(hits):
    async def ok(request):
        hits["ok"] += 1
        return web.Response(body=PAYLOAD)

    async def broken(request):
        hits["broken"] += 1
        return web.Response(status=500, text="boom")

    app = web.Application()
    app.router.add_get("/ok.deb", ok)
    app.router.add_get("/broken.deb", broken)
    return app


@pytest.mark.asyncio
async def test_streaming_download_with_progress(tmp_path):
    hits = {"ok": 0, "broken": 0}
    progress = []
    messages = []
    handler_id = logger.add(messages.append, level="INFO", format="{message}")
    dest = tmp_path / "debs" / "ok.deb"
    d = digests_of(PAYLOAD)

    try:
        async with TestServer(make_app(hits)) as server:
            manager = DownloadManager(
                progress_callback=lambda name, percent: progress.append((name, percent))
            )
            ok = await manager.download_file(
                str(server.make_url("/ok.deb")), str(dest), d["md5"], d["sha1"], d["sha256"]
            )
            await manager.stop()
    finally:
        logger.remove(handler_id)

    assert ok
    assert dest.read_bytes() == PAYLOAD
    assert not (tmp_path / "debs" / "ok.deb.part").exists()
    assert manager.get_stats().bytes_downloaded == len(PAYLOAD)
    assert progress[-1] == ("ok.deb", 100.0)
    assert any("[进度] ok.deb: 100.0%" in str(m) for m in messages)


@pytest.mark.asyncio
async def test_server_error_retries_then_raises(tmp_path):
    hits = {"ok": 0, "broken": 0}
    dest = tmp_path / "broken.deb"
    dest.write_bytes(b"cached")

    async with TestServer(make_app(hits)) as server:
        manager = DownloadManager(max_retries=2, retry_delay=0)
        with pytest.raises(DownloadNetworkError) as exc_info:
            await manager.download_file(str(server.make_url("/broken.deb")), str(dest))
        await manager.stop()

    assert hits["broken"] == 3
    assert exc_info.value.code == "E301"
    assert exc_info.value.context["status"] == 500
    assert manager.get_failed() == [str(dest)]
    # 失败不影响已有的缓存文件
    assert dest.read_bytes() == b"cached"
    assert not (tmp_path / "broken.deb.part").exists()


@pytest.mark.asyncio
async def test_digest_mismatch_keeps_cached_file(tmp_path):
    hits = {"ok": 0, "broken": 0}
    dest = tmp_path / "ok.deb"
    dest.write_bytes(b"cached")

    async with TestServer(make_app(hits)) as server:
        manager = DownloadManager(max_retries=1, retry_delay=0)
        with pytest.raises(DownloadChecksumError):
            await manager.download_file(
                str(server.make_url("/ok.deb")), str(dest), md5="0" * 32
            )
        await manager.stop()

    assert hits["ok"] == 2
    assert dest.read_bytes() == b"cached"
    assert not (tmp_path / "ok.deb.part").exists()
    assert manager.get_stats().failed == 1


@pytest.mark.asyncio
async def test_successful_download_replaces_cached_file(tmp_path):
    hits = {"ok": 0, "broken": 0}
    dest = tmp_path / "ok.deb"
    dest.write_bytes(b"stale")

    async with TestServer(make_app(hits)) as server:
        manager = DownloadManager()
        await manager.download_file(str(server.make_url("/ok.deb")), str(dest))
        await manager.stop()

    assert dest.read_bytes() == PAYLOAD

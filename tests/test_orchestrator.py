import bz2
import os

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from debsync.models import SyncConfig
from debsync.orchestrator import MirrorOrchestrator

from tests.conftest import digests_of


def make_config(repo, mirror, **overrides):
    data = {
        "repository": {"url": f"file://{repo}/", "index": "Packages.bz2"},
        "output": {"root_dir": str(mirror), "packages_dir": "debs"},
        "max_retries": 0,
    }
    data.update(overrides)
    return SyncConfig.from_dict(data)


@pytest.mark.asyncio
async def test_sync_fetches_missing_and_skips_cached(file_repo, tmp_path):
    mirror = tmp_path / "mirror"
    (mirror / "debs").mkdir(parents=True)
    (mirror / "debs" / "b.deb").write_bytes(b"xyz")

    report = await MirrorOrchestrator(make_config(file_repo, mirror)).run()

    assert report.total == 3
    assert report.skipped == 1
    assert report.queued == 1
    assert report.downloaded == 1
    assert report.failed == 0
    assert report.unplannable == 1
    assert (mirror / "debs" / "a.deb").read_bytes() == b"hello"
    assert (mirror / "debs" / "b.deb").read_bytes() == b"xyz"

    run_dir = mirror / report.run_id
    assert (run_dir / "Packages.bz2").is_file()
    assert (run_dir / "Packages").is_file()


@pytest.mark.asyncio
async def test_verify_content_refetches_same_size_file(file_repo, tmp_path):
    mirror = tmp_path / "mirror"
    (mirror / "debs").mkdir(parents=True)
    (mirror / "debs" / "b.deb").write_bytes(b"xyz")

    config = make_config(file_repo, mirror, verify={"trust_size": False})
    report = await MirrorOrchestrator(config).run()

    assert report.skipped == 0
    assert report.downloaded == 2
    assert (mirror / "debs" / "b.deb").read_bytes() == b"abc"


@pytest.mark.asyncio
async def test_dry_run_downloads_nothing(file_repo, tmp_path):
    mirror = tmp_path / "mirror"

    report = await MirrorOrchestrator(make_config(file_repo, mirror), dry_run=True).run()

    assert report.queued == 2
    assert report.downloaded == 0
    assert not os.path.exists(mirror / "debs" / "a.deb")
    assert os.path.isdir(mirror / "debs")


@pytest.mark.asyncio
async def test_duplicate_filenames_are_counted(file_repo, tmp_path):
    a = digests_of(b"hello")
    stanza = f"Filename: ./debs/a.deb\nSize: 5\nMD5sum: {a['md5']}\n\n"
    index = "Package: a\n" + stanza + "Package: a-again\n" + stanza
    (file_repo / "Packages.bz2").write_bytes(bz2.compress(index.encode("utf-8")))
    mirror = tmp_path / "mirror"

    report = await MirrorOrchestrator(make_config(file_repo, mirror)).run()

    assert report.total == 2
    assert report.queued == 1
    assert report.duplicates == 1
    assert report.total == (
        report.skipped + report.queued + report.duplicates + report.unplannable
    )
    assert report.downloaded == 1


@pytest.mark.asyncio
async def test_http_sync_reports_progress_and_bytes(file_repo, tmp_path):
    app = web.Application()
    app.router.add_static("/repo", str(file_repo))
    mirror = tmp_path / "mirror"
    progress = []

    async with TestServer(app) as server:
        config = SyncConfig.from_dict(
            {
                "repository": {"url": str(server.make_url("/repo/"))},
                "output": {"root_dir": str(mirror)},
                "max_retries": 0,
            }
        )
        orchestrator = MirrorOrchestrator(
            config, progress_callback=lambda name, percent: progress.append(name)
        )
        report = await orchestrator.run()

    assert report.downloaded == 2
    assert report.failed == 0
    assert (mirror / "debs" / "a.deb").read_bytes() == b"hello"
    assert (mirror / "debs" / "b.deb").read_bytes() == b"abc"
    assert {"Packages.bz2", "a.deb", "b.deb"} <= set(progress)
    assert orchestrator.progress["a.deb"] == 100.0
    assert report.bytes_downloaded >= len(b"hello") + len(b"abc")

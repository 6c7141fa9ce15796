import bz2
import hashlib

import pytest


def digests_of(data: bytes) -> dict:
    return {
        "md5": hashlib.md5(data).hexdigest(),
        "sha1": hashlib.sha1(data).hexdigest(),
        "sha256": hashlib.sha256(data).hexdigest(),
    }


@pytest.fixture
def deb_file(tmp_path):
    """104748 字节的测试软件包"""
    data = bytes(i % 251 for i in range(104748))
    path = tmp_path / "1279.deb"
    path.write_bytes(data)
    return path, digests_of(data)


@pytest.fixture
def file_repo(tmp_path):
    """以 file:// 提供的本地仓库"""
    repo = tmp_path / "repo"
    (repo / "debs").mkdir(parents=True)
    fresh = b"hello"
    cached = b"abc"
    (repo / "debs" / "a.deb").write_bytes(fresh)
    (repo / "debs" / "b.deb").write_bytes(cached)
    a = digests_of(fresh)
    b = digests_of(cached)
    index = (
        "Package: a\n"
        "Filename: ./debs/a.deb\n"
        f"Size: {len(fresh)}\n"
        f"MD5sum: {a['md5']}\n"
        f"SHA1: {a['sha1']}\n"
        f"SHA256: {a['sha256']}\n"
        "\n"
        "Package: b\n"
        "Filename: ./debs/b.deb\n"
        f"Size: {len(cached)}\n"
        f"MD5sum: {b['md5']}\n"
        "\n"
        "Package: c\n"
        "Version: 1.0\n"
        "\n"
    )
    (repo / "Packages.bz2").write_bytes(bz2.compress(index.encode("utf-8")))
    return repo

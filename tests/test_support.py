import bz2
import gzip
import lzma
import os
from datetime import datetime, timezone

import pytest

from debsync.exceptions import DecompressError, DebSyncError, IndexNotFoundError
from debsync.index.decompress import decompress_index
from debsync.utils import artifact_url, local_artifact_path, run_id

TEXT = b"Package: foo\nSize: 1\n\n"


def test_run_id_for_given_moment():
    moment = datetime(2020, 3, 31, 5, 14, 10, tzinfo=timezone.utc)

    assert run_id(moment) == "20200331051410"


def test_run_id_now_has_fourteen_digits():
    value = run_id(timezone="UTC")

    assert len(value) == 14
    assert value.isdigit()


def test_artifact_url():
    assert artifact_url("https://repo.kenhtao.net/", "debs/1.deb") == (
        "https://repo.kenhtao.net/debs/1.deb"
    )
    assert artifact_url("https://repo.kenhtao.net", "/debs/1.deb") == (
        "https://repo.kenhtao.net/debs/1.deb"
    )


def test_local_artifact_path(tmp_path):
    root = str(tmp_path)

    assert local_artifact_path(root, "debs/1.deb") == os.path.join(root, "debs", "1.deb")
    assert local_artifact_path(root, "debs/../1.deb") == os.path.join(root, "1.deb")
    assert local_artifact_path(root, "../1.deb") is None
    assert local_artifact_path(root, "/etc/passwd") is None
    assert local_artifact_path(root, "") is None


@pytest.mark.parametrize(
    "suffix, compress",
    [(".bz2", bz2.compress), (".gz", gzip.compress), (".xz", lzma.compress)],
)
def test_decompress_index(tmp_path, suffix, compress):
    archive = tmp_path / f"Packages{suffix}"
    archive.write_bytes(compress(TEXT))

    out = decompress_index(str(archive), str(tmp_path / "run"))

    assert out == os.path.join(str(tmp_path / "run"), "Packages")
    with open(out, "rb") as f:
        assert f.read() == TEXT


def test_decompress_plain_copy(tmp_path):
    archive = tmp_path / "Packages.txt"
    archive.write_bytes(TEXT)

    out = decompress_index(str(archive), str(tmp_path / "run"))

    with open(out, "rb") as f:
        assert f.read() == TEXT


def test_decompress_corrupt_archive(tmp_path):
    archive = tmp_path / "Packages.bz2"
    archive.write_bytes(b"not bzip2 data")

    with pytest.raises(DecompressError):
        decompress_index(str(archive), str(tmp_path))
    assert not (tmp_path / "Packages").exists()


def test_decompress_missing_archive(tmp_path):
    with pytest.raises(IndexNotFoundError):
        decompress_index(str(tmp_path / "Packages.bz2"), str(tmp_path))


def test_error_serialization():
    error = IndexNotFoundError("索引文件不存在", context={"path": "/x"})

    assert isinstance(error, DebSyncError)
    assert str(error) == "[E201] 索引文件不存在"
    assert error.to_dict() == {
        "error": True,
        "code": "E201",
        "message": "索引文件不存在",
        "context": {"path": "/x"},
        "type": "IndexNotFoundError",
    }

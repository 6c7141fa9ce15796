"""
索引解压

按后缀把 Packages.bz2 / .gz / .xz 解压为纯文本 Packages 文件。
"""

import bz2
import gzip
import lzma
import os
import shutil

from loguru import logger

from debsync.exceptions import DecompressError, IndexNotFoundError

_OPENERS = {
    ".bz2": bz2.open,
    ".gz": gzip.open,
    ".xz": lzma.open,
    ".lzma": lzma.open,
}


def decompress_index(archive_path: str, dest_dir: str, name: str = "Packages") -> str:
    """
    解压索引文件

    Args:
        archive_path: 下载得到的压缩索引
        dest_dir: 输出目录
        name: 输出文件名

    Returns:
        解压后的文件路径
    """
    if not os.path.isfile(archive_path):
        raise IndexNotFoundError(
            f"压缩索引不存在: {archive_path}", context={"path": archive_path}
        )

    os.makedirs(dest_dir, exist_ok=True)
    dest_path = os.path.join(dest_dir, name)
    suffix = os.path.splitext(archive_path)[1].lower()
    opener = _OPENERS.get(suffix, open)

    try:
        with opener(archive_path, "rb") as src, open(dest_path, "wb") as dst:
            shutil.copyfileobj(src, dst, 1024 * 1024)
    except (OSError, EOFError, lzma.LZMAError) as e:
        if os.path.exists(dest_path):
            os.remove(dest_path)
        raise DecompressError(
            f"解压索引失败: {os.path.basename(archive_path)}",
            context={"path": archive_path, "error": str(e)},
        )

    logger.info(f"[解压] {archive_path} -> {dest_path}")
    return dest_path

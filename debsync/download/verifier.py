"""
文件校验器

单次流式读取同时计算 MD5、SHA1、SHA256，并按宽松或严格策略比对声明的摘要。
"""

import hashlib
import os
from typing import Optional

import aiofiles

from debsync.exceptions import DigestTargetNotFoundError
from debsync.models.index import DigestSet, MatchPolicy


def _normalize(digest: Optional[str]) -> Optional[str]:
    if digest is None:
        return None
    digest = digest.strip().lower()
    return digest or None


class FileVerifier:
    """文件校验器"""

    CHUNK_SIZE = 64 * 1024

    @staticmethod
    async def compute_digests(file_path: str) -> DigestSet:
        """
        计算文件的三种摘要

        每个数据块同时送入三个独立的哈希对象，整个文件只读取一遍。

        Raises:
            DigestTargetNotFoundError: 文件不存在
        """
        if not os.path.isfile(file_path):
            raise DigestTargetNotFoundError(
                f"文件不存在: {file_path}", context={"path": str(file_path)}
            )

        md5 = hashlib.md5()
        sha1 = hashlib.sha1()
        sha256 = hashlib.sha256()
        async with aiofiles.open(file_path, "rb") as f:
            while True:
                data = await f.read(FileVerifier.CHUNK_SIZE)
                if not data:
                    break
                md5.update(data)
                sha1.update(data)
                sha256.update(data)

        return DigestSet(
            md5=md5.hexdigest(),
            sha1=sha1.hexdigest(),
            sha256=sha256.hexdigest(),
        )

    @staticmethod
    def matches(
        actual: DigestSet,
        md5: Optional[str] = None,
        sha1: Optional[str] = None,
        sha256: Optional[str] = None,
        policy: MatchPolicy = MatchPolicy.LENIENT,
    ) -> bool:
        """
        比对实际摘要与声明摘要

        缺失的声明摘要永远不算匹配。
        LENIENT: 任一摘要匹配即为 True
        STRICT: 三种摘要都存在且全部匹配才为 True
        """
        results = [
            expected is not None and expected == value
            for expected, value in (
                (_normalize(md5), actual.md5),
                (_normalize(sha1), actual.sha1),
                (_normalize(sha256), actual.sha256),
            )
        ]
        if policy is MatchPolicy.STRICT:
            return all(results)
        return any(results)

    @staticmethod
    async def check_file_sum(
        file_path: str,
        md5: Optional[str] = None,
        sha1: Optional[str] = None,
        sha256: Optional[str] = None,
        policy: MatchPolicy = MatchPolicy.LENIENT,
    ) -> bool:
        """
        校验文件摘要

        Returns:
            是否匹配（文件不存在时返回 False）
        """
        if not FileVerifier.exists(file_path):
            return False
        try:
            actual = await FileVerifier.compute_digests(file_path)
        except DigestTargetNotFoundError:
            # 文件在检查之后被移除
            return False
        return FileVerifier.matches(actual, md5, sha1, sha256, policy)

    @staticmethod
    def exists(file_path: str) -> bool:
        """检查文件是否存在"""
        return os.path.isfile(file_path)

    @staticmethod
    def get_size(file_path: str) -> int:
        """获取文件大小，不存在时为 0"""
        try:
            return os.path.getsize(file_path)
        except OSError:
            return 0

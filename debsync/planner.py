"""
同步规划器

对每条记录先比对文件大小，再比对摘要，决定跳过还是重新下载。
"""

import asyncio
from typing import Iterable, List, Optional

from loguru import logger

from debsync.download.verifier import FileVerifier
from debsync.models.index import (
    MatchPolicy,
    PackageRecord,
    PlannedRecord,
    SyncDecision,
)
from debsync.utils import local_artifact_path


class SyncPlanner:
    """同步规划器"""

    def __init__(
        self,
        policy: MatchPolicy = MatchPolicy.LENIENT,
        trust_size: bool = True,
        verifier: Optional[FileVerifier] = None,
    ):
        """
        Args:
            policy: 摘要比对策略
            trust_size: 大小一致时直接跳过，不计算摘要
            verifier: 文件校验器
        """
        self.policy = policy
        self.trust_size = trust_size
        self.verifier = verifier or FileVerifier()

    async def plan(
        self, record: PackageRecord, local_path: str
    ) -> Optional[SyncDecision]:
        """
        规划单条记录

        Returns:
            SKIP / FETCH；缺少 Filename 或 Size 时返回 None（无需处理）
        """
        expected_size = record.size
        if record.filename is None or expected_size is None:
            return None

        # 大小比较只需要 stat，摘要需要读取整个文件
        if self.trust_size and self.verifier.get_size(local_path) == expected_size:
            return SyncDecision.SKIP

        if await self.verifier.check_file_sum(
            local_path,
            record.md5sum,
            record.sha1,
            record.sha256,
            self.policy,
        ):
            return SyncDecision.SKIP

        return SyncDecision.FETCH

    async def plan_index(
        self,
        records: Iterable[PackageRecord],
        root_dir: str,
        max_concurrent: int = 5,
    ) -> List[PlannedRecord]:
        """
        并发规划整个索引，结果保持索引顺序

        Args:
            records: 解析得到的记录
            root_dir: 本地镜像根目录
            max_concurrent: 同时计算摘要的文件数
        """
        semaphore = asyncio.Semaphore(max_concurrent)

        async def _plan_one(record: PackageRecord) -> PlannedRecord:
            relative_path = record.relative_path
            if relative_path is None:
                return PlannedRecord(record, None, None)

            local_path = local_artifact_path(root_dir, relative_path)
            if local_path is None:
                logger.warning(f"[规划] 忽略不安全的路径: {record.filename}")
                return PlannedRecord(record, None, None)

            async with semaphore:
                decision = await self.plan(record, local_path)
            return PlannedRecord(record, local_path, decision)

        results = await asyncio.gather(
            *(_plan_one(r) for r in records), return_exceptions=True
        )
        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            # 所有任务都已结束，抛出第一个读取错误
            logger.error(f"[规划] {len(errors)} 个本地文件无法读取")
            raise errors[0]
        return results

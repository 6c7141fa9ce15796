"""
主协调器

下载并解析索引，规划每个软件包，再把需要下载的文件交给下载管理器。
"""

import asyncio
import os
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import aiohttp
from loguru import logger

from debsync.download import DownloadManager
from debsync.index import decompress_index, load_index
from debsync.models import PlannedRecord, SyncConfig, SyncDecision
from debsync.planner import SyncPlanner
from debsync.utils import artifact_url, run_id


@dataclass
class SyncReport:
    """
    一次同步的统计

    total == skipped + queued + duplicates + unplannable
    """

    run_id: str
    total: int = 0
    skipped: int = 0
    queued: int = 0
    duplicates: int = 0
    downloaded: int = 0
    failed: int = 0
    unplannable: int = 0
    bytes_downloaded: int = 0


class MirrorOrchestrator:
    """镜像同步协调器"""

    def __init__(
        self,
        config: SyncConfig,
        session: Optional[aiohttp.ClientSession] = None,
        dry_run: bool = False,
        progress_callback: Optional[Callable[[str, float], None]] = None,
    ):
        self.config = config
        self.dry_run = dry_run
        self.progress: Dict[str, float] = {}
        self._progress_callback = progress_callback
        self.planner = SyncPlanner(
            policy=config.verify.policy,
            trust_size=config.verify.trust_size,
        )
        self.download_manager = DownloadManager(
            max_concurrent=config.max_concurrent,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
            session=session,
            progress_callback=self._on_download_progress,
            policy=config.verify.policy,
        )

    def _on_download_progress(self, filename: str, percent: float):
        """下载进度回调"""
        self.progress[filename] = percent
        if self._progress_callback:
            self._progress_callback(filename, percent)

    def _prepare_dirs(self, current_run: str) -> str:
        """创建软件包目录与本次运行目录"""
        output = self.config.output
        for path in (
            os.path.join(output.root_dir, output.packages_dir),
            os.path.join(output.root_dir, current_run),
        ):
            if not os.path.isdir(path):
                os.makedirs(path, exist_ok=True)
                logger.info(f"[目录] 已创建: {path}")
        return os.path.join(output.root_dir, current_run)

    async def fetch_index(self, run_dir: str) -> str:
        """下载并解压索引，返回 Packages 文件路径"""
        repository = self.config.repository
        archive_path = os.path.join(run_dir, os.path.basename(repository.index))
        await self.download_manager.download_file(repository.index_url, archive_path)
        logger.info(f"[索引] 已下载: {archive_path}")
        return await asyncio.to_thread(decompress_index, archive_path, run_dir)

    async def plan(self, packages_path: str) -> List[PlannedRecord]:
        """解析索引并规划全部记录"""
        records = await load_index(
            packages_path, flush_trailing=self.config.index.flush_trailing_stanza
        )
        return await self.planner.plan_index(
            records,
            self.config.output.root_dir,
            max_concurrent=self.config.max_concurrent,
        )

    async def run(self) -> SyncReport:
        """运行完整的同步流程"""
        current_run = run_id(timezone=self.config.output.timezone)
        report = SyncReport(run_id=current_run)
        logger.info(f"开始同步 {self.config.repository.url} (运行编号 {current_run})")

        try:
            run_dir = self._prepare_dirs(current_run)
            packages_path = await self.fetch_index(run_dir)
            baseline = self.download_manager.get_stats().completed
            planned = await self.plan(packages_path)
            report.total = len(planned)

            for item in planned:
                if item.decision is None:
                    report.unplannable += 1
                    continue
                if item.decision is SyncDecision.SKIP:
                    report.skipped += 1
                    logger.debug(f"[跳过] 已存在: {item.local_path}")
                    continue

                url = artifact_url(
                    self.config.repository.url, item.record.relative_path
                )
                if await self.download_manager.enqueue(
                    url,
                    item.local_path,
                    item.record.md5sum,
                    item.record.sha1,
                    item.record.sha256,
                ):
                    report.queued += 1
                else:
                    report.duplicates += 1
                    logger.warning(f"[重复] Filename 重复出现: {item.record.filename}")

            if self.dry_run:
                logger.info(f"[干运行模式] 需要下载 {report.queued} 个文件")
            elif report.queued:
                logger.info(f"启动下载 ({self.config.max_concurrent}并发)...")
                await self.download_manager.run()

            stats = self.download_manager.get_stats()
            report.downloaded = stats.completed - baseline
            report.failed = stats.failed
            report.bytes_downloaded = stats.bytes_downloaded

            logger.success(
                f"同步完成! 跳过: {report.skipped}, 下载: {report.downloaded} "
                f"({report.bytes_downloaded / (1024 * 1024):.2f} MB), "
                f"失败: {report.failed}, 重复: {report.duplicates}, "
                f"无法处理: {report.unplannable}"
            )
            return report
        finally:
            await self.download_manager.stop()

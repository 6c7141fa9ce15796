"""
下载管理器

负责索引与软件包的下载：并发控制、失败重试、进度日志、下载后校验。
文件先写入 "<目标>.part"，校验通过后才替换目标文件。
"""

import asyncio
import os
import shutil
from dataclasses import dataclass
from typing import Callable, Optional

import aiofiles
import aiohttp
from loguru import logger

from debsync.download.queue import DownloadQueue, DownloadTask
from debsync.download.verifier import FileVerifier
from debsync.exceptions import (
    DownloadChecksumError,
    DownloadError,
    DownloadFileError,
    DownloadNetworkError,
)
from debsync.models.index import MatchPolicy

PART_SUFFIX = ".part"


@dataclass
class DownloadStats:
    """下载统计"""

    total: int = 0
    completed: int = 0
    failed: int = 0
    bytes_downloaded: int = 0


class DownloadManager:
    """下载管理器"""

    def __init__(
        self,
        max_concurrent: int = 5,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        session: Optional[aiohttp.ClientSession] = None,
        progress_callback: Optional[Callable[[str, float], None]] = None,
        policy: MatchPolicy = MatchPolicy.LENIENT,
    ):
        self.max_concurrent = max_concurrent
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.policy = policy
        self.queue = DownloadQueue()
        self.verifier = FileVerifier()
        self.stats = DownloadStats()
        self._session = session
        self._owned_session = session is None
        self._progress_callback = progress_callback
        self._workers: list[asyncio.Task] = []

        self._failed_downloads: list[str] = []

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def enqueue(
        self,
        url: str,
        dest_path: str,
        md5: Optional[str] = None,
        sha1: Optional[str] = None,
        sha256: Optional[str] = None,
    ) -> bool:
        """添加下载任务，目标路径重复时返回 False"""
        added = await self.queue.put(
            DownloadTask(url=url, dest_path=dest_path, md5=md5, sha1=sha1, sha256=sha256)
        )
        if added:
            self.stats.total += 1
            logger.debug(f"[队列] '{dest_path}' 已加入下载队列")
        return added

    async def download_file(
        self,
        url: str,
        dest_path: str,
        md5: Optional[str] = None,
        sha1: Optional[str] = None,
        sha256: Optional[str] = None,
    ) -> bool:
        """
        下载单个文件

        给出任一摘要时，下载完成后按 self.policy 校验。
        失败时保留原有的目标文件，只清理 .part 文件。

        Returns:
            True 如果下载成功
        """
        name = os.path.basename(dest_path)
        part_path = dest_path + PART_SUFFIX
        dest_dir = os.path.dirname(dest_path)
        if dest_dir:
            os.makedirs(dest_dir, exist_ok=True)

        if url.startswith("file://"):
            try:
                await self._copy_local_file(url[7:], part_path)
                await self._verify(part_path, name, md5, sha1, sha256)
            except DownloadError as e:
                self._discard(part_path)
                self._record_failure(dest_path, e)
                raise
            os.replace(part_path, dest_path)
            self.stats.completed += 1
            return True

        logger.info(f"[开始] 下载: {url}")

        for attempt in range(self.max_retries + 1):
            try:
                await self._fetch(url, part_path, name, attempt)
                await self._verify(part_path, name, md5, sha1, sha256)
                os.replace(part_path, dest_path)

                self.stats.completed += 1
                logger.success(f"[完成] '{name}' 下载完成")
                return True

            except Exception as e:
                self._discard(part_path)

                if attempt < self.max_retries:
                    delay = self.retry_delay * (2**attempt)
                    logger.warning(
                        f"[重试] 下载 '{name}' 失败 (第 {attempt + 1} 次): {e}. "
                        f"{delay:.1f}s 后重试..."
                    )
                    await asyncio.sleep(delay)
                else:
                    self._record_failure(dest_path, e)

                    if isinstance(e, DownloadError):
                        raise
                    raise DownloadError(
                        f"下载失败: {name}", context={"url": url, "error": str(e)}
                    )

        return False

    async def _fetch(self, url: str, part_path: str, name: str, attempt: int):
        """流式下载远程文件"""
        async with self.session.get(url) as response:
            if response.status != 200:
                raise DownloadNetworkError(
                    f"HTTP {response.status}",
                    context={"url": url, "status": response.status},
                )

            total_size = int(response.headers.get("Content-Length", 0))
            if attempt == 0:
                logger.info(f"[信息] 文件大小: {total_size / (1024 * 1024):.2f} MB")

            async with aiofiles.open(part_path, "wb") as f:
                downloaded = 0
                last_percent = 0.0

                async for chunk in response.content.iter_chunked(8192):
                    await f.write(chunk)
                    downloaded += len(chunk)
                    self.stats.bytes_downloaded += len(chunk)

                    if total_size > 0:
                        percent = (downloaded / total_size) * 100
                        if percent - last_percent >= 5 or downloaded == total_size:
                            if self._progress_callback:
                                self._progress_callback(name, percent)
                            logger.info(f"[进度] {name}: {percent:.1f}%")
                            last_percent = percent

    async def _verify(
        self,
        path: str,
        name: str,
        md5: Optional[str],
        sha1: Optional[str],
        sha256: Optional[str],
    ):
        if not (md5 or sha1 or sha256):
            return
        if not await self.verifier.check_file_sum(path, md5, sha1, sha256, self.policy):
            raise DownloadChecksumError(
                f"摘要校验失败: {name}",
                context={
                    "file": path,
                    "md5": md5,
                    "sha1": sha1,
                    "sha256": sha256,
                    "policy": self.policy.value,
                },
            )

    async def _copy_local_file(self, src_path: str, dest_path: str):
        """复制本地文件"""
        logger.info(f"[复制] 本地文件: {os.path.basename(src_path)}")
        try:
            shutil.copyfile(src_path, dest_path)
        except OSError as e:
            raise DownloadFileError(
                "复制文件失败", context={"src": src_path, "error": str(e)}
            )
        size = os.path.getsize(dest_path)
        self.stats.bytes_downloaded += size
        if self._progress_callback:
            self._progress_callback(os.path.basename(src_path), 100.0)

    @staticmethod
    def _discard(part_path: str):
        if os.path.exists(part_path):
            try:
                os.remove(part_path)
            except OSError:
                pass

    def _record_failure(self, dest_path: str, error: Exception):
        self.stats.failed += 1
        self._failed_downloads.append(dest_path)
        logger.error(f"[错误] 下载 '{os.path.basename(dest_path)}' 最终失败: {error}")

    async def _worker(self):
        """下载工作协程"""
        while True:
            try:
                task = await self.queue.get()

                try:
                    await self.download_file(
                        task.url,
                        task.dest_path,
                        task.md5,
                        task.sha1,
                        task.sha256,
                    )
                finally:
                    self.queue.task_done()

            except asyncio.CancelledError:
                break
            except (DownloadError, OSError) as e:
                # 单个任务失败不影响其他任务
                logger.debug(f"[队列] 任务失败: {e}")

    async def start(self):
        """启动下载器"""
        logger.info(
            f"[启动] 下载器启动，最大并发数: {self.max_concurrent}，"
            f"待下载: {self.queue.qsize()}"
        )
        self._workers = [
            asyncio.create_task(self._worker(), name=f"downloader-{i}")
            for i in range(self.max_concurrent)
        ]

    async def wait_until_complete(self):
        """等待所有任务完成"""
        await self.queue.join()

    async def stop(self):
        """停止下载器"""
        logger.debug("[停止] 正在停止下载器...")
        for worker in self._workers:
            worker.cancel()

        if self._workers:
            await asyncio.gather(*self._workers, return_exceptions=True)
            self._workers.clear()

        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()
        logger.debug("[停止] 下载器已停止")

    async def run(self):
        """运行下载器（启动并等待完成）"""
        await self.start()
        try:
            await self.wait_until_complete()
        finally:
            await self.stop()

    def get_stats(self) -> DownloadStats:
        return self.stats

    def get_failed(self) -> list[str]:
        """获取失败的下载列表"""
        return self._failed_downloads.copy()

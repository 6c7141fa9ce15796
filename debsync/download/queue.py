"""
下载任务队列

按目标路径去重。
"""

import asyncio
from dataclasses import dataclass
from typing import Optional


@dataclass
class DownloadTask:
    """下载任务"""

    url: str
    dest_path: str
    md5: Optional[str] = None
    sha1: Optional[str] = None
    sha256: Optional[str] = None


class DownloadQueue:
    """下载队列"""

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._destinations: set[str] = set()

    async def put(self, task: DownloadTask) -> bool:
        """
        添加任务到队列

        Returns:
            True 如果任务是新添加的，False 如果目标路径已在队列中
        """
        if task.dest_path in self._destinations:
            return False

        self._destinations.add(task.dest_path)
        await self._queue.put(task)
        return True

    async def get(self) -> DownloadTask:
        return await self._queue.get()

    def task_done(self):
        self._queue.task_done()

    def qsize(self) -> int:
        return self._queue.qsize()

    async def join(self):
        """等待所有任务完成"""
        await self._queue.join()

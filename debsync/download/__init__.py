"""
DebSync 下载层

包含下载管理、任务队列、文件校验等功能。
"""

from debsync.download.manager import DownloadManager, DownloadStats
from debsync.download.queue import DownloadQueue, DownloadTask
from debsync.download.verifier import FileVerifier

__all__ = [
    "DownloadManager",
    "DownloadStats",
    "DownloadQueue",
    "DownloadTask",
    "FileVerifier",
]

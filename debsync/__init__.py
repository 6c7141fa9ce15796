"""
DebSync - 软件包仓库镜像同步工具

下载仓库索引，解析软件包记录，根据大小与摘要决定跳过或重新下载。
"""

__version__ = "0.1.0"

from debsync.download.verifier import FileVerifier
from debsync.index.parser import load_index, parse_text
from debsync.models import MatchPolicy, PackageRecord, SyncDecision
from debsync.planner import SyncPlanner

__all__ = [
    "__version__",
    "FileVerifier",
    "load_index",
    "parse_text",
    "MatchPolicy",
    "PackageRecord",
    "SyncDecision",
    "SyncPlanner",
]

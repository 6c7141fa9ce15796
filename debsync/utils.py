"""
工具函数

运行编号、远程地址与本地路径的拼接。
"""

import os
import posixpath
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo


def run_id(moment: Optional[datetime] = None, timezone: str = "Asia/Tokyo") -> str:
    """
    生成本次运行的目录名，格式 YYYYMMDDHHMMSS

    Args:
        moment: 指定时间，原样格式化；为空时取 timezone 下的当前时间
        timezone: IANA 时区名
    """
    if moment is None:
        moment = datetime.now(ZoneInfo(timezone))
    return moment.strftime("%Y%m%d%H%M%S")


def artifact_url(base_url: str, relative_path: str) -> str:
    """拼接仓库地址与 Filename"""
    return base_url.rstrip("/") + "/" + relative_path.lstrip("/")


def local_artifact_path(root_dir: str, relative_path: str) -> Optional[str]:
    """
    计算软件包在本地的保存路径

    Returns:
        root_dir 下的路径；绝对路径或带 ".." 的路径返回 None
    """
    if not relative_path:
        return None
    normalized = posixpath.normpath(relative_path)
    if (
        posixpath.isabs(normalized)
        or normalized == ".."
        or normalized.startswith("../")
        or normalized == "."
    ):
        return None
    return os.path.join(root_dir, *normalized.split("/"))

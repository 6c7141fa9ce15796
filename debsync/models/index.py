"""
索引数据模型

定义软件包记录、摘要集合、匹配策略与同步决策。
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple


class PackageRecord(Mapping):
    """
    索引中的一个段落（stanza）

    字段名到字段值的只读映射，保留所有字段原样；
    下游只解释 Filename、Size、MD5sum、SHA1、SHA256。
    """

    __slots__ = ("_fields",)

    def __init__(self, fields: Optional[Mapping] = None):
        self._fields: Dict[str, str] = dict(fields or {})

    def __getitem__(self, key: str) -> str:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"PackageRecord({self._fields!r})"

    @property
    def filename(self) -> Optional[str]:
        return self._fields.get("Filename") or None

    @property
    def size(self) -> Optional[int]:
        """声明的字节数；缺失或不是十进制整数时为 None"""
        raw = self._fields.get("Size")
        if raw is None or not (raw.isascii() and raw.isdigit()):
            return None
        return int(raw)

    @property
    def md5sum(self) -> Optional[str]:
        return self._fields.get("MD5sum") or None

    @property
    def sha1(self) -> Optional[str]:
        return self._fields.get("SHA1") or None

    @property
    def sha256(self) -> Optional[str]:
        return self._fields.get("SHA256") or None

    @property
    def relative_path(self) -> Optional[str]:
        """去掉 "./" 前缀后的 Filename"""
        filename = self.filename
        if filename is None:
            return None
        if filename.startswith("./"):
            return filename[2:]
        return filename


# 按文件顺序排列的记录，解析完成后不可变
IndexDocument = Tuple[PackageRecord, ...]


@dataclass(frozen=True)
class DigestSet:
    """一次读取文件得到的三种十六进制摘要"""

    md5: str
    sha1: str
    sha256: str


class MatchPolicy(Enum):
    """摘要匹配策略"""

    LENIENT = "lenient"  # 任一摘要匹配即通过
    STRICT = "strict"  # 三种摘要全部匹配才通过


class SyncDecision(Enum):
    """同步决策"""

    SKIP = "skip"
    FETCH = "fetch"


@dataclass(frozen=True)
class PlannedRecord:
    """记录及其本地路径与决策；无法规划时 decision 为 None"""

    record: PackageRecord
    local_path: Optional[str]
    decision: Optional[SyncDecision]

"""
索引解析器

把 Packages 文本按空行切分为段落，逐行提取 "Key: Value" 字段。
格式错误的行会被直接忽略，不会中断整个文件的解析。
"""

import os
from typing import AsyncIterable, Dict, Iterable, List, Optional, Tuple

import aiofiles
from loguru import logger

from debsync.exceptions import IndexNotFoundError
from debsync.models.index import IndexDocument, PackageRecord


def _strip_newline(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


def is_terminator(line: str) -> bool:
    """长度不超过 1 的行视为段落分隔"""
    return len(line) <= 1


def split_field(line: str) -> Optional[Tuple[str, str]]:
    """
    拆分一行字段

    以第一个冒号为分隔，冒号之后的内容（包括其中的冒号）去掉首尾空白作为值。
    键只去掉尾部空白，以缩进开头的续行因此不会覆盖正式字段。

    Returns:
        (键, 值)，无法识别时返回 None
    """
    key, sep, value = line.partition(":")
    if not sep:
        return None
    key = key.rstrip()
    value = value.strip()
    if not key.strip() or not value:
        return None
    return key, value


class _StanzaFolder:
    """逐行累积当前段落，遇到分隔行时产出记录"""

    def __init__(self, flush_trailing: bool):
        self.flush_trailing = flush_trailing
        self.records: List[PackageRecord] = []
        self._current: Dict[str, str] = {}
        self.skipped_lines = 0

    def feed(self, line: str) -> None:
        line = _strip_newline(line)
        if is_terminator(line):
            self.records.append(PackageRecord(self._current))
            self._current = {}
            return

        parsed = split_field(line)
        if parsed is None:
            self.skipped_lines += 1
            return
        key, value = parsed
        self._current[key] = value

    def finish(self) -> IndexDocument:
        if self._current:
            if self.flush_trailing:
                self.records.append(PackageRecord(self._current))
            else:
                logger.debug(
                    f"[索引] 文件末尾缺少空行，丢弃未结束的段落: {self._current}"
                )
            self._current = {}
        if self.skipped_lines:
            logger.debug(f"[索引] 忽略了 {self.skipped_lines} 行无法识别的内容")
        return tuple(self.records)


def parse_lines(lines: Iterable[str], flush_trailing: bool = True) -> IndexDocument:
    """
    解析按行给出的索引内容

    Args:
        lines: 索引行，可以带或不带换行符
        flush_trailing: 输入未以空行结束时，是否保留最后一个段落

    Returns:
        按文件顺序排列的记录元组
    """
    folder = _StanzaFolder(flush_trailing)
    for line in lines:
        folder.feed(line)
    return folder.finish()


def parse_text(text: str, flush_trailing: bool = True) -> IndexDocument:
    """解析内存中的索引文本"""
    if not text:
        return ()
    lines = text.split("\n")
    # 末尾的换行符不构成额外的一行
    if text.endswith("\n"):
        lines.pop()
    return parse_lines(lines, flush_trailing)


async def parse_stream(
    lines: AsyncIterable[str], flush_trailing: bool = True
) -> IndexDocument:
    """解析异步逐行读取的索引内容"""
    folder = _StanzaFolder(flush_trailing)
    async for line in lines:
        folder.feed(line)
    return folder.finish()


async def load_index(
    path: str, flush_trailing: bool = True, encoding: str = "utf-8"
) -> IndexDocument:
    """
    读取并解析解压后的 Packages 文件

    Raises:
        IndexNotFoundError: 文件不存在或无法打开
    """
    if not os.path.isfile(path):
        raise IndexNotFoundError(
            f"索引文件不存在: {path}", context={"path": str(path)}
        )

    try:
        f = await aiofiles.open(path, "r", encoding=encoding, errors="replace")
    except (FileNotFoundError, IsADirectoryError, PermissionError) as e:
        raise IndexNotFoundError(
            f"无法打开索引文件: {path}", context={"path": str(path), "error": str(e)}
        )

    try:
        records = await parse_stream(f, flush_trailing)
    finally:
        await f.close()

    logger.info(f"[索引] 解析完成: {path}，共 {len(records)} 条记录")
    return records

"""
DebSync 索引层

包含索引解压与 Packages 段落解析。
"""

from debsync.index.decompress import decompress_index
from debsync.index.parser import load_index, parse_lines, parse_stream, parse_text

__all__ = [
    "decompress_index",
    "load_index",
    "parse_lines",
    "parse_stream",
    "parse_text",
]

"""
配置数据模型

定义镜像同步的配置结构，并负责从字典构建与校验。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from debsync.exceptions import ConfigValidationError
from debsync.models.index import MatchPolicy

DEFAULT_REPO_URL = "https://repo.kenhtao.net/"
DEFAULT_ROOT_DIR = "./repo.kenhtao.net/"


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigValidationError(
            f"配置节 '{name}' 应该是一个表", context={"section": name}
        )
    return value


def _positive_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigValidationError(
            f"'{name}' 必须为正整数", context={"key": name, "value": value}
        )
    return value


def _flag(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigValidationError(
            f"'{name}' 必须为布尔值", context={"key": name, "value": value}
        )
    return value


@dataclass
class RepositoryConfig:
    """远程仓库配置"""

    url: str = DEFAULT_REPO_URL
    index: str = "Packages.bz2"

    @property
    def index_url(self) -> str:
        return self.url.rstrip("/") + "/" + self.index.lstrip("/")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepositoryConfig":
        url = data.get("url", DEFAULT_REPO_URL)
        if not isinstance(url, str) or not url.strip():
            raise ConfigValidationError("请配置仓库 url", context={"url": url})
        index = data.get("index", "Packages.bz2")
        if not isinstance(index, str) or not index.strip():
            raise ConfigValidationError("index 不能为空", context={"index": index})
        return cls(url=url.strip(), index=index.strip())


@dataclass
class OutputConfig:
    """本地输出配置"""

    root_dir: str = DEFAULT_ROOT_DIR
    packages_dir: str = "debs"
    timezone: str = "Asia/Tokyo"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OutputConfig":
        timezone = str(data.get("timezone", "Asia/Tokyo"))
        try:
            ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ConfigValidationError(
                f"未知的时区: {timezone}", context={"timezone": timezone}
            )
        return cls(
            root_dir=str(data.get("root_dir", DEFAULT_ROOT_DIR)),
            packages_dir=str(data.get("packages_dir", "debs")),
            timezone=timezone,
        )


@dataclass
class VerifyConfig:
    """本地文件校验配置"""

    policy: MatchPolicy = MatchPolicy.LENIENT
    trust_size: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VerifyConfig":
        raw_policy = data.get("policy", MatchPolicy.LENIENT.value)
        try:
            policy = MatchPolicy(str(raw_policy).lower())
        except ValueError:
            raise ConfigValidationError(
                "verify.policy 只支持 'lenient' 或 'strict'",
                context={"policy": raw_policy},
            )
        trust_size = _flag(data.get("trust_size", True), "verify.trust_size")
        return cls(policy=policy, trust_size=trust_size)


@dataclass
class IndexConfig:
    """索引解析配置"""

    flush_trailing_stanza: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IndexConfig":
        return cls(
            flush_trailing_stanza=_flag(
                data.get("flush_trailing_stanza", True), "index.flush_trailing_stanza"
            )
        )


@dataclass
class SyncConfig:
    """DebSync 总配置"""

    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    verify: VerifyConfig = field(default_factory=VerifyConfig)
    index: IndexConfig = field(default_factory=IndexConfig)
    max_concurrent: int = 5
    max_retries: int = 3
    retry_delay: float = 1.0
    log_file: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SyncConfig":
        data = data or {}
        retry_delay = data.get("retry_delay", 1.0)
        if isinstance(retry_delay, bool) or not isinstance(retry_delay, (int, float)):
            raise ConfigValidationError(
                "'retry_delay' 必须为数字", context={"value": retry_delay}
            )
        max_retries = data.get("max_retries", 3)
        if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries < 0:
            raise ConfigValidationError(
                "'max_retries' 必须为非负整数", context={"value": max_retries}
            )
        return cls(
            repository=RepositoryConfig.from_dict(_section(data, "repository")),
            output=OutputConfig.from_dict(_section(data, "output")),
            verify=VerifyConfig.from_dict(_section(data, "verify")),
            index=IndexConfig.from_dict(_section(data, "index")),
            max_concurrent=_positive_int(data.get("max_concurrent", 5), "max_concurrent"),
            max_retries=max_retries,
            retry_delay=float(retry_delay),
            log_file=data.get("log_file"),
        )

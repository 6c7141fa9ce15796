"""
DebSync 数据模型包

包含配置模型和索引模型定义。
"""

from debsync.models.config import (
    RepositoryConfig,
    OutputConfig,
    VerifyConfig,
    IndexConfig,
    SyncConfig,
)
from debsync.models.index import (
    PackageRecord,
    IndexDocument,
    DigestSet,
    MatchPolicy,
    SyncDecision,
    PlannedRecord,
)

__all__ = [
    # 配置模型
    "RepositoryConfig",
    "OutputConfig",
    "VerifyConfig",
    "IndexConfig",
    "SyncConfig",
    # 索引模型
    "PackageRecord",
    "IndexDocument",
    "DigestSet",
    "MatchPolicy",
    "SyncDecision",
    "PlannedRecord",
]

"""
DebSync 统一异常体系

提供分层的异常结构，支持错误代码、上下文信息和 JSON 序列化。
"""

from typing import Any, Dict, Optional


class DebSyncError(Exception):
    """DebSync 基础异常类"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self._get_default_code()
        self.context = context or {}

    def _get_default_code(self) -> str:
        """获取默认错误代码"""
        return "E000"

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式"""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigError(DebSyncError):
    """配置相关错误"""

    def _get_default_code(self) -> str:
        return "E100"


class ConfigParseError(ConfigError):
    """配置解析错误"""

    def _get_default_code(self) -> str:
        return "E101"


class ConfigValidationError(ConfigError):
    """配置验证错误"""

    def _get_default_code(self) -> str:
        return "E102"


class IndexSourceError(DebSyncError):
    """索引文件相关错误"""

    def _get_default_code(self) -> str:
        return "E200"


class IndexNotFoundError(IndexSourceError):
    """索引文件不存在或无法打开"""

    def _get_default_code(self) -> str:
        return "E201"


class DecompressError(IndexSourceError):
    """索引解压错误"""

    def _get_default_code(self) -> str:
        return "E202"


class DownloadError(DebSyncError):
    """下载相关错误"""

    def _get_default_code(self) -> str:
        return "E300"


class DownloadNetworkError(DownloadError):
    """下载网络错误"""

    def _get_default_code(self) -> str:
        return "E301"


class DownloadChecksumError(DownloadError):
    """下载校验错误"""

    def _get_default_code(self) -> str:
        return "E302"


class DownloadFileError(DownloadError):
    """下载文件操作错误"""

    def _get_default_code(self) -> str:
        return "E303"


class VerificationError(DebSyncError):
    """校验相关错误"""

    def _get_default_code(self) -> str:
        return "E400"


class DigestTargetNotFoundError(VerificationError):
    """待计算摘要的文件不存在"""

    def _get_default_code(self) -> str:
        return "E401"


__all__ = [
    # 基础异常
    "DebSyncError",
    # 配置异常
    "ConfigError",
    "ConfigParseError",
    "ConfigValidationError",
    # 索引异常
    "IndexSourceError",
    "IndexNotFoundError",
    "DecompressError",
    # 下载异常
    "DownloadError",
    "DownloadNetworkError",
    "DownloadChecksumError",
    "DownloadFileError",
    # 校验异常
    "VerificationError",
    "DigestTargetNotFoundError",
]

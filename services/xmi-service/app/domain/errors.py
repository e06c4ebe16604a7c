"""错误分类定义：调用方输入错误映射 400，环境与工具故障映射 500。"""

from __future__ import annotations


class XmiServiceError(Exception):
    """网关业务异常基类，携带对外 HTTP 状态码。"""
    http_status = 500


class BadRequestError(XmiServiceError):
    """请求参数缺失、冲突或格式非法，调用方可自行修正。"""
    http_status = 400


class PathTraversalError(BadRequestError):
    """压缩包条目解析后越出目标目录。"""

    def __init__(self, entry_name: str) -> None:
        super().__init__(f"Unsafe zip entry path: {entry_name}")
        self.entry_name = entry_name


class FetchFailedError(XmiServiceError):
    """远程仓库克隆失败或超时。"""


class LaunchFailedError(XmiServiceError):
    """子进程无法启动（可执行文件缺失、权限不足等）。"""


class ExternalToolFailedError(XmiServiceError):
    """外部工具以非零状态退出或未生成预期产物。"""

    def __init__(self, message: str, *, exit_code: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr


class ProcessTimeoutError(XmiServiceError):
    """子进程超过墙钟时限，已被强制终止。"""

    def __init__(self, message: str, *, timeout_seconds: float) -> None:
        super().__init__(message)
        self.timeout_seconds = timeout_seconds


class ToolNotFoundError(XmiServiceError):
    """无法定位 java-to-xmi CLI 产物，属于部署配置问题。"""

    def __init__(self, message: str, *, probed: list[str]) -> None:
        super().__init__(message)
        self.probed = probed

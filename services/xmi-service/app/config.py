"""全局配置加载模块：从环境变量构建网关运行参数并提供缓存访问。"""

from __future__ import annotations

import errno
import tempfile
from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _csv_to_list(value: str) -> list[str]:
    """将逗号分隔字符串转换为去空白列表。"""
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """网关运行配置对象，从环境变量读取并提供类型化访问。"""
    model_config = SettingsConfigDict(
        env_prefix="XMI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = "XMI Service"
    api_prefix: str = "/v1"
    environment: str = "dev"
    port: int = 7072
    cors_allowed_origins: str = ""
    cors_allowed_methods: str = "GET,POST,OPTIONS"
    cors_allowed_headers: str = "Content-Type,X-Request-Id"
    cors_allow_credentials: bool = False

    # 部署方可直接指定 CLI jar，跳过目录探测；沿用历史环境变量名。
    java_to_xmi_jar: Path | None = Field(
        default=None,
        validation_alias=AliasChoices("JAVA_TO_XMI_JAR", "XMI_JAVA_TO_XMI_JAR"),
    )
    java_executable: str = "java"
    git_executable: str = "git"
    tool_legacy_path: Path = Path("/deps/java-to-xmi/target/java-to-xmi.jar")
    tool_default_path: Path = Path("/deps/java-to-xmi/java-to-xmi-cli/target/java-to-xmi-cli-0.1.0-SNAPSHOT.jar")
    tool_scan_dirs: str = "/deps/java-to-xmi/java-to-xmi-cli/target,/deps/java-to-xmi/target"
    tool_artifact_suffix: str = ".jar"
    tool_identifier: str = "java-to-xmi"

    workspace_root: Path | None = None
    workspace_prefix: str = "xmi"
    max_upload_file_size_bytes: int = 300 * 1024 * 1024

    clone_timeout_seconds: float = 5 * 60
    ir_timeout_seconds: float = 5 * 60
    source_timeout_seconds: float = 8 * 60
    error_detail_max_chars: int = 8000

    log_dir: Path = Field(default=Path("./data/logs"))
    log_level: str = "INFO"
    log_debug_modules: str = ""
    log_redact_secrets: bool = True
    log_payload_preview_chars: int = 2000
    log_max_bytes: int = 20 * 1024 * 1024
    log_backup_count: int = 5

    def cors_allowed_origins_list(self) -> list[str]:
        return _csv_to_list(self.cors_allowed_origins)

    def cors_allowed_methods_list(self) -> list[str]:
        return _csv_to_list(self.cors_allowed_methods)

    def cors_allowed_headers_list(self) -> list[str]:
        return _csv_to_list(self.cors_allowed_headers)

    def tool_scan_dirs_list(self) -> list[Path]:
        return [Path(item) for item in _csv_to_list(self.tool_scan_dirs)]

    def log_debug_modules_list(self) -> list[str]:
        return _csv_to_list(self.log_debug_modules)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """构建并缓存 Settings，同时确保工作区根目录可写。"""
    settings = Settings()
    if settings.workspace_root is None:
        return settings
    # 相对路径统一按当前工作目录解析，避免不同启动方式下语义漂移。
    if not settings.workspace_root.is_absolute():
        settings.workspace_root = (Path.cwd() / settings.workspace_root).resolve()
    try:
        settings.workspace_root.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        if exc.errno not in {errno.EACCES, errno.EPERM, errno.EROFS}:
            raise
        # 容器只读或权限受限时回退到系统临时目录。
        settings.workspace_root = Path(tempfile.gettempdir())
    return settings

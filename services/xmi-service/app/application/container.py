"""依赖容器模块，负责单例化创建工作区、执行器、定位器与编排服务对象。"""

from __future__ import annotations

from functools import lru_cache

from app.application.orchestrator import XmiGenerationService
from app.config import get_settings
from app.infra.git.fetcher import RemoteSourceFetcher
from app.infra.process.runner import SubprocessToolRunner, ToolRunner
from app.infra.storage.archive import ArchiveExtractor
from app.infra.storage.artifact import ArtifactReader
from app.infra.storage.workspace import WorkspaceManager
from app.infra.tooling.locator import ToolLocator


@lru_cache(maxsize=1)
def get_workspace_manager() -> WorkspaceManager:
    """获取工作区管理器单例。"""
    return WorkspaceManager(get_settings().workspace_root)


@lru_cache(maxsize=1)
def get_tool_runner() -> ToolRunner:
    """获取子进程执行器单例。"""
    return SubprocessToolRunner(max_detail_chars=get_settings().error_detail_max_chars)


@lru_cache(maxsize=1)
def get_source_fetcher() -> RemoteSourceFetcher:
    """获取 git 拉取器单例，与工具调用共用同一个执行器。"""
    settings = get_settings()
    return RemoteSourceFetcher(
        get_tool_runner(),
        git_executable=settings.git_executable,
        timeout_seconds=settings.clone_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_tool_locator() -> ToolLocator:
    """获取 CLI 产物定位器单例。"""
    settings = get_settings()
    return ToolLocator(
        legacy_path=settings.tool_legacy_path,
        default_path=settings.tool_default_path,
        scan_dirs=settings.tool_scan_dirs_list(),
        artifact_suffix=settings.tool_artifact_suffix,
        identifier=settings.tool_identifier,
    )


@lru_cache(maxsize=1)
def get_xmi_service() -> XmiGenerationService:
    """获取 XMI 生成编排服务单例。"""
    return XmiGenerationService(
        settings=get_settings(),
        workspace_manager=get_workspace_manager(),
        archive_extractor=ArchiveExtractor(),
        source_fetcher=get_source_fetcher(),
        tool_locator=get_tool_locator(),
        tool_runner=get_tool_runner(),
        artifact_reader=ArtifactReader(),
    )


def shutdown_container_resources() -> None:
    """清理依赖容器缓存，确保后续请求可重新构建全新实例。"""
    for provider in (
        get_xmi_service,
        get_tool_locator,
        get_source_fetcher,
        get_tool_runner,
        get_workspace_manager,
    ):
        provider.cache_clear()

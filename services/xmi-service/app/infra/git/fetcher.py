"""远程源码拉取：浅克隆（depth=1）调用方提供的仓库地址到工作区。"""

from __future__ import annotations

import logging
from pathlib import Path

from app.domain.errors import ExternalToolFailedError, FetchFailedError, ProcessTimeoutError
from app.domain.models import CommandInvocation
from app.infra.process.runner import ToolRunner

logger = logging.getLogger(__name__)


class RemoteSourceFetcher:
    """git 浅克隆适配器。不处理凭据，也不限制协议，网络出口由部署方隔离。"""
    def __init__(self, runner: ToolRunner, *, git_executable: str = "git", timeout_seconds: float = 300.0) -> None:
        self._runner = runner
        self._git_executable = git_executable
        self._timeout_seconds = timeout_seconds

    def build_clone_command(self, repository_url: str, dest_dir: Path) -> CommandInvocation:
        return CommandInvocation(
            argv=(self._git_executable, "clone", "--depth", "1", repository_url, str(dest_dir)),
            timeout_seconds=self._timeout_seconds,
        )

    def fetch(self, repository_url: str, dest_dir: Path) -> None:
        """克隆到 dest_dir；非零退出或超时统一转为 FetchFailedError。"""
        dest_dir.parent.mkdir(parents=True, exist_ok=True)
        command = self.build_clone_command(repository_url, dest_dir)
        logger.info(
            "cloning repository",
            extra={
                "event": "git.clone.started",
                "external_service": "git",
                "payload_preview": {"repo_url": repository_url},
            },
        )
        try:
            self._runner.run(command)
        except (ExternalToolFailedError, ProcessTimeoutError) as exc:
            logger.error(
                "git clone failed",
                extra={
                    "event": "git.clone.failed",
                    "external_service": "git",
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            raise FetchFailedError(f"Failed to clone repository {repository_url}: {exc}") from exc
        logger.info(
            "clone completed",
            extra={"event": "git.clone.succeeded", "external_service": "git"},
        )

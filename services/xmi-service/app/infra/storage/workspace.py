"""工作区管理器：为每个请求分配独立临时目录，并保证任何退出路径都会清理。"""

from __future__ import annotations

import logging
import shutil
import tempfile
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Workspace:
    """单请求独占的目录树，固定子路径由流水线各阶段共享。"""
    root: Path

    @property
    def ir_input_path(self) -> Path:
        return self.root / "model.ir.json"

    @property
    def archive_path(self) -> Path:
        return self.root / "input.zip"

    @property
    def source_dir(self) -> Path:
        return self.root / "source"

    @property
    def output_dir(self) -> Path:
        return self.root / "out"

    @property
    def xmi_output_path(self) -> Path:
        return self.output_dir / "model.xmi"

    @property
    def ir_output_path(self) -> Path:
        return self.output_dir / "model.ir.json"


class WorkspaceManager:
    """工作区生命周期管理器，负责目录分配与尽力而为的回收。"""
    def __init__(self, root: Path | None = None) -> None:
        self._root = root

    def acquire(self, prefix: str) -> Workspace:
        """创建名称不可预测的临时目录；文件系统不可写时抛出 OSError。"""
        base = str(self._root) if self._root is not None else None
        # mkdtemp 以 0700 权限原子创建随机目录名，并发请求之间不会碰撞。
        root = Path(tempfile.mkdtemp(prefix=f"{prefix}-", dir=base))
        workspace = Workspace(root=root)
        workspace.output_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(
            "workspace acquired",
            extra={"event": "workspace.acquired", "payload_preview": {"root": str(root)}},
        )
        return workspace

    def release(self, workspace: Workspace) -> None:
        """递归删除工作区；失败只记日志，不向上传播。"""
        started = time.perf_counter()
        try:
            shutil.rmtree(workspace.root)
        except FileNotFoundError:
            return
        except OSError as exc:
            logger.warning(
                "workspace cleanup failed",
                extra={
                    "event": "workspace.release.failed",
                    "payload_preview": {"root": str(workspace.root)},
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            return
        logger.debug(
            "workspace released",
            extra={
                "event": "workspace.released",
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                "payload_preview": {"root": str(workspace.root)},
            },
        )

    @contextmanager
    def scoped(self, prefix: str) -> Iterator[Workspace]:
        """作用域内持有工作区，退出时（含异常）恰好回收一次。"""
        workspace = self.acquire(prefix)
        try:
            yield workspace
        finally:
            self.release(workspace)

    def store_upload(self, target: Path, content: bytes) -> Path:
        """将上传内容原样落盘到工作区内的指定路径。"""
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        return target

"""子进程执行器：捕获输出、强制墙钟超时，并把结果归类为结构化成功/失败。"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import time
from pathlib import Path
from typing import Protocol

from app.domain.errors import ExternalToolFailedError, LaunchFailedError, ProcessTimeoutError
from app.domain.models import CommandInvocation, ExecutionResult

logger = logging.getLogger(__name__)


def truncate_detail(text: str, max_chars: int) -> str:
    text = text.strip()
    if len(text) <= max_chars:
        return text
    return f"{text[:max_chars]}...(truncated)"


class ToolRunner(Protocol):
    """外部命令执行能力，测试中可替换为不启动真实进程的桩实现。"""

    def run(
        self,
        command: CommandInvocation,
        timeout_seconds: float | None = None,
        *,
        cwd: Path | None = None,
    ) -> ExecutionResult:
        ...


class SubprocessToolRunner:
    """基于 subprocess 的执行器，子进程位于独立进程组以便超时整组终止。"""

    def __init__(self, *, max_detail_chars: int = 8000) -> None:
        self._max_detail_chars = max_detail_chars

    def run(
        self,
        command: CommandInvocation,
        timeout_seconds: float | None = None,
        *,
        cwd: Path | None = None,
    ) -> ExecutionResult:
        """执行命令；超时抛 ProcessTimeoutError，非零退出抛 ExternalToolFailedError。"""
        timeout = command.timeout_seconds if timeout_seconds is None else timeout_seconds
        argv = list(command.argv)
        op = argv[0] if argv else ""
        started = time.perf_counter()
        logger.info(
            "process started",
            extra={
                "event": "process.run.started",
                "op": op,
                "payload_preview": {"argv": command.display(), "timeout_seconds": timeout},
            },
        )
        try:
            process = subprocess.Popen(
                argv,
                cwd=str(cwd) if cwd is not None else None,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as exc:
            logger.error(
                "process launch failed",
                extra={
                    "event": "process.run.launch_failed",
                    "op": op,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            raise LaunchFailedError(f"Unable to launch command: {command.display()}: {exc}") from exc

        try:
            stdout_bytes, stderr_bytes = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired as exc:
            self._kill(process)
            # 回收僵尸进程；进程组已整体终止，管道会随之关闭。
            process.communicate()
            duration_ms = round((time.perf_counter() - started) * 1000, 2)
            logger.error(
                "process timed out",
                extra={
                    "event": "process.run.timeout",
                    "op": op,
                    "duration_ms": duration_ms,
                    "payload_preview": {"argv": command.display(), "timeout_seconds": timeout},
                },
            )
            raise ProcessTimeoutError(
                f"Command timed out after {timeout:g}s: {command.display()}",
                timeout_seconds=timeout,
            ) from exc
        except BaseException:
            self._kill(process)
            process.wait()
            raise

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        result = ExecutionResult(
            argv=tuple(argv),
            exit_code=process.returncode,
            stdout=stdout_bytes.decode("utf-8", errors="replace"),
            stderr=stderr_bytes.decode("utf-8", errors="replace"),
            duration_ms=duration_ms,
        )
        if result.exit_code != 0:
            detail = truncate_detail(result.stderr or result.stdout, self._max_detail_chars)
            logger.error(
                "process failed",
                extra={
                    "event": "process.run.failed",
                    "op": op,
                    "duration_ms": duration_ms,
                    "status_code": result.exit_code,
                    "error": detail,
                },
            )
            raise ExternalToolFailedError(
                f"Command failed ({result.exit_code}): {command.display()}\n{detail}",
                exit_code=result.exit_code,
                stderr=result.stderr,
            )

        logger.info(
            "process finished",
            extra={"event": "process.run.succeeded", "op": op, "duration_ms": duration_ms, "status_code": 0},
        )
        return result

    @staticmethod
    def _kill(process: subprocess.Popen[bytes]) -> None:
        """以不可捕获信号终止整个进程组，进程组已不存在时静默返回。"""
        if hasattr(os, "killpg"):
            try:
                os.killpg(process.pid, signal.SIGKILL)
                return
            except ProcessLookupError:
                return
            except PermissionError:
                pass
        process.kill()

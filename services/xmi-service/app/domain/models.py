"""领域数据结构定义：请求选项、命令调用、执行结果与产物等值对象。"""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field

from app.domain.enums import InputMode, ResultFormat, SourceOrigin


@dataclass(slots=True)
class UploadedFileData:
    """上传文件内存表示，保存名称、内容与 MIME 信息。"""
    filename: str
    content: bytes
    content_type: str | None


@dataclass(frozen=True, slots=True)
class ExtractionFlags:
    """透传给 java-to-xmi 的可选抽取参数，取值保持调用方原文。"""
    name: str | None = None
    associations: str | None = None
    deps: str | None = None
    nested_types: str | None = None
    include_accessors: str | None = None
    include_constructors: str | None = None
    fail_on_unresolved: str | None = None
    no_stereotypes: str | None = None
    include_tests: str | None = None
    excludes: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RequestOptions:
    """校验后的单次请求参数集合。"""
    input_mode: InputMode
    result_format: ResultFormat
    language: str | None = None
    source_origin: SourceOrigin | None = None
    ir_payload: bytes | None = field(default=None, repr=False)
    archive: bytes | None = field(default=None, repr=False)
    repo_url: str | None = None
    flags: ExtractionFlags = field(default_factory=ExtractionFlags)

    @property
    def wants_ir(self) -> bool:
        return self.result_format is ResultFormat.ir


@dataclass(frozen=True, slots=True)
class CommandInvocation:
    """一次外部进程调用：有序参数向量与其墙钟时限。"""
    argv: tuple[str, ...]
    timeout_seconds: float

    def display(self) -> str:
        return shlex.join(self.argv)


@dataclass(slots=True)
class ExecutionResult:
    """子进程执行结果，仅用于判定成败与拼装错误信息。"""
    argv: tuple[str, ...]
    exit_code: int
    stdout: str
    stderr: str
    duration_ms: float = 0.0


@dataclass(slots=True)
class Artifact:
    """从工作区读取、准备回写给调用方的产物。"""
    content: bytes = field(repr=False)
    media_type: str
    filename: str | None = None

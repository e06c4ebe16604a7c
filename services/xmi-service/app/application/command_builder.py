"""命令构建：把校验后的请求选项确定性地翻译为 java-to-xmi 参数向量。"""

from __future__ import annotations

from pathlib import Path

from app.domain.enums import InputMode
from app.domain.errors import BadRequestError
from app.domain.models import CommandInvocation, ExtractionFlags, RequestOptions
from app.infra.storage.workspace import Workspace

SUPPORTED_SOURCE_LANGUAGE = "java"

DEFAULT_IR_TIMEOUT_SECONDS = 5 * 60
DEFAULT_SOURCE_TIMEOUT_SECONDS = 8 * 60

# 取值类参数：(CLI 标志, ExtractionFlags 字段)，顺序即输出顺序。
VALUE_FLAGS: tuple[tuple[str, str], ...] = (
    ("--name", "name"),
    ("--associations", "associations"),
    ("--deps", "deps"),
    ("--nested-types", "nested_types"),
    ("--include-accessors", "include_accessors"),
    ("--include-constructors", "include_constructors"),
    ("--fail-on-unresolved", "fail_on_unresolved"),
)

# 开关类参数：仅当取值忽略大小写等于 "true" 时输出裸标志。
SWITCH_FLAGS: tuple[tuple[str, str], ...] = (
    ("--no-stereotypes", "no_stereotypes"),
    ("--include-tests", "include_tests"),
)


def is_true(value: str | None) -> bool:
    return value is not None and str(value).strip().lower() == "true"


def tool_prefix(tool_path: Path, java_executable: str = "java") -> list[str]:
    """jar 产物经 `java -jar` 调用，其余路径视为可直接执行的启动脚本。"""
    if tool_path.suffix == ".jar":
        return [java_executable, "-jar", str(tool_path)]
    return [str(tool_path)]


def flag_arguments(flags: ExtractionFlags) -> list[str]:
    args: list[str] = []
    for flag, attr in VALUE_FLAGS:
        value = getattr(flags, attr)
        if value is None or value == "":
            continue
        args.extend([flag, str(value)])
    for flag, attr in SWITCH_FLAGS:
        if is_true(getattr(flags, attr)):
            args.append(flag)
    for pattern in flags.excludes:
        args.extend(["--exclude", pattern])
    return args


def build_command(
    tool_path: Path,
    options: RequestOptions,
    workspace: Workspace,
    *,
    java_executable: str = "java",
    ir_timeout_seconds: float = DEFAULT_IR_TIMEOUT_SECONDS,
    source_timeout_seconds: float = DEFAULT_SOURCE_TIMEOUT_SECONDS,
) -> CommandInvocation:
    """构建完整调用。纯函数，不访问文件系统。"""
    args = tool_prefix(tool_path, java_executable)
    args.extend(flag_arguments(options.flags))

    if options.input_mode is InputMode.ir:
        args.extend(["--ir", str(workspace.ir_input_path), "--output", str(workspace.xmi_output_path)])
        return CommandInvocation(argv=tuple(args), timeout_seconds=ir_timeout_seconds)

    language = (options.language or "").strip().lower()
    if language != SUPPORTED_SOURCE_LANGUAGE:
        raise BadRequestError(f"Unsupported source language: {options.language or '(missing)'}; only java is supported")
    args.extend(["--source", str(workspace.source_dir), "--output", str(workspace.xmi_output_path)])
    if options.wants_ir:
        # 同一次运行同时产出 XMI 与 IR 快照，避免二次调用。
        args.extend(["--write-ir", str(workspace.ir_output_path)])
    return CommandInvocation(argv=tuple(args), timeout_seconds=source_timeout_seconds)

"""命令构建测试：验证透传参数、开关标志、排除模式顺序与两种终结模式。"""

from __future__ import annotations

from pathlib import Path

import pytest

from app.application.command_builder import build_command, flag_arguments
from app.domain.enums import InputMode, ResultFormat, SourceOrigin
from app.domain.errors import BadRequestError
from app.domain.models import ExtractionFlags, RequestOptions
from app.infra.storage.workspace import Workspace

JAR = Path("/deps/java-to-xmi/java-to-xmi-cli/target/java-to-xmi-cli.jar")
WORKSPACE = Workspace(root=Path("/tmp/xmi-abc"))


def _source_options(result_format: ResultFormat = ResultFormat.xmi, **flags: object) -> RequestOptions:
    return RequestOptions(
        input_mode=InputMode.source,
        result_format=result_format,
        language="java",
        source_origin=SourceOrigin.archive,
        archive=b"zip",
        flags=ExtractionFlags(**flags),
    )


def _ir_options(result_format: ResultFormat = ResultFormat.xmi, **flags: object) -> RequestOptions:
    return RequestOptions(
        input_mode=InputMode.ir,
        result_format=result_format,
        ir_payload=b"{}",
        flags=ExtractionFlags(**flags),
    )


def test_ir_mode_appends_ir_and_output() -> None:
    """IR 输入模式以 --ir/--output 结尾，且使用 IR 超时。"""
    command = build_command(JAR, _ir_options(), WORKSPACE, ir_timeout_seconds=300, source_timeout_seconds=480)

    assert command.argv == (
        "java",
        "-jar",
        str(JAR),
        "--ir",
        "/tmp/xmi-abc/model.ir.json",
        "--output",
        "/tmp/xmi-abc/out/model.xmi",
    )
    assert command.timeout_seconds == 300


def test_ir_mode_never_writes_ir_snapshot() -> None:
    """IR 输入即使请求 IR 输出也不追加 --write-ir。"""
    command = build_command(JAR, _ir_options(ResultFormat.ir), WORKSPACE)
    assert "--write-ir" not in command.argv


def test_source_mode_xmi_output() -> None:
    """源码模式输出 XMI 时仅追加 --source/--output。"""
    command = build_command(JAR, _source_options(), WORKSPACE, source_timeout_seconds=480)

    assert command.argv[-4:] == ("--source", "/tmp/xmi-abc/source", "--output", "/tmp/xmi-abc/out/model.xmi")
    assert "--write-ir" not in command.argv
    assert command.timeout_seconds == 480


def test_source_mode_ir_output_adds_write_ir() -> None:
    """源码模式请求 IR 时同一次调用同时输出 XMI 与 IR。"""
    command = build_command(JAR, _source_options(ResultFormat.ir), WORKSPACE)

    assert command.argv[-6:] == (
        "--source",
        "/tmp/xmi-abc/source",
        "--output",
        "/tmp/xmi-abc/out/model.xmi",
        "--write-ir",
        "/tmp/xmi-abc/out/model.ir.json",
    )


def test_value_flags_emitted_in_fixed_order_and_empty_omitted() -> None:
    """非空取值参数按固定顺序成对输出，空值完全省略。"""
    args = flag_arguments(
        ExtractionFlags(
            name="Shop",
            associations="smart",
            deps="",
            nested_types="flatten",
            include_accessors="false",
            include_constructors=None,
            fail_on_unresolved="true",
        )
    )

    assert args == [
        "--name",
        "Shop",
        "--associations",
        "smart",
        "--nested-types",
        "flatten",
        "--include-accessors",
        "false",
        "--fail-on-unresolved",
        "true",
    ]


@pytest.mark.parametrize("value, expected", [("true", True), ("TRUE", True), ("True", True), ("false", False), ("1", False), (None, False)])
def test_no_stereotypes_is_bare_flag_only_when_true(value: str | None, expected: bool) -> None:
    """--no-stereotypes 仅在取值忽略大小写为 true 时输出，且不带值。"""
    args = flag_arguments(ExtractionFlags(no_stereotypes=value))
    assert ("--no-stereotypes" in args) is expected
    if expected:
        assert args == ["--no-stereotypes"]


def test_include_tests_switch() -> None:
    args = flag_arguments(ExtractionFlags(include_tests="true", no_stereotypes="true"))
    assert args == ["--no-stereotypes", "--include-tests"]


def test_excludes_repeat_in_input_order() -> None:
    """每个排除模式单独成对，保持输入顺序。"""
    command = build_command(JAR, _source_options(excludes=("a/**", "b/**")), WORKSPACE)

    argv = list(command.argv)
    start = argv.index("--exclude")
    assert argv[start : start + 4] == ["--exclude", "a/**", "--exclude", "b/**"]
    assert argv.index("--exclude") < argv.index("--source")


def test_source_mode_rejects_non_java_language() -> None:
    """源码模式下非 java 语言在调用前即被拒绝。"""
    options = RequestOptions(
        input_mode=InputMode.source,
        result_format=ResultFormat.xmi,
        language="kotlin",
        source_origin=SourceOrigin.archive,
        archive=b"zip",
    )
    with pytest.raises(BadRequestError):
        build_command(JAR, options, WORKSPACE)


def test_language_match_is_case_insensitive() -> None:
    options = RequestOptions(
        input_mode=InputMode.source,
        result_format=ResultFormat.xmi,
        language="Java",
        source_origin=SourceOrigin.repository_url,
        repo_url="https://example.com/repo.git",
    )
    command = build_command(JAR, options, WORKSPACE)
    assert "--source" in command.argv


def test_non_jar_tool_is_invoked_directly() -> None:
    """非 jar 产物按可执行脚本直接调用，不经 java -jar。"""
    command = build_command(Path("/opt/java-to-xmi/bin/java-to-xmi"), _ir_options(), WORKSPACE)
    assert command.argv[0] == "/opt/java-to-xmi/bin/java-to-xmi"
    assert "-jar" not in command.argv


def test_custom_java_executable() -> None:
    command = build_command(JAR, _ir_options(), WORKSPACE, java_executable="/usr/lib/jvm/bin/java")
    assert command.argv[:2] == ("/usr/lib/jvm/bin/java", "-jar")

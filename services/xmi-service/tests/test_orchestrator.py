"""编排校验测试：验证输入模式判定、来源优先级与上传大小限制。"""

from __future__ import annotations

from pathlib import Path

import pytest

from app.application.orchestrator import XmiGenerationRequest, XmiGenerationService
from app.config import Settings
from app.domain.enums import InputMode, ResultFormat, SourceOrigin
from app.domain.errors import BadRequestError
from app.domain.models import ExtractionFlags, UploadedFileData


def _build_service(tmp_path: Path, **overrides: object) -> XmiGenerationService:
    """构造最小编排服务，仅用于 validate，不需要真实依赖。"""
    settings = Settings(workspace_root=tmp_path, **overrides)
    return XmiGenerationService(
        settings=settings,
        workspace_manager=None,  # type: ignore[arg-type]
        archive_extractor=None,  # type: ignore[arg-type]
        source_fetcher=None,  # type: ignore[arg-type]
        tool_locator=None,  # type: ignore[arg-type]
        tool_runner=None,  # type: ignore[arg-type]
        artifact_reader=None,  # type: ignore[arg-type]
    )


def _upload(content: bytes, filename: str = "upload.bin") -> UploadedFileData:
    return UploadedFileData(filename=filename, content=content, content_type=None)


def test_ir_json_selects_ir_mode(tmp_path: Path) -> None:
    service = _build_service(tmp_path)
    flags = ExtractionFlags(name="Shop", excludes=("a/**",))

    options = service.validate(XmiGenerationRequest(ir_json='{"a": 1}', flags=flags))

    assert options.input_mode is InputMode.ir
    assert options.result_format is ResultFormat.xmi
    assert options.ir_payload == b'{"a": 1}'
    assert options.flags is flags


def test_ir_payload_wins_over_source_fields(tmp_path: Path) -> None:
    """存在 IR 负载时忽略 language/repoUrl，按 IR 模式处理。"""
    service = _build_service(tmp_path)

    options = service.validate(
        XmiGenerationRequest(
            ir_file=_upload(b"{}"),
            language="java",
            repo_url="https://example.com/x.git",
            result_format="ir",
        )
    )

    assert options.input_mode is InputMode.ir
    assert options.wants_ir
    assert options.source_origin is None


def test_repo_url_checked_before_archive(tmp_path: Path) -> None:
    service = _build_service(tmp_path)

    options = service.validate(
        XmiGenerationRequest(
            language=" Java ",
            repo_url=" https://example.com/x.git ",
            input_zip=_upload(b"PK"),
        )
    )

    assert options.source_origin is SourceOrigin.repository_url
    assert options.repo_url == "https://example.com/x.git"
    assert options.language == "java"


def test_empty_archive_counts_as_missing(tmp_path: Path) -> None:
    service = _build_service(tmp_path)

    with pytest.raises(BadRequestError, match="Provide inputZip or repoUrl"):
        service.validate(XmiGenerationRequest(language="java", input_zip=_upload(b"")))


def test_empty_result_format_defaults_to_xmi(tmp_path: Path) -> None:
    service = _build_service(tmp_path)

    options = service.validate(XmiGenerationRequest(ir_json="{}", result_format=""))

    assert options.result_format is ResultFormat.xmi


def test_upload_over_limit_is_rejected(tmp_path: Path) -> None:
    """单个上传字段超过大小上限时按调用方错误拒绝。"""
    service = _build_service(tmp_path, max_upload_file_size_bytes=4)

    with pytest.raises(BadRequestError, match="inputZip exceeds size limit"):
        service.validate(XmiGenerationRequest(language="java", input_zip=_upload(b"12345")))

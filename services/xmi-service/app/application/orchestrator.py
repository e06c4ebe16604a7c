"""XMI 生成编排：校验请求、分配工作区、落地输入、调用工具并读取产物。"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from app.application.command_builder import SUPPORTED_SOURCE_LANGUAGE, build_command
from app.config import Settings
from app.domain.enums import InputMode, ResultFormat, SourceOrigin
from app.domain.errors import BadRequestError
from app.domain.models import Artifact, ExtractionFlags, RequestOptions, UploadedFileData
from app.infra.git.fetcher import RemoteSourceFetcher
from app.infra.process.runner import ToolRunner
from app.infra.storage.archive import ArchiveExtractor
from app.infra.storage.artifact import ArtifactReader
from app.infra.storage.workspace import Workspace, WorkspaceManager
from app.infra.tooling.locator import ToolLocator

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class XmiGenerationRequest:
    """HTTP 表单的原始取值，尚未校验。"""
    input_zip: UploadedFileData | None = None
    ir_file: UploadedFileData | None = None
    ir_json: str | None = None
    language: str | None = None
    result_format: str | None = None
    repo_url: str | None = None
    flags: ExtractionFlags = field(default_factory=ExtractionFlags)


class XmiGenerationService:
    """单请求同步流水线，无重试；工作区在任何退出路径上都会被回收。"""
    def __init__(
        self,
        *,
        settings: Settings,
        workspace_manager: WorkspaceManager,
        archive_extractor: ArchiveExtractor,
        source_fetcher: RemoteSourceFetcher,
        tool_locator: ToolLocator,
        tool_runner: ToolRunner,
        artifact_reader: ArtifactReader,
    ) -> None:
        self._settings = settings
        self._workspace_manager = workspace_manager
        self._archive_extractor = archive_extractor
        self._source_fetcher = source_fetcher
        self._tool_locator = tool_locator
        self._tool_runner = tool_runner
        self._artifact_reader = artifact_reader

    @property
    def max_upload_bytes(self) -> int:
        return self._settings.max_upload_file_size_bytes

    def validate(self, request: XmiGenerationRequest) -> RequestOptions:
        """在任何副作用之前完成请求校验，失败抛 BadRequestError。"""
        raw_format = request.result_format or ResultFormat.xmi.value
        try:
            result_format = ResultFormat(raw_format)
        except ValueError as exc:
            raise BadRequestError(f"resultFormat must be one of: xmi, ir (got {raw_format!r})") from exc

        for field_name, upload in (("inputZip", request.input_zip), ("irFile", request.ir_file)):
            if upload is not None and len(upload.content) > self._settings.max_upload_file_size_bytes:
                raise BadRequestError(f"{field_name} exceeds size limit of {self._settings.max_upload_file_size_bytes} bytes")

        # 上传文件优先于文本字段，文件方式可绕开 multipart 字段大小限制。
        ir_payload: bytes | None = None
        if request.ir_file is not None and request.ir_file.content:
            ir_payload = request.ir_file.content
        elif request.ir_json is not None and request.ir_json.strip():
            ir_payload = request.ir_json.encode("utf-8")
        if ir_payload is not None:
            return RequestOptions(
                input_mode=InputMode.ir,
                result_format=result_format,
                language=request.language,
                ir_payload=ir_payload,
                flags=request.flags,
            )

        language = (request.language or "").strip().lower()
        if language != SUPPORTED_SOURCE_LANGUAGE:
            raise BadRequestError("Provide irJson, or language=java with inputZip/repoUrl")

        if request.repo_url and request.repo_url.strip():
            return RequestOptions(
                input_mode=InputMode.source,
                result_format=result_format,
                language=language,
                source_origin=SourceOrigin.repository_url,
                repo_url=request.repo_url.strip(),
                flags=request.flags,
            )
        if request.input_zip is not None and request.input_zip.content:
            return RequestOptions(
                input_mode=InputMode.source,
                result_format=result_format,
                language=language,
                source_origin=SourceOrigin.archive,
                archive=request.input_zip.content,
                flags=request.flags,
            )
        raise BadRequestError("Provide inputZip or repoUrl")

    def generate(self, request: XmiGenerationRequest) -> Artifact:
        """执行完整流水线并返回待响应的产物。"""
        options = self.validate(request)
        started = time.perf_counter()
        logger.info(
            "xmi generation started",
            extra={
                "event": "xmi.generate.started",
                "payload_preview": {
                    "input_mode": options.input_mode.value,
                    "result_format": options.result_format.value,
                    "source_origin": options.source_origin.value if options.source_origin else None,
                },
            },
        )
        with self._workspace_manager.scoped(self._settings.workspace_prefix) as workspace:
            # 先定位工具再落地输入，部署缺失时不必白白克隆或解压。
            tool_path = self._tool_locator.resolve(self._settings.java_to_xmi_jar)
            self._materialize_input(options, workspace)
            command = build_command(
                tool_path,
                options,
                workspace,
                java_executable=self._settings.java_executable,
                ir_timeout_seconds=self._settings.ir_timeout_seconds,
                source_timeout_seconds=self._settings.source_timeout_seconds,
            )
            self._tool_runner.run(command, cwd=workspace.root)
            artifact = self._artifact_reader.read(workspace, options)

        logger.info(
            "xmi generation finished",
            extra={
                "event": "xmi.generate.succeeded",
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                "payload_preview": {"media_type": artifact.media_type, "size_bytes": len(artifact.content)},
            },
        )
        return artifact

    def _materialize_input(self, options: RequestOptions, workspace: Workspace) -> None:
        if options.input_mode is InputMode.ir:
            self._workspace_manager.store_upload(workspace.ir_input_path, options.ir_payload or b"")
            return
        if options.source_origin is SourceOrigin.repository_url:
            self._source_fetcher.fetch(options.repo_url or "", workspace.source_dir)
            return
        archive_path = self._workspace_manager.store_upload(workspace.archive_path, options.archive or b"")
        self._archive_extractor.extract(archive_path, workspace.source_dir)

"""产物读取：按请求的输出格式从工作区取回外部工具写出的文档。"""

from __future__ import annotations

import logging
from pathlib import Path

from app.domain.enums import InputMode, ResultFormat
from app.domain.errors import ExternalToolFailedError
from app.domain.models import Artifact, RequestOptions
from app.infra.storage.workspace import Workspace

logger = logging.getLogger(__name__)

XMI_MEDIA_TYPE = "application/xml"
IR_MEDIA_TYPE = "application/json"
IR_DOWNLOAD_FILENAME = "model.ir.json"


class ArtifactReader:
    """产物读取器，产物在工作区回收前被完整读入内存。"""

    def artifact_path(self, workspace: Workspace, options: RequestOptions) -> Path:
        if options.result_format is ResultFormat.xmi:
            return workspace.xmi_output_path
        # IR 输入时原样回传提交的 IR；源码输入时返回 --write-ir 快照。
        if options.input_mode is InputMode.ir:
            return workspace.ir_input_path
        return workspace.ir_output_path

    def read(self, workspace: Workspace, options: RequestOptions) -> Artifact:
        path = self.artifact_path(workspace, options)
        if not path.is_file():
            raise ExternalToolFailedError(f"java-to-xmi finished but did not produce {path.name}")
        content = path.read_bytes()
        logger.info(
            "artifact read",
            extra={
                "event": "artifact.read",
                "payload_preview": {"file": path.name, "size_bytes": len(content)},
            },
        )
        if options.result_format is ResultFormat.ir:
            return Artifact(content=content, media_type=IR_MEDIA_TYPE, filename=IR_DOWNLOAD_FILENAME)
        return Artifact(content=content, media_type=XMI_MEDIA_TYPE)

"""XMI 生成接口：接收源码压缩包、仓库地址或 IR 文档，返回 XMI 或 IR 产物。"""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse, Response

from app.api.v1.schemas import ErrorResponse
from app.application.container import get_xmi_service
from app.application.orchestrator import XmiGenerationRequest, XmiGenerationService
from app.domain.errors import BadRequestError, XmiServiceError
from app.domain.models import ExtractionFlags, UploadedFileData

router = APIRouter()
logger = logging.getLogger(__name__)


def _service() -> XmiGenerationService:
    return get_xmi_service()


async def _read_upload(
    item: UploadFile | None,
    default_name: str,
    *,
    field_name: str,
    max_bytes: int,
) -> UploadedFileData | None:
    """读取上传内容，超过上限时在读入内存前拒绝。"""
    if item is None:
        return None
    if item.size is not None and item.size > max_bytes:
        raise BadRequestError(f"{field_name} exceeds size limit of {max_bytes} bytes")
    # size 缺失时最多多读一个字节，足以判定超限。
    content = await item.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise BadRequestError(f"{field_name} exceeds size limit of {max_bytes} bytes")
    return UploadedFileData(
        filename=item.filename or default_name,
        content=content,
        content_type=item.content_type,
    )


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


@router.post(
    "/xmi",
    responses={
        200: {"content": {"application/xml": {}, "application/json": {}}},
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def generate_xmi(
    input_zip: Annotated[UploadFile | None, File(alias="inputZip")] = None,
    ir_file: Annotated[UploadFile | None, File(alias="irFile")] = None,
    ir_json: Annotated[str | None, Form(alias="irJson")] = None,
    language: Annotated[str | None, Form()] = None,
    result_format: Annotated[str | None, Form(alias="resultFormat")] = None,
    repo_url: Annotated[str | None, Form(alias="repoUrl")] = None,
    name: Annotated[str | None, Form()] = None,
    associations: Annotated[str | None, Form()] = None,
    deps: Annotated[str | None, Form()] = None,
    nested_types: Annotated[str | None, Form(alias="nestedTypes")] = None,
    include_accessors: Annotated[str | None, Form(alias="includeAccessors")] = None,
    include_constructors: Annotated[str | None, Form(alias="includeConstructors")] = None,
    fail_on_unresolved: Annotated[str | None, Form(alias="failOnUnresolved")] = None,
    no_stereotypes: Annotated[str | None, Form(alias="noStereotypes")] = None,
    include_tests: Annotated[str | None, Form(alias="includeTests")] = None,
    exclude: Annotated[list[str] | None, Form()] = None,
    service: XmiGenerationService = Depends(_service),
) -> Response:
    """解析表单并同步执行生成流水线，阻塞部分交给线程池。"""
    flags = ExtractionFlags(
        name=name,
        associations=associations,
        deps=deps,
        nested_types=nested_types,
        include_accessors=include_accessors,
        include_constructors=include_constructors,
        fail_on_unresolved=fail_on_unresolved,
        no_stereotypes=no_stereotypes,
        include_tests=include_tests,
        excludes=tuple(item for item in (exclude or []) if item),
    )

    try:
        request = XmiGenerationRequest(
            input_zip=await _read_upload(
                input_zip, "input.zip", field_name="inputZip", max_bytes=service.max_upload_bytes
            ),
            ir_file=await _read_upload(
                ir_file, "model.ir.json", field_name="irFile", max_bytes=service.max_upload_bytes
            ),
            ir_json=ir_json,
            language=language,
            result_format=result_format,
            repo_url=repo_url,
            flags=flags,
        )
        artifact = await asyncio.to_thread(service.generate, request)
    except XmiServiceError as exc:
        logger.log(
            logging.WARNING if exc.http_status < 500 else logging.ERROR,
            "xmi request rejected" if exc.http_status < 500 else "xmi request failed",
            extra={
                "event": "xmi.request.failed",
                "status_code": exc.http_status,
                "error_type": type(exc).__name__,
                "error": str(exc),
            },
        )
        return error_response(exc.http_status, str(exc))
    except Exception as exc:
        logger.exception(
            "xmi request crashed",
            extra={"event": "xmi.request.failed", "status_code": 500, "error_type": type(exc).__name__},
        )
        return error_response(500, str(exc) or type(exc).__name__)

    headers: dict[str, str] = {}
    if artifact.filename:
        headers["Content-Disposition"] = f'attachment; filename="{artifact.filename}"'
    return Response(content=artifact.content, media_type=artifact.media_type, headers=headers)

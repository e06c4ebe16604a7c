"""FastAPI 应用入口：初始化生命周期、中间件、健康检查与路由挂载。"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import logging
import time
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.router import api_router
from app.api.v1.schemas import HealthResponse
from app.api.v1.xmi import error_response
from app.application.container import shutdown_container_resources
from app.config import get_settings
from app.infra.logging.context import bind_log_context
from app.infra.logging.setup import configure_logging, shutdown_logging

settings = get_settings()
configure_logging(settings)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """应用生命周期：启动记录关键配置，关闭释放依赖资源。"""
    logger.info(
        "api startup ready",
        extra={
            "event": "api.startup.succeeded",
            "payload_preview": {
                "environment": settings.environment,
                "jar_override": str(settings.java_to_xmi_jar) if settings.java_to_xmi_jar else None,
            },
        },
    )
    try:
        yield
    finally:
        logger.info("api shutdown begin", extra={"event": "api.shutdown.started"})
        shutdown_container_resources()
        shutdown_logging()


app = FastAPI(title=settings.app_name, lifespan=lifespan)

if settings.cors_allowed_origins_list():
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins_list(),
        allow_methods=settings.cors_allowed_methods_list(),
        allow_headers=settings.cors_allowed_headers_list(),
        allow_credentials=settings.cors_allow_credentials,
    )


@app.middleware("http")
async def attach_request_id(request: Request, call_next):
    """透传或生成 X-Request-Id，并回写到响应头。"""
    request_id = request.headers.get("X-Request-Id") or str(uuid4())
    started = time.perf_counter()
    with bind_log_context(request_id=request_id):
        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = round((time.perf_counter() - started) * 1000, 2)
            logger.exception(
                "http request failed",
                extra={
                    "event": "http.request.failed",
                    "op": f"{request.method} {request.url.path}",
                    "duration_ms": duration_ms,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            raise
        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            "http request completed",
            extra={
                "event": "http.request.completed",
                "op": f"{request.method} {request.url.path}",
                "duration_ms": duration_ms,
                "status_code": response.status_code,
            },
        )
    response.headers["X-Request-Id"] = request_id
    return response


@app.exception_handler(RequestValidationError)
async def handle_validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """表单解析失败统一按调用方输入错误返回 {error}。"""
    messages = [f"{'.'.join(str(part) for part in item.get('loc', ()))}: {item.get('msg')}" for item in exc.errors()]
    return error_response(400, "; ".join(messages) or "invalid request")


@app.exception_handler(StarletteHTTPException)
async def handle_http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """框架层错误（multipart 解析失败、字段超长、404 等）同样返回 {error}。"""
    response = error_response(exc.status_code, str(exc.detail))
    for key, value in (exc.headers or {}).items():
        response.headers[key] = value
    return response


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(ok=True)


@app.get("/healthz", response_model=HealthResponse)
def healthz() -> HealthResponse:
    return HealthResponse(ok=True)


app.include_router(api_router)


def run() -> None:
    """命令行入口：以 uvicorn 启动服务。"""
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.port)

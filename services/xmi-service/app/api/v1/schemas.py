"""API 响应数据模型定义，约束健康检查与错误返回结构。"""

from __future__ import annotations

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """健康检查接口响应模型。"""
    ok: bool = True


class ErrorResponse(BaseModel):
    """失败响应模型，400 与 500 共用。"""
    error: str

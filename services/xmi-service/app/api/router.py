"""API 总路由配置，注册 XMI 生成子路由。"""

from __future__ import annotations

from fastapi import APIRouter

from app.api.v1.xmi import router as xmi_router
from app.config import get_settings

settings = get_settings()

api_router = APIRouter(prefix=settings.api_prefix)
api_router.include_router(xmi_router, tags=["xmi"])

"""领域枚举定义：统一输入模式、输出格式和源码来源取值。"""

from __future__ import annotations

from enum import Enum


class InputMode(str, Enum):
    """请求输入模式枚举。"""
    source = "source"
    ir = "ir"


class ResultFormat(str, Enum):
    """响应产物格式枚举。"""
    xmi = "xmi"
    ir = "ir"


class SourceOrigin(str, Enum):
    """源码来源枚举，仅在 source 模式下有值。"""
    archive = "archive"
    repository_url = "repository-url"

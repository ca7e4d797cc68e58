"""
BlogCMS 数据模型层

包含:
- database: SQLAlchemy 数据库模型
- schemas: Pydantic 请求模型
- response: 统一响应与业务异常
"""

from .database import (
    Base,
    Language,
    TrueFalseAnswer,
)
from .response import (
    ErrorCode,
    BusinessException,
    NotFoundException,
    success_response,
    error_response,
)

__all__ = [
    "Base",
    "Language",
    "TrueFalseAnswer",
    "ErrorCode",
    "BusinessException",
    "NotFoundException",
    "success_response",
    "error_response",
]

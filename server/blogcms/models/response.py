"""
统一响应格式 + 错误码 + 业务异常

响应结构:
{
    "status": {"code": 200, "message": "...", "errors": null},
    "data": ...,
    "meta": {"serverDateTime": "2024-01-01 12:00:00", "requestId": "ab12cd34"}
}
"""

import math
from datetime import datetime
from enum import IntEnum
from typing import Any, List, Optional

from ..utils.logger import request_id_var


class ErrorCode(IntEnum):
    """错误码枚举"""
    SUCCESS = 0

    # 客户端错误 1001-1010
    INVALID_PARAMS = 1001
    INVALID_FORMAT = 1003
    RESOURCE_NOT_FOUND = 1006
    DUPLICATE_RESOURCE = 1007
    RANGE_NOT_SATISFIABLE = 1010

    # 服务端错误 2002-2004
    DATABASE_ERROR = 2002
    STORAGE_ERROR = 2004

    # 外部资源错误
    DOWNLOAD_FAILED = 3001

    # 业务错误 4001-4003
    FILE_ALREADY_EXISTS = 4001
    SYSTEM_SETTING_LOCKED = 4002
    UNSUPPORTED_FILE_TYPE = 4003


# 错误码 -> HTTP 状态码; 未列出的业务错误一律 400
HTTP_STATUS_MAP = {
    ErrorCode.RESOURCE_NOT_FOUND: 404,
    ErrorCode.RANGE_NOT_SATISFIABLE: 416,
    ErrorCode.DATABASE_ERROR: 500,
}


class BusinessException(Exception):
    """自定义业务异常"""

    def __init__(self, code: ErrorCode, message: str, detail: Any = None):
        self.code = code
        self.message = message
        self.detail = detail
        super().__init__(message)

    @property
    def http_status(self) -> int:
        return HTTP_STATUS_MAP.get(self.code, 400)


class NotFoundException(BusinessException):
    """记录或文件不存在"""

    def __init__(self, message: str, detail: Any = None):
        super().__init__(ErrorCode.RESOURCE_NOT_FOUND, message, detail)


def _meta(request_id: Optional[str]) -> dict:
    return {
        "serverDateTime": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        "requestId": request_id or request_id_var.get(),
    }


def success_response(
    data: Any = None,
    message: str = "success",
    request_id: Optional[str] = None,
) -> dict:
    """构建成功响应"""
    return {
        "status": {"code": 200, "message": message, "errors": None},
        "data": data,
        "meta": _meta(request_id),
    }


def error_response(
    status_code: int,
    message: str,
    errors: Any = None,
    request_id: Optional[str] = None,
) -> dict:
    """构建错误响应"""
    return {
        "status": {"code": status_code, "message": message, "errors": errors},
        "data": None,
        "meta": _meta(request_id),
    }


def page_result(items: List[dict], total: int, page: int, size: int) -> dict:
    """构建分页结果 (page 从 0 开始)"""
    return {
        "content": items,
        "page": page,
        "size": size,
        "totalElements": total,
        "totalPages": math.ceil(total / size) if size > 0 else 0,
    }

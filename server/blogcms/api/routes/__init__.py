"""
HTTP 路由子模块

公共解析工具: 语言参数、请求体 (JSON / multipart)、文件响应
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional, Tuple, Type

from fastapi import Request
from fastapi.responses import FileResponse, StreamingResponse
from pydantic import BaseModel
from starlette.datastructures import UploadFile

from ...models.database import Language
from ...models.response import ErrorCode, BusinessException
from ...utils.storage import content_type_for, parse_range

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def parse_language(lang_str: Optional[str], *, required: bool = False) -> Optional[Language]:
    """解析语言参数 (不区分大小写)

    required=True: 为空或无效均抛异常
    required=False: 为空返回 None，无效则抛异常
    """
    if not lang_str:
        if required:
            raise BusinessException(ErrorCode.INVALID_PARAMS, "Language is required")
        return None
    try:
        return Language(lang_str.upper())
    except ValueError:
        raise BusinessException(ErrorCode.INVALID_PARAMS, f"Invalid language: {lang_str}")


async def read_payload(
    request: Request,
    model: Type[BaseModel],
    file_fields: Optional[Dict[str, str]] = None,
) -> Tuple[BaseModel, Dict[str, UploadFile]]:
    """
    解析 JSON 或 multipart 请求体

    Args:
        model: Pydantic 请求模型
        file_fields: 表单文件字段名 -> 服务参数名，如 {"coverImageFile": "cover"}

    Returns:
        (请求模型实例, {服务参数名: UploadFile})
    """
    file_fields = file_fields or {}
    files: Dict[str, UploadFile] = {}
    content_type = request.headers.get("content-type", "")

    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        raw = {}
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if not value.filename:
                    continue
                if key not in file_fields:
                    raise BusinessException(ErrorCode.INVALID_PARAMS, f"Unexpected file field: {key}")
                files[file_fields[key]] = value
            elif value != "":
                raw[key] = value
    else:
        body = await request.body()
        try:
            raw = json.loads(body) if body else {}
        except json.JSONDecodeError:
            raise BusinessException(ErrorCode.INVALID_FORMAT, "Malformed JSON request body")
        if not isinstance(raw, dict):
            raise BusinessException(ErrorCode.INVALID_FORMAT, "Request body must be a JSON object")

    return model.model_validate(raw), files


def _iter_file(path: Path, start: int, end: int):
    with open(path, "rb") as f:
        f.seek(start)
        remaining = end - start + 1
        while remaining > 0:
            chunk = f.read(min(CHUNK_SIZE, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            yield chunk


def file_response(path: Path, request: Optional[Request] = None, attachment: bool = False):
    """
    文件响应

    传入 request 时支持 Range 请求: 206 + Content-Range；
    attachment=True 时以下载方式返回
    """
    media_type = content_type_for(path.name)
    length = path.stat().st_size
    headers = {"Accept-Ranges": "bytes"}
    disposition = "attachment" if attachment else "inline"

    byte_range = parse_range(request.headers.get("range"), length) if request else None
    if byte_range is None:
        return FileResponse(
            path,
            media_type=media_type,
            headers=headers,
            filename=path.name,
            content_disposition_type=disposition,
        )

    start, end = byte_range
    headers.update({
        "Content-Range": f"bytes {start}-{end}/{length}",
        "Content-Length": str(end - start + 1),
    })
    return StreamingResponse(
        _iter_file(path, start, end),
        status_code=206,
        media_type=media_type,
        headers=headers,
    )

"""
文件类服务基础

在 CrudService 之上提供: 上传 / URL 下载落盘、图片缩放、
冲突处理、文件 URL 生成
"""

import asyncio
import logging
from dataclasses import dataclass
from functools import partial
from typing import Optional, Type

from starlette.datastructures import UploadFile

from ..models.database import Base
from ..models.response import ErrorCode, BusinessException
from ..utils.images import process_image
from ..utils.storage import (
    FileStorage, safe_filename, filename_from_url, get_extension,
)
from .base import CrudService

logger = logging.getLogger(__name__)

COVER_SUBDIR = "cover-images"


@dataclass
class StoredFile:
    """已落盘文件信息"""
    filename: str
    size_bytes: int
    width: Optional[int] = None
    height: Optional[int] = None


def has_upload(upload: Optional[UploadFile]) -> bool:
    """multipart 中空文件字段视为未上传"""
    return upload is not None and bool(upload.filename)


def is_http_url(url: Optional[str]) -> bool:
    return bool(url) and url.lower().startswith(("http://", "https://"))


class MediaService(CrudService):
    """带本地文件的实体服务"""

    def __init__(
        self,
        session_factory,
        model: Type[Base],
        storage: FileStorage,
        base_url: str = "",
        label: Optional[str] = None,
    ):
        """
        Args:
            storage: 模块目录的 FileStorage
            base_url: 文件访问 URL 前缀，如 /v1/audios/view
        """
        super().__init__(session_factory, model, label=label)
        self.storage = storage
        self.base_url = base_url.rstrip("/")

    def file_url(self, filename: Optional[str], prefix: Optional[str] = None) -> Optional[str]:
        if not filename:
            return None
        return f"{(prefix or self.base_url).rstrip('/')}/{filename}"

    async def _write(
        self,
        data: bytes,
        filename: str,
        subdir: Optional[str],
        image_max_size: Optional[int] = None,
        image_target_size: Optional[int] = None,
    ) -> StoredFile:
        """写入文件，指定尺寸时按图片处理 (无法解码则原样保存)"""
        width = height = None
        if image_max_size or image_target_size:
            loop = asyncio.get_event_loop()
            data, size = await loop.run_in_executor(
                None,
                partial(
                    process_image,
                    data,
                    get_extension(filename),
                    max_size=image_max_size,
                    target_size=image_target_size,
                ),
            )
            if size:
                width, height = size
            else:
                logger.warning(f"非光栅图片，按原始字节保存: {filename}")
        await self.storage.write(filename, data, subdir)
        return StoredFile(filename=filename, size_bytes=len(data), width=width, height=height)

    async def store_upload(
        self,
        upload: UploadFile,
        suffix: str,
        subdir: Optional[str] = None,
        filename: Optional[str] = None,
        reject_existing: bool = False,
        image_max_size: Optional[int] = None,
        image_target_size: Optional[int] = None,
    ) -> StoredFile:
        """
        保存上传文件

        Args:
            suffix: 缺少文件名时的后缀，如 "cover" -> "1700000000000-cover"
            filename: 指定文件名 (否则取上传文件名)
            reject_existing: 同名文件存在时报错，否则追加 -1, -2 ...
        """
        name = safe_filename(filename or upload.filename, suffix)
        if reject_existing:
            if self.storage.exists(name, subdir):
                raise BusinessException(
                    ErrorCode.FILE_ALREADY_EXISTS, "Filename already exists", detail={"filename": name}
                )
        else:
            name = self.storage.unique_name(name, subdir)

        data = await upload.read()
        if not data:
            raise BusinessException(ErrorCode.INVALID_PARAMS, "Uploaded file is empty")
        return await self._write(data, name, subdir, image_max_size, image_target_size)

    async def store_url(
        self,
        url: str,
        suffix: str,
        subdir: Optional[str] = None,
        filename: Optional[str] = None,
        image_max_size: Optional[int] = None,
        image_target_size: Optional[int] = None,
    ) -> StoredFile:
        """下载远程文件并保存，文件名冲突时追加后缀"""
        if not is_http_url(url):
            raise BusinessException(ErrorCode.INVALID_PARAMS, f"Invalid URL: {url}")
        data = await self.storage.download(url)
        name = self.storage.unique_name(filename or filename_from_url(url, suffix), subdir)
        return await self._write(data, name, subdir, image_max_size, image_target_size)

"""
图片服务

主图按最大边长缩放，另生成缩略图；
文件名: {拼音名}_{宽}_{高}_{毫秒}.{扩展名}
"""

import asyncio
import logging
from typing import Optional, Dict, Any

from starlette.datastructures import UploadFile

from ..models.response import ErrorCode, BusinessException
from ..utils.images import (
    decode_image, resize_if_needed, encode_image, convert_image, PIL_FORMATS,
)
from ..utils.storage import (
    millis, to_pinyin_slug, get_extension, safe_filename, filename_from_url,
    content_type_for, replace_extension,
)
from .media import MediaService, has_upload

logger = logging.getLogger(__name__)


def image_filename(name: Optional[str], extension: str, width: int, height: int) -> str:
    return f"{to_pinyin_slug(name, 'img')}_{width}_{height}_{millis()}.{extension}"


class ImageService(MediaService):
    """图片 CRUD (Image / ImageRu)"""

    label = "Image"

    def __init__(
        self,
        *args,
        max_size: int = 1920,
        thumbnail_size: int = 200,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.max_size = max_size
        self.thumbnail_size = thumbnail_size

    def _to_dict(self, entity) -> Dict[str, Any]:
        result = entity.to_dict()
        result["fileUrl"] = self.file_url(entity.filename)
        result["thumbnailUrl"] = self.file_url(entity.thumbnail_filename)
        return result

    def _render_variants(self, data: bytes, extension: str):
        """解码并编码主图和缩略图 (在线程池中执行)"""
        image = decode_image(data)
        if image is None:
            raise BusinessException(ErrorCode.UNSUPPORTED_FILE_TYPE, "Unsupported image format")

        main = resize_if_needed(image, self.max_size)
        thumb = resize_if_needed(image, self.thumbnail_size)
        return (
            (main.size, encode_image(main, extension)),
            (thumb.size, encode_image(thumb, extension)),
        )

    async def _save_variants(self, data: bytes, name: str, extension: str) -> Dict[str, Any]:
        """保存主图和缩略图，返回要写入实体的字段"""
        loop = asyncio.get_event_loop()
        (main_size, main_bytes), (thumb_size, thumb_bytes) = await loop.run_in_executor(
            None, self._render_variants, data, extension
        )

        main_name = self.storage.unique_name(image_filename(name, extension, *main_size))
        await self.storage.write(main_name, main_bytes)

        thumb_name = self.storage.unique_name(image_filename(name, extension, *thumb_size))
        await self.storage.write(thumb_name, thumb_bytes)

        return {
            "filename": main_name,
            "thumbnail_filename": thumb_name,
            "extension": extension,
            "mime_type": content_type_for(main_name),
            "size_bytes": len(main_bytes),
            "width": main_size[0],
            "height": main_size[1],
        }

    async def create(
        self,
        data: Dict[str, Any],
        user_id: str = "system",
        file: Optional[UploadFile] = None,
    ) -> Dict[str, Any]:
        """从上传文件或 originalUrl 创建图片"""
        values = dict(data)
        if has_upload(file):
            source_name = safe_filename(file.filename, "image")
            raw = await file.read()
        elif values.get("original_url"):
            source_name = filename_from_url(values["original_url"], "image")
            raw = await self.storage.download(values["original_url"])
        else:
            raise BusinessException(ErrorCode.INVALID_PARAMS, "Either file or originalUrl is required")

        extension = get_extension(source_name)
        if extension not in PIL_FORMATS:
            extension = "png"

        values.update(await self._save_variants(raw, values.get("name"), extension))

        try:
            return await super().create(values, user_id)
        except BusinessException:
            await self.storage.delete(values["filename"])
            await self.storage.delete(values["thumbnail_filename"])
            raise

    async def _convert(self, filename: Optional[str], extension: str) -> Optional[str]:
        """把已有文件转换为新扩展名，返回新文件名"""
        if not filename or not self.storage.exists(filename):
            return filename
        data = await self.storage.read(filename)
        loop = asyncio.get_event_loop()
        encoded = await loop.run_in_executor(None, convert_image, data, extension)
        if encoded is None:
            logger.warning(f"无法转换图片格式: {filename}")
            return filename
        new_name = self.storage.unique_name(replace_extension(filename, extension))
        await self.storage.write(new_name, encoded)
        return new_name

    async def update(
        self,
        entity_id: str,
        data: Dict[str, Any],
        user_id: str = "system",
    ) -> Optional[Dict[str, Any]]:
        """更新元数据；extension 变化时转换主图和缩略图"""
        image = await self.find(entity_id)
        if not image:
            return None

        values = dict(data)
        new_ext = (values.pop("extension", None) or "").lower().lstrip(".")
        converted = {}
        if new_ext and new_ext != (image.extension or get_extension(image.filename)):
            if new_ext not in PIL_FORMATS:
                raise BusinessException(
                    ErrorCode.UNSUPPORTED_FILE_TYPE, f"Unsupported image extension: {new_ext}"
                )
            converted = {
                "filename": await self._convert(image.filename, new_ext),
                "thumbnail_filename": await self._convert(image.thumbnail_filename, new_ext),
                "extension": new_ext,
                "mime_type": content_type_for(f"x.{new_ext}"),
            }
            if self.storage.exists(converted["filename"]):
                converted["size_bytes"] = self.storage.path(converted["filename"]).stat().st_size
            values.update(converted)

        try:
            result = await super().update(entity_id, values, user_id)
        except BusinessException:
            for old, new in (
                (image.filename, converted.get("filename")),
                (image.thumbnail_filename, converted.get("thumbnail_filename")),
            ):
                if new and new != old:
                    await self.storage.delete(new)
            raise

        if converted:
            for old, new in (
                (image.filename, converted["filename"]),
                (image.thumbnail_filename, converted["thumbnail_filename"]),
            ):
                if old and old != new:
                    await self.storage.delete(old)
        return result

    async def _remove_files(self, entity) -> None:
        await self.storage.delete(entity.filename)
        if entity.thumbnail_filename:
            await self.storage.delete(entity.thumbnail_filename)

    def image_path(self, filename: str):
        return self.storage.resolve(filename)

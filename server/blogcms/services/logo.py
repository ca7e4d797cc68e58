"""
Logo 服务

文件名: {拼音名}_{yyyyMMddHHmmss}.{扩展名}
光栅图片最长边缩放到目标尺寸，SVG 原样保存；名称变化时重命名文件
"""

import logging
from datetime import datetime
from typing import Optional, Dict, Any, List

from starlette.datastructures import UploadFile

from ..models.response import ErrorCode, BusinessException
from ..utils.storage import to_pinyin_slug, get_extension, filename_from_url
from .media import MediaService, has_upload, is_http_url

logger = logging.getLogger(__name__)

LOGO_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp", "bmp", "svg"}


def logo_filename(name: Optional[str], extension: str) -> str:
    timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
    return f"{to_pinyin_slug(name, 'logo')}_{timestamp}.{extension}"


class LogoService(MediaService):
    """Logo CRUD"""

    label = "Logo"

    def __init__(self, *args, target_size: int = 256, max_file_size: int = 5 * 1024 * 1024, **kwargs):
        super().__init__(*args, **kwargs)
        self.target_size = target_size
        self.max_file_size = max_file_size

    def _to_dict(self, entity) -> Dict[str, Any]:
        result = entity.to_dict()
        result["logoUrl"] = self.file_url(entity.filename)
        return result

    async def _save(self, data: bytes, name: str, extension: str) -> str:
        filename = self.storage.unique_name(logo_filename(name, extension))
        if extension == "svg":
            await self._write(data, filename, None)
        else:
            await self._write(data, filename, None, image_target_size=self.target_size)
        return filename

    async def _read_upload(self, file: UploadFile) -> tuple:
        data = await file.read()
        if not data:
            raise BusinessException(ErrorCode.INVALID_PARAMS, "Uploaded file is empty")
        if len(data) > self.max_file_size:
            raise BusinessException(
                ErrorCode.INVALID_PARAMS,
                f"File size exceeds maximum allowed: {self.max_file_size} bytes",
            )
        extension = get_extension(file.filename)
        content_type = file.content_type or ""
        if extension not in LOGO_EXTENSIONS and not content_type.startswith("image/"):
            raise BusinessException(ErrorCode.UNSUPPORTED_FILE_TYPE, "File must be an image (including SVG)")
        if extension not in LOGO_EXTENSIONS:
            extension = "svg" if "svg" in content_type else "png"
        return data, extension

    async def create(
        self,
        data: Dict[str, Any],
        user_id: str = "system",
        file: Optional[UploadFile] = None,
    ) -> Dict[str, Any]:
        """从上传文件或 originalUrl 创建 Logo"""
        values = dict(data)
        if has_upload(file):
            raw, extension = await self._read_upload(file)
        elif is_http_url(values.get("original_url")):
            raw = await self.storage.download(values["original_url"])
            extension = get_extension(filename_from_url(values["original_url"]))
            if extension not in LOGO_EXTENSIONS:
                extension = "png"
        else:
            raise BusinessException(ErrorCode.INVALID_PARAMS, "Either file or originalUrl is required")

        values["filename"] = await self._save(raw, values.get("name"), extension)
        values["extension"] = extension

        try:
            return await super().create(values, user_id)
        except BusinessException:
            await self.storage.delete(values["filename"])
            raise

    async def update(
        self,
        entity_id: str,
        data: Dict[str, Any],
        user_id: str = "system",
    ) -> Optional[Dict[str, Any]]:
        """更新 Logo，名称变化时按新名称重命名文件"""
        logo = await self.find(entity_id)
        if not logo:
            return None

        values = dict(data)
        renamed = None
        new_name = values.get("name")
        if new_name and new_name != logo.name and self.storage.exists(logo.filename):
            extension = logo.extension or get_extension(logo.filename)
            renamed = await self.storage.rename(logo.filename, logo_filename(new_name, extension))
            values["filename"] = renamed

        try:
            return await super().update(entity_id, values, user_id)
        except BusinessException:
            if renamed:
                await self.storage.rename(renamed, logo.filename)
            raise

    async def _remove_files(self, entity) -> None:
        await self.storage.delete(entity.filename)

    async def search_by_keyword(self, keyword: str) -> List[Dict[str, Any]]:
        return await self.list_all(filters={"name": keyword})

    async def find_by_tag(self, tag: str) -> List[Dict[str, Any]]:
        return await self.list_all(filters={"tags": tag})

    def logo_path(self, filename: str):
        return self.storage.resolve(filename)

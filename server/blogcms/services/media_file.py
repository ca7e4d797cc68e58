"""
音频 / 视频 / 通用文件服务

- 音频、视频: 文件名已存在时拒绝上传，可带封面图 (cover-images/)
- 通用文件: 文件名冲突时自动追加后缀，记录扩展名和 MIME 类型
"""

import logging
from typing import Optional, Dict, Any

from starlette.datastructures import UploadFile

from ..models.response import ErrorCode, BusinessException
from ..utils.storage import get_extension, content_type_for
from .media import MediaService, StoredFile, COVER_SUBDIR, has_upload

logger = logging.getLogger(__name__)


class AudioService(MediaService):
    """音频 CRUD + 文件管理 (Audio / AudioRu)"""

    label = "Audio"
    media_suffix = "audio"
    reject_existing = True
    has_cover = True

    def __init__(self, *args, cover_max_size: int = 600, cover_url: str = "", **kwargs):
        super().__init__(*args, **kwargs)
        self.cover_max_size = cover_max_size
        self.cover_url = cover_url

    def _to_dict(self, entity) -> Dict[str, Any]:
        result = entity.to_dict()
        result["fileUrl"] = self.file_url(entity.filename)
        if self.has_cover:
            result["coverImageFileUrl"] = self.file_url(entity.cover_image_filename, self.cover_url)
        return result

    def _file_fields(self, stored: StoredFile) -> Dict[str, Any]:
        return {"filename": stored.filename, "size_bytes": stored.size_bytes}

    async def _store_media(
        self,
        values: Dict[str, Any],
        file: Optional[UploadFile],
        required: bool,
    ) -> Optional[StoredFile]:
        if has_upload(file):
            return await self.store_upload(
                file, self.media_suffix,
                filename=values.get("filename"),
                reject_existing=self.reject_existing,
            )
        url = values.get("original_url")
        if required and url:
            return await self.store_url(url, self.media_suffix, filename=values.get("filename"))
        if required:
            raise BusinessException(ErrorCode.INVALID_PARAMS, "Either file or originalUrl is required")
        return None

    async def _store_cover(self, cover: Optional[UploadFile]) -> Optional[StoredFile]:
        if not self.has_cover or not has_upload(cover):
            return None
        return await self.store_upload(
            cover, "cover", COVER_SUBDIR, image_max_size=self.cover_max_size
        )

    async def create(
        self,
        data: Dict[str, Any],
        user_id: str = "system",
        file: Optional[UploadFile] = None,
        cover: Optional[UploadFile] = None,
    ) -> Dict[str, Any]:
        """上传 (或从 originalUrl 下载) 媒体文件并创建记录"""
        values = dict(data)
        stored = await self._store_media(values, file, required=True)
        values.update(self._file_fields(stored))

        try:
            stored_cover = await self._store_cover(cover)
        except BusinessException:
            await self.storage.delete(stored.filename)
            raise
        if stored_cover:
            values["cover_image_filename"] = stored_cover.filename

        try:
            return await super().create(values, user_id)
        except BusinessException:
            await self.storage.delete(stored.filename)
            if stored_cover:
                await self.storage.delete(stored_cover.filename, COVER_SUBDIR)
            raise

    async def update(
        self,
        entity_id: str,
        data: Dict[str, Any],
        user_id: str = "system",
        file: Optional[UploadFile] = None,
        cover: Optional[UploadFile] = None,
    ) -> Optional[Dict[str, Any]]:
        """更新元数据；新文件 / 新封面保存成功后删除旧文件"""
        entity = await self.find(entity_id)
        if not entity:
            return None

        values = {k: v for k, v in data.items() if k != "filename"}
        stored = await self._store_media(values, file, required=False)
        if stored:
            values.update(self._file_fields(stored))
        try:
            stored_cover = await self._store_cover(cover)
        except BusinessException:
            if stored:
                await self.storage.delete(stored.filename)
            raise
        if stored_cover:
            values["cover_image_filename"] = stored_cover.filename

        try:
            result = await super().update(entity_id, values, user_id)
        except BusinessException:
            if stored:
                await self.storage.delete(stored.filename)
            if stored_cover:
                await self.storage.delete(stored_cover.filename, COVER_SUBDIR)
            raise

        if stored and entity.filename != stored.filename:
            await self.storage.delete(entity.filename)
        if stored_cover and entity.cover_image_filename:
            await self.storage.delete(entity.cover_image_filename, COVER_SUBDIR)
        return result

    async def _remove_files(self, entity) -> None:
        await self.storage.delete(entity.filename)
        if self.has_cover and entity.cover_image_filename:
            await self.storage.delete(entity.cover_image_filename, COVER_SUBDIR)

    def media_path(self, filename: str):
        return self.storage.resolve(filename)

    def cover_path(self, filename: str):
        return self.storage.resolve(filename, COVER_SUBDIR)


class VideoService(AudioService):
    """视频 CRUD + 文件管理 (Video / VideoRu)"""

    label = "Video"
    media_suffix = "video"


class FileService(AudioService):
    """通用文件 CRUD (CmsFile)"""

    label = "File"
    media_suffix = "file"
    reject_existing = False
    has_cover = False

    def _file_fields(self, stored: StoredFile) -> Dict[str, Any]:
        return {
            "filename": stored.filename,
            "size_bytes": stored.size_bytes,
            "extension": get_extension(stored.filename) or None,
            "mime_type": content_type_for(stored.filename),
        }

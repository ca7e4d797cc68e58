"""
文章服务

封面图来自上传或 URL，存放在 <文章目录>/cover-images/ 下，
按封面最大边长缩放
"""

import logging
from typing import Optional, Dict, Any

from starlette.datastructures import UploadFile

from ..models.response import ErrorCode, BusinessException, NotFoundException
from .media import MediaService, StoredFile, COVER_SUBDIR, has_upload

logger = logging.getLogger(__name__)


class ArticleService(MediaService):
    """文章 CRUD + 封面图管理 (Article / ArticleRu)"""

    name_field = "title"
    label = "Article"

    def __init__(self, *args, cover_max_size: int = 600, **kwargs):
        super().__init__(*args, **kwargs)
        self.cover_max_size = cover_max_size

    def _to_dict(self, entity) -> Dict[str, Any]:
        result = entity.to_dict()
        result["coverImageFileUrl"] = self.file_url(entity.cover_image_filename)
        return result

    async def _store_cover(
        self,
        upload: Optional[UploadFile],
        url: Optional[str],
        reject_existing: bool,
    ) -> Optional[StoredFile]:
        if has_upload(upload):
            return await self.store_upload(
                upload, "cover", COVER_SUBDIR,
                reject_existing=reject_existing,
                image_max_size=self.cover_max_size,
            )
        if url:
            return await self.store_url(
                url, "cover", COVER_SUBDIR, image_max_size=self.cover_max_size
            )
        return None

    async def create(
        self,
        data: Dict[str, Any],
        user_id: str = "system",
        cover: Optional[UploadFile] = None,
    ) -> Dict[str, Any]:
        """创建文章，上传的封面与已有文件同名时报错"""
        values = dict(data)
        try:
            stored = await self._store_cover(cover, values.get("cover_image_original_url"), True)
        except BusinessException as e:
            if e.code == ErrorCode.FILE_ALREADY_EXISTS:
                raise BusinessException(
                    ErrorCode.FILE_ALREADY_EXISTS,
                    f"Cover image already exists: {e.detail['filename']}",
                )
            raise
        if stored:
            values["cover_image_filename"] = stored.filename

        try:
            return await super().create(values, user_id)
        except BusinessException:
            if stored:
                await self.storage.delete(stored.filename, COVER_SUBDIR)
            raise

    async def update(
        self,
        entity_id: str,
        data: Dict[str, Any],
        user_id: str = "system",
        cover: Optional[UploadFile] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        更新文章

        新封面 (上传，或与原 URL 不同的 URL) 保存成功后删除旧封面；
        URL 未变化时不重复下载
        """
        article = await self.find(entity_id)
        if not article:
            return None

        values = dict(data)
        url = values.get("cover_image_original_url")
        if url and url == article.cover_image_original_url and not has_upload(cover):
            url = None

        stored = await self._store_cover(cover, url, False)
        if stored:
            values["cover_image_filename"] = stored.filename

        try:
            result = await super().update(entity_id, values, user_id)
        except BusinessException:
            if stored:
                await self.storage.delete(stored.filename, COVER_SUBDIR)
            raise

        if stored and article.cover_image_filename and article.cover_image_filename != stored.filename:
            await self.storage.delete(article.cover_image_filename, COVER_SUBDIR)
        return result

    async def _remove_files(self, entity) -> None:
        if entity.cover_image_filename:
            await self.storage.delete(entity.cover_image_filename, COVER_SUBDIR)

    def cover_path(self, filename: str):
        """封面文件路径"""
        try:
            return self.storage.resolve(filename, COVER_SUBDIR)
        except NotFoundException:
            raise NotFoundException(f"Cover image file not found: {filename}")

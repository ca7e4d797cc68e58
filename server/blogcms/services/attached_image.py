"""
附属图片服务

文章配图 (ArticleImage / ArticleImageRu) 和题目配图 (QuestionImageRu)
"""

import logging
from typing import Optional, Dict, Any

from starlette.datastructures import UploadFile

from ..models.response import ErrorCode, BusinessException
from .media import MediaService, has_upload

logger = logging.getLogger(__name__)


class AttachedImageService(MediaService):
    """图片随宿主实体 ID 存储，按最大边长缩放并记录宽高"""

    name_field = "filename"
    label = "Image"

    def __init__(self, *args, max_size: int = 1920, **kwargs):
        super().__init__(*args, **kwargs)
        self.max_size = max_size

    def _to_dict(self, entity) -> Dict[str, Any]:
        result = entity.to_dict()
        result["fileUrl"] = self.file_url(entity.filename)
        return result

    async def create(
        self,
        data: Dict[str, Any],
        user_id: str = "system",
        file: Optional[UploadFile] = None,
    ) -> Dict[str, Any]:
        """从上传文件或 originalUrl 创建"""
        values = dict(data)
        if has_upload(file):
            stored = await self.store_upload(
                file, "image", filename=values.get("filename"), image_max_size=self.max_size
            )
        elif values.get("original_url"):
            stored = await self.store_url(
                values["original_url"], "image",
                filename=values.get("filename"), image_max_size=self.max_size,
            )
        else:
            raise BusinessException(ErrorCode.INVALID_PARAMS, "Either file or originalUrl is required")

        values["filename"] = stored.filename
        values["width"] = stored.width
        values["height"] = stored.height

        try:
            return await super().create(values, user_id)
        except BusinessException:
            await self.storage.delete(stored.filename)
            raise

    async def _remove_files(self, entity) -> None:
        await self.storage.delete(entity.filename)

    def image_path(self, filename: str):
        return self.storage.resolve(filename)

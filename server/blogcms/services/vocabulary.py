"""
单词服务

(name, lang) 唯一；配图和发音音频的文件名由单词生成 (小写，空白转 "-")，
分别存放在 images/ 和 audios/ 子目录
"""

import logging
from typing import Optional, Dict, Any

from starlette.datastructures import UploadFile

from ..models.response import BusinessException
from ..utils.storage import get_extension, filename_from_url, word_filename
from .media import MediaService, has_upload, is_http_url

logger = logging.getLogger(__name__)

IMAGE_SUBDIR = "images"
AUDIO_SUBDIR = "audios"

# (文件名列, 原始 URL 列, 子目录, 默认扩展名)
ASSETS = {
    "image": ("image_filename", "image_original_url", IMAGE_SUBDIR, "jpg"),
    "audio": ("phonetic_audio_filename", "phonetic_audio_original_url", AUDIO_SUBDIR, "mp3"),
}


class VocabularyService(MediaService):
    """单词 CRUD + 配图 / 发音文件管理"""

    unique_name = True
    label = "Vocabulary"

    def __init__(self, *args, image_max_size: int = 1920, **kwargs):
        super().__init__(*args, **kwargs)
        self.image_max_size = image_max_size

    def _not_unique_message(self, name, lang) -> str:
        return f"Vocabulary '{name}' already exists for language '{lang.value}'"

    def _to_dict(self, entity) -> Dict[str, Any]:
        result = entity.to_dict()
        result["imageUrl"] = self.file_url(entity.image_filename, f"{self.base_url}/images")
        result["phoneticAudioUrl"] = self.file_url(
            entity.phonetic_audio_filename, f"{self.base_url}/audios"
        )
        return result

    async def _store_asset(
        self,
        kind: str,
        word: str,
        upload: Optional[UploadFile],
        url: Optional[str],
    ) -> Optional[str]:
        """保存配图 / 音频，返回文件名"""
        _, _, subdir, default_ext = ASSETS[kind]
        max_size = self.image_max_size if kind == "image" else None

        if has_upload(upload):
            extension = get_extension(upload.filename) or default_ext
            stored = await self.store_upload(
                upload, kind, subdir,
                filename=word_filename(word, extension),
                image_max_size=max_size,
            )
            return stored.filename
        if is_http_url(url):
            extension = get_extension(filename_from_url(url)) or default_ext
            stored = await self.store_url(
                url, kind, subdir,
                filename=word_filename(word, extension),
                image_max_size=max_size,
            )
            return stored.filename
        return None

    async def create(
        self,
        data: Dict[str, Any],
        user_id: str = "system",
        image: Optional[UploadFile] = None,
        audio: Optional[UploadFile] = None,
    ) -> Dict[str, Any]:
        """创建单词，可同时上传配图和发音"""
        values = dict(data)
        async with self.session_factory() as session:
            await self._check_unique(session, values.get("name"), values.get("lang"))

        saved = []
        for kind, upload in (("image", image), ("audio", audio)):
            filename_col, url_col, subdir, _ = ASSETS[kind]
            filename = await self._store_asset(kind, values["name"], upload, values.get(url_col))
            if filename:
                values[filename_col] = filename
                saved.append((filename, subdir))

        try:
            return await super().create(values, user_id)
        except BusinessException:
            for filename, subdir in saved:
                await self.storage.delete(filename, subdir)
            raise

    async def update(
        self,
        entity_id: str,
        data: Dict[str, Any],
        user_id: str = "system",
        image: Optional[UploadFile] = None,
        audio: Optional[UploadFile] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        更新单词

        每类文件: 新上传 > URL 变化且以 http 开头则重新下载 > 单词改名则重命名已有文件
        """
        vocabulary = await self.find(entity_id)
        if not vocabulary:
            return None

        values = dict(data)
        new_name = values.get("name") or vocabulary.name
        if new_name != vocabulary.name or values.get("lang"):
            async with self.session_factory() as session:
                await self._check_unique(
                    session, new_name, values.get("lang") or vocabulary.lang, exclude_id=entity_id
                )

        replaced = []
        saved = []
        renamed = []
        for kind, upload in (("image", image), ("audio", audio)):
            filename_col, url_col, subdir, _ = ASSETS[kind]
            old_filename = getattr(vocabulary, filename_col)
            url = values.get(url_col)
            if url == getattr(vocabulary, url_col):
                url = None

            filename = await self._store_asset(kind, new_name, upload, url)
            if filename:
                values[filename_col] = filename
                saved.append((filename, subdir))
                if old_filename and old_filename != filename:
                    replaced.append((old_filename, subdir))
            elif new_name != vocabulary.name and self.storage.exists(old_filename, subdir):
                extension = get_extension(old_filename)
                values[filename_col] = await self.storage.rename(
                    old_filename, word_filename(new_name, extension), subdir
                )
                renamed.append((values[filename_col], old_filename, subdir))

        try:
            result = await super().update(entity_id, values, user_id)
        except BusinessException:
            for filename, subdir in saved:
                await self.storage.delete(filename, subdir)
            for current, original, subdir in renamed:
                await self.storage.rename(current, original, subdir)
            raise

        for filename, subdir in replaced:
            await self.storage.delete(filename, subdir)
        return result

    async def _remove_files(self, entity) -> None:
        for filename_col, _, subdir, _ in ASSETS.values():
            filename = getattr(entity, filename_col)
            if filename:
                await self.storage.delete(filename, subdir)

    def image_path(self, filename: str):
        return self.storage.resolve(filename, IMAGE_SUBDIR)

    def audio_path(self, filename: str):
        return self.storage.resolve(filename, AUDIO_SUBDIR)

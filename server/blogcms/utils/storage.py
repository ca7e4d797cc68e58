"""
本地文件存储工具

文件名推导、冲突后缀、拼音转换、MIME 类型、Range 解析，
以及绑定到单个模块目录的 FileStorage
"""

import asyncio
import logging
import os
import re
import time
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import urlparse, unquote

import httpx
from pypinyin import lazy_pinyin

from ..models.response import ErrorCode, BusinessException, NotFoundException

logger = logging.getLogger(__name__)


CONTENT_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "m4a": "audio/mp4",
    "aac": "audio/aac",
    "flac": "audio/flac",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "ogv": "video/ogg",
    "ogg": "audio/ogg",
    "mov": "video/quicktime",
    "mkv": "video/x-matroska",
    "pdf": "application/pdf",
    "txt": "text/plain",
}

_WHITESPACE = re.compile(r"\s+")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")
_UNDERSCORES = re.compile(r"_+")


def millis() -> int:
    return int(time.time() * 1000)


def get_extension(filename: Optional[str]) -> str:
    """小写扩展名 (不含点)，没有则返回空串"""
    if not filename:
        return ""
    return os.path.splitext(filename)[1].lstrip(".").lower()


def replace_extension(filename: str, extension: str) -> str:
    return f"{os.path.splitext(filename)[0]}.{extension.lstrip('.')}"


def safe_filename(original: Optional[str], fallback_suffix: str = "file") -> str:
    """上传文件名: 去掉目录部分，空白替换为 "-"；缺失时用 "{毫秒}-{后缀}" """
    name = os.path.basename((original or "").replace("\\", "/"))
    if not name.strip():
        return f"{millis()}-{fallback_suffix}"
    return _WHITESPACE.sub("-", name)


def filename_from_url(url: str, fallback_suffix: str = "file") -> str:
    """URL 最后一段路径作为文件名"""
    path = urlparse(url).path
    segment = unquote(path.rsplit("/", 1)[-1]) if path else ""
    return safe_filename(segment, fallback_suffix)


def to_pinyin_slug(name: Optional[str], default: str) -> str:
    """
    名称转文件名安全的 slug

    - 中文转拼音，音节间用 "_"
    - CamelCase 拆分为 camel_case
    - 非 [A-Za-z0-9_-] 字符替换为 "_"
    - 转小写

    例: "我的标志" -> "wo_de_biao_zhi", "GitHub Logo" -> "git_hub_logo"
    """
    if not name or not name.strip():
        return default

    parts = []
    for token in lazy_pinyin(name.strip()):
        token = _CAMEL_BOUNDARY.sub("_", token)
        token = _UNSAFE_CHARS.sub("_", token)
        if token.strip("_"):
            parts.append(token)

    slug = _UNDERSCORES.sub("_", "_".join(parts)).strip("_").lower()
    return slug or default


def word_filename(word: str, extension: str) -> str:
    """单词类文件名: 小写，空白替换为 "-" """
    base = _WHITESPACE.sub("-", word.strip().lower())
    base = re.sub(r"[^a-z0-9_\-一-鿿]", "", base) or "word"
    return f"{base}.{extension.lstrip('.')}"


def content_type_for(filename: Optional[str]) -> str:
    """根据扩展名返回 MIME 类型"""
    return CONTENT_TYPES.get(get_extension(filename), "application/octet-stream")


def unique_filename(directory: Path, filename: str) -> str:
    """目标已存在时在扩展名前追加 -1, -2, ..."""
    if not (directory / filename).exists():
        return filename
    base, ext = os.path.splitext(filename)
    counter = 1
    while (directory / f"{base}-{counter}{ext}").exists():
        counter += 1
    return f"{base}-{counter}{ext}"


def parse_range(header: Optional[str], length: int) -> Optional[Tuple[int, int]]:
    """
    解析 Range 请求头 (只取第一个区间)

    Returns:
        (start, end) 闭区间；无 Range 头时返回 None

    Raises:
        BusinessException(RANGE_NOT_SATISFIABLE): 区间非法或越界
    """
    if not header or not header.startswith("bytes="):
        return None

    byte_range = header[len("bytes="):].split(",", 1)[0].strip()
    start_str, sep, end_str = byte_range.partition("-")
    try:
        if not sep:
            raise ValueError(byte_range)
        if start_str == "":
            # 后缀区间: 最后 N 字节
            suffix = int(end_str)
            if suffix <= 0:
                raise ValueError(byte_range)
            start = max(length - suffix, 0)
            end = length - 1
        else:
            start = int(start_str)
            end = int(end_str) if end_str else length - 1
            end = min(end, length - 1)
    except ValueError:
        raise BusinessException(
            ErrorCode.RANGE_NOT_SATISFIABLE, f"Invalid range: {header}"
        )

    if start < 0 or start > end or start >= length:
        raise BusinessException(
            ErrorCode.RANGE_NOT_SATISFIABLE,
            f"Range not satisfiable: {header}",
            detail={"length": length},
        )
    return start, end


class FileStorage:
    """绑定到单个模块目录的本地文件存储"""

    def __init__(self, directory: str, download_timeout: float = 30.0):
        self.directory = Path(directory)
        self.download_timeout = download_timeout

    def _dir(self, subdir: Optional[str] = None) -> Path:
        return self.directory / subdir if subdir else self.directory

    def path(self, filename: str, subdir: Optional[str] = None) -> Path:
        """文件路径，拒绝跳出存储目录的文件名"""
        base = self._dir(subdir).resolve()
        target = (base / filename).resolve()
        if target.parent != base:
            raise BusinessException(ErrorCode.INVALID_PARAMS, f"Invalid filename: {filename}")
        return target

    def exists(self, filename: Optional[str], subdir: Optional[str] = None) -> bool:
        if not filename:
            return False
        return self.path(filename, subdir).is_file()

    def unique_name(self, filename: str, subdir: Optional[str] = None) -> str:
        directory = self._dir(subdir)
        directory.mkdir(parents=True, exist_ok=True)
        return unique_filename(directory, filename)

    async def write(self, filename: str, data: bytes, subdir: Optional[str] = None) -> Path:
        """写入文件 (覆盖)"""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self._write_sync, filename, data, subdir)

    def _write_sync(self, filename: str, data: bytes, subdir: Optional[str]) -> Path:
        target = self.path(filename, subdir)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            logger.error(f"写入文件失败 {target}: {e}", exc_info=True)
            raise BusinessException(ErrorCode.STORAGE_ERROR, f"Failed to save file: {filename}")
        logger.info(f"文件已保存: {target} ({len(data)} bytes)")
        return target

    async def read(self, filename: str, subdir: Optional[str] = None) -> bytes:
        target = self.resolve(filename, subdir)
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, target.read_bytes)

    def resolve(self, filename: str, subdir: Optional[str] = None) -> Path:
        """已存在文件的路径，不存在抛 NotFoundException"""
        target = self.path(filename, subdir)
        if not target.is_file():
            raise NotFoundException(f"File not found: {filename}")
        return target

    async def delete(self, filename: Optional[str], subdir: Optional[str] = None) -> bool:
        """删除文件，不存在时返回 False"""
        if not filename:
            return False
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self._delete_sync, filename, subdir)

    def _delete_sync(self, filename: str, subdir: Optional[str]) -> bool:
        target = self.path(filename, subdir)
        try:
            target.unlink()
            logger.info(f"文件已删除: {target}")
            return True
        except FileNotFoundError:
            logger.warning(f"待删除文件不存在: {target}")
            return False
        except OSError as e:
            logger.error(f"删除文件失败 {target}: {e}")
            return False

    async def rename(self, old: str, new: str, subdir: Optional[str] = None) -> str:
        """重命名文件，目标冲突时追加后缀，返回最终文件名"""
        if old == new:
            return old
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self._rename_sync, old, new, subdir)

    def _rename_sync(self, old: str, new: str, subdir: Optional[str]) -> str:
        source = self.resolve(old, subdir)
        final = self.unique_name(new, subdir)
        source.rename(self.path(final, subdir))
        logger.info(f"文件重命名: {old} -> {final}")
        return final

    async def download(self, url: str) -> bytes:
        """下载远程文件"""
        try:
            async with httpx.AsyncClient(
                timeout=self.download_timeout, follow_redirects=True
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.content
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"下载失败 {url}: {e}")
            raise BusinessException(ErrorCode.DOWNLOAD_FAILED, f"Failed to download: {url}")
